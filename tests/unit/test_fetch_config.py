"""Unit tests for the fetch configuration, its JSON store and service."""

import json

import pytest

from case_fetch.application.schemas import FetchConfigUpdate
from case_fetch.application.services import FetchConfigService
from case_fetch.domain.entities import FetchConfig
from case_fetch.infrastructure.storage.json_config_store import JsonFetchConfigStore


def test_defaults():
    config = FetchConfig()
    assert config.to_dict() == {
        "concurrency": 5,
        "delay_between_requests": 1500,
        "max_retries": 3,
        "auto_retry": True,
    }


@pytest.mark.parametrize(
    "raw, expected",
    [
        ({"concurrency": 0}, 1),
        ({"concurrency": 50}, 10),
        ({"concurrency": "7"}, 7),
        ({"concurrency": "lots"}, 5),
        ({}, 5),
    ],
)
def test_concurrency_is_clamped(raw, expected):
    assert FetchConfig.from_dict(raw).concurrency == expected


def test_delay_and_retries_are_clamped():
    config = FetchConfig.from_dict(
        {"delay_between_requests": 10, "max_retries": 99, "auto_retry": "false"}
    )
    assert config.delay_between_requests == 500
    assert config.max_retries == 10
    assert config.auto_retry is False

    config = FetchConfig.from_dict({"delay_between_requests": 60000, "max_retries": -1})
    assert config.delay_between_requests == 5000
    assert config.max_retries == 0


def test_merged_ignores_missing_fields():
    config = FetchConfig(concurrency=3).merged({"max_retries": 5, "concurrency": None})
    assert config.concurrency == 3
    assert config.max_retries == 5


# ── JSON store ──


def test_store_returns_defaults_when_file_missing(tmp_path):
    store = JsonFetchConfigStore(tmp_path / "missing" / "fetch_config.json")
    assert store.load() == FetchConfig()


def test_store_round_trips_and_creates_directory(tmp_path):
    path = tmp_path / "data" / "fetch_config.json"
    store = JsonFetchConfigStore(path)
    store.save(FetchConfig(concurrency=2, delay_between_requests=800, max_retries=1, auto_retry=False))

    assert json.loads(path.read_text("utf-8"))["concurrency"] == 2
    assert store.load() == FetchConfig(
        concurrency=2, delay_between_requests=800, max_retries=1, auto_retry=False
    )


def test_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "fetch_config.json"
    path.write_text("{not json", "utf-8")
    assert JsonFetchConfigStore(path).load() == FetchConfig()


def test_store_clamps_hand_edited_values(tmp_path):
    path = tmp_path / "fetch_config.json"
    path.write_text(json.dumps({"concurrency": 100, "delay_between_requests": 1}), "utf-8")
    config = JsonFetchConfigStore(path).load()
    assert config.concurrency == 10
    assert config.delay_between_requests == 500


# ── Service ──


def test_service_partial_update_is_clamped_and_persisted(tmp_path):
    store = JsonFetchConfigStore(tmp_path / "fetch_config.json")
    service = FetchConfigService(store)

    updated = service.update_config(FetchConfigUpdate(concurrency=25, auto_retry=False))

    assert updated.concurrency == 10
    assert updated.auto_retry is False
    assert updated.delay_between_requests == 1500
    assert service.get_config() == updated
