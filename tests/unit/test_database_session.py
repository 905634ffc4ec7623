"""Tests for engine URL and pool configuration."""

from case_fetch.domain.entities.fetch_config import CONCURRENCY_RANGE
from case_fetch.infrastructure.database.session import _engine_options, _get_async_url


def test_async_url_conversion():
    assert _get_async_url("postgresql://u:p@db/x") == "postgresql+asyncpg://u:p@db/x"
    assert _get_async_url("sqlite:///./x.db") == "sqlite+aiosqlite:///./x.db"
    assert _get_async_url("postgresql+asyncpg://db/x") == "postgresql+asyncpg://db/x"


def test_server_pool_covers_every_dispatch_slot():
    options = _engine_options("postgresql+asyncpg://db/x")
    assert options["pool_size"] > CONCURRENCY_RANGE[1]
    assert options["pool_pre_ping"] is True


def test_sqlite_keeps_default_pool():
    assert _engine_options("sqlite+aiosqlite:///./x.db") == {}
