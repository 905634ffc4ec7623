"""Shared fixtures — a throwaway SQLite database per test and a fake court API."""

import asyncio

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from case_fetch.application.interfaces import CourtDataClient
from case_fetch.domain.entities import CaseLookupResult, CourtType
from case_fetch.infrastructure.database import Base


class FakeCourtDataClient(CourtDataClient):
    """In-memory court API.

    ``responses`` maps a CNR to either a payload dict or an exception to
    raise. Unknown CNRs get a minimal payload. Tracks how many lookups were
    in flight at once.
    """

    def __init__(self, responses: dict | None = None, latency: float = 0.0):
        self.responses = responses or {}
        self.latency = latency
        self.calls: list[tuple[str, CourtType]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.before_return = None

    async def lookup(self, cnr_number: str, court_type: CourtType) -> CaseLookupResult:
        self.calls.append((cnr_number, court_type))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.latency:
                await asyncio.sleep(self.latency)
            if self.before_return is not None:
                await self.before_return(cnr_number)
            response = self.responses.get(cnr_number, {"cnr": cnr_number, "case_status": "Pending"})
            if isinstance(response, BaseException):
                raise response
            return CaseLookupResult.from_payload(response)
        finally:
            self.in_flight -= 1


class SleepRecorder:
    """Stand-in for ``asyncio.sleep`` that records delays without waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'case_fetch.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def court_client() -> FakeCourtDataClient:
    return FakeCourtDataClient()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()
