"""FastAPI dependency injection — wires infrastructure to application layer."""

from collections.abc import AsyncGenerator
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from case_fetch.config import get_settings
from case_fetch.application.interfaces import CourtDataClient, FetchConfigStore
from case_fetch.application.services import (
    BulkImportService,
    ChangeNotifier,
    EnqueueService,
    FetchConfigService,
    FetchDispatcher,
    FetchStatusService,
    QueueService,
    RetryScheduler,
    SSEManager,
)
from case_fetch.infrastructure.court_data import HttpCourtDataClient
from case_fetch.infrastructure.database.session import async_session_factory, get_db_session
from case_fetch.infrastructure.database.repositories import (
    SQLAlchemyCaseRepository,
    SQLAlchemyFetchAttemptRepository,
    SQLAlchemyQueueItemRepository,
)
from case_fetch.infrastructure.spreadsheets import OpenpyxlCaseSheetReader
from case_fetch.infrastructure.storage.json_config_store import JsonFetchConfigStore


# ── Process-wide singletons ─────────────────────────────────────────

@lru_cache
def get_sse_manager() -> SSEManager:
    """Single broadcaster shared by the dispatcher and every SSE client."""
    return SSEManager()


@lru_cache
def get_fetch_config_store() -> FetchConfigStore:
    return JsonFetchConfigStore(get_settings().fetch_config_file)


@lru_cache
def get_court_data_client() -> CourtDataClient:
    """Court-records API client; keeps its auth token across batches."""
    settings = get_settings()
    return HttpCourtDataClient(
        base_url=settings.court_api_base_url,
        user_id=settings.court_api_user_id,
        hash_key=settings.court_api_hash_key,
        timeout=settings.court_lookup_timeout_seconds,
    )


@lru_cache
def get_fetch_dispatcher() -> FetchDispatcher:
    """Dispatcher bound to the application session factory.

    It opens its own short-lived sessions, so it is not tied to a request.
    """
    settings = get_settings()
    return FetchDispatcher(
        session_factory=async_session_factory,
        court_client=get_court_data_client(),
        retry_scheduler=RetryScheduler(),
        sse_manager=get_sse_manager(),
        lookup_timeout=settings.court_lookup_timeout_seconds,
        stale_claim_minutes=settings.stale_claim_minutes,
        error_limit=settings.dispatch_error_limit,
    )


# ── Request-scoped services ─────────────────────────────────────────

def _notifier(session: AsyncSession) -> ChangeNotifier:
    """Broadcasts queue changes once the request session has committed them."""
    return ChangeNotifier(get_sse_manager(), commit=session.commit)


async def get_enqueue_service(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[EnqueueService, None]:
    """Provides an EnqueueService with its repositories wired up."""
    yield EnqueueService(
        queue_repository=SQLAlchemyQueueItemRepository(session),
        case_repository=SQLAlchemyCaseRepository(session),
        config_store=get_fetch_config_store(),
        notifier=_notifier(session),
    )


async def get_queue_service(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[QueueService, None]:
    """Provides a QueueService for listing and operator actions."""
    yield QueueService(
        repository=SQLAlchemyQueueItemRepository(session),
        attempt_repository=SQLAlchemyFetchAttemptRepository(session),
        notifier=_notifier(session),
    )


async def get_fetch_status_service(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[FetchStatusService, None]:
    yield FetchStatusService(SQLAlchemyCaseRepository(session))


async def get_bulk_import_service(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[BulkImportService, None]:
    """Provides a BulkImportService; each imported row runs in its own savepoint."""
    case_repository = SQLAlchemyCaseRepository(session)
    enqueue_service = EnqueueService(
        queue_repository=SQLAlchemyQueueItemRepository(session),
        case_repository=case_repository,
        config_store=get_fetch_config_store(),
    )
    yield BulkImportService(
        case_repository=case_repository,
        enqueue_service=enqueue_service,
        sheet_reader=OpenpyxlCaseSheetReader(),
        savepoint=session.begin_nested,
        notifier=_notifier(session),
    )


def get_fetch_config_service() -> FetchConfigService:
    return FetchConfigService(get_fetch_config_store())
