"""HTTP client for the external court-records (eCourts aggregator) API.

Authenticates with ``user_id`` + ``hash_key`` to obtain a JWT, then posts
``{"cnr": ...}`` to the per-court search endpoint. Failures are translated
into ``TransientLookupError`` / ``PermanentLookupError`` with user-facing
messages so the dispatcher never has to inspect HTTP details.
"""

import asyncio
import logging
from typing import Any

import httpx

from case_fetch.application.interfaces.court_data_client import CourtDataClient
from case_fetch.domain.entities.case_lookup import CaseLookupResult
from case_fetch.domain.entities.queue_item import CourtType
from case_fetch.domain.exceptions import PermanentLookupError, TransientLookupError

logger = logging.getLogger(__name__)

# Error code → message shown to users on the queue and the case.
FRIENDLY_ERROR_MESSAGES: dict[str, str] = {
    "CNR_NOT_FOUND": "CNR number not found in eCourts system",
    "INVALID_CNR_FORMAT": "CNR format is invalid",
    "API_TIMEOUT": "eCourts API timed out",
    "RATE_LIMIT": "API rate limit reached",
    "NETWORK_ERROR": "Network connection issue",
    "COURT_TYPE_MISMATCH": "Court type doesn't match CNR format",
    "AUTH_FAILED": "Could not authenticate with the court data provider",
    "EMPTY_RESPONSE": "Court data provider returned no case data",
    "UPSTREAM_ERROR": "Court data provider is unavailable",
    "REQUEST_REJECTED": "Court data provider rejected the request",
}


def _transient(code: str, status_code: int | None = None) -> TransientLookupError:
    return TransientLookupError(code, FRIENDLY_ERROR_MESSAGES[code], status_code)


def _permanent(code: str, status_code: int | None = None) -> PermanentLookupError:
    return PermanentLookupError(code, FRIENDLY_ERROR_MESSAGES[code], status_code)


def classify_error_text(text: str) -> str | None:
    """Find a known error code mentioned in an upstream error body, if any."""
    lowered = text.lower()
    for code in FRIENDLY_ERROR_MESSAGES:
        if code.lower() in lowered:
            return code
    if "not found" in lowered:
        return "CNR_NOT_FOUND"
    if "invalid cnr" in lowered:
        return "INVALID_CNR_FORMAT"
    return None


class HttpCourtDataClient(CourtDataClient):
    """Infrastructure adapter — connects to the court-records API over httpx.

    The JWT is fetched lazily and shared by concurrent lookups; a 401 on a
    search triggers one re-authentication.
    """

    def __init__(
        self,
        base_url: str,
        user_id: str,
        hash_key: str,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._user_id = user_id
        self._hash_key = hash_key
        self._timeout = timeout
        self._http_client = http_client
        self._owns_client = http_client is None
        self._token: str | None = None
        self._auth_lock = asyncio.Lock()

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def close(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def lookup(self, cnr_number: str, court_type: CourtType) -> CaseLookupResult:
        cnr = cnr_number.strip()
        if not cnr:
            raise _permanent("INVALID_CNR_FORMAT")

        token = await self._get_token()
        response = await self._search(token, cnr, court_type)
        if response.status_code == 401:
            logger.info("Court API token rejected — re-authenticating")
            token = await self._get_token(refresh=True)
            response = await self._search(token, cnr, court_type)

        self._raise_for_status(response)

        try:
            body = response.json()
        except ValueError:
            raise _transient("UPSTREAM_ERROR", response.status_code)

        payload = self._extract_payload(body)
        logger.debug("Court API returned case data for %s (%s)", cnr, court_type.value)
        return CaseLookupResult.from_payload(payload)

    async def _get_token(self, refresh: bool = False) -> str:
        async with self._auth_lock:
            if self._token and not refresh:
                return self._token
            self._token = await self._authenticate()
            return self._token

    async def _authenticate(self) -> str:
        if not self._user_id or not self._hash_key:
            raise _permanent("AUTH_FAILED")

        try:
            response = await self._client().post(
                f"{self._base_url}/auth/login",
                json={"user_id": self._user_id, "hash_key": self._hash_key},
                headers={"Accept": "application/json"},
            )
        except httpx.TimeoutException:
            raise _transient("API_TIMEOUT")
        except httpx.TransportError as exc:
            logger.warning("Court API authentication transport error: %s", exc)
            raise _transient("NETWORK_ERROR")

        if response.status_code == 429 or response.status_code >= 500:
            raise _transient(
                "RATE_LIMIT" if response.status_code == 429 else "UPSTREAM_ERROR",
                response.status_code,
            )
        if response.status_code >= 400:
            logger.error(
                "Court API authentication failed: %d %s",
                response.status_code,
                response.text[:200],
            )
            raise _permanent("AUTH_FAILED", response.status_code)

        token = response.json().get("jwt")
        if not token:
            raise _permanent("AUTH_FAILED", response.status_code)
        return token

    async def _search(self, token: str, cnr: str, court_type: CourtType) -> httpx.Response:
        try:
            return await self._client().post(
                f"{self._base_url}/case-search/{court_type.api_path}",
                json={"cnr": cnr},
                headers={"Authorization": token, "Content-Type": "application/json"},
            )
        except httpx.TimeoutException:
            raise _transient("API_TIMEOUT")
        except httpx.TransportError as exc:
            logger.warning("Court API transport error for %s: %s", cnr, exc)
            raise _transient("NETWORK_ERROR")

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return
        if status == 429:
            raise _transient("RATE_LIMIT", status)
        if status in (408, 504):
            raise _transient("API_TIMEOUT", status)
        if status >= 500:
            raise _transient("UPSTREAM_ERROR", status)
        if status == 404:
            raise _permanent("CNR_NOT_FOUND", status)
        code = classify_error_text(response.text) or "REQUEST_REJECTED"
        if code in ("API_TIMEOUT", "RATE_LIMIT", "NETWORK_ERROR", "UPSTREAM_ERROR"):
            raise _transient(code, status)
        raise _permanent(code, status)

    @staticmethod
    def _extract_payload(body: Any) -> dict[str, Any]:
        """Unwrap the case object from the search response envelope."""
        if not isinstance(body, dict) or not body:
            raise _permanent("EMPTY_RESPONSE")

        if body.get("success") is False or body.get("status") == "failed":
            message = str(body.get("error") or body.get("message") or "")
            code = classify_error_text(message) or "CNR_NOT_FOUND"
            if code in ("API_TIMEOUT", "RATE_LIMIT", "NETWORK_ERROR"):
                raise _transient(code)
            raise _permanent(code)

        data = body.get("data", body)
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, dict) or not data:
            raise _permanent("EMPTY_RESPONSE")
        return data
