"""Court-records API infrastructure package."""

from .court_data_client import FRIENDLY_ERROR_MESSAGES, HttpCourtDataClient

__all__ = ["FRIENDLY_ERROR_MESSAGES", "HttpCourtDataClient"]
