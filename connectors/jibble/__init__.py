"""Jibble Connector Package.

Implements AttendanceSource for the Jibble time-attendance API.
"""

from connectors.jibble.auth import JibbleAuthConfig, JibbleAuthProvider, JibbleToken
from connectors.jibble.client import (
    JibbleApiClient,
    JibbleApiConfig,
    JibbleApiError,
    JibbleAuthenticationError,
    JibbleNotFoundError,
    JibbleRateLimitError,
    RetryConfig,
)
from connectors.jibble.source import JibbleTimesheetSource

__all__ = [
    "JibbleAuthConfig",
    "JibbleAuthProvider",
    "JibbleToken",
    "JibbleApiClient",
    "JibbleApiConfig",
    "JibbleApiError",
    "JibbleAuthenticationError",
    "JibbleNotFoundError",
    "JibbleRateLimitError",
    "RetryConfig",
    "JibbleTimesheetSource",
]
