"""Jibble HTTP Client.

Low-level HTTP client for the Jibble time-attendance API.
Handles authentication headers, retries with exponential backoff and error
mapping. Transport-level retries live here and nowhere else.
"""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Optional, Tuple

import aiohttp

from connectors.jibble.auth import JibbleAuthProvider
from core.observability.logging import get_logger


logger = get_logger(__name__)

JIBBLE_TIME_ATTENDANCE_URL = "https://time-attendance.prod.jibble.io/v1"


class JibbleApiError(Exception):
    """Base exception for Jibble API errors."""
    def __init__(self, message: str, status_code: int = 0, response_body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class JibbleAuthenticationError(JibbleApiError):
    """Authentication failed (401/403) or no token could be obtained."""
    pass


class JibbleNotFoundError(JibbleApiError):
    """Resource not found (404)."""
    pass


class JibbleRateLimitError(JibbleApiError):
    """Rate limit exceeded (429) after all retries."""
    def __init__(self, message: str, retry_after: int = 60):
        super().__init__(message, 429)
        self.retry_after = retry_after


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 60.0  # seconds
    exponential_base: float = 2.0
    retry_on_status: Tuple[int, ...] = (429, 500, 502, 503, 504)

    def get_delay(self, attempt: int) -> float:
        """Calculate delay for retry attempt (exponential backoff)."""
        delay = self.base_delay * (self.exponential_base ** attempt)
        return min(delay, self.max_delay)


@dataclass
class JibbleApiConfig:
    """Configuration for the Jibble API client."""
    base_url: str = JIBBLE_TIME_ATTENDANCE_URL
    retry_config: RetryConfig = field(default_factory=RetryConfig)
    timeout_seconds: int = 30


def _retry_after_seconds(value: Optional[str]) -> Optional[int]:
    """Parse a Retry-After header given as seconds or as an HTTP date.

    Returns None when the header is missing or unreadable.
    """
    if value is None:
        return None
    value = value.strip()
    if value.isdigit():
        return int(value)
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when is None:
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0, int((when - datetime.now(timezone.utc)).total_seconds()))


class JibbleApiClient:
    """HTTP client for the Jibble time-attendance API.

    Usage:
        async with JibbleApiClient(auth, JibbleApiConfig()) as client:
            summary = await client.get_timesheets_summary(person_id, "2024-03-01", "2024-03-31")
    """

    def __init__(self, auth_provider: JibbleAuthProvider, api_config: Optional[JibbleApiConfig] = None):
        self.auth_provider = auth_provider
        self.api_config = api_config or JibbleApiConfig()
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "JibbleApiClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    async def connect(self) -> None:
        """Open the HTTP session."""
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.api_config.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)

    async def disconnect(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    def _get_headers(self) -> Dict[str, str]:
        auth_header = self.auth_provider.get_authorization_header()
        if not auth_header:
            raise JibbleAuthenticationError("Not authenticated")
        return {
            "Authorization": auth_header,
            "Accept": "application/json",
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Make an authenticated API request with automatic retries.

        Raises:
            JibbleAuthenticationError: Authentication failed
            JibbleNotFoundError: Resource not found
            JibbleRateLimitError: Rate limit exceeded
            JibbleApiError: Other API and transport errors
        """
        if self._session is None:
            await self.connect()

        if not await self.auth_provider.ensure_valid_token():
            raise JibbleAuthenticationError(
                self.auth_provider.last_error or "Failed to obtain Jibble token"
            )

        url = f"{self.api_config.base_url}/{endpoint.lstrip('/')}"
        retry_config = self.api_config.retry_config
        refreshed = False
        last_error: Optional[Exception] = None

        for attempt in range(retry_config.max_retries + 1):
            token = self.auth_provider.get_token()
            try:
                async with self._session.request(
                    method,
                    url,
                    headers=self._get_headers(),
                    params=params,
                ) as response:
                    response_text = await response.text()

                    if response.status < 400:
                        if response.status == 204 or not response_text:
                            return None
                        try:
                            return json.loads(response_text)
                        except ValueError as e:
                            raise JibbleApiError(
                                f"Invalid JSON from {url}: {e}", response.status, response_text
                            ) from e

                    if response.status in (401, 403):
                        if not refreshed:
                            refreshed = True
                            logger.warning(f"Got {response.status}, refreshing Jibble token...")
                            if await self.auth_provider.refresh(token):
                                continue
                        raise JibbleAuthenticationError(
                            f"Authentication failed: {response_text}",
                            response.status,
                            response_text,
                        )

                    if response.status == 404:
                        raise JibbleNotFoundError(
                            f"Resource not found: {url}",
                            response.status,
                            response_text,
                        )

                    if response.status == 429:
                        retry_after = _retry_after_seconds(response.headers.get("Retry-After"))
                        if attempt < retry_config.max_retries:
                            if retry_after is None:
                                delay = retry_config.get_delay(attempt)
                            else:
                                delay = min(retry_after, retry_config.max_delay)
                            logger.warning(f"Rate limited, waiting {delay}s...")
                            await asyncio.sleep(delay)
                            continue
                        raise JibbleRateLimitError(
                            "Rate limit exceeded",
                            retry_after if retry_after is not None else int(retry_config.get_delay(attempt)),
                        )

                    if response.status in retry_config.retry_on_status and attempt < retry_config.max_retries:
                        delay = retry_config.get_delay(attempt)
                        logger.warning(
                            f"Request failed with {response.status}, "
                            f"retrying in {delay:.1f}s (attempt {attempt + 1}/{retry_config.max_retries})"
                        )
                        await asyncio.sleep(delay)
                        continue

                    raise JibbleApiError(
                        f"Jibble API error {response.status}: {response_text}",
                        response.status,
                        response_text,
                    )

            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = e
                if attempt < retry_config.max_retries:
                    delay = retry_config.get_delay(attempt)
                    logger.warning(
                        f"Request failed with {type(e).__name__}: {e}, retrying in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                    continue
                raise JibbleApiError(
                    f"Request failed after {retry_config.max_retries} retries: {e}"
                ) from e

        raise JibbleApiError(f"Request failed: {last_error}")

    async def get_timesheets_summary(
        self,
        person_id: str,
        start_date: str,
        end_date: str,
        filter: Optional[str] = None,
    ) -> Any:
        """Fetch the timesheet summary for one person over a custom period.

        Args:
            person_id: Jibble person ID
            start_date: First day (YYYY-MM-DD)
            end_date: Last day (YYYY-MM-DD)
            filter: Optional OData $filter expression

        Returns:
            Raw payload as returned by the API (an OData envelope or list)
        """
        params = {
            "period": "Custom",
            "date": start_date,
            "endDate": end_date,
            "personId": person_id,
        }
        if filter:
            params["$filter"] = filter
        return await self._request("GET", "TimesheetsSummary", params=params)
