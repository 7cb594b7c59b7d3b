"""Jibble Authentication Provider.

Exchanges Jibble API credentials for a bearer token with the OAuth2
client-credentials flow, caches it in memory (and optionally on disk) and
refreshes it before expiry.
"""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

import aiohttp

from core.observability.logging import get_logger


logger = get_logger(__name__)

JIBBLE_TOKEN_URL = "https://identity.prod.jibble.io/connect/token"


@dataclass
class JibbleAuthConfig:
    """Configuration for Jibble authentication.

    Attributes:
        client_id: Jibble API key
        client_secret: Jibble API secret
        token_url: OAuth2 token endpoint
        timeout_seconds: Token request timeout
    """
    client_id: str
    client_secret: str
    token_url: str = JIBBLE_TOKEN_URL
    timeout_seconds: int = 30


@dataclass
class JibbleToken:
    """OAuth2 access token with expiration tracking."""
    access_token: str
    token_type: str = "Bearer"
    expires_in: int = 3600
    obtained_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def expires_at(self) -> datetime:
        return self.obtained_at + timedelta(seconds=self.expires_in)

    @property
    def is_expired(self) -> bool:
        """Check if token is expired (with a 5-minute buffer)."""
        return datetime.utcnow() >= (self.expires_at - timedelta(minutes=5))

    @property
    def authorization_header(self) -> str:
        return f"{self.token_type} {self.access_token}"


class JibbleAuthProvider:
    """Token provider for the Jibble API.

    Usage:
        auth = JibbleAuthProvider(JibbleAuthConfig(client_id="...", client_secret="..."))
        if await auth.ensure_valid_token():
            header = auth.get_authorization_header()
    """

    def __init__(self, config: JibbleAuthConfig, cache_path: Optional[Path] = None):
        self.config = config
        self.cache_path = cache_path
        self._token: Optional[JibbleToken] = None
        self.last_error: Optional[str] = None
        # Serializes token exchanges across concurrent requests
        self._lock = asyncio.Lock()

    async def authenticate(self) -> bool:
        """Load a cached token or fetch a new one.

        Concurrent callers share a single token exchange.

        Returns:
            True if a valid token is available
        """
        async with self._lock:
            if self.get_token() is not None:
                return True
            if self._try_load_cached_token():
                return True
            return await self._fetch_token()

    async def _fetch_token(self) -> bool:
        data = {
            "grant_type": "client_credentials",
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
        }
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(
                    self.config.token_url,
                    data=data,
                    headers={
                        "Accept": "application/json",
                        "Content-Type": "application/x-www-form-urlencoded",
                    },
                ) as response:
                    if response.status != 200:
                        body = await response.text()
                        self.last_error = f"Token request failed: {response.status} - {body}"
                        logger.error(self.last_error)
                        return False

                    token_data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.last_error = f"Token request failed: {type(e).__name__}: {e}"
            logger.error(self.last_error)
            return False

        if "access_token" not in token_data:
            self.last_error = "Token response has no access_token"
            logger.error(self.last_error)
            return False

        self._token = JibbleToken(
            access_token=token_data["access_token"],
            token_type=token_data.get("token_type", "Bearer"),
            expires_in=int(token_data.get("expires_in", 3600)),
        )
        self.last_error = None
        self._save_token_to_cache()
        logger.info("Obtained Jibble access token")
        return True

    def get_token(self) -> Optional[JibbleToken]:
        """Return the current token if it has not expired."""
        if self._token and not self._token.is_expired:
            return self._token
        return None

    def get_authorization_header(self) -> Optional[str]:
        token = self.get_token()
        return token.authorization_header if token else None

    async def ensure_valid_token(self) -> bool:
        """Refresh the token if it is missing or expired."""
        if self.get_token() is not None:
            return True
        return await self.authenticate()

    async def refresh(self, rejected: Optional[JibbleToken] = None) -> bool:
        """Discard the current token and fetch a new one, bypassing the disk cache.

        Args:
            rejected: The token the API just refused. If another request has
                already replaced it, that newer token is kept.
        """
        async with self._lock:
            current = self.get_token()
            if rejected is not None and current is not None and current is not rejected:
                return True
            # Requests in flight keep using the old token until the exchange finishes
            if await self._fetch_token():
                return True
            self._token = None
            return False

    def _try_load_cached_token(self) -> bool:
        if not self.cache_path or not self.cache_path.exists():
            return False

        try:
            with open(self.cache_path, "r") as f:
                data = json.load(f)
            token = JibbleToken(
                access_token=data["access_token"],
                token_type=data["token_type"],
                expires_in=data["expires_in"],
                obtained_at=datetime.fromisoformat(data["obtained_at"]),
            )
        except (OSError, ValueError, KeyError) as e:
            logger.warning(f"Ignoring unreadable token cache {self.cache_path}: {e}")
            return False

        if token.is_expired:
            return False
        self._token = token
        return True

    def _save_token_to_cache(self) -> None:
        if not self.cache_path or not self._token:
            return

        data = {
            "access_token": self._token.access_token,
            "token_type": self._token.token_type,
            "expires_in": self._token.expires_in,
            "obtained_at": self._token.obtained_at.isoformat(),
        }
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.cache_path, "w") as f:
                json.dump(data, f)
        except OSError as e:
            logger.warning(f"Failed to cache Jibble token: {e}")

    def clear_cache(self) -> None:
        """Clear the in-memory and on-disk token."""
        self._token = None
        if self.cache_path and self.cache_path.exists():
            self.cache_path.unlink()
