"""Access token provider backed by Application Default Credentials."""

import asyncio
import logging
import time
from datetime import timezone
from typing import Any, List, Optional

import google.auth
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request

from cloud_assist_lib.constants import CLOUD_PLATFORM_SCOPE
from cloud_assist_lib.errors import AuthFailedError

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_LIFETIME_SECONDS = 3600


class CredentialsProvider:
    """Supplies OAuth access tokens with caching and refresh.

    This class handles:
    1. Loading Application Default Credentials (ADC)
    2. Caching the access token until shortly before it expires
    3. Refreshing under a lock so concurrent callers share one refresh

    Usage:
        provider = CredentialsProvider()
        token = await provider.get_token()
        headers = {"Authorization": f"Bearer {token}"}
    """

    def __init__(
        self,
        scopes: Optional[List[str]] = None,
        credentials: Any = None,
        project_id: Optional[str] = None,
        refresh_buffer_seconds: int = 300,  # Refresh 5 minutes before expiration
    ):
        """Initialize provider.

        Args:
            scopes: OAuth scopes to request (default: cloud-platform)
            credentials: Pre-built google-auth credentials; ADC is used when omitted
            project_id: Project to use when the caller names none (default: the ADC project)
            refresh_buffer_seconds: Refresh token this many seconds before expiration
        """
        self.scopes = scopes or [CLOUD_PLATFORM_SCOPE]
        self.refresh_buffer_seconds = refresh_buffer_seconds
        self._credentials = credentials
        self._project_id = project_id

        self._token: Optional[str] = None
        self._token_expires_at: float = 0
        self._lock = asyncio.Lock()

    async def get_token(self) -> str:
        """Get a valid access token, refreshing it if expired or missing.

        Raises:
            AuthFailedError: If credentials cannot be loaded or refreshed
        """
        if not self.is_token_valid:
            async with self._lock:
                # Another caller may have refreshed while we waited
                if not self.is_token_valid:
                    await asyncio.to_thread(self._refresh_token)

        if self._token is None:
            raise AuthFailedError("Authentication failed. No access token was issued.")

        return self._token

    def _refresh_token(self) -> None:
        try:
            if self._credentials is None:
                logger.info("Authenticating with Application Default Credentials (ADC).")
                self._credentials, default_project = google.auth.default(scopes=self.scopes)
                self._project_id = self._project_id or default_project
            self._credentials.refresh(Request())
        except GoogleAuthError as e:
            logger.error(f"Authentication failed: {e}")
            raise AuthFailedError(
                "Authentication failed. Please check your Application Default Credentials. "
                f"Try running 'gcloud auth application-default login'. {e}"
            ) from e

        self._token = self._credentials.token
        expiry = getattr(self._credentials, "expiry", None)
        if expiry is not None:
            # google-auth reports expiry as a naive UTC datetime
            self._token_expires_at = expiry.replace(tzinfo=timezone.utc).timestamp()
        else:
            self._token_expires_at = time.time() + DEFAULT_TOKEN_LIFETIME_SECONDS

        logger.debug(
            f"Refreshed access token (expires in {int(self._token_expires_at - time.time())}s)"
        )

    async def get_project_id(self) -> str:
        """Project the credentials belong to, loading them if needed.

        Raises:
            AuthFailedError: If credentials cannot be loaded or name no project
        """
        await self.get_token()
        if not self._project_id:
            raise AuthFailedError(
                "Authentication failed. No default project is configured. "
                "Run 'gcloud config set project <PROJECT_ID>' or pass a project ID."
            )
        return self._project_id

    async def invalidate_token(self) -> None:
        """Force a refresh on the next get_token() call."""
        async with self._lock:
            self._token = None
            self._token_expires_at = 0

    @property
    def is_token_valid(self) -> bool:
        if self._token is None:
            return False
        return time.time() < (self._token_expires_at - self.refresh_buffer_seconds)
