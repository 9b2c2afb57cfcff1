"""Base HTTP client for calls to Google Cloud APIs."""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


class BaseServiceClient:
    """Base class for authenticated HTTP clients.

    Requests carry an OAuth bearer token and the library's User-Agent. When
    ``debug_log_dir`` is set, request and response bodies are captured as JSON
    files named ``<method>_input.json`` / ``<method>_output.json``.

    Usage:
        class InvestigationTransport(BaseServiceClient):
            async def get(self, name: str) -> Investigation:
                async with self._get_client() as client:
                    response = await client.get(url, headers=self._headers(token))
                    response.raise_for_status()
                    return Investigation(**response.json())
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: Optional[str] = None,
        debug_log_dir: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize client.

        Args:
            timeout: Request timeout in seconds (default: 30.0)
            user_agent: Value for the User-Agent header
            debug_log_dir: Directory for request/response capture (disabled when None)
            transport: Custom httpx transport (e.g. httpx.MockTransport in tests)
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self.debug_log_dir = Path(debug_log_dir) if debug_log_dir else None
        self._transport = transport

        logger.debug(f"Initialized {self.__class__.__name__} (timeout={timeout}s)")

    def _headers(self, token: Optional[str] = None) -> dict:
        """Generate request headers.

        Args:
            token: OAuth access token for the Authorization header

        Returns:
            Headers dict
        """
        headers = {
            "Content-Type": "application/json",
        }

        if token:
            headers["Authorization"] = f"Bearer {token}"

        if self.user_agent:
            headers["User-Agent"] = self.user_agent

        return headers

    def _get_client(self) -> httpx.AsyncClient:
        """Get HTTP client instance with configured timeout.

        Returns:
            Configured AsyncClient ready for use with async context manager
        """
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    @staticmethod
    def _error_payload(response: httpx.Response) -> Any:
        """Backend error body: parsed JSON when possible, else the raw text."""
        try:
            return response.json()
        except ValueError:
            return response.text or "No details available."

    def _write_debug_log(self, method_name: str, kind: str, data: Any) -> None:
        """Capture a request or response body when debug logging is enabled."""
        if self.debug_log_dir is None:
            return

        if isinstance(data, dict):
            data = {key: value for key, value in data.items() if key not in ("auth", "headers")}

        try:
            self.debug_log_dir.mkdir(parents=True, exist_ok=True)
            file_path = self.debug_log_dir / f"{method_name}_{kind}.json"
            file_path.write_text(json.dumps(data, indent=2, default=str))
        except OSError as e:
            logger.error(f"Failed to write debug log for {method_name}: {e}")

