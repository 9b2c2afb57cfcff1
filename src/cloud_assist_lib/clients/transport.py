"""HTTP transport for the Gemini Cloud Assist investigations API."""

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from cloud_assist_lib.auth import CredentialsProvider
from cloud_assist_lib.clients.base import BaseServiceClient
from cloud_assist_lib.config import ClientConfig
from cloud_assist_lib.constants import LIST_FIELDS
from cloud_assist_lib.core.paths import InvestigationPath
from cloud_assist_lib.discovery import ApiDescriptor, ApiDiscovery
from cloud_assist_lib.discovery.api_discovery import (
    CREATE_INVESTIGATION,
    CREATE_REVISION,
    GET_INVESTIGATION,
    GET_OPERATION,
    LIST_INVESTIGATIONS,
    RUN_REVISION,
)
from cloud_assist_lib.errors import BackendPayload, CloudAssistError, RemoteCallFailedError
from cloud_assist_lib.models import (
    Investigation,
    InvestigationList,
    Operation,
    RevisionRequest,
)
from cloud_assist_lib.utils import transient_http_retry

logger = logging.getLogger(__name__)


class InvestigationTransport(BaseServiceClient):
    """Async client for the investigations REST API.

    Authentication and API discovery happen lazily on first use and are
    cached for the lifetime of the instance. Every failure is raised as a
    ``CloudAssistError``; backend error bodies are attached verbatim.

    Usage:
        transport = InvestigationTransport(ClientConfig())
        investigation = await transport.get(path.investigation_name)
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        credentials: Optional[CredentialsProvider] = None,
        discovery: Optional[ApiDiscovery] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize transport.

        Args:
            config: Client configuration (default: ClientConfig())
            credentials: Access token provider (default: ADC)
            discovery: API discovery (default: from config.discovery_url)
            transport: Custom httpx transport shared by API and discovery calls
        """
        self.config = config or ClientConfig()
        super().__init__(
            timeout=self.config.timeout_seconds,
            user_agent=self.config.user_agent,
            debug_log_dir=self.config.debug_log_dir,
            transport=transport,
        )
        self.credentials = credentials or CredentialsProvider()
        self.discovery = discovery or ApiDiscovery(
            self.config.discovery_url,
            timeout=self.config.timeout_seconds,
            transport=transport,
        )
        self._descriptor: Optional[ApiDescriptor] = None
        self._ready_lock = asyncio.Lock()

    async def prepare(self) -> ApiDescriptor:
        """Validate credentials and discover the API, once per instance.

        Raises:
            AuthFailedError: If credentials cannot be obtained
            ApiDiscoveryFailedError: If the API cannot be discovered
        """
        if self._descriptor is not None:
            return self._descriptor

        async with self._ready_lock:
            if self._descriptor is None:
                await self.credentials.get_token()
                logger.debug("Authentication successful.")
                self._descriptor = await self.discovery.discover()

        return self._descriptor

    @transient_http_retry
    async def _send_idempotent(self, method: str, url: str, **kwargs) -> httpx.Response:
        return await self._send(method, url, **kwargs)

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        async with self._get_client() as client:
            response = await client.request(method, url, **kwargs)
            response.raise_for_status()
            return response

    async def _call(
        self,
        operation: str,
        method_id: str,
        path_params: Dict[str, str],
        query: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
        idempotent: bool = False,
        log_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        log_name = log_name or operation
        descriptor = await self.prepare()

        try:
            verb, url = descriptor.url_for(method_id, **path_params)
            token = await self.credentials.get_token()
            params = {key: value for key, value in (query or {}).items() if value not in (None, "")}

            self._write_debug_log(log_name, "input", {"url": url, "params": params, "body": body})
            send = self._send_idempotent if idempotent else self._send
            response = await send(verb, url, params=params, json=body, headers=self._headers(token))
            data = response.json() if response.content else {}
            self._write_debug_log(log_name, "output", data)
            return data

        except CloudAssistError:
            raise
        except httpx.HTTPStatusError as e:
            logger.error(f"Error calling {operation} ({e.response.status_code}): {e}")
            raise RemoteCallFailedError(
                f"Error calling {operation}: {e}",
                operation=operation,
                details=BackendPayload(payload=self._error_payload(e.response)),
                http_status=e.response.status_code,
            ) from e
        except Exception as e:
            logger.error(f"Error calling {operation}: {e}")
            raise RemoteCallFailedError(f"Error calling {operation}: {e}", operation=operation) from e

    def _parse(self, operation: str, model, data: Dict[str, Any]):
        try:
            return model.model_validate(data)
        except ValueError as e:
            logger.error(f"Unexpected {operation} response: {e}")
            raise RemoteCallFailedError(
                f"Unexpected response from {operation}: {e}",
                operation=operation,
                details=BackendPayload(payload=data),
            ) from e

    async def list(
        self,
        parent: str,
        filter: str = "",
        page_size: Optional[int] = None,
        page_token: Optional[str] = None,
    ) -> InvestigationList:
        """List investigations under ``projects/{project}/locations/global``."""
        data = await self._call(
            "list",
            LIST_INVESTIGATIONS,
            {"parent": parent},
            query={
                "filter": filter,
                "pageSize": page_size or self.config.page_size,
                "pageToken": page_token,
                "fields": LIST_FIELDS,
            },
            idempotent=True,
            log_name="list_investigations",
        )
        return self._parse("list", InvestigationList, data)

    async def get(self, name: str) -> Investigation:
        """Get an investigation by investigation or revision name."""
        data = await self._call(
            "get", GET_INVESTIGATION, {"name": name}, idempotent=True, log_name="get_investigation"
        )
        return self._parse("get", Investigation, data)

    async def create(self, parent: str, body: Investigation) -> Investigation:
        data = await self._call(
            "create",
            CREATE_INVESTIGATION,
            {"parent": parent},
            body=body.to_api(),
            log_name="create_investigation",
        )
        return self._parse("create", Investigation, data)

    async def run_revision(self, name: str) -> Operation:
        """Start the analysis of a revision. Returns the long-running operation."""
        data = await self._call("run", RUN_REVISION, {"name": name}, body={}, log_name="run_investigation")
        return self._parse("run", Operation, data)

    async def get_operation(self, name: str) -> Operation:
        data = await self._call(
            "get_operation",
            GET_OPERATION,
            {"name": name},
            idempotent=True,
            log_name=f"get_operation_{name.rsplit('/', 1)[-1]}",
        )
        return self._parse("get_operation", Operation, data)

    async def create_revision(self, parent: str, body: RevisionRequest) -> Investigation:
        """Create a revision and return the snapshot it holds.

        The API answers with ``{name, snapshot}``; the snapshot's ``revision`` is
        always replaced by the new revision name.
        """
        data = await self._call(
            "create_revision",
            CREATE_REVISION,
            {"parent": parent},
            body=body.to_api(),
            log_name="add_observation",
        )
        if "snapshot" in data:
            revision_name = data.get("name")
            snapshot = dict(data.get("snapshot") or {})
            if revision_name:
                snapshot["revision"] = revision_name
            if not snapshot.get("name"):
                path = InvestigationPath.parse(revision_name)
                if path is not None and path.investigation_id:
                    snapshot["name"] = path.investigation_name
            data = snapshot
        return self._parse("create_revision", Investigation, data)
