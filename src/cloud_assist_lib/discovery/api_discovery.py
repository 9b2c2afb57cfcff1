"""API discovery for the Gemini Cloud Assist REST surface.

The discovery document describes the service root and, for every method, its
HTTP verb and path template. ``ApiDiscovery`` turns it into an ``ApiDescriptor``
the transport uses to build request URLs.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple
from urllib.parse import quote

import httpx

from cloud_assist_lib.errors import ApiDiscoveryFailedError
from cloud_assist_lib.utils import transient_http_retry

logger = logging.getLogger(__name__)

LIST_INVESTIGATIONS = "projects.locations.investigations.list"
GET_INVESTIGATION = "projects.locations.investigations.get"
CREATE_INVESTIGATION = "projects.locations.investigations.create"
RUN_REVISION = "projects.locations.investigations.revisions.run"
CREATE_REVISION = "projects.locations.investigations.revisions.create"
GET_OPERATION = "projects.locations.operations.get"

REQUIRED_METHODS = (
    LIST_INVESTIGATIONS,
    GET_INVESTIGATION,
    CREATE_INVESTIGATION,
    RUN_REVISION,
    CREATE_REVISION,
    GET_OPERATION,
)

_TEMPLATE_PARAM = re.compile(r"\{(\+?)([A-Za-z_][A-Za-z0-9_]*)\}")


@dataclass(frozen=True)
class ApiMethod:
    """One REST method from the discovery document."""

    http_method: str
    path: str

    def expand(self, **params: str) -> str:
        """Fill the path template. ``{+name}`` keeps slashes, ``{name}`` escapes them."""

        def substitute(match: "re.Match[str]") -> str:
            reserved, key = match.groups()
            if key not in params:
                raise KeyError(f"Missing path parameter '{key}' for template '{self.path}'")
            return quote(str(params[key]), safe="/" if reserved else "")

        return _TEMPLATE_PARAM.sub(substitute, self.path)


@dataclass(frozen=True)
class ApiDescriptor:
    """Discovered capabilities of the backend."""

    root_url: str
    service_path: str
    version: Optional[str] = None
    methods: Mapping[str, ApiMethod] = field(default_factory=dict)

    @property
    def base_url(self) -> str:
        return f"{self.root_url.rstrip('/')}/{self.service_path.lstrip('/')}".rstrip("/")

    def method(self, method_id: str) -> ApiMethod:
        try:
            return self.methods[method_id]
        except KeyError:
            raise ApiDiscoveryFailedError(
                f"Method '{method_id}' is not available in the discovered API."
            ) from None

    def url_for(self, method_id: str, **params: str) -> Tuple[str, str]:
        """Return (HTTP verb, absolute URL) for a method."""
        method = self.method(method_id)
        return method.http_method, f"{self.base_url}/{method.expand(**params)}"


def _iter_methods(resources: Dict[str, Any], prefix: str = "") -> Iterator[Tuple[str, Dict[str, Any]]]:
    for resource_name, resource in resources.items():
        resource_path = f"{prefix}{resource_name}"
        for method_name, method in (resource.get("methods") or {}).items():
            yield f"{resource_path}.{method_name}", method
        yield from _iter_methods(resource.get("resources") or {}, prefix=f"{resource_path}.")


def parse_discovery_document(document: Dict[str, Any]) -> ApiDescriptor:
    """Build an ApiDescriptor, checking that every method the engine calls exists.

    Raises:
        ApiDiscoveryFailedError: If the document is malformed or incomplete
    """
    root_url = document.get("rootUrl")
    if not root_url:
        raise ApiDiscoveryFailedError("Failed to discover API. Discovery document has no rootUrl.")

    methods = {}
    for method_id, method in _iter_methods(document.get("resources") or {}):
        if "path" not in method:
            continue
        methods[method_id] = ApiMethod(
            http_method=method.get("httpMethod", "GET").upper(),
            path=method["path"],
        )

    missing = [method_id for method_id in REQUIRED_METHODS if method_id not in methods]
    if missing:
        raise ApiDiscoveryFailedError(
            f"Failed to discover API. Missing methods: {', '.join(missing)}"
        )

    return ApiDescriptor(
        root_url=root_url,
        service_path=document.get("servicePath", ""),
        version=document.get("version"),
        methods=methods,
    )


class ApiDiscovery:
    """Fetches and parses the discovery document.

    Usage:
        discovery = ApiDiscovery(discovery_url)
        descriptor = await discovery.discover()
        verb, url = descriptor.url_for(GET_INVESTIGATION, name=name)
    """

    def __init__(
        self,
        discovery_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.discovery_url = discovery_url
        self.timeout = timeout
        self._transport = transport

    @transient_http_retry
    async def _fetch_document(self) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(self.discovery_url)
            response.raise_for_status()
            return response.json()

    async def discover(self) -> ApiDescriptor:
        """Fetch the discovery document and build the descriptor.

        Raises:
            ApiDiscoveryFailedError: If the document cannot be fetched or parsed
        """
        try:
            document = await self._fetch_document()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error discovering Gemini Cloud Assist API: {e}")
            raise ApiDiscoveryFailedError(f"Failed to discover API. {e}") from e

        if not isinstance(document, dict):
            raise ApiDiscoveryFailedError("Failed to discover API. Discovery document is not an object.")

        descriptor = parse_discovery_document(document)
        logger.info(
            f"Discovered Gemini Cloud Assist API {descriptor.version or ''} at {descriptor.base_url} "
            f"({len(descriptor.methods)} methods)"
        )
        return descriptor
