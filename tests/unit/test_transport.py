"""Unit tests for cloud_assist_lib/clients/transport.py."""

from __future__ import annotations

import json
from typing import Callable, Dict, List, Tuple

import httpx
import pytest

from cloud_assist_lib.clients import InvestigationClient, InvestigationTransport
from cloud_assist_lib.config import ClientConfig
from cloud_assist_lib.constants import LIST_FIELDS
from cloud_assist_lib.errors import AuthFailedError, RemoteCallFailedError
from cloud_assist_lib.models import Investigation, RevisionRequest
from tests.conftest import INVESTIGATION_ID, INVESTIGATION_NAME, PROJECT_ID, REVISION_NAME

DISCOVERY_URL = "https://discovery.test/rest?version=v1alpha"
PARENT = f"projects/{PROJECT_ID}/locations/global"

Route = Callable[[httpx.Request], httpx.Response]


class StubCredentials:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls = 0

    async def get_token(self) -> str:
        self.calls += 1
        if self.error:
            raise self.error
        return "test-token"


class FakeBackend:
    """Serves the discovery document and scripted API routes."""

    def __init__(self, discovery_document, routes: Dict[Tuple[str, str], Route]):
        self.discovery_document = discovery_document
        self.routes = routes
        self.discovery_requests = 0
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "discovery.test":
            self.discovery_requests += 1
            return httpx.Response(200, json=self.discovery_document)
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": {"code": 404, "status": "NOT_FOUND"}})
        return route(request)


def make_transport(backend: FakeBackend, credentials=None, **config) -> InvestigationTransport:
    return InvestigationTransport(
        ClientConfig(discovery_url=DISCOVERY_URL, **config),
        credentials=credentials or StubCredentials(),
        transport=httpx.MockTransport(backend),
    )


class TestReads:
    @pytest.mark.asyncio
    async def test_get(self, discovery_document, base_payload):
        backend = FakeBackend(
            discovery_document,
            {("GET", f"/v1alpha/{INVESTIGATION_NAME}"): lambda r: httpx.Response(200, json=base_payload)},
        )
        investigation = await make_transport(backend).get(INVESTIGATION_NAME)

        assert isinstance(investigation, Investigation)
        assert investigation.revision == REVISION_NAME
        request = backend.requests[0]
        assert request.headers["Authorization"] == "Bearer test-token"
        assert request.headers["User-Agent"].startswith("cloud-assist-lib/")

    @pytest.mark.asyncio
    async def test_list_query(self, discovery_document):
        page = {"investigations": [{"name": INVESTIGATION_NAME, "title": "t"}], "nextPageToken": "tok"}
        backend = FakeBackend(
            discovery_document,
            {("GET", f"/v1alpha/{PARENT}/investigations"): lambda r: httpx.Response(200, json=page)},
        )
        result = await make_transport(backend).list(PARENT, filter="")

        params = backend.requests[0].url.params
        assert params["pageSize"] == "20"
        assert params["fields"] == LIST_FIELDS
        assert "filter" not in params
        assert "pageToken" not in params
        assert result.next_page_token == "tok"
        assert result.investigations[0].title == "t"

    @pytest.mark.asyncio
    async def test_discovery_and_auth_happen_once(self, discovery_document, base_payload):
        backend = FakeBackend(
            discovery_document,
            {("GET", f"/v1alpha/{INVESTIGATION_NAME}"): lambda r: httpx.Response(200, json=base_payload)},
        )
        transport = make_transport(backend)
        await transport.get(INVESTIGATION_NAME)
        await transport.get(INVESTIGATION_NAME)

        assert backend.discovery_requests == 1
        assert len(backend.requests) == 2

    @pytest.mark.asyncio
    async def test_transient_read_is_retried(self, discovery_document, base_payload):
        responses = [httpx.Response(503, text="unavailable"), httpx.Response(200, json=base_payload)]
        backend = FakeBackend(
            discovery_document,
            {("GET", f"/v1alpha/{INVESTIGATION_NAME}"): lambda r: responses.pop(0)},
        )
        investigation = await make_transport(backend).get(INVESTIGATION_NAME)

        assert investigation.name == INVESTIGATION_NAME
        assert len(backend.requests) == 2


class TestWrites:
    @pytest.mark.asyncio
    async def test_create_sends_camel_case_body(self, discovery_document, base_investigation, base_payload):
        backend = FakeBackend(
            discovery_document,
            {("POST", f"/v1alpha/{PARENT}/investigations"): lambda r: httpx.Response(200, json=base_payload)},
        )
        await make_transport(backend).create(PARENT, base_investigation)

        body = json.loads(backend.requests[0].content)
        assert body == base_investigation.to_api()
        assert "timeIntervals" in body["observations"]["user.input.text"]

    @pytest.mark.asyncio
    async def test_run_revision(self, discovery_document):
        operation = {"name": f"{PARENT}/operations/op-1", "done": False}
        backend = FakeBackend(
            discovery_document,
            {("POST", f"/v1alpha/{REVISION_NAME}:run"): lambda r: httpx.Response(200, json=operation)},
        )
        result = await make_transport(backend).run_revision(REVISION_NAME)

        assert result.name == f"{PARENT}/operations/op-1"
        assert json.loads(backend.requests[0].content) == {}

    @pytest.mark.asyncio
    async def test_create_revision_unwraps_snapshot(self, discovery_document, base_payload):
        new_revision = f"{INVESTIGATION_NAME}/revisions/rev-2"
        snapshot = {key: value for key, value in base_payload.items() if key not in ("name", "revision")}
        backend = FakeBackend(
            discovery_document,
            {
                ("POST", f"/v1alpha/{INVESTIGATION_NAME}/revisions"): lambda r: httpx.Response(
                    200, json={"name": new_revision, "snapshot": snapshot}
                )
            },
        )
        body = RevisionRequest(snapshot=Investigation.model_validate(base_payload))
        result = await make_transport(backend).create_revision(INVESTIGATION_NAME, body)

        assert result.revision == new_revision
        assert result.name == INVESTIGATION_NAME
        assert "snapshot" in json.loads(backend.requests[0].content)

    @pytest.mark.asyncio
    async def test_create_revision_replaces_echoed_revision(self, discovery_document, base_payload):
        new_revision = f"{INVESTIGATION_NAME}/revisions/rev-2"
        backend = FakeBackend(
            discovery_document,
            {
                ("POST", f"/v1alpha/{INVESTIGATION_NAME}/revisions"): lambda r: httpx.Response(
                    200, json={"name": new_revision, "snapshot": base_payload}
                )
            },
        )
        body = RevisionRequest(snapshot=Investigation.model_validate(base_payload))
        result = await make_transport(backend).create_revision(INVESTIGATION_NAME, body)

        assert base_payload["revision"] == REVISION_NAME
        assert result.revision == new_revision

    @pytest.mark.asyncio
    async def test_add_observation_reports_new_revision(self, discovery_document, base_payload):
        new_revision = f"{INVESTIGATION_NAME}/revisions/new-rev"

        def echo_snapshot(request):
            snapshot = json.loads(request.content)["snapshot"]
            return httpx.Response(200, json={"name": new_revision, "snapshot": {**snapshot, "revision": REVISION_NAME}})

        backend = FakeBackend(
            discovery_document,
            {
                ("GET", f"/v1alpha/{INVESTIGATION_NAME}"): lambda r: httpx.Response(200, json=base_payload),
                ("POST", f"/v1alpha/{INVESTIGATION_NAME}/revisions"): echo_snapshot,
            },
        )
        client = InvestigationClient(transport=make_transport(backend))
        report = await client.add_observation(PROJECT_ID, INVESTIGATION_ID, "Quota is fine.", [])

        revision_lines = [line for line in report.splitlines() if line.startswith("**Revision Path**")]
        assert revision_lines == [f"**Revision Path**: {new_revision}"]
        assert "revision" not in json.loads(backend.requests[1].content)["snapshot"]

    @pytest.mark.asyncio
    async def test_writes_are_not_retried(self, discovery_document, base_investigation):
        backend = FakeBackend(
            discovery_document,
            {("POST", f"/v1alpha/{PARENT}/investigations"): lambda r: httpx.Response(503, text="unavailable")},
        )
        with pytest.raises(RemoteCallFailedError) as exc_info:
            await make_transport(backend).create(PARENT, base_investigation)

        assert exc_info.value.http_status == 503
        assert exc_info.value.details.payload == "unavailable"
        assert len(backend.requests) == 1


class TestFailures:
    @pytest.mark.asyncio
    async def test_backend_error_payload_attached(self, discovery_document):
        backend = FakeBackend(discovery_document, {})
        with pytest.raises(RemoteCallFailedError) as exc_info:
            await make_transport(backend).get(INVESTIGATION_NAME)

        error = exc_info.value
        assert error.operation == "get"
        assert error.http_status == 404
        assert error.details.payload == {"error": {"code": 404, "status": "NOT_FOUND"}}
        assert error.to_tool_result()["status"] == 404

    @pytest.mark.asyncio
    async def test_connection_error(self, discovery_document, base_investigation):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        backend = FakeBackend(discovery_document, {("POST", f"/v1alpha/{PARENT}/investigations"): refuse})
        with pytest.raises(RemoteCallFailedError) as exc_info:
            await make_transport(backend).create(PARENT, base_investigation)

        assert exc_info.value.http_status is None
        assert "connection refused" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_auth_failure_stops_before_any_call(self, discovery_document):
        backend = FakeBackend(discovery_document, {})
        credentials = StubCredentials(error=AuthFailedError("Authentication failed."))
        with pytest.raises(AuthFailedError):
            await make_transport(backend, credentials=credentials).get(INVESTIGATION_NAME)

        assert backend.discovery_requests == 0
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_unexpected_response_shape(self, discovery_document):
        backend = FakeBackend(
            discovery_document,
            {("GET", f"/v1alpha/{INVESTIGATION_NAME}"): lambda r: httpx.Response(200, json={"observations": []})},
        )
        with pytest.raises(RemoteCallFailedError, match="Unexpected response"):
            await make_transport(backend).get(INVESTIGATION_NAME)


class TestDebugLog:
    @pytest.mark.asyncio
    async def test_captures_request_and_response(self, discovery_document, base_payload, tmp_path):
        backend = FakeBackend(
            discovery_document,
            {("GET", f"/v1alpha/{INVESTIGATION_NAME}"): lambda r: httpx.Response(200, json=base_payload)},
        )
        await make_transport(backend, debug_log_dir=str(tmp_path)).get(INVESTIGATION_NAME)

        request_log = json.loads((tmp_path / "get_investigation_input.json").read_text())
        response_log = json.loads((tmp_path / "get_investigation_output.json").read_text())
        assert request_log["url"].endswith(INVESTIGATION_NAME)
        assert response_log["name"] == INVESTIGATION_NAME
