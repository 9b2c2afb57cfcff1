"""Shared test fixtures for the cloud_assist_lib test suite."""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

import pytest

from cloud_assist_lib.models import Investigation, InvestigationList, Operation, RevisionRequest

PROJECT_ID = "test-project"
INVESTIGATION_ID = "529d3d15-5371-420a-bea6-b518f02bf046"
REVISION_ID = "fefd4d24-dd35-49f5-9ff7-af303beb8551"
INVESTIGATION_NAME = f"projects/{PROJECT_ID}/locations/global/investigations/{INVESTIGATION_ID}"
REVISION_NAME = f"{INVESTIGATION_NAME}/revisions/{REVISION_ID}"
CLUSTER_URI = "//container.googleapis.com/projects/test-project/locations/us-east4/clusters/gke-cluster-009"


# ── Sample payloads ─────────────────────────────────────────────


@pytest.fixture
def base_payload() -> Dict[str, Any]:
    """Investigation as returned by the API right after creation."""
    return {
        "name": INVESTIGATION_NAME,
        "createTime": "2025-07-11T07:27:50.664567366Z",
        "updateTime": "2025-07-11T07:28:48.762878706Z",
        "revision": REVISION_NAME,
        "executionState": "INVESTIGATION_EXECUTION_STATE_COMPLETED",
        "title": "[Gemini CLI] Nodepool unable to scale",
        "observations": {
            "user.input.text": {
                "id": "user.input.text",
                "timeRanges": [{"startTime": "2025-05-20T00:30:00Z"}],
                "observationType": "OBSERVATION_TYPE_TEXT_DESCRIPTION",
                "observerType": "OBSERVER_TYPE_USER",
                "text": "I am unable to scale the nodepool in my GKE cluster 'gke-cluster-009'.",
                "relevantResources": [CLUSTER_URI],
            },
            "user.project": {
                "id": "user.project",
                "observationType": "OBSERVATION_TYPE_STRUCTURED_INPUT",
                "observerType": "OBSERVER_TYPE_USER",
                "text": PROJECT_ID,
            },
        },
    }


@pytest.fixture
def base_investigation(base_payload) -> Investigation:
    return Investigation.model_validate(base_payload)


@pytest.fixture
def analyzed_payload(base_payload) -> Dict[str, Any]:
    """Investigation after the analysis has run."""
    payload = copy.deepcopy(base_payload)
    payload["observations"].update(
        {
            "diagnostics.ip_exhaustion": {
                "id": "diagnostics.ip_exhaustion",
                "observationType": "OBSERVATION_TYPE_LOG",
                "observerType": "OBSERVER_TYPE_DIAGNOSTICS",
                "title": "Nodepool Scaling Issues: IP Exhaustion",
                "text": "The subnet has no free IP addresses for new nodes.",
                "relevantResources": [CLUSTER_URI],
            },
            "diagnostics.quota": {
                "id": "diagnostics.quota",
                "observationType": "OBSERVATION_TYPE_METRIC",
                "observerType": "OBSERVER_TYPE_DIAGNOSTICS",
                "title": "CPU quota near limit",
                "text": "Regional CPU quota is at 95%.",
            },
            "hypothesis.1": {
                "id": "hypothesis.1",
                "observationType": "OBSERVATION_TYPE_HYPOTHESIS",
                "observerType": "OBSERVER_TYPE_DIAGNOSTICS",
                "title": "Subnet IP range exhausted",
                "text": "New nodes cannot get an IP address from the subnet.",
                "remediation": "Expand the subnet's primary IP range.",
            },
        }
    )
    payload["hypotheses"] = [
        {
            "title": "Instance template missing",
            "description": "The nodepool references a deleted instance template.",
            "supportingObservationIds": ["diagnostics.ip_exhaustion"],
        }
    ]
    return payload


@pytest.fixture
def analyzed_investigation(analyzed_payload) -> Investigation:
    return Investigation.model_validate(analyzed_payload)


# ── Discovery ───────────────────────────────────────────────

API_ROOT = "https://geminicloudassist.googleapis.com/"


@pytest.fixture
def discovery_document() -> Dict[str, Any]:
    """Minimal discovery document exposing every method the client calls."""
    return {
        "rootUrl": API_ROOT,
        "servicePath": "",
        "version": "v1alpha",
        "resources": {
            "projects": {
                "resources": {
                    "locations": {
                        "resources": {
                            "investigations": {
                                "methods": {
                                    "list": {"httpMethod": "GET", "path": "v1alpha/{+parent}/investigations"},
                                    "get": {"httpMethod": "GET", "path": "v1alpha/{+name}"},
                                    "create": {"httpMethod": "POST", "path": "v1alpha/{+parent}/investigations"},
                                },
                                "resources": {
                                    "revisions": {
                                        "methods": {
                                            "run": {"httpMethod": "POST", "path": "v1alpha/{+name}:run"},
                                            "create": {"httpMethod": "POST", "path": "v1alpha/{+parent}/revisions"},
                                        }
                                    }
                                },
                            },
                            "operations": {
                                "methods": {"get": {"httpMethod": "GET", "path": "v1alpha/{+name}"}},
                            },
                        }
                    }
                }
            }
        },
    }


# ── Fakes ───────────────────────────────────────────────────────


class FakeTransport:
    """In-memory stand-in for InvestigationTransport recording every call."""

    def __init__(
        self,
        investigation: Optional[Investigation] = None,
        operations: Optional[List[Operation]] = None,
        investigations: Optional[List[Investigation]] = None,
        next_page_token: Optional[str] = None,
    ):
        self.investigation = investigation
        self.operations = list(operations or [])
        self.investigations = investigations or []
        self.next_page_token = next_page_token
        self.calls: List[tuple] = []
        self.created: List[Investigation] = []
        self.revisions: List[RevisionRequest] = []

    async def list(self, parent, filter="", page_size=None, page_token=None):
        self.calls.append(("list", parent, filter, page_size, page_token))
        return InvestigationList(investigations=self.investigations, next_page_token=self.next_page_token)

    async def get(self, name):
        self.calls.append(("get", name))
        return self.investigation

    async def create(self, parent, body):
        self.calls.append(("create", parent))
        self.created.append(body)
        stored = body.model_copy(deep=True)
        stored.name = f"{parent}/investigations/{INVESTIGATION_ID}"
        stored.revision = f"{stored.name}/revisions/{REVISION_ID}"
        return stored

    async def run_revision(self, name):
        self.calls.append(("run_revision", name))
        return Operation(name=f"projects/{PROJECT_ID}/locations/global/operations/op-1")

    async def get_operation(self, name):
        self.calls.append(("get_operation", name))
        return self.operations.pop(0) if self.operations else Operation(name=name, done=False)

    async def create_revision(self, parent, body):
        self.calls.append(("create_revision", parent))
        self.revisions.append(body)
        snapshot = body.snapshot.model_copy(deep=True)
        snapshot.revision = f"{parent}/revisions/new-revision"
        return snapshot


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
