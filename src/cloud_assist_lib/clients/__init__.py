"""Clients for the Gemini Cloud Assist investigations API."""

from cloud_assist_lib.clients.companion_client import CloudAiCompanionClient
from cloud_assist_lib.clients.investigation_client import InvestigationClient
from cloud_assist_lib.clients.transport import InvestigationTransport

__all__ = [
    "CloudAiCompanionClient",
    "InvestigationClient",
    "InvestigationTransport",
]
