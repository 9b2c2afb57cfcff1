"""Gemini Cloud Assist Investigation Library

Investigation session engine: resource addressing, revision merging, operation
polling and markdown reports, plus the API client and MCP tool surface.
"""

__version__ = "0.1.0"

# Export models and engine first (no client dependencies)
from cloud_assist_lib.models import (
    Hypothesis, Investigation, InvestigationList, Observation, Operation, RevisionRequest,
)
from cloud_assist_lib.errors import CloudAssistError, ErrorKind
from cloud_assist_lib.config import ClientConfig, PollingPolicy
from cloud_assist_lib.core import (
    InvestigationPath,
    InvestigationViewer,
    OperationPoller,
    format_investigation_list,
    get_revision_with_new_observation,
)

# Lazy import for clients so the engine can be used without auth libraries loaded
def __getattr__(name):
    """Lazy import for the API clients."""
    if name in ("CloudAiCompanionClient", "InvestigationClient", "InvestigationTransport"):
        from cloud_assist_lib import clients
        return getattr(clients, name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")

__all__ = [
    # Models
    "Hypothesis", "Investigation", "InvestigationList", "Observation",
    "Operation", "RevisionRequest",
    # Errors and configuration
    "CloudAssistError", "ErrorKind", "ClientConfig", "PollingPolicy",
    # Engine
    "InvestigationPath", "InvestigationViewer", "OperationPoller",
    "format_investigation_list", "get_revision_with_new_observation",
    # Clients (lazy loaded)
    "CloudAiCompanionClient", "InvestigationClient", "InvestigationTransport",
]
