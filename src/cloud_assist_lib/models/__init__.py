"""
Data models for Gemini Cloud Assist investigations.

Pydantic models mirroring the backend resources handled by the engine and
the Cloud AI Companion task completion payloads.
"""

from cloud_assist_lib.models.investigation import (
    ApiModel,
    Hypothesis,
    Investigation,
    InvestigationList,
    Observation,
    Operation,
    RevisionRequest,
    TimeInterval,
)
from cloud_assist_lib.models.companion import (
    TaskCompletionMessage,
    TaskCompletionRequest,
    TaskCompletionResponse,
)

__all__ = [
    "ApiModel",
    "Hypothesis",
    "Investigation",
    "InvestigationList",
    "Observation",
    "Operation",
    "RevisionRequest",
    "TimeInterval",
    "TaskCompletionMessage",
    "TaskCompletionRequest",
    "TaskCompletionResponse",
]
