"""Error taxonomy for the investigation engine.

Every failure surfaced to a caller is a ``CloudAssistError`` subclass with a
stable ``kind``. Remote payloads are kept verbatim in typed ``details`` so they
can be shown to the caller for diagnosis.
"""

from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field


class ErrorKind(str, Enum):
    """Closed set of failure kinds."""

    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    MISSING_IDENTIFIER = "MISSING_IDENTIFIER"
    AUTH_FAILED = "AUTH_FAILED"
    API_DISCOVERY_FAILED = "API_DISCOVERY_FAILED"
    REMOTE_CALL_FAILED = "REMOTE_CALL_FAILED"
    OPERATION_ERROR = "OPERATION_ERROR"
    TIMEOUT = "TIMEOUT"
    PAYLOAD_CREATION_FAILED = "PAYLOAD_CREATION_FAILED"


class BackendPayload(BaseModel):
    """Error body returned by the backend, kept as-is."""

    payload: Any = Field(..., description="Verbatim backend error payload")


class StatusSnapshot(BaseModel):
    """Best-known state of a resource at the time of failure."""

    current_status: Any = Field(..., description="Last known resource state")


ErrorDetails = Union[BackendPayload, StatusSnapshot]


class CloudAssistError(Exception):
    """Base class for all typed engine failures."""

    kind: ErrorKind = ErrorKind.REMOTE_CALL_FAILED
    status_code: int = 500

    def __init__(self, message: str, details: Optional[ErrorDetails] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def details_dict(self) -> Optional[Dict[str, Any]]:
        if self.details is None:
            return None
        return self.details.model_dump()

    def to_tool_result(self) -> Dict[str, Any]:
        """Structured result for the tool surface."""
        return {
            "type": "tool-error",
            "code": self.kind.value,
            "status": self.status_code,
            "message": self.message,
            "details": self.details_dict(),
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(kind={self.kind.value}, message={self.message!r})"


class InvalidArgumentError(CloudAssistError):
    kind = ErrorKind.INVALID_ARGUMENT
    status_code = 400


class MissingIdentifierError(CloudAssistError):
    kind = ErrorKind.MISSING_IDENTIFIER
    status_code = 400


class AuthFailedError(CloudAssistError):
    kind = ErrorKind.AUTH_FAILED
    status_code = 401


class ApiDiscoveryFailedError(CloudAssistError):
    kind = ErrorKind.API_DISCOVERY_FAILED
    status_code = 500


class RemoteCallFailedError(CloudAssistError):
    """The backend rejected a request or could not be reached."""

    kind = ErrorKind.REMOTE_CALL_FAILED
    status_code = 502

    def __init__(
        self,
        message: str,
        operation: str,
        details: Optional[ErrorDetails] = None,
        http_status: Optional[int] = None,
    ):
        super().__init__(message, details=details)
        self.operation = operation
        self.http_status = http_status

    def to_tool_result(self) -> Dict[str, Any]:
        result = super().to_tool_result()
        result["operation"] = self.operation
        if self.http_status is not None:
            result["status"] = self.http_status
        return result


class OperationError(CloudAssistError):
    """The long-running operation finished with an error."""

    kind = ErrorKind.OPERATION_ERROR
    status_code = 500


class PollingTimeoutError(CloudAssistError):
    kind = ErrorKind.TIMEOUT
    status_code = 504


class PayloadCreationFailedError(CloudAssistError):
    kind = ErrorKind.PAYLOAD_CREATION_FAILED
    status_code = 500
