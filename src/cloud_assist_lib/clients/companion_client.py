"""Client for free-form questions about a project's Google Cloud resources."""

import logging
from typing import Optional

import httpx

from cloud_assist_lib.auth import CredentialsProvider
from cloud_assist_lib.clients.base import BaseServiceClient
from cloud_assist_lib.config import ClientConfig
from cloud_assist_lib.errors import BackendPayload, CloudAssistError, RemoteCallFailedError
from cloud_assist_lib.models import TaskCompletionRequest, TaskCompletionResponse

logger = logging.getLogger(__name__)


class CloudAiCompanionClient(BaseServiceClient):
    """Asks the Cloud AI Companion chat agent a question and returns its answer.

    The agent searches and analyzes the project's resources itself; the
    answer is narrative text, not raw resource data.

    Usage:
        client = CloudAiCompanionClient(ClientConfig.from_env())
        answer = await client.retrieve_resource("Which GKE clusters in my project run version 1.27?")
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        credentials: Optional[CredentialsProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize client.

        Args:
            config: Client configuration (default: ClientConfig())
            credentials: Access token provider (default: ADC)
            transport: Custom httpx transport
        """
        self.config = config or ClientConfig()
        super().__init__(
            timeout=self.config.timeout_seconds,
            user_agent=self.config.user_agent,
            debug_log_dir=self.config.debug_log_dir,
            transport=transport,
        )
        self.credentials = credentials or CredentialsProvider()

    def _complete_task_url(self, project_id: str) -> str:
        return (
            f"{self.config.companion_api_url}/projects/{project_id}"
            "/locations/global/instances/default:completeTask"
        )

    async def retrieve_resource(self, request: str, project_id: Optional[str] = None) -> str:
        """Send a question to the agent and return the first answer message.

        Args:
            request: Natural language question, naming the resource type
            project_id: Project to ask about (default: the credentials' project)

        Raises:
            AuthFailedError: If credentials or the default project are unavailable
            RemoteCallFailedError: If the call fails or the answer is empty
        """
        project_id = project_id or await self.credentials.get_project_id()
        token = await self.credentials.get_token()
        body = TaskCompletionRequest.for_question(request, project_id).to_api()

        try:
            self._write_debug_log("retrieve_resource", "input", body)
            async with self._get_client() as client:
                response = await client.post(
                    self._complete_task_url(project_id), json=body, headers=self._headers(token)
                )
                response.raise_for_status()
                data = response.json()
            self._write_debug_log("retrieve_resource", "output", data)

            answer = TaskCompletionResponse.model_validate(data).answer
            if answer is None:
                raise RemoteCallFailedError(
                    "Error retrieving resource: the agent returned no answer.",
                    operation="retrieve_resource",
                    details=BackendPayload(payload=data),
                )
            return answer

        except CloudAssistError:
            raise
        except httpx.HTTPStatusError as e:
            logger.error(f"Error retrieving resource ({e.response.status_code}): {e}")
            raise RemoteCallFailedError(
                f"Error retrieving resource: {e}",
                operation="retrieve_resource",
                details=BackendPayload(payload=self._error_payload(e.response)),
                http_status=e.response.status_code,
            ) from e
        except Exception as e:
            logger.error(f"Error retrieving resource: {e}")
            raise RemoteCallFailedError(
                f"Error retrieving resource: {e}", operation="retrieve_resource"
            ) from e
