"""Investigation workflows: fetch, create, run and add-observation."""

import logging
from typing import List, Optional

from cloud_assist_lib.clients.transport import InvestigationTransport
from cloud_assist_lib.config import ClientConfig
from cloud_assist_lib.core.paths import InvestigationPath
from cloud_assist_lib.core.polling import OperationPoller, OperationStatus
from cloud_assist_lib.core.rendering import InvestigationViewer, format_investigation_list
from cloud_assist_lib.core.resources import ensure_valid_resources
from cloud_assist_lib.core.revisions import (
    create_initial_investigation,
    get_revision_with_new_observation,
)
from cloud_assist_lib.errors import (
    CloudAssistError,
    InvalidArgumentError,
    PayloadCreationFailedError,
    PollingTimeoutError,
    StatusSnapshot,
)
from cloud_assist_lib.models import Investigation

logger = logging.getLogger(__name__)


class InvestigationClient:
    """Drives one investigation workflow per call.

    Snapshots are fetched fresh for every operation that needs current state;
    nothing is cached across calls apart from the transport's one-time
    authentication and API discovery.

    Usage:
        client = InvestigationClient(ClientConfig.from_env())
        report = await client.create_investigation(
            project_id="my-project",
            title="[Gemini CLI] Nodepool not scaling",
            issue_description="...",
            relevant_resources=["//container.googleapis.com/projects/my-project/..."],
            start_time="2025-01-01T00:00:00Z",
        )
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[InvestigationTransport] = None,
        poller: Optional[OperationPoller] = None,
    ):
        """Initialize client.

        Args:
            config: Client configuration (default: ClientConfig())
            transport: Backend transport (default: InvestigationTransport(config))
            poller: Operation poller (default: built from config.polling)
        """
        self.config = config or ClientConfig()
        self.transport = transport or InvestigationTransport(self.config)
        self.poller = poller or OperationPoller(self.config.polling)

    def _viewer(self, investigation: Investigation) -> InvestigationViewer:
        return InvestigationViewer(investigation, console_base_url=self.config.console_base_url)

    async def fetch_investigation(
        self,
        project_id: str,
        investigation_id: Optional[str] = None,
        revision_id: Optional[str] = None,
        filter_expression: Optional[str] = None,
        next_page_token: Optional[str] = None,
    ) -> str:
        """Get one investigation's report, or list the project's investigations.

        With ``investigation_id`` the latest revision (or ``revision_id``) is
        rendered in full. Without it, investigations are listed, optionally
        filtered by ``filter_expression`` (e.g. ``title:"my title"``).

        Raises:
            InvalidArgumentError: revision_id without investigation_id, or
                next_page_token combined with investigation_id
        """
        if revision_id and not investigation_id:
            raise InvalidArgumentError("revisionId cannot be provided without investigationId.")
        if next_page_token and investigation_id:
            raise InvalidArgumentError("next_page_token cannot be used with investigationId.")

        if investigation_id:
            investigation = await self.get_investigation_raw(project_id, investigation_id, revision_id)
            return self._viewer(investigation).render()

        return await self.list_investigations(project_id, filter_expression, next_page_token)

    async def list_investigations(
        self,
        project_id: str,
        filter_expression: Optional[str] = None,
        page_token: Optional[str] = None,
    ) -> str:
        path = InvestigationPath(project_id)
        page = await self.transport.list(
            path.parent,
            filter=filter_expression or "",
            page_size=self.config.page_size,
            page_token=page_token,
        )
        return format_investigation_list(
            page.investigations, page.next_page_token, console_base_url=self.config.console_base_url
        )

    async def get_investigation_raw(
        self,
        project_id: str,
        investigation_id: str,
        revision_id: Optional[str] = None,
    ) -> Investigation:
        """Fetch a snapshot: the given revision, or the latest one."""
        path = InvestigationPath(project_id, investigation_id, revision_id)
        name = path.revision_name if revision_id else path.investigation_name
        return await self.transport.get(name)

    async def create_investigation(
        self,
        project_id: str,
        title: str,
        issue_description: str,
        relevant_resources: List[str],
        start_time: Optional[str] = None,
    ) -> str:
        """Create an investigation and render its summary (no analysis yet).

        Raises:
            InvalidArgumentError: If any resource URI is malformed
        """
        ensure_valid_resources(relevant_resources)
        investigation = create_initial_investigation(
            title, project_id, issue_description, relevant_resources, start_time
        )
        created = await self.submit_investigation(project_id, investigation)
        return self._viewer(created).render(show_observations_and_hypotheses=False)

    async def submit_investigation(self, project_id: str, investigation: Investigation) -> Investigation:
        """Send an investigation payload to the backend and return what it stored."""
        path = InvestigationPath(project_id)
        created = await self.transport.create(path.parent, investigation)
        logger.info(f"Created investigation {created.name}")
        return created

    async def run_investigation(self, project_id: str, investigation_id: str, revision_id: str) -> str:
        """Run the analysis on a revision, wait for it and render the full report.

        Raises:
            OperationError: The analysis finished with an error
            PollingTimeoutError: The analysis did not finish within the attempt budget;
                details carry the investigation's current state
        """
        investigation = await self.run_investigation_raw(project_id, investigation_id, revision_id)
        return self._viewer(investigation).render()

    async def run_investigation_raw(
        self, project_id: str, investigation_id: str, revision_id: str
    ) -> Investigation:
        path = InvestigationPath(project_id, investigation_id, revision_id)
        operation = await self.transport.run_revision(path.revision_name)
        logger.info(f"Started analysis of {path.revision_name} (operation {operation.name})")

        async def check_status() -> OperationStatus:
            if operation.name is None:
                return OperationStatus(done=operation.done, error=operation.error, result=operation.response)
            current = await self.transport.get_operation(operation.name)
            return OperationStatus(done=current.done, error=current.error, result=current.response)

        try:
            await self.poller.wait(check_status)
        except PollingTimeoutError as e:
            try:
                current = await self.transport.get(path.investigation_name)
            except CloudAssistError as refetch_error:
                logger.warning(f"Could not read {path.investigation_name} after timeout: {refetch_error!r}")
                raise PollingTimeoutError(e.message, details=e.details) from e
            raise PollingTimeoutError(
                e.message, details=StatusSnapshot(current_status=current.to_api())
            ) from e

        # The operation's inline result may be partial; read back the stored revision
        return await self.transport.get(path.revision_name)

    async def add_observation(
        self,
        project_id: str,
        investigation_id: str,
        observation: str,
        relevant_resources: List[str],
    ) -> str:
        """Append a user observation to the latest revision, creating a new revision.

        Raises:
            InvalidArgumentError: If any resource URI is malformed
            PayloadCreationFailedError: If no snapshot was available to merge into
        """
        ensure_valid_resources(relevant_resources)
        path = InvestigationPath(project_id, investigation_id)
        latest = await self.transport.get(path.investigation_name)

        payload = get_revision_with_new_observation(latest, observation, relevant_resources)
        if payload is None:
            raise PayloadCreationFailedError("Failed to create new revision payload.")

        revision = await self.transport.create_revision(path.investigation_name, payload)
        logger.info(f"Created revision {revision.revision} for {path.investigation_name}")
        return self._viewer(revision).render(show_observations_and_hypotheses=False)
