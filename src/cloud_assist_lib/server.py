"""Gemini Cloud Assist MCP Server - investigation tools over stdio.

Exposes the investigation workflow and a free-form resource search to an agent
as tools. Every tool returns markdown or text on success, or a JSON
``tool-error`` document on failure; exceptions never escape to the MCP runtime.
"""

import json
import logging
import sys
from typing import Awaitable, Callable, List, Optional

from mcp.server.fastmcp import FastMCP

from cloud_assist_lib import __version__
from cloud_assist_lib.clients import CloudAiCompanionClient, InvestigationClient
from cloud_assist_lib.config import ClientConfig
from cloud_assist_lib.errors import CloudAssistError

logger = logging.getLogger(__name__)


async def run_tool(call: Callable[[], Awaitable[str]]) -> str:
    """Run a tool body, converting failures into a structured error result."""
    try:
        return await call()
    except CloudAssistError as e:
        logger.error(f"Tool call failed: {e!r}")
        return json.dumps(e.to_tool_result(), indent=2, default=str)
    except Exception as e:
        logger.exception("Unexpected error in tool call")
        return json.dumps(
            {"type": "tool-error", "code": "UNEXPECTED_ERROR", "message": str(e), "details": None},
            indent=2,
        )


def create_mcp_server(config: Optional[ClientConfig] = None) -> FastMCP:
    """Create the MCP server with the investigation tools.

    Args:
        config: Client configuration (default: ClientConfig.from_env())

    Returns:
        FastMCP server instance
    """
    config = config or ClientConfig.from_env()

    mcp = FastMCP(
        name="gemini-cloud-assist",
        instructions=f"""Gemini Cloud Assist investigation tools (v{__version__}).

Workflow:
1. create_investigation - open an investigation; parse '**Investigation Path**' and
   '**Revision Path**' from the output, their last segments are the ids.
2. run_investigation - run the analysis on a revision and read the report.
3. add_observation - add new findings; then call run_investigation on the new revision.
4. fetch_investigation - list investigations or read one report.

For questions about existing resources that are not an investigation, use
search_and_analyze_gcp_resources.
""",
    )

    @mcp.tool()
    async def fetch_investigation(
        project_id: str,
        investigation_id: Optional[str] = None,
        revision_id: Optional[str] = None,
        filter_expression: Optional[str] = None,
        next_page_token: Optional[str] = None,
    ) -> str:
        """Fetch Gemini Cloud Assist investigations.

        List mode: with only project_id, lists the project's investigations,
        optionally filtered with filter_expression (format: title:"<title>").
        Pass next_page_token to read the next page.

        Get mode: with investigation_id, returns that investigation's report.
        With revision_id as well, returns that revision instead of the latest.

        Args:
            project_id: The Google Cloud Project ID.
            investigation_id: ID of an investigation to fetch.
            revision_id: Revision ID to fetch. Requires investigation_id.
            filter_expression: Title filter, e.g. title:"my title".
            next_page_token: Page token from a previous list call.
        """
        client = InvestigationClient(config)
        return await run_tool(
            lambda: client.fetch_investigation(
                project_id, investigation_id, revision_id, filter_expression, next_page_token
            )
        )

    @mcp.tool()
    async def create_investigation(
        project_id: str,
        title: str,
        issue_description: str,
        relevant_resources: List[str],
        start_time: str,
    ) -> str:
        """Create a new Gemini Cloud Assist investigation.

        Resolve every argument before calling: resources must be full resource
        URIs such as //compute.googleapis.com/projects/my-project/zones/us-central1-a/instances/my-vm,
        and start_time must be absolute UTC ('YYYY-MM-DDTHH:mm:ssZ').

        The output is markdown. The last segment of '**Investigation Path**' is the
        investigation_id and the last segment of '**Revision Path**' is the
        revision_id needed by run_investigation.

        Args:
            project_id: The Google Cloud Project ID.
            title: Human-readable title, prefixed with "[Gemini CLI]".
            issue_description: Detailed description of the issue.
            relevant_resources: Fully-resolved resource URIs.
            start_time: Issue start time in 'YYYY-MM-DDTHH:mm:ssZ' (UTC).
        """
        client = InvestigationClient(config)
        return await run_tool(
            lambda: client.create_investigation(
                project_id, title, issue_description, relevant_resources, start_time
            )
        )

    @mcp.tool()
    async def run_investigation(project_id: str, investigation_id: str, revision_id: str) -> str:
        """Run the analysis on a revision, wait for it to finish and return the report.

        This call blocks until the analysis completes. The report has '##' sections
        for the issue, relevant observations and hypotheses. Hypotheses are
        candidates to verify, not confirmed root causes.

        Args:
            project_id: The Google Cloud Project ID.
            investigation_id: ID of the investigation to run.
            revision_id: Revision ID to run.
        """
        client = InvestigationClient(config)
        return await run_tool(
            lambda: client.run_investigation(project_id, investigation_id, revision_id)
        )

    @mcp.tool()
    async def add_observation(
        project_id: str,
        investigation_id: str,
        observation: str,
        relevant_resources: List[str],
    ) -> str:
        """Add a user observation to an investigation, creating a new revision.

        Include a short summary of the finding, the command that was run and its
        verbatim output. Pass full resource URIs for any new resources, or an
        empty list. The last segment of '**Revision Path**' in the output is the
        revision_id to pass to run_investigation next.

        Args:
            project_id: The Google Cloud Project ID.
            investigation_id: ID of the investigation.
            observation: The new information from the user.
            relevant_resources: Resource URIs mentioned in the observation.
        """
        client = InvestigationClient(config)
        return await run_tool(
            lambda: client.add_observation(project_id, investigation_id, observation, relevant_resources)
        )

    @mcp.tool()
    async def search_and_analyze_gcp_resources(request: str, project_id: Optional[str] = None) -> str:
        """Query, analyze and summarize the user's Google Cloud resources.

        The request is handed to a backend agent that searches across many GCP
        services (Compute, CloudSQL, Containers and others) and answers in prose,
        not raw resource data. It cannot read Cloud Monitoring metrics or
        BigQuery. The request MUST name the resource type; ask the user first if
        it is not known. Prefer a single gcloud command for simple listings such
        as "list my VMs" and fall back to this tool when that fails.

        Args:
            request: The user's full natural language question, including the resource type.
            project_id: The Google Cloud Project ID (default: the credentials' project).
        """
        client = CloudAiCompanionClient(config)
        return await run_tool(lambda: client.retrieve_resource(request, project_id))

    return mcp


def main():
    """Run the MCP server on stdio."""
    # stdout carries the MCP protocol; logs go to stderr
    logging.basicConfig(
        level=logging.INFO,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    server = create_mcp_server()
    logger.info("Gemini Cloud Assist MCP server starting on stdio.")
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
