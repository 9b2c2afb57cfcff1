"""Markdown rendering of investigations.

The issue section carries the ``**Investigation Path**`` and ``**Revision Path**``
fields. Agents parse these to find the ids for follow-up calls, so their labels
must stay exactly as written here.
"""

import logging
from typing import List, Optional, Sequence

from cloud_assist_lib.constants import CONSOLE_BASE_URL
from cloud_assist_lib.core.paths import InvestigationPath
from cloud_assist_lib.models import Hypothesis, Investigation, Observation

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
NO_INVESTIGATIONS = "No investigations found."
NO_HYPOTHESES = "No hypotheses found."


def get_investigation_link(
    project_id: str,
    investigation_id: str,
    console_base_url: str = CONSOLE_BASE_URL,
) -> str:
    """Console deep link for an investigation."""
    return (
        f"{console_base_url}/troubleshooting/investigations/details/"
        f"{investigation_id}?project={project_id}"
    )


def _format_resources(resources: Sequence[str]) -> str:
    if not resources:
        return ""
    lines = ["**Relevant Resources**:"]
    lines.extend(f"- {resource}" for resource in resources)
    return "\n".join(lines)


class InvestigationViewer:
    """Formats an investigation snapshot as a markdown report.

    Usage:
        viewer = InvestigationViewer(investigation)
        report = viewer.render()
        summary = viewer.render(show_observations_and_hypotheses=False)
    """

    def __init__(self, investigation: Investigation, console_base_url: str = CONSOLE_BASE_URL):
        self.investigation = investigation
        self.console_base_url = console_base_url
        self.path = InvestigationPath.parse(investigation.revision) or InvestigationPath.parse(
            investigation.name
        )

    def format_issue_section(self) -> str:
        inv = self.investigation
        primary = inv.primary_observation
        start_time = primary.start_time if primary else None
        description = primary.text if primary and primary.text else NOT_AVAILABLE

        lines = [
            "## Gemini Cloud Assist Investigation",
            "",
            f"**Name**: {inv.title or NOT_AVAILABLE}",
            f"**Investigation Path**: {inv.name or NOT_AVAILABLE}",
            f"**Revision Path**: {inv.revision or NOT_AVAILABLE}",
            f"**State**: {inv.execution_state_label}",
            f"**Start Time**: {start_time or NOT_AVAILABLE}",
        ]
        if primary and primary.relevant_resources:
            lines.append(_format_resources(primary.relevant_resources))
        lines.append("")
        lines.append(f"**Issue Description**:\n{description}")
        return "\n".join(lines)

    def format_user_observations_section(self) -> str:
        observations = self.investigation.user_observations()
        if not observations:
            return ""

        lines = ["## User Observations", ""]
        for obs in observations:
            lines.append(f"- {obs.text or obs.title or obs.id}")
        return "\n".join(lines)

    def _format_observation(self, observation: Observation) -> str:
        parts = [f"### {observation.title or observation.id or 'Untitled Observation'}"]
        if observation.text:
            parts.append(observation.text)
        resources = _format_resources(observation.relevant_resources)
        if resources:
            parts.append(resources)
        return "\n\n".join(parts)

    def format_observations_section(self) -> str:
        observations = self.investigation.analysis_observations()
        blocks = [f"## Relevant Observations ({len(observations)})"]
        blocks.extend(self._format_observation(obs) for obs in observations)
        return "\n\n".join(blocks)

    def _format_hypothesis(self, index: int, hypothesis: Hypothesis) -> str:
        parts = [f"### Hypothesis {index}: {hypothesis.title or 'Untitled Hypothesis'}"]
        if hypothesis.description:
            parts.append(hypothesis.description)
        if hypothesis.remediation:
            parts.append(f"**Remediation**:\n{hypothesis.remediation}")
        if hypothesis.supporting_observation_ids:
            supporting = ", ".join(hypothesis.supporting_observation_ids)
            parts.append(f"**Supporting Observations**: {supporting}")
        return "\n\n".join(parts)

    def format_hypotheses_section(self) -> str:
        hypotheses = self.investigation.all_hypotheses()
        blocks = [f"## Hypotheses ({len(hypotheses)})"]
        if not hypotheses:
            blocks.append(NO_HYPOTHESES)
        blocks.extend(
            self._format_hypothesis(index, hypothesis)
            for index, hypothesis in enumerate(hypotheses, start=1)
        )
        return "\n\n".join(blocks)

    def format_investigation_link(self) -> str:
        if self.path is None or not self.path.investigation_id:
            logger.debug(f"Cannot build console link for '{self.investigation.name}'")
            return f"**Investigation Link**: {NOT_AVAILABLE}"
        link = get_investigation_link(
            self.path.project_id, self.path.investigation_id, self.console_base_url
        )
        return f"**Investigation Link**: {link}"

    def render(self, show_observations_and_hypotheses: bool = True) -> str:
        """Render the full report.

        Args:
            show_observations_and_hypotheses: Include analysis results. Pass False
                right after create/add-observation, before any analysis has run.
        """
        sections: List[str] = [self.format_issue_section(), self.format_user_observations_section()]
        if show_observations_and_hypotheses:
            sections.append(self.format_observations_section())
            sections.append(self.format_hypotheses_section())
        sections.append(self.format_investigation_link())
        return "\n\n".join(section for section in sections if section)


def format_investigation_list(
    investigations: Sequence[Investigation],
    next_page_token: Optional[str] = None,
    console_base_url: str = CONSOLE_BASE_URL,
) -> str:
    """Render a page of investigations, one block per investigation."""
    if not investigations:
        return NO_INVESTIGATIONS

    blocks = []
    for inv in investigations:
        path = InvestigationPath.parse(inv.name)
        if path is not None and path.investigation_id:
            investigation_id = path.investigation_id
            link = get_investigation_link(path.project_id, investigation_id, console_base_url)
        else:
            investigation_id = inv.name.rsplit("/", 1)[-1] if inv.name else NOT_AVAILABLE
            link = NOT_AVAILABLE
        blocks.append(
            f"Investigation ID: {investigation_id}\n"
            f"Title: {inv.title or NOT_AVAILABLE}\n"
            f"State: {inv.execution_state_label}\n"
            f"Link: {link}"
        )

    output = "\n\n".join(blocks)
    if next_page_token:
        output += (
            f"\n\nNext page token: {next_page_token}\n"
            "More investigations available. Pass this value as the next_page_token "
            "parameter to view the next page."
        )
    return output
