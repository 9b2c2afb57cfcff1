"""Building investigation payloads and folding new observations into revisions.

The primary user observation accumulates everything the user reports: new text
is appended on a new line after the existing text, and new resource references
are appended after the existing ones, skipping exact duplicates.
"""

from typing import Iterable, List, Optional

from cloud_assist_lib.constants import (
    OBSERVATION_TYPE_STRUCTURED_INPUT,
    OBSERVATION_TYPE_TEXT_DESCRIPTION,
    OBSERVER_TYPE_USER,
    PRIMARY_USER_OBSERVATION_ID,
    PROJECT_OBSERVATION_ID,
)
from cloud_assist_lib.models import Investigation, Observation, RevisionRequest, TimeInterval

OBSERVATION_TEXT_SEPARATOR = "\n"


def merge_resources(existing: Iterable[str], new: Iterable[str]) -> List[str]:
    """Append new resources in order, skipping ones already present."""
    merged = list(existing)
    seen = set(merged)
    for resource in new:
        if resource not in seen:
            merged.append(resource)
            seen.add(resource)
    return merged


def _new_primary_observation(
    text: str,
    relevant_resources: Iterable[str],
    start_time: Optional[str] = None,
) -> Observation:
    return Observation(
        id=PRIMARY_USER_OBSERVATION_ID,
        observation_type=OBSERVATION_TYPE_TEXT_DESCRIPTION,
        observer_type=OBSERVER_TYPE_USER,
        text=text,
        relevant_resources=merge_resources([], relevant_resources),
        time_intervals=[TimeInterval(start_time=start_time)] if start_time else None,
    )


def create_initial_investigation(
    title: str,
    project_id: str,
    issue_description: str,
    relevant_resources: Iterable[str],
    start_time: Optional[str] = None,
) -> Investigation:
    """Build the payload for a new investigation.

    Args:
        title: Human-readable investigation title
        project_id: Project the investigation is scoped to
        issue_description: Free-text description of the issue
        relevant_resources: Fully-qualified resource URIs involved in the issue
        start_time: RFC3339 UTC time the issue started

    Returns:
        Investigation with the project observation and the primary user observation
    """
    return Investigation(
        title=title,
        observations={
            PROJECT_OBSERVATION_ID: Observation(
                id=PROJECT_OBSERVATION_ID,
                observation_type=OBSERVATION_TYPE_STRUCTURED_INPUT,
                observer_type=OBSERVER_TYPE_USER,
                text=project_id,
            ),
            PRIMARY_USER_OBSERVATION_ID: _new_primary_observation(
                issue_description, relevant_resources, start_time
            ),
        },
    )


def get_revision_with_new_observation(
    investigation: Optional[Investigation],
    observation: str,
    relevant_resources: Iterable[str],
) -> Optional[RevisionRequest]:
    """Fold a new user observation into a copy of an investigation snapshot.

    Args:
        investigation: Latest snapshot of the investigation, or None
        observation: New text reported by the user
        relevant_resources: Resource URIs mentioned in the new observation

    Returns:
        RevisionRequest wrapping the updated copy, or None when there is no
        snapshot to merge into. The input snapshot is never modified.
    """
    if investigation is None:
        return None

    snapshot = investigation.model_copy(deep=True)
    # The backend assigns the new revision name
    snapshot.revision = None
    resources = list(relevant_resources)

    if snapshot.observations is None:
        snapshot.observations = {}

    primary = snapshot.observations.get(PRIMARY_USER_OBSERVATION_ID)
    if primary is None:
        snapshot.observations[PRIMARY_USER_OBSERVATION_ID] = _new_primary_observation(
            observation, resources
        )
    else:
        if primary.text:
            primary.text = f"{primary.text}{OBSERVATION_TEXT_SEPARATOR}{observation}"
        else:
            primary.text = observation
        primary.relevant_resources = merge_resources(primary.relevant_resources, resources)

    return RevisionRequest(snapshot=snapshot)
