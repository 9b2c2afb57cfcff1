"""Investigation engine: addressing, revision merging, polling and rendering."""

from cloud_assist_lib.core.paths import InvestigationPath
from cloud_assist_lib.core.polling import OperationPoller, OperationStatus, PollState
from cloud_assist_lib.core.rendering import (
    InvestigationViewer,
    format_investigation_list,
    get_investigation_link,
)
from cloud_assist_lib.core.resources import ensure_valid_resources, validate_resources
from cloud_assist_lib.core.revisions import (
    create_initial_investigation,
    get_revision_with_new_observation,
    merge_resources,
)

__all__ = [
    "InvestigationPath",
    "OperationPoller",
    "OperationStatus",
    "PollState",
    "InvestigationViewer",
    "format_investigation_list",
    "get_investigation_link",
    "ensure_valid_resources",
    "validate_resources",
    "create_initial_investigation",
    "get_revision_with_new_observation",
    "merge_resources",
]
