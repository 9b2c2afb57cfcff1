"""Resource names for investigations and revisions.

Names follow a fixed hierarchy::

    projects/{project}/locations/global
    projects/{project}/locations/global/investigations/{investigation}
    projects/{project}/locations/global/investigations/{investigation}/revisions/{revision}
"""

from dataclasses import dataclass
from typing import Optional

from cloud_assist_lib.errors import InvalidArgumentError, MissingIdentifierError

LOCATION = "global"


@dataclass(frozen=True)
class InvestigationPath:
    """Immutable address of a project, investigation or revision."""

    project_id: str
    investigation_id: Optional[str] = None
    revision_id: Optional[str] = None

    def __post_init__(self):
        if not self.project_id:
            raise InvalidArgumentError("projectId is required.")
        if self.revision_id and not self.investigation_id:
            raise InvalidArgumentError("revisionId cannot be provided without investigationId.")

    @property
    def parent(self) -> str:
        return f"projects/{self.project_id}/locations/{LOCATION}"

    @property
    def investigation_name(self) -> str:
        if not self.investigation_id:
            raise MissingIdentifierError("Investigation ID is not set.")
        return f"{self.parent}/investigations/{self.investigation_id}"

    @property
    def revision_name(self) -> str:
        if not self.investigation_id or not self.revision_id:
            raise MissingIdentifierError("Investigation ID or Revision ID are not set.")
        return f"{self.investigation_name}/revisions/{self.revision_id}"

    @property
    def name(self) -> str:
        """Most specific name this path can build."""
        if self.revision_id:
            return self.revision_name
        if self.investigation_id:
            return self.investigation_name
        return self.parent

    @classmethod
    def parse(cls, full_name: Optional[str]) -> Optional["InvestigationPath"]:
        """Parse a project, investigation or revision name.

        Returns None for anything that does not match the hierarchy.
        """
        if not full_name:
            return None

        segments = full_name.strip("/").split("/")
        if len(segments) not in (4, 6, 8):
            return None
        if segments[0] != "projects" or segments[2] != "locations" or segments[3] != LOCATION:
            return None
        if len(segments) >= 6 and segments[4] != "investigations":
            return None
        if len(segments) == 8 and segments[6] != "revisions":
            return None
        if not all(segments[1::2]):
            return None

        return cls(
            project_id=segments[1],
            investigation_id=segments[5] if len(segments) >= 6 else None,
            revision_id=segments[7] if len(segments) == 8 else None,
        )

    def __str__(self) -> str:
        return self.name
