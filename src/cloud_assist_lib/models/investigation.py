"""Investigation data models.

Key Models:
- Investigation: Full snapshot of an investigation at one revision
- Observation: Unit of evidence keyed by a stable observation id
- Hypothesis: Candidate root cause produced by the remote analysis
- RevisionRequest: Body for creating a new revision
- InvestigationList / Operation: Backend list and long-running operation payloads

Field names follow the backend's camelCase wire format through aliases. Unknown
backend fields are preserved so a fetched snapshot can be sent back unchanged.
The deprecated ``timeRanges`` observation field is folded into
``timeIntervals`` when a payload is validated and never kept on the model.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from cloud_assist_lib.constants import (
    OBSERVATION_TYPE_HYPOTHESIS,
    OBSERVER_TYPE_USER,
    PRIMARY_USER_OBSERVATION_ID,
    PROJECT_OBSERVATION_ID,
    RESERVED_OBSERVATION_IDS,
)

logger = logging.getLogger(__name__)


class ApiModel(BaseModel):
    """Base for models exchanged with the backend."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_api(self) -> Dict[str, Any]:
        """Serialize to the backend wire format."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TimeInterval(ApiModel):
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class Observation(ApiModel):
    """A unit of evidence attached to an investigation."""

    id: Optional[str] = None
    observation_type: Optional[str] = None
    observer_type: Optional[str] = None
    title: Optional[str] = None
    text: Optional[str] = None
    relevant_resources: List[str] = Field(default_factory=list)
    time_intervals: Optional[List[TimeInterval]] = None

    @model_validator(mode="before")
    @classmethod
    def normalize_time_ranges(cls, data: Any) -> Any:
        """Fold the deprecated ``timeRanges`` field into ``timeIntervals``."""
        if not isinstance(data, dict) or "timeRanges" not in data:
            return data
        data = dict(data)
        time_ranges = data.pop("timeRanges")
        if not data.get("timeIntervals") and not data.get("time_intervals"):
            logger.warning(
                f"Found deprecated 'timeRanges' in observation '{data.get('id')}', "
                f"converting to 'timeIntervals'."
            )
            data["timeIntervals"] = time_ranges
        return data

    @property
    def is_user_observation(self) -> bool:
        return self.observer_type == OBSERVER_TYPE_USER

    @property
    def is_hypothesis(self) -> bool:
        return self.observation_type == OBSERVATION_TYPE_HYPOTHESIS

    @property
    def start_time(self) -> Optional[str]:
        for interval in self.time_intervals or []:
            if interval.start_time:
                return interval.start_time
        return None


class Hypothesis(ApiModel):
    """Candidate root cause. Read-only; produced by the remote analysis."""

    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    remediation: Optional[str] = None
    supporting_observation_ids: List[str] = Field(default_factory=list)

    @classmethod
    def from_observation(cls, observation: Observation) -> "Hypothesis":
        extra = observation.model_extra or {}
        return cls(
            id=observation.id,
            title=observation.title,
            description=observation.text,
            remediation=extra.get("remediation") or extra.get("recommendation"),
            supporting_observation_ids=extra.get("supportingObservationIds") or [],
        )


class Investigation(ApiModel):
    """Snapshot of an investigation."""

    name: Optional[str] = None
    title: Optional[str] = None
    revision: Optional[str] = None
    create_time: Optional[str] = None
    update_time: Optional[str] = None
    execution_state: Optional[str] = None
    observations: Optional[Dict[str, Observation]] = None
    hypotheses: Optional[List[Hypothesis]] = None

    @field_validator("hypotheses", mode="before")
    @classmethod
    def hypotheses_as_list(cls, value: Any) -> Any:
        """Accept hypotheses keyed by id as well as a plain list."""
        if isinstance(value, dict):
            hypotheses = []
            for key, item in value.items():
                if isinstance(item, dict) and "id" not in item:
                    item = {**item, "id": key}
                hypotheses.append(item)
            return hypotheses
        return value

    @property
    def primary_observation(self) -> Optional[Observation]:
        return (self.observations or {}).get(PRIMARY_USER_OBSERVATION_ID)

    @property
    def project_observation(self) -> Optional[Observation]:
        return (self.observations or {}).get(PROJECT_OBSERVATION_ID)

    def user_observations(self) -> List[Observation]:
        """User observations other than the reserved primary/project entries."""
        return [
            obs
            for key, obs in (self.observations or {}).items()
            if obs.is_user_observation and key not in RESERVED_OBSERVATION_IDS
        ]

    def analysis_observations(self) -> List[Observation]:
        """Observations produced by the analysis, excluding hypotheses."""
        return [
            obs
            for obs in (self.observations or {}).values()
            if not obs.is_user_observation and not obs.is_hypothesis
        ]

    def all_hypotheses(self) -> List[Hypothesis]:
        hypotheses = list(self.hypotheses or [])
        hypotheses.extend(
            Hypothesis.from_observation(obs)
            for obs in (self.observations or {}).values()
            if obs.is_hypothesis
        )
        return hypotheses

    @property
    def execution_state_label(self) -> str:
        return self.execution_state or "N/A"


class RevisionRequest(ApiModel):
    """Body for creating a new revision of an investigation."""

    snapshot: Investigation


class InvestigationList(ApiModel):
    investigations: List[Investigation] = Field(default_factory=list)
    next_page_token: Optional[str] = None


class Operation(ApiModel):
    """Long-running operation handle."""

    name: Optional[str] = None
    done: bool = False
    error: Optional[Dict[str, Any]] = None
    response: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None
