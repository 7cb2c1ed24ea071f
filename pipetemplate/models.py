"""Typed views over the loosely structured Spinnaker pipeline config.

Stages are decoded into a closed record for the structural keys plus a
residual bag of stage-specific fields. Required fields are checked here so
malformed input fails before anything is built.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError, field_validator

from pipetemplate.errors import MalformedStage

STRUCTURAL_STAGE_KEYS = ("type", "name", "refId", "requisiteStageRefIds")


class RawStage(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: StrictStr
    refId: StrictStr
    name: StrictStr
    requisiteStageRefIds: Optional[List[StrictStr]] = None

    @property
    def requisites(self) -> List[str]:
        return list(self.requisiteStageRefIds or [])

    def fields(self) -> Dict[str, Any]:
        """The stage record as supplied, structural keys included."""
        return self.model_dump(exclude_unset=True)


def decode_stage(index: int, raw: Any) -> RawStage:
    if not isinstance(raw, Mapping):
        raise MalformedStage(index, None, f"expected a mapping, got {type(raw).__name__}")
    try:
        return RawStage.model_validate(dict(raw))
    except ValidationError as e:
        err = e.errors()[0]
        loc = err.get("loc") or ()
        field = str(loc[0]) if loc else None
        raise MalformedStage(index, field, err.get("msg", "invalid value")) from e


def decode_stages(stages: Sequence[Any]) -> List[RawStage]:
    return [decode_stage(i, s) for i, s in enumerate(stages or [])]


class PipelineConfig(BaseModel):
    """Pipeline config as returned by ``/applications/{app}/pipelineConfigs``.

    Stages stay raw here; they are validated by :func:`decode_stages` so a
    bad stage surfaces as ``MalformedStage`` rather than a generic error.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    application: str = ""
    name: str = ""
    description: str = ""
    lastModifiedBy: str = ""
    parallel: bool = False
    limitConcurrent: bool = False
    triggers: List[Dict[str, Any]] = Field(default_factory=list)
    notifications: List[Dict[str, Any]] = Field(default_factory=list)
    parameters: List[Any] = Field(default_factory=list, alias="parameterConfig")
    expectedArtifacts: List[Any] = Field(default_factory=list)
    stages: List[Any] = Field(default_factory=list)

    @field_validator("application", "name", "description", "lastModifiedBy", mode="before")
    @classmethod
    def _null_as_blank(cls, v):
        return "" if v is None else v

    @field_validator("parallel", "limitConcurrent", mode="before")
    @classmethod
    def _null_as_false(cls, v):
        return False if v is None else v

    @field_validator("triggers", "notifications", "parameters", "expectedArtifacts", "stages", mode="before")
    @classmethod
    def _null_as_empty(cls, v):
        return [] if v is None else v
