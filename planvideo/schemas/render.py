from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FormInput(BaseModel):
    """Plan parameters collected by the UI; may be incomplete until submit time."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    template: str = "life_goal_maximizer"
    plan: str = ""
    user_name: str = ""
    child_name: str = ""
    amount: int = 0
    tenure: int = 0
    client_age: int = 0
    preview: bool | None = None


class TemplateRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    composition: str = "MainComp"


class RenderAsset(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["image", "data"]
    layer_name: str = Field(alias="layerName")
    src: str | None = None
    property: str | None = None
    value: str | None = None


class RenderRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    preview: bool = False
    template: TemplateRef
    fonts: tuple[str, ...] = ()
    assets: tuple[RenderAsset, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RemoteState(str, Enum):
    QUEUED = "queued"
    RENDERING = "rendering"
    FINISHED = "finished"
    FAILED = "failed"


class JobState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    QUEUED = "queued"
    RENDERING = "rendering"
    FINISHED = "finished"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_JOB_STATES

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_JOB_STATES


TERMINAL_JOB_STATES = frozenset({JobState.FINISHED, JobState.FAILED})
ACTIVE_JOB_STATES = frozenset({JobState.SUBMITTING, JobState.QUEUED, JobState.RENDERING})

STATUS_MESSAGES: dict[JobState, str] = {
    JobState.IDLE: "",
    JobState.SUBMITTING: "Submitting request...",
    JobState.QUEUED: "Video queued for processing...",
    JobState.RENDERING: "Processing video...",
    JobState.FINISHED: "Video ready!",
    JobState.FAILED: "Processing failed. Please try again.",
}


@dataclass(slots=True, frozen=True)
class JobHandle:
    job_id: str
    state: RemoteState | None = None


@dataclass(slots=True, frozen=True)
class JobSnapshot:
    state: RemoteState | None
    progress: int = 0
    output_url: str | None = None
    error_message: str | None = None


@dataclass(slots=True, frozen=True)
class JobView:
    """What subscribers see after every transition."""

    state: JobState = JobState.IDLE
    progress: int = 0
    output_url: str | None = None
    error_message: str | None = None
    error_kind: str | None = None
    job_id: str | None = None

    @property
    def status_message(self) -> str:
        return STATUS_MESSAGES[self.state]


class JobViewOut(BaseModel):
    state: JobState
    progress: int
    output_url: str | None = None
    error_message: str | None = None
    error_kind: str | None = None
    job_id: str | None = None
    status_message: str

    @classmethod
    def from_view(cls, view: JobView) -> "JobViewOut":
        return cls(
            state=view.state,
            progress=view.progress,
            output_url=view.output_url,
            error_message=view.error_message,
            error_kind=view.error_kind,
            job_id=view.job_id,
            status_message=view.status_message,
        )


class ProjectionOut(BaseModel):
    premium: float
    term_years: int
    withdrawals: dict[int, float]
    maturity_at_8: int
    maturity_at_4: int
