"""Result types for deployment runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path


class PipelineState(StrEnum):
    """States of the deployment state machine."""

    IDLE = "idle"
    FETCHING_CODE = "fetching_code"
    BUILDING_CODE = "building_code"
    PACKAGING_CODE = "packaging_code"
    UPLOADING_CODE = "uploading_code"
    ACTIVATING_CODE = "activating_code"
    FETCHING_DATA = "fetching_data"
    BUILDING_DATA = "building_data"
    IMPORTING_DATA = "importing_data"
    REINDEXING = "reindexing"
    WRITING_WORKSPACE = "writing_workspace"
    DONE = "done"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (PipelineState.DONE, PipelineState.FAILED)


STAGE_TITLES: dict[PipelineState, str] = {
    PipelineState.FETCHING_CODE: "Fetch storefront code",
    PipelineState.BUILDING_CODE: "Build storefront assets",
    PipelineState.PACKAGING_CODE: "Package code version",
    PipelineState.UPLOADING_CODE: "Upload code",
    PipelineState.ACTIVATING_CODE: "Activate code version",
    PipelineState.FETCHING_DATA: "Fetch demo data",
    PipelineState.BUILDING_DATA: "Package demo data",
    PipelineState.IMPORTING_DATA: "Import demo data",
    PipelineState.REINDEXING: "Rebuild search indexes",
    PipelineState.WRITING_WORKSPACE: "Write IDE workspace",
}

DEPLOY_STAGES: tuple[PipelineState, ...] = (
    PipelineState.FETCHING_CODE,
    PipelineState.BUILDING_CODE,
    PipelineState.PACKAGING_CODE,
    PipelineState.UPLOADING_CODE,
    PipelineState.ACTIVATING_CODE,
    PipelineState.FETCHING_DATA,
    PipelineState.BUILDING_DATA,
    PipelineState.IMPORTING_DATA,
    PipelineState.REINDEXING,
)


def format_elapsed(seconds: float) -> str:
    """Format elapsed seconds as ``MM:SS``; empty when under one second."""
    total = int(seconds)
    if total <= 0:
        return ""
    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"


@dataclass
class StageRecord:
    """Timing of one stage of a run."""

    state: PipelineState
    started_at: float
    log_path: Path
    finished_at: float | None = None
    succeeded: bool = False

    @property
    def title(self) -> str:
        return STAGE_TITLES.get(self.state, self.state.value)

    @property
    def elapsed(self) -> float:
        if self.finished_at is None:
            return 0.0
        return self.finished_at - self.started_at


@dataclass
class DeploymentRun:
    """One orchestration execution: its stages, outcome and log file."""

    kind: str
    log_path: Path
    state: PipelineState = PipelineState.IDLE
    stages: list[StageRecord] = field(default_factory=list)
    error: Exception | None = None

    @property
    def success(self) -> bool:
        return self.state == PipelineState.DONE

    @property
    def failed_stage(self) -> StageRecord | None:
        for stage in self.stages:
            if not stage.succeeded:
                return stage
        return None

    def enter(self, state: PipelineState, now: float) -> StageRecord:
        if self.state.terminal:
            raise RuntimeError(f"Run already {self.state.value}; cannot enter {state.value}")
        self.state = state
        record = StageRecord(state=state, started_at=now, log_path=self.log_path)
        self.stages.append(record)
        return record

    def fail(self, error: Exception, now: float) -> None:
        if self.stages and self.stages[-1].finished_at is None:
            self.stages[-1].finished_at = now
        self.state = PipelineState.FAILED
        self.error = error

    def complete(self) -> None:
        self.state = PipelineState.DONE

    def visited(self) -> list[PipelineState]:
        return [stage.state for stage in self.stages]
