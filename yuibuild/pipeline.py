"""Sequential execution of fallible asynchronous stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar

from .logging import get_logger

C = TypeVar("C")


class PipelineStatus(str, Enum):
    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PipelineError(RuntimeError):
    """Raised by :meth:`PipelineResult.raise_for_status` for a failed run."""

    def __init__(self, stage: str, cause: BaseException | None) -> None:
        super().__init__(f"Stage '{stage}' failed: {cause}")
        self.stage = stage
        self.cause = cause


@dataclass
class PipelineResult:
    """Outcome of one change event."""

    status: PipelineStatus
    targets: List[str] = field(default_factory=list)
    completed: List[str] = field(default_factory=list)
    failed_stage: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status is not PipelineStatus.FAILED

    def raise_for_status(self) -> None:
        if self.status is PipelineStatus.FAILED:
            raise PipelineError(self.failed_stage or "unknown", self.error) from self.error

    @classmethod
    def skipped(cls) -> "PipelineResult":
        return cls(status=PipelineStatus.SKIPPED)


@dataclass(frozen=True)
class PipelineStage(Generic[C]):
    """A named step operating on the shared run context."""

    name: str
    run: Callable[[C], Awaitable[None]]


class Pipeline(Generic[C]):
    """Runs stages in order on the current task; the first failure stops the run."""

    def __init__(self, stages: Sequence[PipelineStage[C]], *, name: str = "pipeline") -> None:
        self.stages = list(stages)
        self.name = name
        self.logger = get_logger("pipeline")

    async def run(self, context: C) -> PipelineResult:
        completed: List[str] = []
        for stage in self.stages:
            self.logger.debug("[%s] running stage %s", self.name, stage.name)
            try:
                await stage.run(context)
            except Exception as exc:
                self.logger.error("[%s] stage %s failed: %s", self.name, stage.name, exc)
                return PipelineResult(
                    status=PipelineStatus.FAILED,
                    completed=completed,
                    failed_stage=stage.name,
                    error=exc,
                )
            completed.append(stage.name)
        return PipelineResult(status=PipelineStatus.SUCCEEDED, completed=completed)


__all__ = [
    "Pipeline",
    "PipelineError",
    "PipelineResult",
    "PipelineStage",
    "PipelineStatus",
]
