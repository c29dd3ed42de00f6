"""
Job Domain Model

One image inside a Project. Created by the projects service the first
time any event mentions its id, then driven only by router events.

Events (besides 'updated'):
- progress(float): step or step_count changed, value in [0, 1]
- completed(Optional[str]): result URL, None when filtered out
- failed(DomainError)
- canceled(Job)
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ..exceptions import DomainError
from .entity import DataEntity


class JobStatus(str, Enum):
    """
    Job status enum

    pending -> initiating -> processing -> completed | failed | canceled
    """
    PENDING = "pending"
    INITIATING = "initiating"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELED = "canceled"

    def is_terminal(self) -> bool:
        """Check if status is terminal (cannot transition)"""
        return self in (
            JobStatus.COMPLETED,
            JobStatus.FAILED,
            JobStatus.CANCELED
        )


@dataclass
class JobData:
    id: str
    status: JobStatus = JobStatus.PENDING
    step: int = 0
    step_count: int = 0
    preview_url: Optional[str] = None
    result_url: Optional[str] = None
    error: Optional[DomainError] = None
    seed: Optional[int] = None
    is_nsfw: bool = False
    user_canceled: bool = False


class Job(DataEntity[JobData]):
    def __init__(self, data: JobData):
        super().__init__(data)
        self.on("updated", self._handle_updated)

    @property
    def id(self) -> str:
        return self.data.id

    @property
    def status(self) -> JobStatus:
        return self.data.status

    @property
    def is_terminal(self) -> bool:
        return self.data.status.is_terminal()

    @property
    def step(self) -> int:
        return self.data.step

    @property
    def step_count(self) -> int:
        return self.data.step_count

    @property
    def progress(self) -> float:
        if self.data.step_count <= 0:
            return 0.0
        return min(1.0, self.data.step / self.data.step_count)

    @property
    def preview_url(self) -> Optional[str]:
        return self.data.preview_url

    @property
    def result_url(self) -> Optional[str]:
        return self.data.result_url

    @property
    def image_url(self) -> Optional[str]:
        """Result if available, latest preview otherwise"""
        return self.data.result_url or self.data.preview_url

    @property
    def error(self) -> Optional[DomainError]:
        return self.data.error

    @property
    def seed(self) -> Optional[int]:
        return self.data.seed

    @property
    def is_nsfw(self) -> bool:
        return self.data.is_nsfw

    def _update(self, **delta) -> List[str]:
        # step never exceeds step_count once it is known
        step_count = delta.get("step_count", self.data.step_count)
        if "step" in delta and step_count and delta["step"] is not None:
            delta["step"] = min(delta["step"], step_count)
        return super()._update(**delta)

    def _handle_updated(self, keys: List[str]):
        if "step" in keys or "step_count" in keys:
            self.emit("progress", self.progress)
        if "status" not in keys:
            return
        if self.status is JobStatus.COMPLETED:
            self.emit("completed", self.result_url)
        elif self.status is JobStatus.FAILED:
            self.emit("failed", self.error)
        elif self.status is JobStatus.CANCELED:
            self.emit("canceled", self)

    def __repr__(self) -> str:
        return f"Job(id={self.id!r}, status={self.status.value}, step={self.step}/{self.step_count})"
