"""
Project Domain Models

Value Objects:
- ProjectParams: generation request (immutable)

Aggregate Root:
- Project: owns its Jobs, derives progress and terminal status from them

Terminal rule: a Project turns completed/failed only once every known Job is
terminal and all expected Jobs are known (or the server reported the project
completed). completed if at least one Job completed, failed otherwise.
Terminal status is absorbing.

Events (besides 'updated'):
- progress(int): percentage in [0, 100], only when the value changes
- completed(List[str]): result URLs
- failed(DomainError)
- jobCompleted(Job), jobFailed(Job)
"""
import asyncio
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from ..event_emitter import Subscription
from ..exceptions import DomainError
from .entity import DataEntity, serialize_value
from .job import Job, JobData, JobStatus

ALL_CANCELED_CODE = 5004
NO_JOBS_CODE = 5000


class ProjectStatus(str, Enum):
    PENDING = "pending"
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    def is_terminal(self) -> bool:
        return self in (ProjectStatus.COMPLETED, ProjectStatus.FAILED)


@dataclass(frozen=True)
class ProjectParams:
    """
    Value Object for a generation request

    Attributes:
        model_id: AI model id, see ProjectsService.available_models
        positive_prompt: what to draw
        negative_prompt: what to avoid
        style_prompt: image style
        steps: inference steps per image
        guidance: guidance scale
        seed: seed for one of the images, others get a random one
        number_of_images: images to generate (one Job each)
        number_of_previews: preview images sent while a Job runs
        scheduler: sampler name, server default when None
        disable_nsfw_filter: keep results that triggered the content filter
    """
    model_id: str
    positive_prompt: str
    negative_prompt: str = ""
    style_prompt: str = ""
    steps: int = 20
    guidance: float = 7.5
    seed: Optional[int] = None
    number_of_images: int = 1
    number_of_previews: int = 0
    scheduler: Optional[str] = None
    disable_nsfw_filter: bool = False

    def __post_init__(self):
        if not self.model_id:
            raise ValueError("model_id cannot be empty")
        if self.steps <= 0:
            raise ValueError("steps must be positive")
        if self.number_of_images <= 0:
            raise ValueError("number_of_images must be positive")
        if self.number_of_previews < 0:
            raise ValueError("number_of_previews cannot be negative")


@dataclass
class ProjectData:
    id: str
    params: ProjectParams
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: ProjectStatus = ProjectStatus.PENDING
    queue_position: int = -1
    error: Optional[DomainError] = None


class Project(DataEntity[ProjectData]):
    def __init__(self, params: ProjectParams, project_id: Optional[str] = None):
        super().__init__(ProjectData(id=project_id or str(uuid.uuid4()), params=params))
        self._jobs: List[Job] = []
        self._job_subscriptions: Dict[str, List[Subscription]] = {}
        self._last_emitted_progress = -1
        self._server_completed = False
        self._failing = False
        self._waiters: List[asyncio.Future] = []
        self.on("updated", self._handle_updated)

    @property
    def id(self) -> str:
        return self.data.id

    @property
    def params(self) -> ProjectParams:
        return self.data.params

    @property
    def status(self) -> ProjectStatus:
        return self.data.status

    @property
    def is_terminal(self) -> bool:
        return self.data.status.is_terminal()

    @property
    def started_at(self) -> datetime:
        return self.data.started_at

    @property
    def queue_position(self) -> int:
        return self.data.queue_position

    @property
    def error(self) -> Optional[DomainError]:
        return self.data.error

    @property
    def jobs(self) -> List[Job]:
        return list(self._jobs)

    @property
    def progress(self) -> int:
        # A worker may lower the step count, the first known job is authoritative
        steps_per_job = self._jobs[0].step_count if self._jobs else self.params.steps
        total = steps_per_job * self.params.number_of_images
        if total <= 0:
            return 0
        done = sum(job.step for job in self._jobs)
        return max(0, min(100, math.floor(done / total * 100 + 0.5)))

    @property
    def result_urls(self) -> List[str]:
        return [job.result_url for job in self._jobs if job.result_url]

    def job(self, job_id: str) -> Optional[Job]:
        """Find a job by id"""
        for job in self._jobs:
            if job.id == job_id:
                return job
        return None

    def wait_for_completion(self) -> "asyncio.Future[List[str]]":
        """
        Wait for the project to finish

        The returned future is already done when the project is terminal:
        result URLs on success, the stored DomainError as its exception
        on failure.

        Usage:
            urls = await project.wait_for_completion()
        """
        future = asyncio.get_running_loop().create_future()
        if self.status is ProjectStatus.COMPLETED:
            future.set_result(self.result_urls)
        elif self.status is ProjectStatus.FAILED:
            future.set_exception(self.error)
        else:
            self._waiters.append(future)
        return future

    def _update(self, **delta) -> List[str]:
        if self.is_terminal:
            delta.pop("status", None)
            delta.pop("error", None)
        return super()._update(**delta)

    def _add_job(self, data: JobData) -> Job:
        """Internal: register a Job and forward its events"""
        job = Job(data)
        self._jobs.append(job)
        self._job_subscriptions[job.id] = [
            job.on("updated", lambda keys: self.emit("updated", ["jobs"])),
            job.on("completed", lambda url: self.emit("jobCompleted", job)),
            job.on("failed", lambda error: self.emit("jobFailed", job)),
        ]
        return job

    def _mark_server_completed(self):
        """Internal: the server reported that no more jobs will arrive"""
        self._server_completed = True
        self._evaluate_completion()

    def _fail(self, error: DomainError):
        """Internal: fail every open job, then the project, with one error"""
        if self.is_terminal:
            return
        self._failing = True
        try:
            for job in self._jobs:
                if not job.is_terminal:
                    job._update(status=JobStatus.FAILED, error=error)
        finally:
            self._failing = False
        self._update(status=ProjectStatus.FAILED, error=error)

    def _evaluate_completion(self):
        if self.is_terminal or self._failing:
            return
        if not self._jobs:
            # The server closed the project before reporting any image
            if self._server_completed:
                self._update(status=ProjectStatus.FAILED, error=DomainError(NO_JOBS_CODE, "No jobs reported"))
            return
        if not all(job.is_terminal for job in self._jobs):
            return
        if len(self._jobs) < self.params.number_of_images and not self._server_completed:
            return
        if any(job.status is JobStatus.COMPLETED for job in self._jobs):
            self._update(status=ProjectStatus.COMPLETED)
            return
        error = next((job.error for job in self._jobs if job.error is not None), None)
        if error is None:
            error = DomainError(ALL_CANCELED_CODE, "All jobs were canceled")
        self._update(status=ProjectStatus.FAILED, error=error)

    def _handle_updated(self, keys: List[str]):
        progress = self.progress
        if progress != self._last_emitted_progress:
            self._last_emitted_progress = progress
            self.emit("progress", progress)
        if "jobs" in keys:
            self._evaluate_completion()
        if "status" in keys:
            if self.status is ProjectStatus.COMPLETED:
                self._settle_waiters()
                self.emit("completed", self.result_urls)
            elif self.status is ProjectStatus.FAILED:
                self._settle_waiters()
                self.emit("failed", self.error)

    def _settle_waiters(self):
        waiters, self._waiters = self._waiters, []
        for future in waiters:
            if future.done():
                continue
            if self.status is ProjectStatus.COMPLETED:
                future.set_result(self.result_urls)
            else:
                future.set_exception(self.error)

    def dispose(self):
        """Release job subscriptions, called when the project is evicted"""
        for subscriptions in self._job_subscriptions.values():
            for subscription in subscriptions:
                subscription.release()
        self._job_subscriptions.clear()

    def to_dict(self) -> Dict[str, Any]:
        """Full snapshot, including jobs, for storage or display"""
        data = serialize_value(self.data)
        data["jobs"] = [job.to_dict() for job in self._jobs]
        return data

    def __repr__(self) -> str:
        return f"Project(id={self.id!r}, status={self.status.value}, jobs={len(self._jobs)})"
