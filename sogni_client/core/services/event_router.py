"""
Event Router

Translates socket events into normalized project and job events.
This is the only place that knows vendor field names and error
vocabularies. It never mutates projects or jobs.

Socket events consumed:
- jobState: queued | jobCompleted | initiatingModel | jobStarted
- jobProgress, jobResult, jobError
- swarmModels

Events:
- project(ProjectEvent): queued | completed | error
- job(JobEvent): initiating | started | progress | preview | completed | error
- availableModels(List[AvailableModel])
"""
import asyncio
import logging
import re
from typing import Any, Callable, Dict, Optional, Set, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ...schemas import (
    DownloadUrlData,
    JobErrorPayload,
    JobProgressPayload,
    JobResultPayload,
    JobStatePayload,
    SwarmModelsPayload
)
from ..domain.available_model import AvailableModel
from ..domain.events import JobEvent, JobEventType, ProjectEvent, ProjectEventType
from ..event_emitter import EventEmitter
from ..exceptions import DomainError, ProtocolError, SogniError
from ..repositories.project_repo import ProjectRepository
from ..rest_client import RestClient
from ..socket import SocketClient

logger = logging.getLogger(__name__)

P = TypeVar('P', bound=BaseModel)

UNKNOWN_ERROR_CODE = 5000

# Symbolic reasons sent by workers and the server, keyed by normalized reason
_ERROR_REASONS: Dict[str, int] = {
    "serverrestarting": 5001,
    "workerdisconnected": 5002,
    "jobtimedout": 5003,
    "artistcanceled": 5004,
    "workercanceled": 5005,
}


def _normalize_reason(reason: str) -> str:
    return re.sub(r"[^a-z0-9]", "", reason.lower())


def register_error_reason(reason: str, code: int):
    """Map an additional symbolic error reason to a numeric code"""
    key = _normalize_reason(reason)
    if not key:
        raise ValueError("reason cannot be empty")
    _ERROR_REASONS[key] = int(code)


def normalize_error_code(raw: Any) -> int:
    """
    Numeric codes pass through, known symbolic reasons are mapped,
    anything else is UNKNOWN_ERROR_CODE. Never raises.
    """
    if isinstance(raw, bool) or raw is None:
        return UNKNOWN_ERROR_CODE
    if isinstance(raw, int):
        return raw
    if not isinstance(raw, str):
        return UNKNOWN_ERROR_CODE
    text = raw.strip()
    try:
        return int(text)
    except ValueError:
        pass
    return _ERROR_REASONS.get(_normalize_reason(text), UNKNOWN_ERROR_CODE)


class EventRouter(EventEmitter):
    """
    Args:
        socket: source of raw events
        rest: used to resolve preview/result download URLs
        project_repo: read-only lookup of the content filter setting per project
    """

    def __init__(
        self,
        socket: SocketClient,
        rest: RestClient,
        project_repo: Optional[ProjectRepository] = None
    ):
        super().__init__()
        self._rest = rest
        self._project_repo = project_repo
        self._tasks: Set[asyncio.Task] = set()

        socket.on("jobState", self._guarded(JobStatePayload, self.handle_job_state))
        socket.on("jobProgress", self._guarded(JobProgressPayload, self.handle_job_progress))
        socket.on("jobResult", self._guarded(JobResultPayload, self.handle_job_result))
        socket.on("jobError", self._guarded(JobErrorPayload, self.handle_job_error))
        socket.on("swarmModels", self._guarded(SwarmModelsPayload, self.handle_swarm_models))

    def _nsfw_allowed(self, project_id: str) -> bool:
        if self._project_repo is None:
            return False
        project = self._project_repo.get_by_id(project_id)
        return project is not None and project.params.disable_nsfw_filter

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    def _guarded(self, schema: Type[P], handler: Callable[[P], None]) -> Callable[[Any], None]:
        def listener(data: Any):
            try:
                payload = self.parse_payload(schema, data)
            except ProtocolError as e:
                logger.error(f"[ERROR] [ROUTER] Dropping event: {e}")
                return
            handler(payload)
        return listener

    @staticmethod
    def parse_payload(schema: Type[P], data: Any) -> P:
        try:
            return schema.model_validate(data)
        except ValidationError as e:
            raise ProtocolError(f"Invalid {schema.__name__}: {e.error_count()} validation error(s)") from e

    def handle_job_state(self, data: JobStatePayload):
        if data.type == "queued":
            self.emit("project", ProjectEvent(
                type=ProjectEventType.QUEUED,
                project_id=data.job_id,
                queue_position=data.queue_position
            ))
        elif data.type == "jobCompleted":
            self.emit("project", ProjectEvent(type=ProjectEventType.COMPLETED, project_id=data.job_id))
        elif data.type in ("initiatingModel", "jobStarted"):
            if not data.img_id:
                logger.warning(f"[ROUTER] jobState '{data.type}' without imgID for project {data.job_id}")
                return
            event_type = JobEventType.INITIATING if data.type == "initiatingModel" else JobEventType.STARTED
            self.emit("job", JobEvent(type=event_type, project_id=data.job_id, job_id=data.img_id))
        else:
            logger.debug(f"[ROUTER] Ignoring jobState type '{data.type}'")

    def handle_job_progress(self, data: JobProgressPayload):
        self.emit("job", JobEvent(
            type=JobEventType.PROGRESS,
            project_id=data.job_id,
            job_id=data.img_id,
            step=data.step,
            step_count=data.step_count
        ))
        if data.has_image:
            self._spawn(self._emit_preview(data.job_id, data.img_id))

    def handle_job_result(self, data: JobResultPayload):
        # A filtered image is only downloadable if the project disabled the filter
        passed_filter = not data.triggered_nsfw_filter or self._nsfw_allowed(data.job_id)
        if passed_filter and not data.user_canceled:
            self._spawn(self._emit_result(data))
        else:
            self.emit("job", self._result_event(data, None))

    def handle_job_error(self, data: JobErrorPayload):
        error = DomainError(
            normalize_error_code(data.error),
            data.error_message or (str(data.error) if data.error is not None else "Unknown error")
        )
        if not data.img_id:
            self.emit("project", ProjectEvent(
                type=ProjectEventType.ERROR,
                project_id=data.job_id,
                error=error
            ))
            return
        self.emit("job", JobEvent(
            type=JobEventType.ERROR,
            project_id=data.job_id,
            job_id=data.img_id,
            error=error
        ))

    def handle_swarm_models(self, data: SwarmModelsPayload):
        models = [
            AvailableModel.from_swarm(model_id, worker_count)
            for model_id, worker_count in data.root.items()
        ]
        self.emit("availableModels", models)

    async def download_url(self, project_id: str, job_id: str, url_type: str) -> str:
        """
        Resolve a download URL for a preview or result image

        Args:
            url_type: "preview" or "complete"

        Raises:
            ApiError: If the server rejects the request
            ProtocolError: If the response has no URL
        """
        response = await self._rest.get("/v1/image/downloadUrl", {
            "jobId": project_id,
            "imageId": job_id,
            "type": url_type
        })
        data = response.get("data") if isinstance(response, dict) else None
        return self.parse_payload(DownloadUrlData, data).download_url

    async def _emit_preview(self, project_id: str, job_id: str):
        try:
            url = await self.download_url(project_id, job_id, "preview")
        except SogniError as e:
            logger.warning(f"[ROUTER] Preview URL for {project_id}/{job_id} failed: {e}")
            return
        self.emit("job", JobEvent(
            type=JobEventType.PREVIEW,
            project_id=project_id,
            job_id=job_id,
            url=url
        ))

    async def _emit_result(self, data: JobResultPayload):
        try:
            url = await self.download_url(data.job_id, data.img_id, "complete")
        except SogniError as e:
            logger.error(f"[ERROR] [ROUTER] Result URL for {data.job_id}/{data.img_id} failed: {e}")
            self.emit("job", JobEvent(
                type=JobEventType.ERROR,
                project_id=data.job_id,
                job_id=data.img_id,
                error=DomainError(UNKNOWN_ERROR_CODE, f"Failed to get result URL: {e}")
            ))
            return
        self.emit("job", self._result_event(data, url))

    @staticmethod
    def _result_event(data: JobResultPayload, url: Optional[str]) -> JobEvent:
        seed = None
        if data.last_seed is not None:
            try:
                seed = int(str(data.last_seed))
            except ValueError:
                logger.warning(f"[ROUTER] Non numeric seed '{data.last_seed}' for {data.job_id}/{data.img_id}")
        return JobEvent(
            type=JobEventType.COMPLETED,
            project_id=data.job_id,
            job_id=data.img_id,
            step=data.performed_step_count,
            seed=seed,
            result_url=url,
            is_nsfw=data.triggered_nsfw_filter,
            user_canceled=data.user_canceled
        )

    def _spawn(self, coro):
        task = asyncio.get_running_loop().create_task(coro, name=f"EventRouter_task_{id(coro)}")
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"[ERROR] [ROUTER] Task failed: {error}", exc_info=error)

    async def close(self):
        """Cancel pending URL resolutions"""
        if not self._tasks:
            return
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
