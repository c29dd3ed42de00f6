"""
Projects Service - creates projects and drives them with router events
Implements: Single Responsibility Principle (SRP)

Events:
- availableModels(List[AvailableModel])
"""
import asyncio
import logging
from typing import List, Optional

from ..api_client import ApiClient
from ..domain.available_model import AvailableModel
from ..domain.events import JobEvent, JobEventType, ProjectEvent, ProjectEventType
from ..domain.job import Job, JobData, JobStatus
from ..domain.job_request import create_job_request_message
from ..domain.project import Project, ProjectParams, ProjectStatus
from ..event_emitter import EventEmitter
from ..exceptions import DomainError, SogniError
from ..repositories.project_repo import ProjectRepository
from ..socket import ServerDisconnectData
from .event_router import EventRouter

logger = logging.getLogger(__name__)

SERVER_DISCONNECTED_CODE = 0


class ProjectsService(EventEmitter):
    """Service xử lý project business logic"""

    def __init__(
        self,
        client: ApiClient,
        router: EventRouter,
        project_repo: ProjectRepository
    ):
        super().__init__()
        self.client = client
        self.router = router
        self.project_repo = project_repo
        self._available_models: List[AvailableModel] = []

        router.on("project", self.handle_project_event)
        router.on("job", self.handle_job_event)
        router.on("availableModels", self.handle_available_models)
        client.on("disconnected", self.handle_server_disconnected)
        client.auth.on("updated", self.handle_auth_updated)

    @property
    def available_models(self) -> List[AvailableModel]:
        return list(self._available_models)

    async def create(self, params: ProjectParams) -> Project:
        """
        Send a new project request to the network

        The project is registered before sending so that events racing
        the send are not lost. It is unregistered if the send fails.

        Raises:
            SocketConnectionError: If the socket is not usable
        """
        project = Project(params)
        self.project_repo.add(project)
        try:
            await self.client.socket.send("jobRequest", create_job_request_message(project.id, params))
        except SogniError:
            self.project_repo.delete(project.id)
            raise
        logger.info(f"[OK] Project {project.id} submitted ({params.number_of_images} image(s), model {params.model_id})")
        return project

    def get(self, project_id: str) -> Optional[Project]:
        return self.project_repo.get_by_id(project_id)

    async def wait_for_models(self, timeout: float = 10.0) -> List[AvailableModel]:
        """
        Wait until the server reports at least one available model

        Raises:
            asyncio.TimeoutError: If no model list arrived in time
        """
        if self._available_models:
            return self.available_models
        future = asyncio.get_running_loop().create_future()

        def on_models(models: List[AvailableModel]):
            if models and not future.done():
                future.set_result(list(models))

        subscription = self.on("availableModels", on_models)
        try:
            return await asyncio.wait_for(future, timeout)
        finally:
            subscription.release()

    async def download_url(self, project_id: str, job_id: str, url_type: str = "complete") -> str:
        return await self.router.download_url(project_id, job_id, url_type)

    def handle_available_models(self, models: List[AvailableModel]):
        self._available_models = list(models)
        self.emit("availableModels", self.available_models)

    def handle_project_event(self, event: ProjectEvent):
        project = self.project_repo.get_by_id(event.project_id)
        if project is None:
            # Not tracked by this client
            return
        if event.type is ProjectEventType.QUEUED:
            delta = {"queue_position": event.queue_position if event.queue_position is not None else -1}
            if project.status in (ProjectStatus.PENDING, ProjectStatus.QUEUED):
                delta["status"] = ProjectStatus.QUEUED
            project._update(**delta)
        elif event.type is ProjectEventType.COMPLETED:
            project._mark_server_completed()
        elif event.type is ProjectEventType.ERROR:
            logger.warning(f"[WARNING] Project {project.id} failed: {event.error!r}")
            project._fail(event.error)

    def handle_job_event(self, event: JobEvent):
        project = self.project_repo.get_by_id(event.project_id)
        if project is None:
            return
        job = project.job(event.job_id)
        if job is None:
            # Events are not ordered, any of them may be the first one for a job
            job = project._add_job(JobData(
                id=event.job_id,
                status=JobStatus.PENDING,
                step=0,
                step_count=project.params.steps
            ))
        if job.is_terminal and event.type is not JobEventType.PREVIEW:
            logger.debug(f"[SKIP] Job {job.id} is {job.status.value}, ignoring '{event.type.value}'")
            return

        if event.type is JobEventType.INITIATING:
            job._update(status=JobStatus.INITIATING)
        elif event.type is JobEventType.STARTED:
            job._update(status=JobStatus.PROCESSING)
        elif event.type is JobEventType.PROGRESS:
            self._apply_progress(project, job, event)
        elif event.type is JobEventType.PREVIEW:
            job._update(preview_url=event.url)
        elif event.type is JobEventType.COMPLETED:
            self._apply_result(job, event)
        elif event.type is JobEventType.ERROR:
            job._update(status=JobStatus.FAILED, error=event.error)

    @staticmethod
    def _apply_progress(project: Project, job: Job, event: JobEvent):
        delta = {"status": JobStatus.PROCESSING}
        if event.step_count:
            delta["step_count"] = event.step_count
        if event.step is not None:
            delta["step"] = event.step
        job._update(**delta)
        if not project.is_terminal and project.status is not ProjectStatus.PROCESSING:
            project._update(status=ProjectStatus.PROCESSING)

    @staticmethod
    def _apply_result(job: Job, event: JobEvent):
        canceled = event.user_canceled
        delta = {
            "status": JobStatus.CANCELED if canceled else JobStatus.COMPLETED,
            "seed": event.seed,
            "result_url": None if canceled else event.result_url,
            "is_nsfw": event.is_nsfw,
            "user_canceled": canceled,
        }
        if event.step is not None:
            delta["step"] = event.step
        job._update(**delta)

    def handle_server_disconnected(self, data: ServerDisconnectData):
        logger.warning(f"[WARNING] Server disconnected (code {data.code}), failing in-flight projects")
        self._clear_models()
        self._fail_in_flight()

    def handle_auth_updated(self, is_authenticated: bool):
        if is_authenticated:
            return
        self._clear_models()
        self._fail_in_flight()
        self.project_repo.clear()

    def _fail_in_flight(self):
        for project in self.project_repo.get_in_flight():
            project._fail(DomainError(SERVER_DISCONNECTED_CODE, "Server disconnected"))

    def _clear_models(self):
        if not self._available_models:
            return
        self._available_models = []
        self.emit("availableModels", [])
