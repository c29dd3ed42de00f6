"""
Project Repository

Holds in-flight projects so router events can find them by id.
A terminal project stays reachable for a grace window, then it is
evicted and its job subscriptions are released.
"""
import asyncio
import logging
from typing import Dict, List, Optional

from ..domain.project import Project
from ..event_emitter import Subscription
from .base import BaseRepository

logger = logging.getLogger(__name__)

GARBAGE_COLLECT_TIMEOUT = 10.0


class ProjectRepository(BaseRepository[Project]):
    """In-memory project registry with delayed eviction"""

    def __init__(self, gc_timeout: float = GARBAGE_COLLECT_TIMEOUT):
        self.gc_timeout = gc_timeout
        self._projects: Dict[str, Project] = {}
        self._subscriptions: Dict[str, List[Subscription]] = {}
        self._gc_handles: Dict[str, asyncio.TimerHandle] = {}

    def get_by_id(self, id: str) -> Optional[Project]:
        return self._projects.get(id)

    def get_all(self) -> List[Project]:
        return list(self._projects.values())

    def get_in_flight(self) -> List[Project]:
        """Projects that did not reach a terminal status yet"""
        return [p for p in self._projects.values() if not p.is_terminal]

    def add(self, project: Project) -> Project:
        if project.id in self._projects:
            raise ValueError(f"Project {project.id} already registered")
        self._projects[project.id] = project
        self._subscriptions[project.id] = [
            project.on("completed", lambda urls: self._schedule_eviction(project)),
            project.on("failed", lambda error: self._schedule_eviction(project)),
        ]
        if project.is_terminal:
            self._schedule_eviction(project)
        return project

    def delete(self, id: str) -> Optional[Project]:
        project = self._projects.pop(id, None)
        handle = self._gc_handles.pop(id, None)
        if handle is not None:
            handle.cancel()
        for subscription in self._subscriptions.pop(id, []):
            subscription.release()
        if project is not None:
            project.dispose()
        return project

    def clear(self):
        for project_id in list(self._projects):
            self.delete(project_id)

    def is_scheduled_for_eviction(self, id: str) -> bool:
        return id in self._gc_handles

    def _schedule_eviction(self, project: Project):
        if project.id in self._gc_handles or self._projects.get(project.id) is not project:
            return
        loop = asyncio.get_running_loop()
        self._gc_handles[project.id] = loop.call_later(self.gc_timeout, self._evict, project.id)
        logger.debug(f"[GC] Project {project.id} ({project.status.value}) evicted in {self.gc_timeout}s")

    def _evict(self, project_id: str):
        self._gc_handles.pop(project_id, None)
        if self.delete(project_id) is not None:
            logger.debug(f"[GC] Project {project_id} evicted")

    def __contains__(self, id: str) -> bool:
        return id in self._projects

    def __len__(self) -> int:
        return len(self._projects)
