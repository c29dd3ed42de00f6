"""
Internal Events

Normalized events published by EventRouter and consumed by
ProjectsService. Vendor field names never get past the router.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..exceptions import DomainError


class ProjectEventType(str, Enum):
    QUEUED = "queued"
    COMPLETED = "completed"
    ERROR = "error"


class JobEventType(str, Enum):
    INITIATING = "initiating"
    STARTED = "started"
    PROGRESS = "progress"
    PREVIEW = "preview"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class ProjectEvent:
    type: ProjectEventType
    project_id: str
    queue_position: Optional[int] = None
    error: Optional[DomainError] = None


@dataclass(frozen=True)
class JobEvent:
    """
    Job-scoped event

    Only the fields relevant to the event type are set:
    - progress: step, step_count
    - preview: url
    - completed: step, seed, result_url, is_nsfw, user_canceled
    - error: error
    """
    type: JobEventType
    project_id: str
    job_id: str
    step: Optional[int] = None
    step_count: Optional[int] = None
    url: Optional[str] = None
    seed: Optional[int] = None
    result_url: Optional[str] = None
    is_nsfw: bool = False
    user_canceled: bool = False
    error: Optional[DomainError] = None
