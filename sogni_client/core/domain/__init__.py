"""
Domain Models Package

Observable entities driven by normalized server events:
- Project: aggregate root owning its Jobs
- Job: one image of a Project
- CurrentAccount: signed-in account state

All of them mutate only through DataEntity._update().
"""

from .account import (
    AccountData,
    CurrentAccount,
    NetworkStatus
)

from .available_model import AvailableModel

from .entity import DataEntity

from .events import (
    JobEvent,
    JobEventType,
    ProjectEvent,
    ProjectEventType
)

from .job import (
    Job,
    JobData,
    JobStatus
)

from .job_request import create_job_request_message

from .project import (
    Project,
    ProjectData,
    ProjectParams,
    ProjectStatus
)

__all__ = [
    # Base
    "DataEntity",

    # Account
    "AccountData",
    "CurrentAccount",
    "NetworkStatus",

    # Projects
    "AvailableModel",
    "Job",
    "JobData",
    "JobStatus",
    "Project",
    "ProjectData",
    "ProjectParams",
    "ProjectStatus",
    "create_job_request_message",

    # Events
    "JobEvent",
    "JobEventType",
    "ProjectEvent",
    "ProjectEventType"
]
