"""
Services Package

Use cases on top of the API client: project lifecycle, account session
and the translation of socket events into domain events.
"""

from .account_service import AccountService
from .event_router import EventRouter, normalize_error_code, register_error_reason
from .projects_service import ProjectsService

__all__ = [
    'AccountService',
    'EventRouter',
    'ProjectsService',
    'normalize_error_code',
    'register_error_reason',
]
