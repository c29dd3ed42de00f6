"""
Repository Pattern Implementation

Implements Dependency Inversion Principle (DIP):
- Services depend on repository abstractions
- In-memory storage implements these abstractions

Benefits:
- Easy to test (can mock repositories)
- Lifetime rules (eviction) live in one place
"""

from .base import BaseRepository
from .project_repo import ProjectRepository

__all__ = [
    "BaseRepository",
    "ProjectRepository"
]
