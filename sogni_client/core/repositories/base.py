"""
Base Repository

Abstract base class for in-memory repositories

Implements:
- DIP: Services depend on this interface, not on the storage
- ISP: Minimal interface, specific repos can extend
"""

from abc import ABC, abstractmethod
from typing import TypeVar, Generic, Optional, List

T = TypeVar('T')


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base repository với CRUD operations cơ bản

    Generic[T]: T là domain model type (Project, ...)

    Methods are synchronous: entities are only touched from event
    handlers running on the event loop.
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """
        Lấy entity theo ID

        Args:
            id: Entity ID

        Returns:
            Domain model or None if not found
        """
        pass

    @abstractmethod
    def get_all(self) -> List[T]:
        """Lấy danh sách entities, in insertion order"""
        pass

    @abstractmethod
    def add(self, entity: T) -> T:
        """Register entity"""
        pass

    @abstractmethod
    def delete(self, id: str) -> Optional[T]:
        """
        Remove entity

        Returns:
            Removed entity or None if it was not registered
        """
        pass
