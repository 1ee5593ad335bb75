"""Base repository contract.

Services in every module talk to stores through subclasses of
``IRepository[T]`` and receive the Django implementation by constructor
injection, which lets unit tests hand them a ``MagicMock`` instead.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """The entity with this primary key, or ``None`` (also for malformed ids)."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Insert or update ``entity`` and return it."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Remove the entity; ``False`` when nothing was removed."""
