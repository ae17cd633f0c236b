"""Generic repository interface (Dependency Inversion Principle).

``IRepository[T]`` is the base every aggregate repository extends.
Services depend on these abstractions only; the Django ORM lives in the
``django_repository`` modules.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base generic repository contract.

    Lookups follow the Null Object convention: a missing or malformed ID
    yields ``None`` and the service decides which domain error to raise.
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by its primary key."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Persist (create or update) an entity."""
