"""
Repository Interfaces for the Practice Document Engine.

Repository interfaces define the contract for data access, following the
Repository pattern from Domain-Driven Design. Implementations are provided
in the database package.

Storage semantics:
1. One Client or one Employee is the unit of load and save
2. `save` is last-write-wins at document granularity
3. `save_with_version` is an optimistic write that succeeds only when the
   stored version still equals the version the caller loaded
"""

from abc import ABC, abstractmethod
from typing import Optional, List, Generic, TypeVar

from .aggregates import Client, Employee


# Generic type for repository entities
T = TypeVar('T')


class IRepository(ABC, Generic[T]):
    """
    Base repository interface.

    Provides load/save operations for aggregate roots.
    """

    @abstractmethod
    def get(self, id: str) -> Optional[T]:
        """
        Retrieve an entity by ID.

        Args:
            id: Unique identifier of the entity

        Returns:
            A detached copy of the entity if found, None otherwise
        """
        pass

    @abstractmethod
    def save(self, entity: T) -> T:
        """
        Save an entity (create or update), overwriting whatever is stored.

        The stored version is incremented and written back onto the entity.

        Args:
            entity: The entity to save

        Returns:
            The saved entity
        """
        pass

    @abstractmethod
    def save_with_version(self, entity: T, expected_version: int) -> bool:
        """
        Save only if the stored version equals expected_version.

        A missing entity counts as version 0.

        Returns:
            True if saved, False on a version conflict
        """
        pass

    @abstractmethod
    def list_ids(self) -> List[str]:
        """List the identifiers of all stored entities."""
        pass

    def exists(self, id: str) -> bool:
        """Check if an entity exists."""
        return self.get(id) is not None


class IClientRepository(IRepository[Client]):
    """Repository interface for Client documents."""
    pass


class IEmployeeRepository(IRepository[Employee]):
    """Repository interface for Employee documents."""
    pass
