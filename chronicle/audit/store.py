"""EntityStore abstract interface."""

from abc import ABC, abstractmethod
from typing import TypeVar

from chronicle.audit.models import Entity

EntityT = TypeVar("EntityT", bound=Entity)


class EntityStore(ABC):
    """Abstract interface of the persistence engine.

    Entities are addressed by type and identity. Change records are
    saved through the same interface as any other entity.
    """

    @abstractmethod
    async def save(self, entity: Entity) -> str:
        """Insert or replace an entity; returns its identity."""
        pass

    @abstractmethod
    async def get(self, entity_id: str, entity_type: type[EntityT]) -> EntityT | None:
        """Get an entity by identity and type."""
        pass

    @abstractmethod
    async def list_by_type(self, entity_type: type[EntityT]) -> list[EntityT]:
        """List the stored entities of one type."""
        pass
