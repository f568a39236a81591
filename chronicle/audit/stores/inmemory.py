"""In-memory implementation of EntityStore."""

from chronicle.audit.models import Entity
from chronicle.audit.store import EntityStore, EntityT


class InMemoryEntityStore(EntityStore):
    """In-memory implementation of EntityStore for testing and development.

    Keeps deep copies, so mutating an entity after saving it does not
    change what a later ``get()`` returns. Not suitable for production use.
    """

    def __init__(self) -> None:
        self._items: dict[tuple[type, str], Entity] = {}

    async def save(self, entity: Entity) -> str:
        entity_id = entity.get_id()
        self._items[(type(entity), entity_id)] = entity.model_copy(deep=True)
        return entity_id

    async def get(self, entity_id: str, entity_type: type[EntityT]) -> EntityT | None:
        stored = self._items.get((entity_type, str(entity_id)))
        if stored is None:
            return None
        return stored.model_copy(deep=True)  # type: ignore[return-value]

    async def list_by_type(self, entity_type: type[EntityT]) -> list[EntityT]:
        return [
            item.model_copy(deep=True)  # type: ignore[misc]
            for (stored_type, _), item in self._items.items()
            if stored_type is entity_type
        ]

    async def delete(self, entity_id: str, entity_type: type[Entity]) -> bool:
        """Remove an entity; returns whether it existed."""
        return self._items.pop((entity_type, str(entity_id)), None) is not None
