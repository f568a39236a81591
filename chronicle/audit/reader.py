"""Reconstruction of the entity a change record describes."""

from chronicle.audit.context import AuditContext
from chronicle.audit.errors import TypeNotFoundError, UnsupportedEventError
from chronicle.audit.models import ChangeRecord, Entity, EventKind
from chronicle.observability.logging import get_logger

logger = get_logger(__name__)


class ReconstructionReader:
    """Loads the subject of a persisted change record.

    Inserted and updated entities still exist and are read from the
    store. Deleted ones are rebuilt in memory from the "old" section of
    the stored payload; fields that were empty at deletion time, or are
    not logged, keep their defaults.
    """

    def __init__(self, context: AuditContext) -> None:
        self._context = context

    def resolve_type(self, record: ChangeRecord) -> type:
        type_name = record.item_type or ""
        entity_type = self._context.registry.resolve_type(type_name)
        if entity_type is None:
            raise TypeNotFoundError(type_name)
        return entity_type

    async def load_subject(self, record: ChangeRecord) -> Entity | None:
        """Entity the record is about.

        Raises:
            TypeNotFoundError: If ``item_type`` names no known type
            UnsupportedEventError: For records other than Insert, Update, Delete
        """
        entity_type = self.resolve_type(record)
        kind = record.event_kind

        if kind in (EventKind.INSERT, EventKind.UPDATE):
            return await self._context.store.get(record.item_key or "", entity_type)

        if kind is EventKind.DELETE:
            return self._rebuild_deleted(record, entity_type)

        raise UnsupportedEventError(
            f"Cannot load the subject of a '{record.event}' record"
        )

    def _rebuild_deleted(self, record: ChangeRecord, entity_type: type) -> Entity:
        schema = self._context.registry.get(entity_type)
        result = schema.new_instance()
        schema.set_key(result, record.item_key or "")

        if not record.data:
            return result

        diff = self._context.encoder.decode(record.data)
        for name, change in diff.items():
            descriptor = schema.get_field(name)
            if descriptor is None or descriptor.setter is None:
                logger.debug(
                    "reconstruction_field_skipped",
                    item_type=record.item_type,
                    field=name,
                )
                continue
            descriptor.setter(result, descriptor.coerce(change.old))

        return result
