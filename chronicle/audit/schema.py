"""Per-type field schemas for change detection.

Every entity type that takes part in auditing is described by an
``EntitySchema``: an ordered list of field descriptors carrying the
accessors and the flags that decide whether a field is logged. Schemas
for pydantic models are derived from ``model_fields`` once and cached by
the ``SchemaRegistry``; other types register an explicit schema.
"""

import inspect
import typing
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from functools import cached_property
from operator import attrgetter
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, TypeAdapter
from pydantic_core import PydanticUndefined

from chronicle.audit.models.entity import Entity
from chronicle.observability.logging import get_logger

logger = get_logger(__name__)

# json_schema_extra key marking a model field as excluded from change records
LOGGABLE = "loggable"

ID_LIST_DELIMITER = ","
SEQUENCE_DELIMITER = ", "

_SEQUENCE_ORIGINS = (list, tuple, set, frozenset)


def not_logged(default: Any = PydanticUndefined, **kwargs: Any) -> Any:
    """``Field()`` that is never written into change records."""
    extra = dict(kwargs.pop("json_schema_extra", None) or {})
    extra[LOGGABLE] = False
    return Field(default, json_schema_extra=extra, **kwargs)


def _setter_for(name: str) -> Callable[[Any, Any], None]:
    def _set(instance: Any, value: Any) -> None:
        setattr(instance, name, value)

    return _set


def _strip_optional(annotation: Any) -> Any:
    args = [a for a in typing.get_args(annotation) if a is not type(None)]
    if len(args) == 1 and type(None) in typing.get_args(annotation):
        return args[0]
    return annotation


def _sequence_item_type(annotation: Any) -> Any | None:
    """Item type of a list-like annotation, or None for scalars."""
    annotation = _strip_optional(annotation)
    origin = typing.get_origin(annotation)
    if origin in _SEQUENCE_ORIGINS:
        args = typing.get_args(annotation)
        return args[0] if args else Any
    return None


@dataclass(frozen=True)
class FieldDescriptor:
    """Accessors and logging flags of one entity field."""

    name: str
    getter: Callable[[Any], Any]
    setter: Callable[[Any, Any], None] | None = None
    annotation: Any = str
    loggable: bool = True
    calculated: bool = False
    static: bool = False
    synthetic: bool = False
    public: bool = True
    declared_by: type | None = None

    @property
    def writable(self) -> bool:
        """Has a setter and a public getter."""
        return self.setter is not None and self.public

    @property
    def delimiter(self) -> str:
        """Join delimiter used when the field holds a sequence."""
        item_type = _sequence_item_type(self.annotation)
        return ID_LIST_DELIMITER if item_type is UUID else SEQUENCE_DELIMITER

    def coerce(self, text: str) -> Any:
        """Convert stored text back into the declared type."""
        item_type = _sequence_item_type(self.annotation)
        if item_type is not None:
            parts = [p.strip() for p in text.split(self.delimiter.strip())] if text else []
            return TypeAdapter(self.annotation).validate_python([p for p in parts if p])
        if text == "" and _strip_optional(self.annotation) is not self.annotation:
            return None
        return TypeAdapter(self.annotation).validate_python(text)


@dataclass
class EntitySchema:
    """Ordered field descriptors of one entity type.

    When several descriptors share a name (one per level of a type
    hierarchy) the most-derived declaration is kept, at the position the
    name first appeared.
    """

    entity_type: type
    fields: list[FieldDescriptor] = field(default_factory=list)
    key_field: str = "id"
    log_events: bool = True

    def __post_init__(self) -> None:
        self.fields = self._most_derived(self.fields)
        self._by_name = {d.name: d for d in self.fields}

    def _most_derived(self, descriptors: Iterable[FieldDescriptor]) -> list[FieldDescriptor]:
        mro = self.entity_type.__mro__
        chosen: dict[str, FieldDescriptor] = {}
        for descriptor in descriptors:
            current = chosen.get(descriptor.name)
            if current is None or self._depth(descriptor, mro) < self._depth(current, mro):
                chosen[descriptor.name] = descriptor
        return list(chosen.values())

    @staticmethod
    def _depth(descriptor: FieldDescriptor, mro: tuple[type, ...]) -> int:
        owner = descriptor.declared_by
        if owner is None or owner not in mro:
            return 0
        return mro.index(owner)

    @classmethod
    def from_model(cls, entity_type: type[BaseModel], *, log_events: bool = True) -> "EntitySchema":
        """Derive a schema from a pydantic model.

        Frozen fields have no setter, ``exclude=True`` fields are not
        public, computed fields are calculated and class variables are
        static. Fields may opt out of logging with ``not_logged()``.
        """
        descriptors: list[FieldDescriptor] = []

        for name, info in entity_type.model_fields.items():
            extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
            descriptors.append(
                FieldDescriptor(
                    name=name,
                    getter=attrgetter(name),
                    setter=None if info.frozen else _setter_for(name),
                    annotation=info.annotation,
                    loggable=bool(extra.get(LOGGABLE, True)),
                    public=info.exclude is not True,
                    declared_by=_declaring_class(entity_type, name),
                )
            )

        for name, computed in entity_type.model_computed_fields.items():
            descriptors.append(
                FieldDescriptor(
                    name=name,
                    getter=attrgetter(name),
                    annotation=computed.return_type,
                    calculated=True,
                    declared_by=_declaring_class(entity_type, name),
                )
            )

        for name in sorted(entity_type.__class_vars__):
            descriptors.append(
                FieldDescriptor(
                    name=name,
                    getter=attrgetter(name),
                    static=True,
                    declared_by=_declaring_class(entity_type, name),
                )
            )

        return cls(entity_type=entity_type, fields=descriptors, log_events=log_events)

    @cached_property
    def loggable_fields(self) -> tuple[FieldDescriptor, ...]:
        """Fields written into change records, in declaration order."""
        return tuple(
            d
            for d in self.fields
            if not d.synthetic
            and not d.static
            and d.name != self.key_field
            and d.writable
            and d.loggable
            and not d.calculated
        )

    def get_field(self, name: str) -> FieldDescriptor | None:
        return self._by_name.get(name)

    def key_of(self, entity: Entity) -> str:
        return entity.get_id()

    def set_key(self, entity: Any, key: str) -> None:
        descriptor = self._by_name.get(self.key_field)
        if descriptor is not None and descriptor.setter is not None:
            descriptor.setter(entity, descriptor.coerce(key))
        else:
            setattr(entity, self.key_field, key)

    def new_instance(self) -> Any:
        """Blank instance to be filled field by field, without validation."""
        if issubclass(self.entity_type, BaseModel):
            return self.entity_type.model_construct()
        return self.entity_type()


def _declaring_class(entity_type: type, name: str) -> type:
    for klass in entity_type.__mro__:
        if name in inspect.get_annotations(klass) or name in vars(klass):
            return klass
    return entity_type


class SchemaRegistry:
    """Known entity types and their schemas.

    Pydantic models are registered on first use; other types need an
    explicit ``register()`` call with a schema.
    """

    def __init__(self) -> None:
        self._schemas: dict[type, EntitySchema] = {}
        self._names: dict[str, type] = {}

    def register(
        self,
        entity_type: type,
        schema: EntitySchema | None = None,
        *,
        log_events: bool = True,
    ) -> EntitySchema:
        """Register a type, deriving its schema when none is given."""
        if schema is None:
            if not (isinstance(entity_type, type) and issubclass(entity_type, BaseModel)):
                raise TypeError(
                    f"{entity_type!r} is not a pydantic model; pass an explicit EntitySchema"
                )
            schema = EntitySchema.from_model(entity_type, log_events=log_events)

        self._schemas[entity_type] = schema
        self._names[type_name_of(entity_type)] = entity_type
        logger.debug(
            "entity_schema_registered",
            entity_type=type_name_of(entity_type),
            loggable_fields=[d.name for d in schema.loggable_fields],
        )
        return schema

    def get(self, entity_type: type) -> EntitySchema:
        """Schema of ``entity_type``, registering pydantic models on demand."""
        schema = self._schemas.get(entity_type)
        if schema is None:
            schema = self.register(entity_type)
        return schema

    def is_registered(self, entity_type: type) -> bool:
        return entity_type in self._schemas

    def resolve_type(self, type_name: str) -> type | None:
        """Find a type by its fully-qualified name.

        Registered types are checked first, then every loaded subclass
        of ``Entity``.
        """
        entity_type = self._names.get(type_name)
        if entity_type is not None:
            return entity_type

        for candidate in _walk_subclasses(Entity):
            if type_name_of(candidate) == type_name:
                return candidate
        return None


def type_name_of(entity_type: type) -> str:
    return f"{entity_type.__module__}.{entity_type.__qualname__}"


def _walk_subclasses(base: type) -> Iterator[type]:
    for sub in base.__subclasses__():
        yield sub
        yield from _walk_subclasses(sub)
