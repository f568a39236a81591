"""Logging policy: which entity types and fields are recorded."""

from chronicle.audit.schema import SchemaRegistry, type_name_of
from chronicle.config.models.audit import AuditConfig


class LoggingPolicy:
    """Cheap checks consulted before any diff work begins.

    A type is recorded unless its schema was registered with
    ``log_events=False`` or its name is listed in
    ``audit.excluded_types``. A field is recorded when its schema
    selects it and ``audit.excluded_fields`` does not name it as
    ``<type>.<field>``.
    """

    def __init__(self, registry: SchemaRegistry, config: AuditConfig) -> None:
        self._registry = registry
        self._excluded = frozenset(config.excluded_types)
        self._excluded_fields = frozenset(config.excluded_fields)

    def should_log(self, entity_type: type) -> bool:
        if type_name_of(entity_type) in self._excluded or entity_type.__name__ in self._excluded:
            return False
        return self._registry.get(entity_type).log_events

    def should_log_field(self, entity_type: type, field_name: str) -> bool:
        for name in (type_name_of(entity_type), entity_type.__name__):
            if f"{name}.{field_name}" in self._excluded_fields:
                return False
        schema = self._registry.get(entity_type)
        return any(d.name == field_name for d in schema.loggable_fields)
