"""Audit recording configuration models."""

from pydantic import BaseModel, Field


class AuditConfig(BaseModel):
    """Audit recording configuration."""

    enabled: bool = Field(
        default=True,
        description="Create change records at all (False yields no records)",
    )
    record_exceptions: bool = Field(
        default=True,
        description="Persist exception records",
    )
    skip_insert_data: bool = Field(
        default=True,
        description="Omit the field snapshot payload on Insert records",
    )
    unloggable_exception_types: list[str] = Field(
        default_factory=lambda: [
            "chronicle.audit.errors.PersistenceUnavailableError",
        ],
        description="Fully-qualified exception types raised by a broken log sink",
    )
    excluded_types: list[str] = Field(
        default_factory=list,
        description="Entity type names whose operations are never recorded",
    )
    excluded_fields: list[str] = Field(
        default_factory=list,
        description="Fields never recorded, as <type>.<field> with a full or short type name",
    )
