"""Test factories and entity types for the audit domain."""

from typing import Any, ClassVar
from uuid import UUID

from pydantic import Field, computed_field

from chronicle.audit import AuditContext, Principal, build_audit_context
from chronicle.audit.models import ChangeRecord, Entity
from chronicle.audit.schema import not_logged
from chronicle.audit.store import EntityStore
from chronicle.audit.stores import InMemoryEntityStore
from chronicle.config.models.audit import AuditConfig
from chronicle.config.settings import Settings


class Invoice(Entity):
    """Entity exercising every field-selection rule."""

    CURRENCY: ClassVar[str] = "EUR"

    total: int = 0
    customer: str | None = None
    line_ids: list[UUID] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    notes: str | None = not_logged(default=None)
    created_by: str = Field(default="system", frozen=True)
    internal_ref: str | None = Field(default=None, exclude=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_with_tax(self) -> int:
        return self.total * 2


class Customer(Entity):
    name: str = ""
    email: str | None = None


class SecretNote(Entity):
    body: str = ""


class RecordingContextFactory:
    """Factory for AuditContext instances wired for testing."""

    @staticmethod
    def create(
        *,
        store: EntityStore | None = None,
        user: str | None = "alice",
        ip: str | None = "10.0.0.1",
        initialize_actors: bool = True,
        **audit: Any,
    ) -> AuditContext:
        """Create a context with an in-memory store and ``ChangeRecord`` records.

        Args:
            store: Entity store (default: a fresh InMemoryEntityStore)
            user: Name returned by the principal accessor
            ip: Address returned by the IP accessor
            initialize_actors: Register the accessors
            **audit: AuditConfig overrides
        """
        settings = Settings(audit=AuditConfig(**audit))
        context = build_audit_context(
            store if store is not None else InMemoryEntityStore(),
            settings,
            record_type=ChangeRecord,
        )
        if initialize_actors:
            context.actors.initialize(lambda: Principal(name=user), lambda: ip)
        return context
