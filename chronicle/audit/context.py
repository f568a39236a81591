"""Process-wide audit configuration.

The host application builds one ``AuditContext`` at startup and hands it
to the recorder and the reader. Nothing in the audit package keeps
module-level mutable state besides the change journal's context variable.

Example usage:

    from chronicle.audit import EventRecorder, build_audit_context
    from chronicle.audit.stores import InMemoryEntityStore

    context = build_audit_context(store=InMemoryEntityStore())
    context.actors.initialize(get_principal, get_ip)
    recorder = EventRecorder(context)

    await recorder.record_save(invoice, SaveMode.UPDATE)
"""

from dataclasses import dataclass, field

from chronicle.audit.actors import ActorResolver
from chronicle.audit.encoder import ChangeEncoder
from chronicle.audit.factory import RecordFactory
from chronicle.audit.hooks import RecordingHooks
from chronicle.audit.models import ChangeRecord
from chronicle.audit.policy import LoggingPolicy
from chronicle.audit.schema import SchemaRegistry
from chronicle.audit.store import EntityStore
from chronicle.config import get_settings
from chronicle.config.models.audit import AuditConfig
from chronicle.config.settings import Settings


@dataclass
class AuditContext:
    """Collaborators shared by every recording call."""

    store: EntityStore
    config: AuditConfig
    registry: SchemaRegistry
    policy: LoggingPolicy
    actors: ActorResolver
    factory: RecordFactory
    hooks: RecordingHooks = field(default_factory=RecordingHooks)
    encoder: ChangeEncoder = field(default_factory=ChangeEncoder)
    metrics_enabled: bool = True


def build_audit_context(
    store: EntityStore,
    settings: Settings | None = None,
    *,
    record_type: type[ChangeRecord] | None = None,
    registry: SchemaRegistry | None = None,
) -> AuditContext:
    """Assemble an ``AuditContext`` from settings.

    Args:
        store: Persistence engine for entities and change records
        settings: Configuration (default: ``get_settings()``)
        record_type: Concrete record type; discovered on first use if omitted
        registry: Pre-populated schema registry (default: empty)
    """
    settings = settings if settings is not None else get_settings()
    registry = registry if registry is not None else SchemaRegistry()
    metrics_enabled = settings.observability.metrics.enabled
    policy = LoggingPolicy(registry, settings.audit)

    return AuditContext(
        store=store,
        config=settings.audit,
        registry=registry,
        policy=policy,
        actors=ActorResolver(),
        factory=RecordFactory(record_type, enabled=settings.audit.enabled),
        hooks=RecordingHooks(metrics_enabled=metrics_enabled),
        encoder=ChangeEncoder(policy),
        metrics_enabled=metrics_enabled,
    )
