"""Audit trail: change detection, recording hooks and reconstruction.

The audit layer records entity saves and deletes as change records,
lets subscribers enrich or veto each record before it is persisted, and
can rebuild the subject of a stored record.
"""

from chronicle.audit.actors import ActorResolver, Principal
from chronicle.audit.context import AuditContext, build_audit_context
from chronicle.audit.encoder import ChangeEncoder
from chronicle.audit.factory import RecordFactory
from chronicle.audit.hooks import HookBus, RecordingHooks
from chronicle.audit.journal import ChangeJournal, current_journal, journal_scope
from chronicle.audit.policy import LoggingPolicy
from chronicle.audit.reader import ReconstructionReader
from chronicle.audit.recorder import EventRecorder
from chronicle.audit.schema import EntitySchema, FieldDescriptor, SchemaRegistry, not_logged

__all__ = [
    "ActorResolver",
    "AuditContext",
    "ChangeEncoder",
    "ChangeJournal",
    "EntitySchema",
    "EventRecorder",
    "FieldDescriptor",
    "HookBus",
    "LoggingPolicy",
    "Principal",
    "RecordFactory",
    "RecordingHooks",
    "ReconstructionReader",
    "SchemaRegistry",
    "build_audit_context",
    "current_journal",
    "journal_scope",
    "not_logged",
]
