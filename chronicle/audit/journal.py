"""Per-unit-of-work change journal.

Every persisted save or delete record is appended, together with the
entity it describes, to the journal of the current unit of work (a
request, a job). The journal lives in a context variable, so concurrent
units of work never see each other's entries. It is an inspection and
undo aid; the persisted records remain the system of record.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass

from chronicle.audit.models import ChangeRecord, Entity


@dataclass(frozen=True)
class JournalEntry:
    """One recorded operation."""

    record: ChangeRecord
    entity: Entity


class ChangeJournal:
    """Append-only list of entries for one unit of work."""

    def __init__(self) -> None:
        self._entries: list[JournalEntry] = []
        self._lock = threading.Lock()

    def append(self, record: ChangeRecord, entity: Entity) -> None:
        with self._lock:
            self._entries.append(JournalEntry(record=record, entity=entity))

    @property
    def entries(self) -> tuple[JournalEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


# Context variable - async-safe, scoped per task
_current_journal: ContextVar[ChangeJournal | None] = ContextVar(
    "change_journal", default=None
)


def current_journal() -> ChangeJournal | None:
    """Journal of the current unit of work, if one is open."""
    return _current_journal.get()


@contextmanager
def journal_scope() -> Iterator[ChangeJournal]:
    """Open a fresh journal for the enclosed unit of work."""
    journal = ChangeJournal()
    token = _current_journal.set(journal)
    try:
        yield journal
    finally:
        _current_journal.reset(token)


def append_to_current(record: ChangeRecord, entity: Entity) -> None:
    """Append to the open journal; no-op outside a ``journal_scope()``."""
    journal = _current_journal.get()
    if journal is not None:
        journal.append(record, entity)
