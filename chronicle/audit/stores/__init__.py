"""Entity stores."""

from chronicle.audit.store import EntityStore
from chronicle.audit.stores.inmemory import InMemoryEntityStore

__all__ = [
    "EntityStore",
    "InMemoryEntityStore",
]
