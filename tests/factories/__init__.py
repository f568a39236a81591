"""Test factories for creating test data."""

from tests.factories.audit import (
    Customer,
    Invoice,
    RecordingContextFactory,
    SecretNote,
)

__all__ = [
    "Customer",
    "Invoice",
    "RecordingContextFactory",
    "SecretNote",
]
