"""Cancellable arguments passed to recording hook subscribers."""

from dataclasses import dataclass

from chronicle.audit.models.entity import Entity
from chronicle.audit.models.record import ChangeRecord, SaveMode


@dataclass
class CancelableEventArgs:
    """Shared, mutable context handed to every subscriber of one dispatch.

    Subscribers edit ``record`` in place and may set ``cancel``; the
    recorder reads ``cancel`` once all subscribers have run.
    """

    record: ChangeRecord
    entity: Entity
    cancel: bool = False


@dataclass
class RecordingSaveArgs(CancelableEventArgs):
    """Arguments for the save channel."""

    save_mode: SaveMode = SaveMode.UPDATE


@dataclass
class RecordingDeleteArgs(CancelableEventArgs):
    """Arguments for the delete channel."""
