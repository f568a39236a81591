"""Audit domain models.

Contains the models shared by the recorder and its collaborators:
- Entity, the base for every persisted type
- ChangeRecord, the persisted audit entry
- FieldDiff, the field-level change set
- Hook arguments for the recording channels
"""

from chronicle.audit.models.args import (
    CancelableEventArgs,
    RecordingDeleteArgs,
    RecordingSaveArgs,
)
from chronicle.audit.models.diff import FieldChange, FieldDiff
from chronicle.audit.models.entity import Entity
from chronicle.audit.models.record import ChangeRecord, EventKind, SaveMode, utc_now

__all__ = [
    "CancelableEventArgs",
    "ChangeRecord",
    "Entity",
    "EventKind",
    "FieldChange",
    "FieldDiff",
    "RecordingDeleteArgs",
    "RecordingSaveArgs",
    "SaveMode",
    "utc_now",
]
