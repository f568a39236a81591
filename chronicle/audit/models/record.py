"""ChangeRecord model for the audit domain."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Self

from pydantic import Field, model_validator

from chronicle.audit.models.entity import Entity


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class SaveMode(str, Enum):
    """Kind of save being recorded."""

    INSERT = "Insert"
    UPDATE = "Update"


class EventKind(str, Enum):
    """Classification of a change record's ``Event`` column."""

    INSERT = "Insert"
    UPDATE = "Update"
    DELETE = "Delete"
    SCHEDULED_TASK = "Scheduled Task"
    EXCEPTION = "Exception"
    CUSTOM = "Custom"

    @classmethod
    def from_event(cls, event: str) -> "EventKind":
        """Map a stored event string to its kind; free text is CUSTOM."""
        for kind in cls:
            if kind is not cls.CUSTOM and kind.value == event:
                return kind
        return cls.CUSTOM


class ChangeRecord(Entity):
    """Audit record of one logged operation.

    Built fresh by the recorder for every operation. Hook subscribers may
    edit it in place before it is persisted; nothing changes it after.
    Applications may subclass it to carry extra columns.
    """

    event: str = Field(default="", description="Event title or kind")
    item_type: str | None = Field(default=None, description="Subject type name")
    item_key: str | None = Field(default=None, description="Subject identity")
    user_id: str | None = Field(default=None, description="Acting user")
    ip: str | None = Field(default=None, description="Acting user's network origin")
    date: datetime = Field(default_factory=utc_now, description="Event time")
    data: str | None = Field(default=None, description="Encoded changes or free text")

    @model_validator(mode="after")
    def _subject_set_together(self) -> Self:
        if (self.item_type is None) != (self.item_key is None):
            raise ValueError("item_type and item_key must be set together")
        return self

    @property
    def event_kind(self) -> EventKind:
        return EventKind.from_event(self.event)

    def to_row(self) -> dict[str, Any]:
        """Persisted shape of this record."""
        return {
            "ItemType": self.item_type,
            "ItemKey": self.item_key,
            "Event": self.event,
            "IP": self.ip,
            "UserId": self.user_id,
            "Date": self.date,
            "Data": self.data,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Self:
        """Rebuild a record from its persisted shape."""
        return cls(
            item_type=row.get("ItemType"),
            item_key=row.get("ItemKey"),
            event=row.get("Event") or "",
            ip=row.get("IP"),
            user_id=row.get("UserId"),
            date=row.get("Date") or utc_now(),
            data=row.get("Data"),
        )
