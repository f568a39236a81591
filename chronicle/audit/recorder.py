"""Event recorder: turns entity operations into persisted change records.

Every entry point builds a fresh record, fills it, and saves it through
the entity store. Save and delete recordings additionally pass through
the recording hooks and land in the current change journal.

Failure isolation differs per entry point:
- record_save / record_delete / log / record_scheduled_task propagate
  store failures to the caller.
- record_exception never raises once its argument is valid; it is
  called from failure paths and must not start another one.
"""

import traceback
from collections.abc import Callable
from datetime import datetime

from chronicle.audit.context import AuditContext
from chronicle.audit.errors import InvalidArgumentError, ScheduledTaskError
from chronicle.audit.journal import append_to_current
from chronicle.audit.models import (
    ChangeRecord,
    Entity,
    EventKind,
    FieldDiff,
    RecordingDeleteArgs,
    RecordingSaveArgs,
    SaveMode,
)
from chronicle.audit.schema import type_name_of
from chronicle.observability.logging import get_logger
from chronicle.observability.metrics import (
    EXCEPTION_RECORDING_FAILURES,
    RECORDINGS_SKIPPED,
    RECORDS_PERSISTED,
)

logger = get_logger(__name__)

INNER_DIVIDER = "=" * 41
USER_DIVIDER = "-" * 29
SUCCESSFUL = "Successful"
FAILED = "Failed"


def _safe_text(error: BaseException) -> str:
    try:
        return str(error)
    except Exception:
        return f"<unprintable {type(error).__name__}>"


def _inner_errors(error: BaseException) -> list[BaseException]:
    """Causes of ``error``, outermost first."""
    chain: list[BaseException] = []
    seen = {id(error)}
    current = error.__cause__ or (None if error.__suppress_context__ else error.__context__)
    while current is not None and id(current) not in seen:
        chain.append(current)
        seen.add(id(current))
        current = current.__cause__ or (
            None if current.__suppress_context__ else current.__context__
        )
    return chain


def _format_traceback(error: BaseException) -> str:
    return "".join(
        traceback.format_exception(type(error), error, error.__traceback__, chain=False)
    ).rstrip()


class EventRecorder:
    """Records saves, deletes, scheduled tasks, exceptions and free-form events."""

    def __init__(self, context: AuditContext) -> None:
        self._context = context

    @property
    def context(self) -> AuditContext:
        return self._context

    # Identity
    def current_user_ip(self) -> str | None:
        return self._context.actors.current_user_ip()

    def current_user_id(self) -> str | None:
        return self._context.actors.current_user_id()

    # Change detection
    def get_changes(self, original: Entity, updated: Entity) -> FieldDiff:
        """Fields that differ between two instances of the same type."""
        if original is None:
            raise InvalidArgumentError("original is required", argument="original")
        if updated is None:
            raise InvalidArgumentError("updated is required", argument="updated")
        if type(original) is not type(updated):
            raise InvalidArgumentError(
                "get_changes() expects two instances of the same type, while "
                f"{type_name_of(type(original))} is not the same as "
                f"{type_name_of(type(updated))}."
            )

        schema = self._context.registry.get(type(original))
        return self._context.encoder.compute_diff(original, updated, schema)

    async def get_changes_payload(self, entity: Entity) -> str:
        """Encoded changes of ``entity`` against its stored state.

        The prior state is read from the store at call time, not captured
        when the caller started mutating the entity.
        """
        entity_type = type(entity)
        original = await self._context.store.get(entity.get_id(), entity_type)
        schema = self._context.registry.get(entity_type)
        diff = self._context.encoder.compute_diff(original, entity, schema)
        return self._context.encoder.encode(diff)

    def get_data_payload(self, entity: Entity) -> str:
        """Snapshot document of every non-empty loggable field."""
        schema = self._context.registry.get(type(entity))
        encoder = self._context.encoder
        return encoder.encode_snapshot(encoder.snapshot(entity, schema))

    # Entry points
    async def record_save(self, entity: Entity, save_mode: SaveMode | str) -> None:
        """Record an insert or update of ``entity``.

        Updates without any changed field are not recorded. Insert payloads
        are only attached when ``audit.skip_insert_data`` is off.
        """
        if entity is None:
            raise InvalidArgumentError("entity is required", argument="entity")
        try:
            save_mode = SaveMode(save_mode)
        except ValueError as e:
            raise InvalidArgumentError(
                f"Unknown save mode: {save_mode!r}", argument="save_mode"
            ) from e

        record = self._start_record(entity, save_mode.value)
        if record is None:
            return

        if save_mode is SaveMode.UPDATE:
            changes = await self.get_changes_payload(entity)
            if not changes:
                self._skipped(save_mode.value, "no_changes")
                return
            record.data = changes
        elif not self._context.config.skip_insert_data:
            record.data = self.get_data_payload(entity)

        hooks = self._context.hooks.on_recording_save
        if hooks.is_handled():
            args = RecordingSaveArgs(record=record, entity=entity, save_mode=save_mode)
            await hooks.raise_event(args)
            if args.cancel:
                self._skipped(save_mode.value, "cancelled")
                return

        await self._persist(record)
        append_to_current(record, entity)

    async def record_delete(self, entity: Entity) -> None:
        """Record the deletion of ``entity`` with its last known field values."""
        if entity is None:
            raise InvalidArgumentError("entity is required", argument="entity")

        record = self._start_record(entity, EventKind.DELETE.value)
        if record is None:
            return

        schema = self._context.registry.get(type(entity))
        diff = self._context.encoder.compute_diff(entity, None, schema)
        record.data = self._context.encoder.encode(diff) or None

        hooks = self._context.hooks.on_recording_delete
        if hooks.is_handled():
            args = RecordingDeleteArgs(record=record, entity=entity)
            await hooks.raise_event(args)
            if args.cancel:
                self._skipped(EventKind.DELETE.value, "cancelled")
                return

        await self._persist(record)
        append_to_current(record, entity)

    async def record_scheduled_task(
        self,
        task: str,
        start_time: datetime,
        error: BaseException | None = None,
    ) -> None:
        """Record the outcome and duration of a scheduled task run.

        A failed run is followed by an exception record wrapping ``error``.
        """
        if not task:
            raise InvalidArgumentError("task is required", argument="task")

        elapsed = datetime.now(start_time.tzinfo) - start_time

        record = self._context.factory.create()
        if record is None:
            self._skipped(EventKind.SCHEDULED_TASK.value, "disabled")
            return

        record.event = EventKind.SCHEDULED_TASK.value
        record.item_type = task
        record.item_key = SUCCESSFUL if error is None else FAILED
        record.data = (
            '<Execution><Duration unit="msec">'
            f"{elapsed.total_seconds() * 1000:g}"
            "</Duration></Execution>"
        )

        await self._persist(record)

        if error is not None:
            wrapped = ScheduledTaskError(task)
            wrapped.__cause__ = error
            await self.record_exception(wrapped)

    async def record_exception(
        self,
        error: BaseException,
        description: str | None = None,
    ) -> ChangeRecord | None:
        """Persist a description of ``error``; never raises once ``error`` is given.

        Returns the persisted record, or None when exception recording is
        disabled, the error comes from a broken log sink, or anything went
        wrong along the way.
        """
        config = self._context.config
        if not config.record_exceptions:
            return None

        if error is None:
            raise InvalidArgumentError("error is required", argument="error")

        error_type = type(error)
        if f"{error_type.__module__}.{error_type.__qualname__}" in config.unloggable_exception_types:
            self._skipped(EventKind.EXCEPTION.value, "unloggable")
            return None

        try:
            record = self._context.factory.create()
            if record is None:
                return None

            record.event = EventKind.EXCEPTION.value
            record.data = self._describe_exception(error, description)
            record.ip = self._resolve_quietly(self._context.actors.current_user_ip)

            user = self._resolve_quietly(self._context.actors.current_user_id)
            if user is not None:
                record.data += f"\n{USER_DIVIDER}\nUser:{user}"
        except Exception as e:
            logger.debug("exception_record_build_failed", error=_safe_text(e))
            return None

        try:
            await self._persist(record)
            return record
        except Exception as e:
            if self._context.metrics_enabled:
                EXCEPTION_RECORDING_FAILURES.inc()
            logger.debug(
                "exception_record_save_failed",
                error=_safe_text(e),
                error_type=type(e).__name__,
            )
            return None

    async def log(
        self,
        title: str,
        details: str | None,
        owner: Entity | None = None,
        user_id: str | None = None,
        user_ip: str | None = None,
    ) -> ChangeRecord | None:
        """Persist a free-form event.

        Args:
            title: Event title stored as ``Event`` (required)
            details: Free text stored as ``Data``
            owner: Entity this event is about (optional)
            user_id: Acting user (default: the current user)
            user_ip: Acting user's address (default: the current caller's)
        """
        if not title or not title.strip():
            raise InvalidArgumentError("title is required", argument="title")

        if user_id is None:
            user_id = self._context.actors.current_user_id()
        if user_ip is None:
            user_ip = self._context.actors.current_user_ip()

        record = self._context.factory.create()
        if record is None:
            return None

        record.event = title
        record.data = details
        record.user_id = user_id
        record.ip = user_ip

        if owner is not None:
            record.item_type = type_name_of(type(owner))
            record.item_key = owner.get_id()

        await self._persist(record)
        return record

    # Internals
    def _start_record(self, entity: Entity, event: str) -> ChangeRecord | None:
        """New record about ``entity``, or None when it must not be recorded."""
        entity_type = type(entity)
        if not self._context.policy.should_log(entity_type):
            self._skipped(event, "policy")
            return None

        record = self._context.factory.create()
        if record is None:
            self._skipped(event, "disabled")
            return None

        schema = self._context.registry.get(entity_type)
        record.event = event
        record.item_type = type_name_of(entity_type)
        record.item_key = schema.key_of(entity)
        record.ip = self._context.actors.current_user_ip()
        record.user_id = self._context.actors.current_user_id()
        return record

    def _describe_exception(self, error: BaseException, description: str | None) -> str:
        lines: list[str] = []
        if description:
            lines.append(description)
        lines.append(_safe_text(error))
        lines.append(_format_traceback(error))

        inner = _inner_errors(error)
        if inner:
            lines.append(_format_traceback(inner[-1]))
        for cause in inner:
            lines.append(INNER_DIVIDER)
            lines.append(f"Inner ({type_name_of(type(cause))}): {_safe_text(cause)}")

        return "\n".join(lines)

    def _resolve_quietly(self, accessor: Callable[[], str | None]) -> str | None:
        try:
            return accessor()
        except Exception as e:
            logger.debug("actor_resolution_failed", error=_safe_text(e))
            return None

    async def _persist(self, record: ChangeRecord) -> None:
        await self._context.store.save(record)
        if self._context.metrics_enabled:
            RECORDS_PERSISTED.labels(event=record.event_kind.value).inc()
        logger.info(
            "change_record_persisted",
            record_id=record.get_id(),
            record_event=record.event,
            item_type=record.item_type,
            item_key=record.item_key,
        )

    def _skipped(self, event: str, reason: str) -> None:
        if self._context.metrics_enabled:
            RECORDINGS_SKIPPED.labels(event=event, reason=reason).inc()
        logger.debug("recording_skipped", record_event=event, reason=reason)
