"""Cancellable pre-persist hooks.

Subscribers receive the in-progress change record before it is saved.
They run one after another in registration order, each awaited before
the next starts, and all of them run even after one sets ``cancel``.
"""

import inspect
import time
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from chronicle.audit.models import (
    CancelableEventArgs,
    RecordingDeleteArgs,
    RecordingSaveArgs,
)
from chronicle.observability.logging import get_logger
from chronicle.observability.metrics import HOOK_DISPATCH_LATENCY

logger = get_logger(__name__)

ArgsT = TypeVar("ArgsT", bound=CancelableEventArgs)

Handler = Callable[[ArgsT], Awaitable[None] | None]


class HookBus(Generic[ArgsT]):
    """Ordered list of subscribers for one operation family."""

    def __init__(self, name: str, *, metrics_enabled: bool = True) -> None:
        self.name = name
        self._metrics_enabled = metrics_enabled
        self._handlers: list[Handler[ArgsT]] = []

    def subscribe(self, handler: Handler[ArgsT]) -> Handler[ArgsT]:
        """Add a subscriber; returns it so this can be used as a decorator."""
        self._handlers.append(handler)
        return handler

    def unsubscribe(self, handler: Handler[ArgsT]) -> None:
        self._handlers.remove(handler)

    def is_handled(self) -> bool:
        """Whether anyone is listening."""
        return bool(self._handlers)

    async def raise_event(self, args: ArgsT) -> None:
        """Run every subscriber against ``args``.

        A failing subscriber propagates and stops the dispatch.
        """
        started = time.perf_counter()
        for handler in list(self._handlers):
            result = handler(args)
            if inspect.isawaitable(result):
                await result

        if self._metrics_enabled:
            HOOK_DISPATCH_LATENCY.labels(channel=self.name).observe(
                time.perf_counter() - started
            )
        if args.cancel:
            logger.debug(
                "recording_cancelled_by_hook",
                channel=self.name,
                item_type=args.record.item_type,
                item_key=args.record.item_key,
            )


class RecordingHooks:
    """The save and delete recording channels."""

    def __init__(self, *, metrics_enabled: bool = True) -> None:
        self.on_recording_save: HookBus[RecordingSaveArgs] = HookBus(
            "save", metrics_enabled=metrics_enabled
        )
        self.on_recording_delete: HookBus[RecordingDeleteArgs] = HookBus(
            "delete", metrics_enabled=metrics_enabled
        )
