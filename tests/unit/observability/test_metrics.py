"""Tests for Prometheus metrics."""

import pytest
from prometheus_client import REGISTRY

from chronicle.audit import EventRecorder
from chronicle.audit.models import SaveMode
from chronicle.observability.metrics import (
    EXCEPTION_RECORDING_FAILURES,
    HOOK_DISPATCH_LATENCY,
    RECORDINGS_SKIPPED,
    RECORDS_PERSISTED,
)
from tests.factories import Invoice, RecordingContextFactory


def sample(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestMetricDefinitions:
    """Tests for metric objects."""

    def test_metrics_exist(self) -> None:
        """All metrics are defined."""
        for metric in (
            RECORDS_PERSISTED,
            RECORDINGS_SKIPPED,
            EXCEPTION_RECORDING_FAILURES,
            HOOK_DISPATCH_LATENCY,
        ):
            assert metric is not None


class TestRecorderMetrics:
    """Tests for metrics emitted while recording."""

    @pytest.mark.asyncio
    async def test_persisted_records_are_counted(self) -> None:
        """Each persisted record increments its event counter."""
        labels = {"event": "Insert"}
        before = sample("chronicle_records_persisted_total", labels)

        context = RecordingContextFactory.create()
        await EventRecorder(context).record_save(Invoice(), SaveMode.INSERT)

        assert sample("chronicle_records_persisted_total", labels) == before + 1

    @pytest.mark.asyncio
    async def test_skipped_recordings_are_counted(self) -> None:
        """Unchanged updates are counted as skipped."""
        labels = {"event": "Update", "reason": "no_changes"}
        before = sample("chronicle_recordings_skipped_total", labels)

        context = RecordingContextFactory.create()
        invoice = Invoice()
        await context.store.save(invoice)
        await EventRecorder(context).record_save(invoice, SaveMode.UPDATE)

        assert sample("chronicle_recordings_skipped_total", labels) == before + 1

    @pytest.mark.asyncio
    async def test_hook_dispatch_is_timed(self) -> None:
        """Hook dispatch latency is observed per channel."""
        labels = {"channel": "save"}
        before = sample("chronicle_hook_dispatch_latency_seconds_count", labels)

        context = RecordingContextFactory.create()
        context.hooks.on_recording_save.subscribe(lambda args: None)
        await EventRecorder(context).record_save(Invoice(), SaveMode.INSERT)

        assert sample("chronicle_hook_dispatch_latency_seconds_count", labels) == before + 1
