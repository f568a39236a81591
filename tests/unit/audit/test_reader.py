"""Tests for ReconstructionReader."""

from uuid import uuid4

import pytest

from chronicle.audit import EventRecorder, ReconstructionReader
from chronicle.audit.errors import TypeNotFoundError, UnsupportedEventError
from chronicle.audit.models import ChangeRecord, SaveMode
from chronicle.audit.schema import type_name_of
from tests.factories import Customer, Invoice, RecordingContextFactory


@pytest.fixture
def context():
    return RecordingContextFactory.create()


@pytest.fixture
def recorder(context) -> EventRecorder:
    return EventRecorder(context)


@pytest.fixture
def reader(context) -> ReconstructionReader:
    return ReconstructionReader(context)


async def only_record(store) -> ChangeRecord:
    [record] = await store.list_by_type(ChangeRecord)
    return record


class TestLoadSubject:
    """Tests for load_subject."""

    @pytest.mark.asyncio
    async def test_deleted_entity_is_rebuilt(self, context, recorder, reader) -> None:
        """A deleted entity comes back with its last logged values."""
        first, second = uuid4(), uuid4()
        invoice = Invoice(
            total=150,
            customer="ACME",
            line_ids=[first, second],
            tags=["urgent", "paid"],
            notes="not logged",
        )
        await context.store.save(invoice)
        await recorder.record_delete(invoice)
        await context.store.delete(invoice.get_id(), Invoice)

        rebuilt = await reader.load_subject(await only_record(context.store))

        assert isinstance(rebuilt, Invoice)
        assert rebuilt.id == invoice.id
        assert rebuilt.total == 150
        assert rebuilt.customer == "ACME"
        assert rebuilt.line_ids == [first, second]
        assert rebuilt.tags == ["urgent", "paid"]
        assert rebuilt.notes is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "name",
        ["hi\r\nthere", "tab\there ", "esc\x1bape", "na\u00efve \u2713", "<b> & </b>"],
    )
    async def test_deleted_text_is_restored_exactly(self, context, recorder, reader, name: str) -> None:
        """Line endings, controls and markup in text come back unchanged."""
        customer = Customer(name=name, email="ops\r\n")
        await recorder.record_delete(customer)

        rebuilt = await reader.load_subject(await only_record(context.store))

        assert rebuilt.name == name
        assert rebuilt.email == "ops\r\n"

    @pytest.mark.asyncio
    async def test_deleted_entity_without_payload(self, context, recorder, reader) -> None:
        """Only the key is restored when nothing was logged."""
        customer = Customer()
        await recorder.record_delete(customer)

        rebuilt = await reader.load_subject(await only_record(context.store))

        assert rebuilt.id == customer.id
        assert rebuilt.name == ""

    @pytest.mark.asyncio
    async def test_unknown_fields_are_ignored(self, reader) -> None:
        """Payload fields the type no longer has are skipped."""
        key = uuid4()
        record = ChangeRecord(
            event="Delete",
            item_type=type_name_of(Customer),
            item_key=str(key),
            data=(
                "<DataChange>"
                "<old><name>ACME</name><fax>123</fax></old>"
                "<new><name></name><fax></fax></new>"
                "</DataChange>"
            ),
        )

        rebuilt = await reader.load_subject(record)

        assert rebuilt.id == key
        assert rebuilt.name == "ACME"

    @pytest.mark.asyncio
    async def test_updated_entity_is_read_from_store(self, context, recorder, reader) -> None:
        """Insert and update records resolve to the live entity."""
        invoice = Invoice(total=100)
        await context.store.save(invoice)
        invoice.total = 150
        await recorder.record_save(invoice, SaveMode.UPDATE)
        await context.store.save(invoice)

        loaded = await reader.load_subject(await only_record(context.store))

        assert loaded == invoice

    @pytest.mark.asyncio
    async def test_missing_live_entity(self, recorder, reader, context) -> None:
        """An insert whose entity is gone loads as None."""
        await recorder.record_save(Invoice(), SaveMode.INSERT)

        assert await reader.load_subject(await only_record(context.store)) is None

    @pytest.mark.asyncio
    async def test_unknown_type(self, reader) -> None:
        """Unresolvable type names are reported."""
        record = ChangeRecord(event="Delete", item_type="gone.Widget", item_key="1")

        with pytest.raises(TypeNotFoundError, match="Could not load the type gone.Widget"):
            await reader.load_subject(record)

    @pytest.mark.asyncio
    async def test_unsupported_event(self, reader) -> None:
        """Only insert, update and delete records have a loadable subject."""
        record = ChangeRecord(
            event="Exported", item_type=type_name_of(Customer), item_key=str(uuid4())
        )

        with pytest.raises(UnsupportedEventError):
            await reader.load_subject(record)
