"""Change detection and payload encoding.

Computes field-level differences between two snapshots of one entity and
serializes them into the payload stored on a change record:

    <DataChange>
      <old><Total>100</Total></old>
      <new><Total>150</Total></new>
    </DataChange>

Both sections list the same fields in the same order. Values are text;
the original types are recovered from the entity schema on read.

Value text survives a round trip exactly. Carriage returns are written
as ``&#13;`` so the parser does not fold line endings, and characters
XML 1.0 cannot carry at all (most C0 controls, lone surrogates,
U+FFFE/U+FFFF) are written as empty ``<char code="1b"></char>`` markers
inside the value that ``decode()`` turns back into the character.
"""

import re
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Mapping
from datetime import date, datetime, time
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from chronicle.audit.errors import InvalidArgumentError, PayloadFormatError
from chronicle.audit.models import Entity, FieldChange, FieldDiff
from chronicle.audit.schema import (
    ID_LIST_DELIMITER,
    SEQUENCE_DELIMITER,
    EntitySchema,
    FieldDescriptor,
)
from chronicle.observability.logging import get_logger

if TYPE_CHECKING:
    from chronicle.audit.policy import LoggingPolicy

logger = get_logger(__name__)

CHANGE_ROOT = "DataChange"
OLD_SECTION = "old"
NEW_SECTION = "new"
SNAPSHOT_ROOT = "Data"
CHAR_MARKER = "char"
CHAR_CODE = "code"

_RESTRICTED_CHARS = re.compile("([\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff])")


def _write_text(element: ET.Element, text: str) -> None:
    pieces = _RESTRICTED_CHARS.split(text)
    element.text = pieces[0]
    for char, tail in zip(pieces[1::2], pieces[2::2]):
        marker = ET.SubElement(element, CHAR_MARKER, {CHAR_CODE: f"{ord(char):x}"})
        marker.tail = tail


def _read_text(element: ET.Element) -> str:
    pieces = [element.text or ""]
    for child in element:
        code = child.get(CHAR_CODE)
        if child.tag != CHAR_MARKER or code is None:
            raise PayloadFormatError(f"Unexpected <{child.tag}> inside <{element.tag}>")
        try:
            pieces.append(chr(int(code, 16)))
        except ValueError as e:
            raise PayloadFormatError(f"Invalid character code {code!r}") from e
        pieces.append(child.tail or "")
    return "".join(pieces)


def _serialize(root: ET.Element) -> str:
    # \r only ever occurs in text content
    text = ET.tostring(root, encoding="unicode", short_empty_elements=False)
    return text.replace("\r", "&#13;")


class ChangeEncoder:
    """Builds, encodes and decodes field diffs.

    With a ``policy``, fields it rejects are left out of snapshots and
    diffs on top of the schema's own selection.
    """

    def __init__(self, policy: "LoggingPolicy | None" = None) -> None:
        self._policy = policy

    def fields_to_log(self, schema: EntitySchema) -> Iterable[FieldDescriptor]:
        """Loggable fields of ``schema`` that the policy lets through."""
        if self._policy is None:
            return schema.loggable_fields
        return [
            d
            for d in schema.loggable_fields
            if self._policy.should_log_field(schema.entity_type, d.name)
        ]

    def stringify(self, descriptor: FieldDescriptor, entity: Any) -> str:
        """Text form of one field of ``entity``.

        Raises whatever the getter raises; callers skip the field.
        """
        value = descriptor.getter(entity)
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        if isinstance(value, Enum):
            return str(value.value)
        if isinstance(value, datetime | date | time):
            return value.isoformat()
        if isinstance(value, Mapping):
            return str(value)
        if isinstance(value, list | tuple | set | frozenset):
            items = sorted(value, key=str) if isinstance(value, set | frozenset) else list(value)
            if descriptor.delimiter == ID_LIST_DELIMITER or (
                items and all(isinstance(item, UUID) for item in items)
            ):
                return ID_LIST_DELIMITER.join(str(item) for item in items)
            return SEQUENCE_DELIMITER.join(str(item) for item in items)
        return str(value)

    def snapshot(self, entity: Entity, schema: EntitySchema) -> dict[str, str]:
        """Non-empty text of every loggable field of ``entity``."""
        data: dict[str, str] = {}
        for descriptor in self.fields_to_log(schema):
            try:
                text = self.stringify(descriptor, entity)
            except Exception as e:
                logger.debug("field_read_failed", field=descriptor.name, error=str(e))
                continue
            if text:
                data[descriptor.name] = text
        return data

    def compute_diff(
        self,
        before: Entity | None,
        after: Entity | None,
        schema: EntitySchema,
    ) -> FieldDiff:
        """Changed fields between two snapshots of one entity.

        A missing ``before`` is a pure insert, a missing ``after`` a pure
        delete. Fields whose text is equal on both sides, including
        fields empty on both sides, are left out.
        """
        if before is None and after is None:
            raise InvalidArgumentError("compute_diff() needs at least one snapshot")

        diff: FieldDiff = {}
        for descriptor in self.fields_to_log(schema):
            try:
                old = self.stringify(descriptor, before) if before is not None else ""
                new = self.stringify(descriptor, after) if after is not None else ""
            except Exception as e:
                logger.debug("field_read_failed", field=descriptor.name, error=str(e))
                continue
            if old != new:
                diff[descriptor.name] = FieldChange(old, new)
        return diff

    def encode(self, diff: FieldDiff) -> str:
        """DataChange document for ``diff``; ``""`` when nothing changed."""
        if not diff:
            return ""

        root = ET.Element(CHANGE_ROOT)
        old_section = ET.SubElement(root, OLD_SECTION)
        new_section = ET.SubElement(root, NEW_SECTION)
        for name, change in diff.items():
            _write_text(ET.SubElement(old_section, name), change.old)
            _write_text(ET.SubElement(new_section, name), change.new)
        return _serialize(root)

    def encode_snapshot(self, data: Mapping[str, str]) -> str:
        """Data document listing field values of one instance."""
        root = ET.Element(SNAPSHOT_ROOT)
        for name, text in data.items():
            _write_text(ET.SubElement(root, name), text)
        return _serialize(root)

    def decode(self, payload: str) -> FieldDiff:
        """Recover field names and value text from a stored payload.

        A Data document decodes as a diff with empty old values.
        """
        try:
            root = ET.fromstring(payload)
        except ET.ParseError as e:
            raise PayloadFormatError(f"Malformed change payload: {e}") from e

        if root.tag == SNAPSHOT_ROOT:
            return {child.tag: FieldChange("", _read_text(child)) for child in root}

        if root.tag != CHANGE_ROOT:
            raise PayloadFormatError(f"Unexpected payload root <{root.tag}>")

        old_section = root.find(OLD_SECTION)
        new_section = root.find(NEW_SECTION)
        if old_section is None or new_section is None:
            raise PayloadFormatError("Change payload needs both <old> and <new> sections")

        old_values = {child.tag: _read_text(child) for child in old_section}
        new_values = {child.tag: _read_text(child) for child in new_section}

        names = list(old_values)
        names.extend(name for name in new_values if name not in old_values)
        return {
            name: FieldChange(old_values.get(name, ""), new_values.get(name, ""))
            for name in names
        }
