"""Field-level change set types."""

from typing import NamedTuple


class FieldChange(NamedTuple):
    """Old and new text of one changed field."""

    old: str
    new: str


# Field name -> change, in the order fields were encountered
FieldDiff = dict[str, FieldChange]
