"""Resolution of the concrete change record type."""

from chronicle.audit.errors import ConfigurationError
from chronicle.audit.models import ChangeRecord
from chronicle.audit.schema import type_name_of
from chronicle.observability.logging import get_logger

logger = get_logger(__name__)


def _leaf_record_types(base: type[ChangeRecord]) -> list[type[ChangeRecord]]:
    subclasses = base.__subclasses__()
    if not subclasses:
        return [base]
    leaves: list[type[ChangeRecord]] = []
    for sub in subclasses:
        leaves.extend(_leaf_record_types(sub))
    return leaves


class RecordFactory:
    """Instantiates change records.

    The record type is either set explicitly or discovered as the single
    most-derived subclass of ``base`` (``ChangeRecord`` by default) among
    loaded types, or ``base`` itself when the application defines none. The
    answer is computed once and reused. A disabled factory creates
    nothing.
    """

    def __init__(
        self,
        record_type: type[ChangeRecord] | None = None,
        *,
        enabled: bool = True,
        base: type[ChangeRecord] = ChangeRecord,
    ) -> None:
        self._record_type = record_type
        self._base = base
        self.enabled = enabled

    def set_record_type(self, record_type: type[ChangeRecord]) -> None:
        self._record_type = record_type

    @property
    def record_type(self) -> type[ChangeRecord]:
        if self._record_type is None:
            self._record_type = self._discover()
        return self._record_type

    def _discover(self) -> type[ChangeRecord]:
        candidates = _leaf_record_types(self._base)
        if len(candidates) > 1:
            names = " and ".join(type_name_of(c) for c in candidates)
            raise ConfigurationError(
                f"More than one loaded type implements ChangeRecord: {names}"
            )
        logger.debug("record_type_discovered", record_type=type_name_of(candidates[0]))
        return candidates[0]

    def create(self) -> ChangeRecord | None:
        if not self.enabled:
            return None
        return self.record_type()
