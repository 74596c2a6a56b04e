"""
CoordinatorData: immutable snapshot of the cached ETA data shared with entities.

This is a pure data module with no HA or network dependencies.
"""
from __future__ import annotations

import dataclasses

from .models import HistoryPoint, LogEntry, Reading


@dataclasses.dataclass(frozen=True)
class CoordinatorData:
    """
    Typed, copy-on-write view of the cache.

    Always replace via dataclasses.replace(), never mutate in place.
    """

    # logical channel → latest Reading
    snapshot: dict[str, Reading] = dataclasses.field(default_factory=dict)

    # boiler temperature per successful poll, oldest first
    history: list[HistoryPoint] = dataclasses.field(default_factory=list)

    # service log, newest first
    logs: list[LogEntry] = dataclasses.field(default_factory=list)

    @property
    def last_update_ms(self) -> int | None:
        """Capture time of the snapshot, None before the first successful poll."""
        if not self.snapshot:
            return None
        return max(reading.captured_at_ms for reading in self.snapshot.values())
