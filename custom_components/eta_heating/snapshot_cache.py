"""
SnapshotCache: sole reader/writer of the integration's persistent records.

Four independent records are kept, each in its own store:
    config    mirror of the active EtaConfig; the config entry is authoritative
              and the coordinator rewrites a stale mirror on start
    snapshot  the latest complete poll result
    history   boiler temperature per successful poll (bounded, oldest dropped)
    logs      service log, newest first (bounded, oldest dropped)

Reads are served from memory and are synchronous. Writes replace the
in-memory value immediately and schedule a delayed save on the store, so the
last write always wins on disk. There is no transaction across records.

Stores are injected through a factory taking the record name; in Home
Assistant that is a helpers.storage.Store, in tests an in-memory fake.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from typing import Any

from homeassistant.util import dt as dt_util

from .const import (
    HISTORY_LIMIT,
    LOG_LIMIT,
    RECORD_CONFIG,
    RECORD_HISTORY,
    RECORD_LOGS,
    RECORD_SNAPSHOT,
    RECORDS,
    STORE_SAVE_DELAY,
)
from .models import (
    EtaConfig,
    HistoryPoint,
    LogEntry,
    Snapshot,
    snapshot_as_dict,
    snapshot_from_dict,
)

_LOGGER = logging.getLogger(__name__)


class SnapshotCache:
    """Bounded, JSON-backed cache of config, snapshot, history and logs."""

    def __init__(self, store_factory: Callable[[str], Any]) -> None:
        self._stores = {record: store_factory(record) for record in RECORDS}
        self._config: EtaConfig | None = None
        self._snapshot: Snapshot = {}
        self._history: list[HistoryPoint] = []
        self._logs: list[LogEntry] = []

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def async_load(self) -> None:
        """Read every record once. Missing or malformed records fall back to defaults."""
        raw_config = await self._load_record(RECORD_CONFIG)
        raw_snapshot = await self._load_record(RECORD_SNAPSHOT)
        raw_history = await self._load_record(RECORD_HISTORY)
        raw_logs = await self._load_record(RECORD_LOGS)

        self._config = self._decode(RECORD_CONFIG, raw_config, EtaConfig.from_dict, None)
        self._snapshot = self._decode(RECORD_SNAPSHOT, raw_snapshot, snapshot_from_dict, {})
        self._history = self._decode(
            RECORD_HISTORY, raw_history,
            lambda raw: [HistoryPoint.from_dict(p) for p in raw][-HISTORY_LIMIT:], [],
        )
        self._logs = self._decode(
            RECORD_LOGS, raw_logs,
            lambda raw: [LogEntry.from_dict(e) for e in raw][:LOG_LIMIT], [],
        )

    async def _load_record(self, record: str):
        return await self._stores[record].async_load()

    @staticmethod
    def _decode(record: str, raw, decoder, default):
        if raw is None:
            return default
        try:
            return decoder(raw)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            _LOGGER.warning("Discarding malformed %s record: %s", record, exc)
            return default

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    @property
    def has_config(self) -> bool:
        return self._config is not None

    @property
    def config(self) -> EtaConfig:
        """Return the stored config, or the built-in default if none was written."""
        if self._config is None:
            return EtaConfig()
        return self._config

    def set_config(self, config: EtaConfig) -> None:
        """Mirror the active config. Nothing restores from it; setup reads the config entry."""
        self._config = config
        self._save(RECORD_CONFIG, config.as_dict())

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> Snapshot:
        return dict(self._snapshot)

    def set_snapshot(self, snapshot: Snapshot) -> None:
        """Replace the latest snapshot."""
        self._snapshot = dict(snapshot)
        self._save(RECORD_SNAPSHOT, snapshot_as_dict(self._snapshot))

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @property
    def history(self) -> list[HistoryPoint]:
        return list(self._history)

    def append_history(self, point: HistoryPoint) -> list[HistoryPoint]:
        self._history = [*self._history, point][-HISTORY_LIMIT:]
        self._save(RECORD_HISTORY, [p.as_dict() for p in self._history])
        return self.history

    # ------------------------------------------------------------------
    # Logs
    # ------------------------------------------------------------------

    @property
    def logs(self) -> list[LogEntry]:
        return list(self._logs)

    def add_log(self, message: str, level: str) -> LogEntry:
        """Prepend a service log entry, dropping the oldest beyond LOG_LIMIT."""
        entry = LogEntry(
            id=uuid.uuid4().hex[:9],
            timestamp=dt_util.now().strftime("%H:%M:%S"),
            level=level,
            message=message,
        )
        self._logs = [entry, *self._logs][:LOG_LIMIT]
        self._save(RECORD_LOGS, [e.as_dict() for e in self._logs])
        return entry

    def clear_logs(self) -> None:
        self._logs = []
        self._save(RECORD_LOGS, [])

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _save(self, record: str, data) -> None:
        self._stores[record].async_delay_save(lambda: data, STORE_SAVE_DELAY)
