"""
DataUpdateCoordinator for the ETA heating integration.

Responsibilities:
- Run the poll cycle: fetch every configured variable concurrently, then
  either cache the complete snapshot or record the failure. Never both.
- Own the PollScheduler (the only poll timer) and restart it when the
  config is saved.
- Share fresh snapshots with other views through SnapshotSync and accept
  theirs so that only one view needs to poll a controller.
- Push CoordinatorData to entities after every cache change.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import time

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator
from homeassistant.util import dt as dt_util

from .api import EtaApi
from .const import BOILER_TEMPERATURE, DOMAIN, LOG_ERROR, LOG_INFO, LOG_SUCCESS, VERSION
from .coordinator_data import CoordinatorData
from .models import EtaConfig, HistoryPoint, PollFailure, Snapshot, parse_leading_float
from .requests import FetchError
from .scheduler import PollScheduler
from .snapshot_cache import SnapshotCache
from .sync import SnapshotSync, SyncMessage

__all__ = ["CoordinatorData", "EtaCoordinator", "boiler_temperature_of"]

_LOGGER = logging.getLogger(__name__)


def boiler_temperature_of(snapshot: Snapshot) -> float:
    """
    Boiler temperature of a snapshot for the history chart.

    A missing or unparseable reading counts as 0.
    """
    reading = snapshot.get(BOILER_TEMPERATURE)
    if reading is None:
        return 0.0
    value = parse_leading_float(reading.formatted_value)
    return value if value is not None else 0.0


class EtaCoordinator(DataUpdateCoordinator[CoordinatorData]):
    """
    Coordinator for one ETA controller view.

    Home Assistant's own refresh timer is disabled (update_interval=None);
    polling is driven by the PollScheduler so that exactly one timer exists
    and a saved config can restart it.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        entry: ConfigEntry,
        config: EtaConfig,
        cache: SnapshotCache,
        api: EtaApi | None = None,
        sync: SnapshotSync | None = None,
    ) -> None:
        """Initialize the coordinator from the active config and a loaded cache."""
        super().__init__(
            hass,
            _LOGGER,
            config_entry=entry,
            name=DOMAIN,
            update_interval=None,
        )
        self.config = config
        self.cache = cache
        self.api = api or EtaApi()
        self.sync = sync
        self._entry = entry
        self._scheduler = PollScheduler(self._async_scheduled_poll, config.poll_interval)
        self._unsub_sync = None
        self._tasks: set[asyncio.Task] = set()

        # monotonic time of the last snapshot received from another view
        self._last_shared_update: float | None = None

        # Entities start from whatever was cached before the restart
        self.data = CoordinatorData(
            snapshot=cache.snapshot,
            history=cache.history,
            logs=cache.logs,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def async_start(self) -> None:
        """Persist the active config, start listening and start the timer."""
        if not self.cache.has_config or self.cache.config != self.config:
            self.cache.set_config(self.config)

        if self.sync is not None:
            self._unsub_sync = self.sync.on_receive(self._handle_shared_snapshot)

        self._scheduler.start()

        # Nothing cached yet: fill the entities now instead of after one interval
        if not self.data.snapshot:
            task = self.hass.async_create_task(self.async_run_once())
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def async_shutdown(self) -> None:
        """Clean up all resources owned by this coordinator."""
        await self._scheduler.async_stop()
        if self._unsub_sync is not None:
            self._unsub_sync()
            self._unsub_sync = None
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        await self.api.close()
        await super().async_shutdown()

    # ------------------------------------------------------------------
    # Poll cycle
    # ------------------------------------------------------------------

    async def async_run_once(self) -> Snapshot | PollFailure:
        """
        Fetch every configured variable and cache the result.

        All-or-nothing: if any fetch fails the snapshot and history are left
        untouched and a single error entry is logged. FetchError never
        escapes this method. Manual and scheduled refreshes both land here;
        overlapping runs are independent and the last to finish wins.
        """
        config = self.config
        self._add_log("Poll started", LOG_INFO)

        names = list(config.variables)
        results = await asyncio.gather(
            *(self.api.fetch_variable(config.variables[name], config) for name in names),
            return_exceptions=True,
        )

        # Anything but FetchError is a bug and must not be turned into a log line
        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, FetchError):
                raise result

        failures = [r for r in results if isinstance(r, FetchError)]
        if failures:
            message = f"Poll failed: {failures[0]}"
            _LOGGER.warning("%s (%s of %s variables failed)", message, len(failures), len(names))
            self._add_log(message, LOG_ERROR)
            return PollFailure(message=message, error=failures[0])

        snapshot: Snapshot = dict(zip(names, results))
        history = self._cache_snapshot(snapshot)
        self.cache.add_log("Readings cached", LOG_SUCCESS)
        _LOGGER.debug("Cached %s readings from %s", len(snapshot), config.source)

        if self.sync is not None:
            self.sync.publish(config.source, snapshot)

        self.async_set_updated_data(
            CoordinatorData(snapshot=snapshot, history=history, logs=self.cache.logs)
        )
        return snapshot

    def _cache_snapshot(self, snapshot: Snapshot) -> list[HistoryPoint]:
        """Persist a complete snapshot and its history point. Returns the new history."""
        self.cache.set_snapshot(snapshot)
        return self.cache.append_history(
            HistoryPoint(
                time_label=dt_util.now().strftime("%H:%M"),
                boiler_temperature=boiler_temperature_of(snapshot),
            )
        )

    async def _async_scheduled_poll(self) -> None:
        """Timer callback: poll unless another view just shared a snapshot."""
        if self._shared_snapshot_is_fresh():
            _LOGGER.debug("Skipping poll, snapshot shared by another view is still fresh")
            return
        await self.async_run_once()

    def _shared_snapshot_is_fresh(self) -> bool:
        if self._last_shared_update is None:
            return False
        return time.monotonic() - self._last_shared_update < self.config.poll_interval

    @callback
    def _handle_shared_snapshot(self, message: SyncMessage) -> None:
        """
        Take over a snapshot another view of the same controller just fetched.

        It is cached like an own poll result, since the scheduled poll of this
        view is skipped while the shared snapshot is fresh.
        """
        if message.source != self.config.source:
            return
        self._last_shared_update = time.monotonic()
        snapshot = dict(message.snapshot)
        history = self._cache_snapshot(snapshot)
        _LOGGER.debug("Cached %s readings shared by %s", len(snapshot), message.origin)
        self.async_set_updated_data(
            CoordinatorData(snapshot=snapshot, history=history, logs=self.cache.logs)
        )

    # ------------------------------------------------------------------
    # Write paths
    # ------------------------------------------------------------------

    @callback
    def async_save_config(self, config: EtaConfig) -> None:
        """
        Replace the active config and restart the timer with its interval.

        The next cycle (scheduled or manual) uses the new base URL and mode.
        """
        self.config = config
        self.cache.set_config(config)
        self._last_shared_update = None
        self._scheduler.reconfigure(config.poll_interval)
        self._add_log("Configuration updated", LOG_INFO)

    @callback
    def async_clear_logs(self) -> None:
        self.cache.clear_logs()
        self.async_set_updated_data(dataclasses.replace(self.data, logs=[]))

    def _add_log(self, message: str, level: str) -> None:
        self.cache.add_log(message, level)
        self.async_set_updated_data(dataclasses.replace(self.data, logs=self.cache.logs))

    # ------------------------------------------------------------------
    # Entity helper: device info dict
    # ------------------------------------------------------------------

    def get_device_info(self) -> dict:
        """Return the HA DeviceInfo dict for the controller behind this entry."""
        info = {
            "identifiers": {(DOMAIN, self._entry.entry_id)},
            "name": self._entry.title or "ETA Heating",
            "manufacturer": "ETA Heiztechnik",
            "model": "Mock controller" if self.config.use_mock else "ETAtouch",
            "sw_version": VERSION,
        }
        if not self.config.use_mock:
            info["configuration_url"] = self.config.base_url
        return info

    @property
    def scheduler(self) -> PollScheduler:
        return self._scheduler
