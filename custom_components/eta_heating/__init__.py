import logging

from homeassistant import config_entries, core
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.storage import Store

from .api import EtaApi
from .const import DATA_SHARED_SNAPSHOTS, DOMAIN, SIGNAL_SNAPSHOT, STORAGE_VERSION
from .coordinator import EtaCoordinator
from .models import EtaConfig
from .snapshot_cache import SnapshotCache
from .sync import DispatcherChannel, SharedSnapshots, SnapshotSync, StorageChannel

PLATFORMS: list[Platform] = [Platform.SENSOR, Platform.BUTTON]
_LOGGER = logging.getLogger(__name__)


def config_from_entry(entry: config_entries.ConfigEntry) -> EtaConfig:
    """Build the active config; values saved through the options flow win over the initial data."""
    return EtaConfig.from_dict({**entry.data, **entry.options})


def create_cache(hass: HomeAssistant, entry_id: str) -> SnapshotCache:
    """One Store per record, scoped to the config entry."""
    return SnapshotCache(
        lambda record: Store(hass, STORAGE_VERSION, f"{DOMAIN}.{entry_id}.{record}")
    )


def shared_snapshots(hass: HomeAssistant) -> SharedSnapshots:
    """Snapshot writes shared by every entry of this hass instance, created on first use."""
    return hass.data.setdefault(DATA_SHARED_SNAPSHOTS, SharedSnapshots())


async def async_setup(hass: core.HomeAssistant, config: dict) -> bool:
    """Set up the integration."""
    hass.data.setdefault(DOMAIN, {})
    return True


async def async_setup_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Set up platform from a ConfigEntry."""
    config = config_from_entry(entry)

    cache = create_cache(hass, entry.entry_id)
    await cache.async_load()

    sync = SnapshotSync(
        entry.entry_id,
        [
            DispatcherChannel(hass, SIGNAL_SNAPSHOT),
            StorageChannel(shared_snapshots(hass)),
        ],
    )
    coordinator = EtaCoordinator(
        hass,
        entry,
        config,
        cache,
        api=EtaApi(async_get_clientsession(hass)),
        sync=sync,
    )
    await coordinator.async_start()

    entry.runtime_data = coordinator
    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = coordinator

    entry.async_on_unload(
        entry.add_update_listener(_async_update_listener)
    )

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    return True


async def _async_update_listener(hass: HomeAssistant, config_entry: config_entries.ConfigEntry):
    """Handle config options update: swap the config in place, no reload."""
    coordinator: EtaCoordinator = hass.data[DOMAIN][config_entry.entry_id]
    coordinator.async_save_config(config_from_entry(config_entry))


async def async_unload_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Unload a config entry."""
    unloaded = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unloaded:
        coordinator = hass.data[DOMAIN].pop(entry.entry_id, None)
        if coordinator is not None:
            await coordinator.async_shutdown()
    return unloaded
