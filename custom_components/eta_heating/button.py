"""
Platform for ETA heating buttons.
Manual actions on the coordinator: run a poll cycle now, clear the service log.
"""
from __future__ import annotations

import logging

from homeassistant import config_entries
from homeassistant.components.button import ButtonEntity
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity import EntityCategory
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN
from .coordinator import EtaCoordinator

_LOGGER = logging.getLogger(__name__)


class EtaRefreshButton(CoordinatorEntity[EtaCoordinator], ButtonEntity):
    """Runs the same poll cycle the timer runs."""

    _attr_icon = "mdi:refresh"

    def __init__(self, coordinator: EtaCoordinator) -> None:
        super().__init__(coordinator)
        self._attr_unique_id = f"{DOMAIN}_{coordinator.config_entry.entry_id}_refresh"
        self._attr_name = "Refresh Now"

    @property
    def device_info(self):
        return self.coordinator.get_device_info()

    @property
    def available(self) -> bool:
        return True

    async def async_press(self) -> None:
        await self.coordinator.async_run_once()


class EtaClearLogButton(CoordinatorEntity[EtaCoordinator], ButtonEntity):
    """Empties the service log."""

    _attr_entity_category = EntityCategory.DIAGNOSTIC
    _attr_icon = "mdi:delete-sweep"

    def __init__(self, coordinator: EtaCoordinator) -> None:
        super().__init__(coordinator)
        self._attr_unique_id = f"{DOMAIN}_{coordinator.config_entry.entry_id}_clear_log"
        self._attr_name = "Clear Service Log"

    @property
    def device_info(self):
        return self.coordinator.get_device_info()

    @property
    def available(self) -> bool:
        return True

    async def async_press(self) -> None:
        self.coordinator.async_clear_logs()


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add buttons for passed config_entry in HA."""
    coordinator: EtaCoordinator = config_entry.runtime_data
    async_add_entities([EtaRefreshButton(coordinator), EtaClearLogButton(coordinator)])
