"""
Platform for ETA heating sensors.
This module sets up one temperature sensor per configured channel and a
diagnostic service log sensor. All of them render the coordinator's cached
data and never trigger a fetch themselves.
"""
from __future__ import annotations

import logging
from typing import Any

from homeassistant import config_entries
from homeassistant.components.sensor import SensorEntity, SensorStateClass
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity import EntityCategory
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import BOILER_TEMPERATURE, DOMAIN, VARIABLE_ICONS, VARIABLE_NAMES
from .coordinator import EtaCoordinator
from .models import Reading

_LOGGER = logging.getLogger(__name__)


class EtaVariableSensor(CoordinatorEntity[EtaCoordinator], SensorEntity):
    """
    Representation of one ETA variable, e.g. the boiler temperature.
    The boiler temperature sensor also exposes the rolling history.
    """

    _attr_state_class = SensorStateClass.MEASUREMENT

    def __init__(self, coordinator: EtaCoordinator, channel: str) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator)
        self._channel = channel
        self._attr_unique_id = f"{DOMAIN}_{coordinator.config_entry.entry_id}_{channel}"
        self._attr_name = VARIABLE_NAMES.get(channel, channel)
        self._attr_icon = VARIABLE_ICONS.get(channel, "mdi:thermometer")

    @property
    def _reading(self) -> Reading | None:
        if self.coordinator.data is None:
            return None
        return self.coordinator.data.snapshot.get(self._channel)

    @property
    def device_info(self):
        return self.coordinator.get_device_info()

    @property
    def available(self) -> bool:
        return self._reading is not None

    @property
    def native_value(self) -> float | None:
        reading = self._reading
        if reading is None:
            return None
        return reading.numeric_value

    @property
    def native_unit_of_measurement(self) -> str | None:
        reading = self._reading
        if reading is None or not reading.unit:
            return None
        return reading.unit

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        reading = self._reading
        if reading is None:
            return {}
        attributes: dict[str, Any] = {
            "address": reading.address,
            "raw_value": reading.raw_value,
            "formatted_value": reading.formatted_value,
            "captured_at_ms": reading.captured_at_ms,
        }
        if self._channel == BOILER_TEMPERATURE:
            attributes["history"] = [
                point.as_dict() for point in self.coordinator.data.history
            ]
        return attributes


class EtaServiceLogSensor(CoordinatorEntity[EtaCoordinator], SensorEntity):
    """Newest service log message as state, the full log as attributes."""

    _attr_entity_category = EntityCategory.DIAGNOSTIC
    _attr_icon = "mdi:text-box-outline"

    def __init__(self, coordinator: EtaCoordinator) -> None:
        super().__init__(coordinator)
        self._attr_unique_id = f"{DOMAIN}_{coordinator.config_entry.entry_id}_service_log"
        self._attr_name = "Service Log"

    @property
    def device_info(self):
        return self.coordinator.get_device_info()

    @property
    def native_value(self) -> str | None:
        logs = self.coordinator.data.logs if self.coordinator.data else []
        if not logs:
            return None
        # State strings are capped at 255 characters
        return logs[0].message[:255]

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        logs = self.coordinator.data.logs if self.coordinator.data else []
        return {"entries": [entry.as_dict() for entry in logs]}


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add sensors for passed config_entry in HA."""
    coordinator: EtaCoordinator = config_entry.runtime_data

    entities: list[SensorEntity] = [
        EtaVariableSensor(coordinator, channel) for channel in coordinator.config.variables
    ]
    entities.append(EtaServiceLogSensor(coordinator))
    _LOGGER.debug("Adding %s ETA sensors for %s", len(entities), config_entry.title)

    async_add_entities(entities)
