"""Config flow for ETA Heating integration."""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional
import homeassistant.helpers.config_validation as cv
import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback

from .api import EtaApi
from .const import (
    BOILER_TEMPERATURE,
    CONF_BASE_URL,
    CONF_ENTRY_NAME,
    CONF_POLL_INTERVAL,
    CONF_USE_MOCK,
    CONNECT_CHECK_TIMEOUT,
    DEFAULT_BASE_URL,
    DEFAULT_ENTRY_NAME,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_USE_MOCK,
    DEFAULT_VARIABLES,
    DOMAIN,
)
from .models import EtaConfig
from .requests import FetchError

_LOGGER = logging.getLogger(__name__)


def _build_schema(defaults: Dict[str, Any], with_name: bool) -> vol.Schema:
    """Form schema with every setting prefilled from defaults."""
    fields: Dict[Any, Any] = {}
    if with_name:
        fields[vol.Required(CONF_ENTRY_NAME, default=defaults.get(CONF_ENTRY_NAME, DEFAULT_ENTRY_NAME))] = cv.string
    fields[vol.Required(CONF_BASE_URL, default=defaults.get(CONF_BASE_URL, DEFAULT_BASE_URL))] = cv.string
    fields[vol.Required(CONF_POLL_INTERVAL, default=defaults.get(CONF_POLL_INTERVAL, DEFAULT_POLL_INTERVAL))] = vol.Coerce(int)
    fields[vol.Required(CONF_USE_MOCK, default=defaults.get(CONF_USE_MOCK, DEFAULT_USE_MOCK))] = cv.boolean
    for name, address in DEFAULT_VARIABLES.items():
        fields[vol.Required(name, default=defaults.get(name, address))] = cv.string
    return vol.Schema(fields)


async def _validate_input(user_input: Dict[str, Any]) -> Dict[str, str]:
    """
    Check the submitted settings.

    In live mode the boiler temperature address is read once so that an
    unreachable controller is reported before the entry is saved.
    """
    errors: Dict[str, str] = {}
    try:
        interval = int(user_input.get(CONF_POLL_INTERVAL, 0))
    except (TypeError, ValueError):
        interval = 0
    if interval <= 0:
        errors['base'] = 'invalid_interval'
    if any(not str(user_input.get(name) or '').strip() for name in DEFAULT_VARIABLES):
        errors['base'] = 'address_required'
    if not user_input.get(CONF_USE_MOCK) and not str(user_input.get(CONF_BASE_URL) or '').strip():
        errors['base'] = 'base_url_required'
    if errors or user_input.get(CONF_USE_MOCK):
        return errors

    config = EtaConfig.from_dict(user_input)
    api = EtaApi()
    try:
        await api.fetch_variable(
            config.variables[BOILER_TEMPERATURE], config, timeout=CONNECT_CHECK_TIMEOUT
        )
    except FetchError as e:
        _LOGGER.warning("ETA controller at %s is not reachable: %s", config.base_url, e)
        errors['base'] = 'cannot_connect'
    finally:
        await api.close()
    return errors


class EtaHeatingFlow(config_entries.ConfigFlow, domain=DOMAIN):
    data: Optional[Dict[str, Any]]

    async def async_step_user(self, user_input: Optional[Dict[str, Any]] = None):
        errors: Dict[str, str] = {}
        if user_input is not None:
            if not user_input.get(CONF_ENTRY_NAME):
                errors['base'] = 'entry_name_required'
            else:
                errors = await _validate_input(user_input)
            if not errors:
                self.data = dict(user_input)
                return self.async_create_entry(title=f"{self.data[CONF_ENTRY_NAME]}", data=self.data)

        return self.async_show_form(
            step_id="user",
            data_schema=_build_schema(user_input or {}, with_name=True),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Get the options flow for this handler."""
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handles options flow for the component."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        self._entry = config_entry

    async def async_step_init(
        self, user_input: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        errors: Dict[str, str] = {}

        if user_input is not None:
            errors = await _validate_input(user_input)
            if not errors:
                # Saved wholesale; the entry update listener hands it to the coordinator
                return self.async_create_entry(title="", data=dict(user_input))

        defaults = {**self._entry.data, **self._entry.options}
        if user_input is not None:
            defaults.update(user_input)
        return self.async_show_form(
            step_id="init",
            data_schema=_build_schema(defaults, with_name=False),
            errors=errors,
        )
