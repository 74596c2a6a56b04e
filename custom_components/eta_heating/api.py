"""
Variable fetcher for the ETA heating controller.

Responsible for:
- Reading one variable address either live over HTTP or from the mock generator
- Converting the controller's XML answer into a Reading
- Owning (and closing) the aiohttp session used for live requests
"""
from __future__ import annotations

import logging
import random
import time

import aiohttp

from .const import (
    MOCK_BASE_VALUES,
    MOCK_DISPLAY_NAME,
    MOCK_FALLBACK_BASE,
    MOCK_JITTER,
    MOCK_UNIT,
    VARIABLE_PATH,
)
from .models import EtaConfig, Reading
from .requests import fetch_body, parse_value_element

_LOGGER = logging.getLogger(__name__)


def variable_url(base_url: str, address: str) -> str:
    """Build the REST URL of one variable, e.g. http://eta:8080/user/var/112/10021/0/0/12161."""
    return f"{base_url.rstrip('/')}{VARIABLE_PATH}{address}"


class EtaApi:
    """
    Fetches variable values from an ETA controller.

    Mock and live mode are selected per call by config.use_mock, so a saved
    config takes effect on the next fetch without rebuilding the client.
    """

    def __init__(self, session: aiohttp.ClientSession | None = None, rng: random.Random | None = None) -> None:
        self._session = session
        self._owns_session = session is None
        self._rng = rng or random.Random()

    async def fetch_variable(
        self, address: str, config: EtaConfig, timeout: float | None = None
    ) -> Reading:
        """
        Return the current Reading for address.

        Live requests time out after config.poll_interval unless timeout is given.

        Raises:
            FetchError: In live mode, on HTTP/network failure or an unusable body
        """
        if config.use_mock:
            return self.mock_variable(address)

        url = variable_url(config.base_url, address)
        body = await fetch_body(
            self._get_session(), url, timeout=timeout if timeout is not None else config.poll_interval
        )
        value = parse_value_element(body)

        return Reading(
            address=address,
            display_name=value.get("uri") or "",
            raw_value=value.get("text") or "0",
            unit=value.get("unit") or "",
            formatted_value=value.get("strValue") or "",
            captured_at_ms=_now_ms(),
        )

    def mock_variable(self, address: str) -> Reading:
        """Generate a stable-ish value around the address's base value. Never fails."""
        base = MOCK_BASE_VALUES.get(address, MOCK_FALLBACK_BASE)
        value = round(base + self._rng.uniform(-MOCK_JITTER, MOCK_JITTER), 1)

        return Reading(
            address=address,
            display_name=MOCK_DISPLAY_NAME,
            raw_value=str(round(value * 10)),
            unit=MOCK_UNIT,
            formatted_value=f"{value:.1f}{MOCK_UNIT}",
            captured_at_ms=_now_ms(),
        )

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None


def _now_ms() -> int:
    return int(time.time() * 1000)
