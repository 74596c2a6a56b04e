"""
Tests for the variable fetcher (EtaApi) and the low-level request helpers.

Coverage:
- Mock mode: base value ± jitter band, unknown addresses, never touches HTTP
- Live mode: URL building, XML parsing (namespaced and plain), defaults for
  missing attributes, FetchError on HTTP errors, timeouts, network errors,
  invalid XML and a missing value element
- Session ownership on close()
"""

from __future__ import annotations

import asyncio
import random
import unittest
from unittest.mock import AsyncMock, MagicMock

import aiohttp

from custom_components.eta_heating.api import EtaApi, variable_url
from custom_components.eta_heating.const import MOCK_FALLBACK_BASE
from custom_components.eta_heating.models import parse_leading_float
from custom_components.eta_heating.requests import FetchError, parse_value_element

from .test_common import make_config

BOILER = "112/10021/0/0/12161"

ETA_XML = (
    '<?xml version="1.0" encoding="utf-8"?>'
    '<eta version="1.0" xmlns="http://www.eta.co.at/rest/v1">'
    '<value uri="/user/var/112/10021/0/0/12161" strValue="65" unit="°C" '
    'decPlaces="0" scaleFactor="10" advTextOffset="0">652</value>'
    '</eta>'
)


def _response(status: int = 200, body: str | bytes = ETA_XML, reason: str = "OK") -> MagicMock:
    response = MagicMock()
    response.status = status
    response.reason = reason
    response.read = AsyncMock(return_value=body.encode("utf-8") if isinstance(body, str) else body)
    response.release = MagicMock()
    return response


def _session(response=None, side_effect=None) -> MagicMock:
    session = MagicMock()
    session.closed = False
    session.get = AsyncMock(return_value=response, side_effect=side_effect)
    session.close = AsyncMock()
    return session


class TestMockMode(unittest.IsolatedAsyncioTestCase):

    async def test_boiler_value_stays_in_band(self):
        api = EtaApi(session=_session(), rng=random.Random(1234))
        config = make_config(use_mock=True)

        for _ in range(500):
            reading = await api.fetch_variable(BOILER, config)
            value = parse_leading_float(reading.formatted_value)
            self.assertGreaterEqual(value, 64.4)
            self.assertLessEqual(value, 66.4)

    async def test_reading_shape(self):
        api = EtaApi(rng=random.Random(0))
        reading = await api.fetch_variable(BOILER, make_config(use_mock=True))

        self.assertEqual(reading.address, BOILER)
        self.assertEqual(reading.unit, "°C")
        self.assertTrue(reading.formatted_value.endswith("°C"))
        value = parse_leading_float(reading.formatted_value)
        self.assertEqual(reading.raw_value, str(round(value * 10)))
        self.assertGreater(reading.captured_at_ms, 0)

    async def test_unknown_address_uses_fallback_base(self):
        api = EtaApi(rng=random.Random(0))
        for _ in range(50):
            reading = await api.fetch_variable("999/1/2/3", make_config(use_mock=True))
            value = parse_leading_float(reading.formatted_value)
            self.assertLessEqual(abs(value - MOCK_FALLBACK_BASE), 1.0)

    async def test_mock_mode_never_issues_requests(self):
        session = _session()
        api = EtaApi(session=session)
        await api.fetch_variable(BOILER, make_config(use_mock=True))
        session.get.assert_not_called()


class TestLiveMode(unittest.IsolatedAsyncioTestCase):

    async def test_parses_namespaced_eta_response(self):
        session = _session(_response())
        api = EtaApi(session=session)

        reading = await api.fetch_variable(BOILER, make_config(base_url="http://eta:8080"))

        self.assertEqual(reading.raw_value, "652")
        self.assertEqual(reading.formatted_value, "65")
        self.assertEqual(reading.unit, "°C")
        self.assertEqual(reading.display_name, "/user/var/112/10021/0/0/12161")
        self.assertEqual(session.get.call_args.args[0], "http://eta:8080/user/var/112/10021/0/0/12161")

    async def test_timeout_is_poll_interval(self):
        session = _session(_response())
        api = EtaApi(session=session)

        await api.fetch_variable(BOILER, make_config(poll_interval=45))

        timeout = session.get.call_args.kwargs["timeout"]
        self.assertEqual(timeout.total, 45)

    async def test_explicit_timeout_overrides_interval(self):
        session = _session(_response())
        api = EtaApi(session=session)

        await api.fetch_variable(BOILER, make_config(poll_interval=3600), timeout=10)

        self.assertEqual(session.get.call_args.kwargs["timeout"].total, 10)

    async def test_latin1_declared_body_is_decoded(self):
        body = (
            '<?xml version="1.0" encoding="ISO-8859-1"?>'
            '<eta><value unit="\xb0C" strValue="65">652</value></eta>'
        ).encode("latin-1")
        api = EtaApi(session=_session(_response(body=body)))

        reading = await api.fetch_variable(BOILER, make_config())

        self.assertEqual(reading.unit, "°C")

    async def test_missing_attributes_default(self):
        session = _session(_response(body="<eta><value/></eta>"))
        api = EtaApi(session=session)

        reading = await api.fetch_variable(BOILER, make_config())

        self.assertEqual(reading.raw_value, "0")
        self.assertEqual(reading.unit, "")
        self.assertEqual(reading.formatted_value, "")
        self.assertEqual(reading.display_name, "")

    async def test_http_500_raises_fetch_error(self):
        session = _session(_response(status=500, reason="Internal Server Error"))
        api = EtaApi(session=session)

        with self.assertRaises(FetchError) as ctx:
            await api.fetch_variable(BOILER, make_config())

        self.assertEqual(ctx.exception.status, 500)
        self.assertIn("500", str(ctx.exception))

    async def test_response_released(self):
        response = _response(status=404, reason="Not Found")
        api = EtaApi(session=_session(response))

        with self.assertRaises(FetchError):
            await api.fetch_variable(BOILER, make_config())
        response.release.assert_called_once()

    async def test_timeout_raises_fetch_error(self):
        api = EtaApi(session=_session(side_effect=asyncio.TimeoutError()))

        with self.assertRaises(FetchError) as ctx:
            await api.fetch_variable(BOILER, make_config())
        self.assertIn("Timeout", str(ctx.exception))

    async def test_network_error_raises_fetch_error(self):
        api = EtaApi(session=_session(side_effect=aiohttp.ClientConnectionError("refused")))

        with self.assertRaises(FetchError):
            await api.fetch_variable(BOILER, make_config())

    async def test_invalid_xml_raises_fetch_error(self):
        api = EtaApi(session=_session(_response(body="<html><body>oops")))

        with self.assertRaises(FetchError):
            await api.fetch_variable(BOILER, make_config())

    async def test_undecodable_body_raises_fetch_error(self):
        api = EtaApi(session=_session(_response(body=b"<eta><value unit='\xff'>1</value></eta>")))

        with self.assertRaises(FetchError) as ctx:
            await api.fetch_variable(BOILER, make_config())
        self.assertIn("Invalid XML response", str(ctx.exception))

    async def test_missing_value_element_raises_fetch_error(self):
        api = EtaApi(session=_session(_response(body="<eta><error>unknown uri</error></eta>")))

        with self.assertRaises(FetchError) as ctx:
            await api.fetch_variable(BOILER, make_config())
        self.assertIn("Missing value tag", str(ctx.exception))


class TestHelpers(unittest.TestCase):

    def test_variable_url_ignores_trailing_slash(self):
        self.assertEqual(variable_url("http://eta:8080/", "1/2/3"), "http://eta:8080/user/var/1/2/3")

    def test_value_element_may_be_root(self):
        value = parse_value_element('<value unit="%" strValue="12">120</value>')
        self.assertEqual(value["text"], "120")
        self.assertEqual(value["unit"], "%")


class TestClose(unittest.IsolatedAsyncioTestCase):

    async def test_injected_session_is_not_closed(self):
        session = _session()
        api = EtaApi(session=session)
        await api.close()
        session.close.assert_not_awaited()

    async def test_close_without_session_is_harmless(self):
        api = EtaApi()
        await api.close()
