"""
Low-level HTTP request library for ETA controller communication.
This module handles the GET requests against the REST variable endpoint and
the parsing of its small XML payload. It never retries: a failed request is
reported as FetchError and the caller decides what to do.
"""
from __future__ import annotations

import asyncio
import logging
import xml.etree.ElementTree as ET

import aiohttp


_LOGGER = logging.getLogger(__name__)


class FetchError(Exception):
    """Exception raised when a variable cannot be read from the controller."""
    def __init__(self, message: str, url: str | None = None, status: int | None = None):
        self.url = url
        self.status = status
        super().__init__(message)


async def fetch_body(session: aiohttp.ClientSession, url: str, timeout: float) -> bytes:
    """
    Issue a single GET request and return the response body.

    Args:
        session: aiohttp session used for the request
        url: Target URL for the request
        timeout: Total timeout in seconds

    Returns:
        Raw response body; decoding is left to the XML parser so that the
        document's own encoding declaration applies

    Raises:
        FetchError: On timeout, network failure or non-2xx status
    """
    try:
        response = await session.get(url, timeout=aiohttp.ClientTimeout(total=timeout))
        try:
            return await _process_response(response, url)
        finally:
            response.release()

    except FetchError:
        raise
    except (asyncio.TimeoutError, TimeoutError) as e:
        raise FetchError(f"Timeout after {timeout}s requesting {url}", url=url) from e
    except aiohttp.ClientError as e:
        raise FetchError(f"Request to {url} failed: {e}", url=url) from e


async def _process_response(response, url: str) -> bytes:
    """
    Check the HTTP status and return the body.

    Raises:
        FetchError: For any non-2xx status
    """
    if 200 <= response.status < 300:
        return await response.read()

    reason = getattr(response, "reason", None) or ""
    _LOGGER.debug("HTTP %s %s from %s", response.status, reason, url)
    raise FetchError(
        f"HTTP {response.status} {reason}".rstrip() + f" from {url}",
        url=url,
        status=response.status,
    )


def parse_value_element(body: bytes | str) -> dict:
    """
    Extract the first <value> element of an ETA variable response.

    The controller answers with a namespaced document such as
    <eta xmlns="http://www.eta.co.at/rest/v1"><value uri="..." strValue="65"
    unit="°C" ...>652</value></eta>; the namespace is ignored here.

    Returns:
        Dict with "text" and the element's attributes

    Raises:
        FetchError: If the body is not well-formed XML (bad bytes included) or
            has no value element
    """
    try:
        root = ET.fromstring(body)
    except (ET.ParseError, UnicodeError) as e:
        raise FetchError(f"Invalid XML response: {e}") from e

    for element in root.iter():
        if _local_name(element.tag) == "value":
            return {"text": element.text, **element.attrib}

    raise FetchError("Invalid XML response: Missing value tag")


def _local_name(tag) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]
