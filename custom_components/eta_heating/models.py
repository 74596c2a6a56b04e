"""
Domain models for the ETA heating integration.

This module contains pure data classes for configuration, readings and the
cached records. No dependencies on HTTP, storage or Home Assistant internals.
"""
from __future__ import annotations

import dataclasses
import logging
import re
from typing import Any

from .const import (
    DEFAULT_BASE_URL,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_USE_MOCK,
    DEFAULT_VARIABLES,
    LOG_LEVELS,
    MOCK_SOURCE,
)

_LOGGER = logging.getLogger(__name__)

# Leading decimal number, the same prefix JavaScript's parseFloat accepts
_LEADING_FLOAT = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")


def parse_leading_float(text: str | None) -> float | None:
    """
    Parse the numeric prefix of a formatted value such as "65.4°C".

    Returns None when the text does not start with a number.
    """
    if not text:
        return None
    match = _LEADING_FLOAT.match(text)
    if match is None:
        return None
    return float(match.group(1))


@dataclasses.dataclass(frozen=True)
class EtaConfig:
    """
    Controller connection settings.

    Replaced wholesale on save, never mutated. The variable keys are always
    the fixed logical channels of DEFAULT_VARIABLES; the address values are
    opaque strings passed to the controller as-is.
    """

    base_url: str = DEFAULT_BASE_URL
    poll_interval: int = DEFAULT_POLL_INTERVAL
    use_mock: bool = DEFAULT_USE_MOCK
    variables: dict[str, str] = dataclasses.field(default_factory=lambda: dict(DEFAULT_VARIABLES))

    def __post_init__(self) -> None:
        if int(self.poll_interval) <= 0:
            raise ValueError(f"Poll interval must be positive, got {self.poll_interval}")

    @property
    def source(self) -> str:
        """Identify the data source so views only share snapshots of the same controller."""
        if self.use_mock:
            return MOCK_SOURCE
        return self.base_url.rstrip("/")

    def as_dict(self) -> dict[str, Any]:
        return {
            "base_url": self.base_url,
            "poll_interval": self.poll_interval,
            "use_mock": self.use_mock,
            "variables": dict(self.variables),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EtaConfig:
        """
        Build a config from persisted or user-supplied data.

        Missing fields fall back to defaults. Variable keys outside the fixed
        channel set are dropped; missing channels keep their default address.
        Nine flat address fields (as stored by the config flow) are accepted
        as well as a nested "variables" mapping.
        """
        nested = data.get("variables") or {}
        variables = {}
        for name, default_address in DEFAULT_VARIABLES.items():
            address = nested.get(name, data.get(name, default_address))
            variables[name] = str(address) if address else default_address

        return cls(
            base_url=str(data.get("base_url", DEFAULT_BASE_URL)),
            poll_interval=int(data.get("poll_interval", DEFAULT_POLL_INTERVAL)),
            use_mock=bool(data.get("use_mock", DEFAULT_USE_MOCK)),
            variables=variables,
        )


@dataclasses.dataclass(frozen=True)
class Reading:
    """One value fetched for one variable address."""

    address: str
    display_name: str
    raw_value: str
    unit: str
    formatted_value: str
    captured_at_ms: int

    @property
    def numeric_value(self) -> float | None:
        return parse_leading_float(self.formatted_value)

    def as_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Reading:
        return cls(
            address=str(data["address"]),
            display_name=str(data.get("display_name", "")),
            raw_value=str(data.get("raw_value", "0")),
            unit=str(data.get("unit", "")),
            formatted_value=str(data.get("formatted_value", "")),
            captured_at_ms=int(data.get("captured_at_ms", 0)),
        )


# Logical channel name → Reading, all captured in the same poll cycle
Snapshot = dict[str, Reading]


def snapshot_as_dict(snapshot: Snapshot) -> dict[str, dict[str, Any]]:
    return {name: reading.as_dict() for name, reading in snapshot.items()}


def snapshot_from_dict(data: dict[str, Any]) -> Snapshot:
    return {name: Reading.from_dict(raw) for name, raw in data.items()}


@dataclasses.dataclass(frozen=True)
class HistoryPoint:
    """Boiler temperature at one successful poll."""

    time_label: str
    boiler_temperature: float

    def as_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryPoint:
        return cls(
            time_label=str(data["time_label"]),
            boiler_temperature=float(data["boiler_temperature"]),
        )


@dataclasses.dataclass(frozen=True)
class LogEntry:
    """One entry of the user-visible service log."""

    id: str
    timestamp: str
    level: str
    message: str

    def __post_init__(self) -> None:
        if self.level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.level}")

    def as_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LogEntry:
        return cls(
            id=str(data["id"]),
            timestamp=str(data["timestamp"]),
            level=str(data["level"]),
            message=str(data["message"]),
        )


@dataclasses.dataclass(frozen=True)
class PollFailure:
    """Outcome of a poll cycle in which at least one fetch failed."""

    message: str
    error: Exception | None = None
