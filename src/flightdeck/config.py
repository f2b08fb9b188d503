"""Client configuration for flightdeck."""

from __future__ import annotations

import dataclasses
import math
import os
from typing import Any

from flightdeck._constants import (
    DEFAULT_DEVICES,
    DEFAULT_WS_URL,
    HISTORY_CAPACITY,
    LANDING_GRACE_MS,
    LOG_CAPACITY,
    MAX_RETRIES,
    RETRY_BASE_DELAY_MS,
    RETRY_MAX_DELAY_MS,
    TICK_INTERVAL_MS,
)
from flightdeck.exceptions import FlightDeckConfigError

# aiohttp upgrades http(s) URLs to a websocket the same way as ws(s).
_WS_URL_SCHEMES = ("ws://", "wss://", "http://", "https://")


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(value)
    except ValueError as exc:
        raise FlightDeckConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class FlightProfile:
    """Tuning constants for the synthetic flight.

    Defaults describe an idealised L3-class flight: a short hold on the pad,
    a 6.5 s tapered burn, a ballistic coast with weak quadratic drag and a
    dual-deploy parachute descent.

    Parameters
    ----------
    pre_flight_seconds : float
        Time on the pad before ignition.
    boost_seconds : float
        Motor burn duration.
    peak_thrust_accel : float
        Thrust acceleration at ignition (m/s^2), tapering with
        ``0.55 + 0.45 * cos(pi * tau)`` over the normalised burn time.
    heading_deg : float
        Launch azimuth, degrees clockwise from north.
    tilt_deg : float
        Rail tilt producing the horizontal thrust component.
    wind_accel_east, wind_accel_north : float
        Constant horizontal wind acceleration during the burn (m/s^2).
    coast_drag_k : float
        Quadratic drag coefficient after burnout (1/m).
    drogue_terminal_velocity, main_terminal_velocity : float
        Vertical terminal velocities under drogue and main (m/s, negative).
    drogue_relaxation, main_relaxation : float
        Exponential relaxation gains toward the terminal velocities (1/s).
    drift_velocity_east, drift_velocity_north : float
        Horizontal drift under canopy (m/s).
    drift_relaxation : float
        Relaxation gain toward the drift velocity (1/s).
    drogue_trigger_velocity : float
        Vertical velocity below which the drogue fires after apogee.
    main_deploy_altitude, main_deploy_margin : float
        The main fires at ``main_deploy_altitude + main_deploy_margin``.
    landing_altitude, landing_speed : float
        Touchdown is declared below this altitude and vertical speed.
    origin_latitude, origin_longitude : float
        Launch site, degrees.
    """

    pre_flight_seconds: float = 2.0
    boost_seconds: float = 6.5
    peak_thrust_accel: float = 85.0
    heading_deg: float = 35.0
    tilt_deg: float = 5.0
    wind_accel_east: float = 0.2
    wind_accel_north: float = -0.05
    coast_drag_k: float = 0.00018
    drogue_terminal_velocity: float = -35.0
    drogue_relaxation: float = 0.5
    main_terminal_velocity: float = -7.0
    main_relaxation: float = 0.9
    drift_velocity_east: float = 5.0
    drift_velocity_north: float = -2.0
    drift_relaxation: float = 0.3
    drogue_trigger_velocity: float = -10.0
    main_deploy_altitude: float = 150.0
    main_deploy_margin: float = 50.0
    landing_altitude: float = 5.0
    landing_speed: float = 2.0
    origin_latitude: float = 35.0844
    origin_longitude: float = -106.6504

    @property
    def burnout_seconds(self) -> float:
        """Elapsed flight time at which the motor burns out."""
        return self.pre_flight_seconds + self.boost_seconds

    @property
    def main_trigger_altitude(self) -> float:
        return self.main_deploy_altitude + self.main_deploy_margin


@dataclasses.dataclass(frozen=True)
class FlightDeckConfig:
    """Client configuration.

    Parameters
    ----------
    ws_url : str
        Websocket endpoint delivering one JSON telemetry object per text frame.
        ``http://`` and ``https://`` URLs are upgraded like ``ws://`` and ``wss://``.
    max_retries : int
        Reconnect attempts after an unexpected close before giving up.
    retry_base_delay_ms : int
        First reconnect delay; doubled on every attempt.
    retry_max_delay_ms : int
        Upper bound on the reconnect delay.
    history_capacity : int
        Packets kept in the rolling history.
    log_capacity : int
        Entries kept in the log trail.
    tick_interval_ms : int
        Simulator tick period.
    landing_grace_ms : int
        Delay between the first landed packet and the simulator shutting down.
    simulator_enabled : bool
        Whether the simulation entry is offered as a telemetry source.
    simulator_seed : int or None
        Seed for the simulator's sensor noise; ``None`` draws from the OS.
    devices : tuple of str
        Serial bridge labels offered next to the simulator.
    profile : FlightProfile
        Physics constants of the synthetic flight.
    """

    ws_url: str = DEFAULT_WS_URL
    max_retries: int = MAX_RETRIES
    retry_base_delay_ms: int = RETRY_BASE_DELAY_MS
    retry_max_delay_ms: int = RETRY_MAX_DELAY_MS
    history_capacity: int = HISTORY_CAPACITY
    log_capacity: int = LOG_CAPACITY
    tick_interval_ms: int = TICK_INTERVAL_MS
    landing_grace_ms: int = LANDING_GRACE_MS
    simulator_enabled: bool = True
    simulator_seed: int | None = None
    devices: tuple[str, ...] = DEFAULT_DEVICES
    profile: FlightProfile = dataclasses.field(default_factory=FlightProfile)

    def __post_init__(self) -> None:
        if not self.ws_url.startswith(_WS_URL_SCHEMES):
            schemes = ", ".join(_WS_URL_SCHEMES)
            raise FlightDeckConfigError(f"ws_url must start with one of {schemes}; got {self.ws_url!r}")
        if self.max_retries < 0:
            raise FlightDeckConfigError("max_retries must be >= 0")
        if self.retry_base_delay_ms <= 0 or self.retry_max_delay_ms < self.retry_base_delay_ms:
            raise FlightDeckConfigError("retry delays must satisfy 0 < retry_base_delay_ms <= retry_max_delay_ms")
        if self.history_capacity <= 0 or self.log_capacity <= 0:
            raise FlightDeckConfigError("history_capacity and log_capacity must be positive")
        if self.tick_interval_ms <= 0 or self.landing_grace_ms < 0:
            raise FlightDeckConfigError("tick_interval_ms must be positive and landing_grace_ms non-negative")
        for field in dataclasses.fields(self.profile):
            value = getattr(self.profile, field.name)
            if not math.isfinite(value):
                raise FlightDeckConfigError(f"profile.{field.name} must be finite")

    @classmethod
    def from_env(cls, **overrides: Any) -> FlightDeckConfig:
        """Create configuration from environment variables.

        Reads ``FLIGHTDECK_WS_URL`` and the other optional ``FLIGHTDECK_*``
        variables. Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        FlightDeckConfig
            Populated configuration.

        Raises
        ------
        FlightDeckConfigError
            If a numeric variable cannot be parsed or a value is out of range.
        """
        env = os.environ

        profile_overrides = overrides.pop("profile", None)
        if isinstance(profile_overrides, dict):
            profile = FlightProfile(**profile_overrides)
        elif isinstance(profile_overrides, FlightProfile):
            profile = profile_overrides
        else:
            profile = FlightProfile()

        config_kwargs: dict[str, Any] = {"profile": profile}

        url = env.get("FLIGHTDECK_WS_URL")
        if url is not None:
            config_kwargs["ws_url"] = url.strip()

        _ENV_INT_MAP = {
            "FLIGHTDECK_MAX_RETRIES": "max_retries",
            "FLIGHTDECK_RETRY_BASE_MS": "retry_base_delay_ms",
            "FLIGHTDECK_RETRY_MAX_MS": "retry_max_delay_ms",
            "FLIGHTDECK_HISTORY_CAPACITY": "history_capacity",
            "FLIGHTDECK_LOG_CAPACITY": "log_capacity",
            "FLIGHTDECK_TICK_INTERVAL_MS": "tick_interval_ms",
            "FLIGHTDECK_LANDING_GRACE_MS": "landing_grace_ms",
            "FLIGHTDECK_SIMULATOR_SEED": "simulator_seed",
        }
        for env_key, field_name in _ENV_INT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val.strip(), int)

        if "simulator_enabled" not in overrides:
            config_kwargs["simulator_enabled"] = _env_bool(env.get("FLIGHTDECK_SIMULATOR_ENABLED"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
