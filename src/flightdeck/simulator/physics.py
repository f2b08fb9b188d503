"""Point-mass flight physics for the simulator.

Everything here is a total function of its inputs: no clock, no randomness,
no I/O. Each tick integrates with the *previous* phase's acceleration model
and then decides the next phase from the *updated* state.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from flightdeck._constants import MAX_STEP_SECONDS, STANDARD_GRAVITY
from flightdeck.config import FlightProfile
from flightdeck.models.telemetry import FlightPhase


@dataclass(frozen=True)
class VehicleState:
    """Position (m) and velocity (m/s) in the local East-North-Up frame."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    vz: float = 0.0

    @property
    def speed(self) -> float:
        return math.sqrt(self.vx**2 + self.vy**2 + self.vz**2)


@dataclass(frozen=True)
class Acceleration:
    ax: float = 0.0
    ay: float = 0.0
    az: float = 0.0


def thrust_acceleration(t: float, profile: FlightProfile) -> float:
    """Motor thrust at flight time *t*, tapering from the peak toward burnout."""
    tau = (t - profile.pre_flight_seconds) / profile.boost_seconds
    tau = min(1.0, max(0.0, tau))
    return profile.peak_thrust_accel * (0.55 + 0.45 * math.cos(tau * math.pi))


def acceleration(phase: FlightPhase, state: VehicleState, t: float, profile: FlightProfile) -> Acceleration:
    """Net acceleration acting on the vehicle while in *phase*."""
    g = -STANDARD_GRAVITY

    if phase == FlightPhase.POWERED_ASCENT:
        heading = math.radians(profile.heading_deg)
        horizontal = 1.5 * math.sin(math.radians(profile.tilt_deg))
        return Acceleration(
            ax=horizontal * math.sin(heading) + profile.wind_accel_east,
            ay=horizontal * math.cos(heading) + profile.wind_accel_north,
            az=g + thrust_acceleration(t, profile),
        )

    if phase == FlightPhase.BURNOUT:
        # Quadratic drag opposing the velocity vector.
        k = profile.coast_drag_k * state.speed
        return Acceleration(ax=-k * state.vx, ay=-k * state.vy, az=g - k * state.vz)

    if phase in (FlightPhase.DROGUE_DEPLOY, FlightPhase.MAIN_DEPLOY):
        if phase == FlightPhase.DROGUE_DEPLOY:
            target_vz, gain = profile.drogue_terminal_velocity, profile.drogue_relaxation
        else:
            target_vz, gain = profile.main_terminal_velocity, profile.main_relaxation
        drift = profile.drift_relaxation
        return Acceleration(
            ax=(profile.drift_velocity_east - state.vx) * drift,
            ay=(profile.drift_velocity_north - state.vy) * drift,
            az=g + (target_vz - state.vz) * gain,
        )

    if phase == FlightPhase.LANDED:
        return Acceleration()

    # pre-flight and apogee: gravity only.
    return Acceleration(az=g)


def integrate(state: VehicleState, accel: Acceleration, dt: float) -> VehicleState:
    """Advance *state* by *dt* seconds with semi-implicit Euler and a ground clamp.

    ``dt`` is clamped to at most 50 ms so scheduling jitter cannot blow up
    the integration.
    """
    dt = min(MAX_STEP_SECONDS, max(0.0, dt))
    vx = state.vx + accel.ax * dt
    vy = state.vy + accel.ay * dt
    vz = state.vz + accel.az * dt
    x = state.x + vx * dt
    y = state.y + vy * dt
    z = state.z + vz * dt
    if z < 0.0:
        z = 0.0
        vz = 0.0
    return VehicleState(x=x, y=y, z=z, vx=vx, vy=vy, vz=vz)


def next_phase(
    phase: FlightPhase,
    state: VehicleState,
    t: float,
    apogee_reached: bool,
    profile: FlightProfile,
) -> tuple[FlightPhase, bool]:
    """Decide the phase after a tick from the updated state.

    Returns ``(phase, apogee_reached)``. Guards are checked in flight order
    and at most one forward transition happens per tick. The apogee latch
    is set at most once, so apogee can be entered from burnout only once.
    """
    if phase == FlightPhase.PRE_FLIGHT:
        if t >= profile.pre_flight_seconds:
            return FlightPhase.POWERED_ASCENT, apogee_reached
        return phase, apogee_reached

    if phase == FlightPhase.POWERED_ASCENT:
        if t >= profile.burnout_seconds:
            return FlightPhase.BURNOUT, apogee_reached
        return phase, apogee_reached

    if phase == FlightPhase.BURNOUT:
        if not apogee_reached and state.vz <= 0.0:
            return FlightPhase.APOGEE, True
        return phase, apogee_reached

    if phase == FlightPhase.APOGEE:
        if state.vz < profile.drogue_trigger_velocity:
            return FlightPhase.DROGUE_DEPLOY, apogee_reached
        # A vehicle that never left the pad tops out on the ground.
        if state.z <= profile.landing_altitude and abs(state.vz) < profile.landing_speed:
            return FlightPhase.LANDED, apogee_reached
        return phase, apogee_reached

    if phase == FlightPhase.DROGUE_DEPLOY:
        if state.z <= profile.main_trigger_altitude:
            return FlightPhase.MAIN_DEPLOY, apogee_reached
        return phase, apogee_reached

    if phase == FlightPhase.MAIN_DEPLOY:
        if state.z <= profile.landing_altitude and abs(state.vz) < profile.landing_speed:
            return FlightPhase.LANDED, apogee_reached
        return phase, apogee_reached

    return phase, apogee_reached


def settle(state: VehicleState) -> VehicleState:
    """Latch a landed vehicle: on the ground, at rest."""
    return replace(state, z=0.0, vx=0.0, vy=0.0, vz=0.0)


@dataclass(frozen=True)
class StepResult:
    state: VehicleState
    phase: FlightPhase
    apogee_reached: bool
    accel: Acceleration


def step(
    state: VehicleState,
    phase: FlightPhase,
    apogee_reached: bool,
    t: float,
    dt: float,
    profile: FlightProfile,
) -> StepResult:
    """One simulator tick: accelerate with the previous phase, integrate, then decide."""
    accel = acceleration(phase, state, t, profile)
    if phase == FlightPhase.LANDED:
        new_state = settle(state)
    else:
        new_state = integrate(state, accel, dt)
    new_phase, latch = next_phase(phase, new_state, t, apogee_reached, profile)
    if new_phase == FlightPhase.LANDED:
        new_state = settle(new_state)
        accel = Acceleration()
    return StepResult(state=new_state, phase=new_phase, apogee_reached=latch, accel=accel)
