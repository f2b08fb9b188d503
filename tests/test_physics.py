from __future__ import annotations

import math
import random

import pytest

from flightdeck.config import FlightProfile
from flightdeck.ingestion.validate import Ok, validate_packet
from flightdeck.models.telemetry import FlightPhase
from flightdeck.simulator import physics
from flightdeck.simulator.physics import Acceleration, VehicleState
from flightdeck.simulator.sensors import heading_deg, pressure_at, synthesize_packet

PROFILE = FlightProfile()


def test_thrust_tapers_over_the_burn() -> None:
    assert physics.thrust_acceleration(2.0, PROFILE) == pytest.approx(85.0)
    assert physics.thrust_acceleration(8.5, PROFILE) == pytest.approx(85.0 * 0.1)
    # Clamped outside the burn window.
    assert physics.thrust_acceleration(50.0, PROFILE) == pytest.approx(85.0 * 0.1)


def test_powered_ascent_tilts_along_heading() -> None:
    profile = FlightProfile(heading_deg=90.0, wind_accel_east=0.0, wind_accel_north=0.0)

    accel = physics.acceleration(FlightPhase.POWERED_ASCENT, VehicleState(), 2.0, profile)

    assert accel.ax == pytest.approx(1.5 * math.sin(math.radians(5.0)))
    assert accel.ay == pytest.approx(0.0, abs=1e-12)
    assert accel.az == pytest.approx(85.0 - 9.81)


def test_coast_drag_opposes_velocity() -> None:
    state = VehicleState(vx=10.0, vz=100.0)

    accel = physics.acceleration(FlightPhase.BURNOUT, state, 10.0, PROFILE)

    assert accel.ax < 0
    assert accel.az < -9.81


def test_drogue_relaxes_toward_terminal_velocity() -> None:
    at_terminal = VehicleState(z=1000.0, vx=5.0, vy=-2.0, vz=-35.0)

    accel = physics.acceleration(FlightPhase.DROGUE_DEPLOY, at_terminal, 40.0, PROFILE)

    assert accel.ax == pytest.approx(0.0)
    assert accel.ay == pytest.approx(0.0)
    assert accel.az == pytest.approx(-9.81)


def test_integrate_clamps_long_steps() -> None:
    state = VehicleState(z=100.0)
    accel = Acceleration(az=10.0)

    assert physics.integrate(state, accel, 1.0) == physics.integrate(state, accel, 0.05)
    assert physics.integrate(state, accel, -1.0) == state


def test_integrate_clamps_to_ground() -> None:
    state = VehicleState(z=0.01, vz=-5.0)

    after = physics.integrate(state, Acceleration(az=-9.81), 0.05)

    assert after.z == 0.0
    assert after.vz == 0.0


def test_ignition_is_time_gated() -> None:
    assert physics.next_phase(FlightPhase.PRE_FLIGHT, VehicleState(), 1.95, False, PROFILE)[0] == FlightPhase.PRE_FLIGHT
    assert physics.next_phase(FlightPhase.PRE_FLIGHT, VehicleState(), 2.0, False, PROFILE)[0] == (
        FlightPhase.POWERED_ASCENT
    )


def test_at_most_one_transition_per_decision() -> None:
    # A state that would satisfy every later guard still only advances one phase.
    state = VehicleState(z=0.0, vz=-1.0)

    phase, latch = physics.next_phase(FlightPhase.PRE_FLIGHT, state, 100.0, False, PROFILE)

    assert phase == FlightPhase.POWERED_ASCENT
    assert latch is False


def test_apogee_latch_is_set_once() -> None:
    descending = VehicleState(z=2500.0, vz=-0.1)

    assert physics.next_phase(FlightPhase.BURNOUT, descending, 20.0, False, PROFILE) == (FlightPhase.APOGEE, True)
    assert physics.next_phase(FlightPhase.BURNOUT, descending, 20.0, True, PROFILE) == (FlightPhase.BURNOUT, True)
    assert physics.next_phase(FlightPhase.BURNOUT, VehicleState(z=2500.0, vz=3.0), 20.0, False, PROFILE) == (
        FlightPhase.BURNOUT,
        False,
    )


@pytest.mark.parametrize(
    ("phase", "state", "expected"),
    [
        (FlightPhase.APOGEE, VehicleState(z=2500.0, vz=-9.0), FlightPhase.APOGEE),
        (FlightPhase.APOGEE, VehicleState(z=2500.0, vz=-10.5), FlightPhase.DROGUE_DEPLOY),
        (FlightPhase.APOGEE, VehicleState(z=0.0, vz=0.0), FlightPhase.LANDED),
        (FlightPhase.APOGEE, VehicleState(z=3.0, vz=-5.0), FlightPhase.APOGEE),
        (FlightPhase.DROGUE_DEPLOY, VehicleState(z=201.0, vz=-50.0), FlightPhase.DROGUE_DEPLOY),
        (FlightPhase.DROGUE_DEPLOY, VehicleState(z=200.0, vz=-50.0), FlightPhase.MAIN_DEPLOY),
        (FlightPhase.MAIN_DEPLOY, VehicleState(z=3.0, vz=-5.0), FlightPhase.MAIN_DEPLOY),
        (FlightPhase.MAIN_DEPLOY, VehicleState(z=3.0, vz=-1.0), FlightPhase.LANDED),
        (FlightPhase.LANDED, VehicleState(), FlightPhase.LANDED),
    ],
)
def test_descent_guards(phase: FlightPhase, state: VehicleState, expected: FlightPhase) -> None:
    assert physics.next_phase(phase, state, 60.0, True, PROFILE)[0] == expected


def test_step_into_landed_settles_vehicle() -> None:
    state = VehicleState(x=120.0, y=-40.0, z=0.2, vx=4.9, vy=-2.0, vz=-0.5)

    result = physics.step(state, FlightPhase.MAIN_DEPLOY, True, 90.0, 0.05, PROFILE)

    assert result.phase == FlightPhase.LANDED
    assert (result.state.z, result.state.vx, result.state.vy, result.state.vz) == (0.0, 0.0, 0.0, 0.0)
    assert result.state.x == pytest.approx(120.0, abs=1.0)
    assert result.accel == Acceleration()


def test_pressure_model() -> None:
    assert pressure_at(0.0) == pytest.approx(1013.25)
    assert pressure_at(8500.0) == pytest.approx(1013.25 / math.e)
    assert pressure_at(1000.0) < pressure_at(500.0)


@pytest.mark.parametrize(
    ("vx", "vy", "expected"),
    [(0.0, 1.0, 0.0), (1.0, 0.0, 90.0), (0.0, -1.0, 180.0), (-1.0, 0.0, 270.0), (0.0, 0.0, 0.0)],
)
def test_heading_is_clockwise_from_north(vx: float, vy: float, expected: float) -> None:
    assert heading_deg(vx, vy) == pytest.approx(expected)


def test_synthesized_packet_stays_within_noise_bounds() -> None:
    state = VehicleState(z=1200.0, vx=3.0, vy=4.0, vz=150.0)
    rng = random.Random(3)

    for _ in range(200):
        packet = synthesize_packet(
            state=state,
            accel=Acceleration(az=20.0),
            phase=FlightPhase.BURNOUT,
            t=12.0,
            timestamp_ms=1_700_000_012_000,
            profile=PROFILE,
            rng=rng,
        )
        assert abs(packet.baro.altitude - 1200.0) <= 0.75
        assert abs(packet.gps.alt - 1200.0) <= 1.0
        assert abs(packet.imu.accel.z - (20.0 + 9.81)) <= 0.2
        assert abs(packet.imu.gyro.x) <= 1.0
        assert abs(packet.rssi - (-40.0 - 0.6)) <= 1.5

    assert packet.velocity.z == 150.0
    assert packet.battery == pytest.approx(4.15 - 0.024)
    assert packet.baro.pressure == pytest.approx(pressure_at(1200.0))


def test_synthesized_packet_is_valid_on_the_wire() -> None:
    packet = synthesize_packet(
        state=VehicleState(),
        accel=Acceleration(),
        phase=FlightPhase.PRE_FLIGHT,
        t=0.0,
        timestamp_ms=1_700_000_000_000,
        profile=PROFILE,
        rng=random.Random(0),
    )

    result = validate_packet(packet.model_dump(mode="json"))

    assert isinstance(result, Ok)
    assert result.value.gps.lat == pytest.approx(PROFILE.origin_latitude)
    assert result.value.gps.lon == pytest.approx(PROFILE.origin_longitude)
    assert result.value.battery == pytest.approx(4.15)
