"""Internal constants shared across the library."""

DEFAULT_WS_URL = "ws://localhost:8080/telemetry"

#: Standard gravity used for g-force normalisation and the raw accelerometer.
STANDARD_GRAVITY = 9.81

# 60 seconds at the 50 Hz worst-case ingestion rate.
HISTORY_CAPACITY = 3000
LOG_CAPACITY = 1000

# ------------------------------------------------------------------
# Reconnect backoff
# ------------------------------------------------------------------

MAX_RETRIES = 5
RETRY_BASE_DELAY_MS = 1000
RETRY_MAX_DELAY_MS = 30000

# ------------------------------------------------------------------
# Simulator scheduling
# ------------------------------------------------------------------

TICK_INTERVAL_MS = 50
MAX_STEP_SECONDS = 0.05
LANDING_GRACE_MS = 100

SIMULATION_DEVICE = "Simulation Mode"

# Serial bridge labels offered next to the simulator.
DEFAULT_DEVICES: tuple[str, ...] = (
    "/dev/ttyUSB0 - Flight Computer",
    "/dev/ttyUSB1 - Ground Station",
    "/dev/ttyACM0 - Arduino Mega",
    "COM3 - Serial Bridge",
    "COM7 - USB UART",
)
