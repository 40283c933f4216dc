# config.py
from datetime import datetime, timezone

# --- Countdown Target ---
# The target instant is pinned to UTC so every host counts down to the same moment.
TARGET_DATE = datetime(2030, 1, 1, tzinfo=timezone.utc)
TARGET_MS = int(TARGET_DATE.timestamp()) * 1000

# --- Unit Sizes (milliseconds) ---
# Fixed-length units, not calendar aware: a year is always 365 days.
MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR
MS_PER_YEAR = 365 * MS_PER_DAY

# --- Refresh Cadence (seconds) ---
COUNTDOWN_REFRESH_SECONDS = 1.0    # Streamlit reruns fragments at most about once a second
FRAME_INTERVAL_SECONDS = 1 / 60    # asyncio driver: one display frame
METRICS_REFRESH_SECONDS = 60.0
FETCH_TIMEOUT_SECONDS = 5.0

# --- Fallback Values ---
# Used whenever no external data source answers (which is always, for now).
FALLBACK_CO2_TONNES = 40_800_000_000
FALLBACK_TEMPERATURE_C = 1.2
FALLBACK_SEA_LEVEL_MM = 3.6

# --- Accrual Rates ---
FOREST_LOSS_HA_PER_SECOND = 0.13
GLACIER_LOSS_T_PER_SECOND = 9_449
SPECIES_LOST_PER_DAY = 200

# --- Logging ---
LOG_LEVEL = "INFO"
LOG_JSON = False
