"""
Shared constants used across multiple modules.
Single source of truth for data types, payload probe order and the
analysis thresholds.
"""

# Record data types accepted at the boundary
DATA_TYPES = (
    "sleep", "stress", "nutrition", "exercise", "headache", "weather",
    "blood_pressure", "mood", "hydration", "medication", "symptoms",
    "vitals", "custom",
)

# Payload fields probed (in order) for the numeric signal of a record
VALUE_FIELDS = (
    "value", "level", "duration", "quality", "severity",
    "systolic", "diastolic",
)

# Trend classification (percent change between halves)
TREND_INCREASE_PCT = 5.0
TREND_DECREASE_PCT = -5.0

# Correlation noise filters (heuristics, not significance tests)
MIN_CORRELATION_SAMPLES = 4
MIN_ABS_CORRELATION = 0.3
STRONG_CORRELATION = 0.7
ZERO_VARIANCE_STD = 1e-10

# Types the daily check-in expects to see logged
EXPECTED_DAILY_TYPES = ("sleep", "stress", "nutrition", "exercise")

# Completion-rate horizon used by the dashboard overview (days per goal)
DASHBOARD_GOAL_HORIZON_DAYS = 30
