"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_MARKING_WINDOW_HOURS = 24
DEFAULT_CACHE_TTL_SECONDS = 3600
DEFAULT_CACHE_MAX_ENTRIES = 512
DEFAULT_RADAR_TIMEFRAME_DAYS = 30
MAX_TIMEFRAME_DAYS = 365

MIN_PASSWORD_LENGTH = 8
MIN_OVERRIDE_REASON_LENGTH = 10
MAX_NOTES_LENGTH = 500

# Statistics engine
STREAK_MIN_LENGTH = 3
DAY_PATTERN_MIN_SAMPLES = 3
FREQUENTLY_PRESENT_RATE = 80.0
FREQUENTLY_ABSENT_RATE = 20.0
STABILITY_TREND_WINDOW = 5
REGULARITY_MIN_INTERVALS = 2
REGULARITY_MAX_STD_DAYS = 7.0
FORECAST_WINDOW_DAYS = 30
PREDICTION_MIN_RECORDS = 5
MOMENTUM_WINDOW = 10
CONFIDENCE_FULL_RECORDS = 100

# Risk scoring
RISK_RECENT_WINDOW = 10
VOLATILITY_MIN_RECORDS = 5
CONSECUTIVE_ABSENCE_THRESHOLD = 3
CONSECUTIVE_ABSENCE_WEIGHT = 10
LOW_ATTENDANCE_THRESHOLD = 0.7
LOW_ATTENDANCE_WEIGHT = 50
HIGH_VOLATILITY_THRESHOLD = 0.5
HIGH_VOLATILITY_WEIGHT = 20
FORMAL_WARNING_THRESHOLD = 0.5
HIGH_RISK_SCORE = 70
MEDIUM_RISK_SCORE = 40

# Systemic issue detection
SYSTEMIC_MIN_SAMPLES = 5
SYSTEMIC_DAY_ABSENCE_RATE = 30.0
SYSTEMIC_UNMARKED_RATE = 20.0
