# scopehealth/core/contract.py
"""
ScopeHealth Decision Contract

This module defines the locked scoring penalties, classification ladder,
trend thresholds and retention caps used to turn a metric sample into a
health verdict.

If you change any constants in here, bump SCOPEHEALTH_DECISION_VERSION.
"""

SCOPEHEALTH_DECISION_VERSION = "0.1.0"

# Score
INITIAL_SCORE = 100
MIN_SCORE = 0
MAX_SCORE = 100

# Penalties (subtracted independently from INITIAL_SCORE)
PENALTY_TEMP_CRITICAL = 30
PENALTY_TEMP_OPTIMAL = 15
PENALTY_POWER_DEVIATION = 20
PENALTY_ACCURACY_CRITICAL = 25
PENALTY_ACCURACY_WARNING = 10
PENALTY_SLOW_RESPONSE = 15
PENALTY_ERROR_COUNT = 20
PENALTY_MAINTENANCE_OVERDUE = 10

# Rule triggers
DEFAULT_POWER_W = 50.0
POWER_DEVIATION_RATIO = 0.3
DEFAULT_ACCURACY_ARCSEC = 5.0
ACCURACY_CRITICAL_FACTOR = 2.0
ACCURACY_WARNING_FACTOR = 1.5
SLOW_RESPONSE_MS = 5000.0
ERROR_COUNT_WARNING = 10
ERROR_COUNT_HIGH_RISK = 20

# Classification ladder (score >= threshold)
LEVEL_EXCELLENT_MIN = 90
LEVEL_GOOD_MIN = 75
LEVEL_WARNING_MIN = 50
LEVEL_CRITICAL_MIN = 25

# Trend analysis
TREND_WINDOW = 5
TREND_MIN_POINTS = 3
TREND_FLUCTUATION_RATIO = 0.2
TREND_STABLE_CHANGE = 0.05

# Performance defaults (empty history)
DEFAULT_UPTIME = 100.0
DEFAULT_RELIABILITY = 100.0
DEFAULT_EFFICIENCY = 100.0
DEFAULT_MTBF_HOURS = 1000
HOURS_PER_RECORD = 24

# Retention
HISTORY_LIMIT = 1000

# Periodic monitoring (seconds)
DEFAULT_UPDATE_INTERVAL = 60
MIN_UPDATE_INTERVAL = 10
MAX_UPDATE_INTERVAL = 3600

# Baseline tolerances and refresh cadence
BASELINE_TOLERANCES = {
    "temperature": 5.0,
    "accuracy": 1.0,
    "response_time": 500.0,
    "power": 10.0,
}
BASELINE_UPDATE_INTERVAL_DAYS = 30

# Recommended action texts (order matters)
ACTION_TEXT_MAINTENANCE = "Schedule routine maintenance"
ACTION_TEXT_CALIBRATION = "Perform calibration"
ACTION_TEXT_ALIGNMENT = "Check mechanical alignment"
ACTION_TEXT_COOLING = "Improve cooling or ventilation"
ACTION_TEXT_REPLACEMENT = "Consider component replacement"
