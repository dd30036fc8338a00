"""
Domain Constants

This module contains constant definitions valid across the domain layer.
"""

ALGORITHM_VERSION = "1.0.0"

# Status codes (API-Football short codes) that mark a fixture as final
FINISHED_STATUSES = frozenset({"FT", "AET", "PEN"})

# Status codes of fixtures that have not kicked off yet
UPCOMING_STATUSES = frozenset({"NS", "TBD"})

# Form analysis
DEFAULT_FORM_MATCHES = 5
NEUTRAL_SCORE = 50.0

# Head-to-head analysis
HEAD_TO_HEAD_LIMIT = 10

# Season blend: (offset from current season, weight)
# Seasons without data are skipped and do not dilute the normalization.
ANALYSIS_SEASON_WEIGHTS: tuple[tuple[int, float], ...] = (
    (0, 0.5),  # current season
    (1, 0.3),  # previous season
    (2, 0.2),  # two seasons back
)

# Month in which a new season starts (August)
SEASON_START_MONTH = 8

# Per-match scaling used by the statistical analyzer
DEFENSIVE_GOALS_SCALE = 25.0
ATTACKING_GOALS_SCALE = 40.0

# Outcome scorer weights
HOME_ADVANTAGE_POINTS = 15.0  # percentage points
FORM_WEIGHT = 0.40
STATS_WEIGHT = 0.35
HEAD_TO_HEAD_WEIGHT = 0.10
HOME_ADVANTAGE_WEIGHT = 0.15
GOAL_DIFFERENCE_MULTIPLIER = 2.0
DECISIVE_MARGIN = 10.0

# Confidence rules
DECISIVE_BASE_CONFIDENCE = 60.0
DECISIVE_MAX_CONFIDENCE = 95.0
CLOSE_BASE_CONFIDENCE = 45.0
CLOSE_PROBABILITY_SCALE = 30.0
CLOSE_MAX_CONFIDENCE = 75.0

# Tie-break probability model coefficients (fixed, not fitted)
TIE_BREAK_COEFFICIENTS = {
    "form_diff": 0.02,
    "goal_diff": 0.01,
    "attack_defense_balance": 0.015,
    "clean_sheet_diff": 0.008,
    "home_advantage": 0.5,
    "intercept": 0.1,
}
AWAY_LOGIT_SCALE = 0.8
MIN_DRAW_PROBABILITY = 0.1

# Confidence bands used by reporting
CONFIDENCE_LEVELS = {
    "high": 75,
    "medium": 50,
    "low": 30,
}

# Batch prediction shaping
PREDICTION_BATCH_SIZE = 5
PREDICTION_BATCH_PAUSE_SECONDS = 0.1

# Team insight thresholds (0-100 scale)
EXCELLENT_FORM_THRESHOLD = 75.0
GOOD_FORM_THRESHOLD = 50.0
STRONG_ATTACK_THRESHOLD = 70.0
SOLID_DEFENSE_THRESHOLD = 70.0
STRONG_HOME_THRESHOLD = 70.0
