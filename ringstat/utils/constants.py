"""
Scoring-hardware constants, target geometry and dashboard defaults for RingStat.

Electronic scoring systems transmit measurements as scaled integers:
ring values and teiler distances in tenths, coordinates in hundredths
of a millimetre.
"""

# =============================================================================
# Scaled Integer Encoding
# =============================================================================

RING_SCALE = 10                # 105 -> 10.5 rings
TEILER_SCALE = 10              # 1751 -> 175.1 mm
COORDINATE_SCALE = 100         # 1234 -> 12.34 mm

# =============================================================================
# Target Geometry
# =============================================================================

# Air rifle 10m (LG): ring diameters in mm, ring 1 (outermost) to ring 10
LG_RING_DIAMETERS = [53.5, 47.5, 41.5, 35.5, 29.5, 23.5, 17.5, 11.5, 5.5, 0.5]

# Small bore 50m (KK): ring 10 diameter plus 8.0mm per ring outwards
KK_TEN_DIAMETER = 10.4
KK_RING_STEP = 8.0
KK_INNER_TEN_DIAMETER = 5.0

# Projectile display radius (mm), enlarged for visibility
LG_PROJECTILE_RADIUS = 1.0     # 4.5mm pellet
KK_PROJECTILE_RADIUS = 1.2     # 5.6mm bullet

# Fill colours per ring number (target face)
RING_FILL_COLORS = {
    1:  "#d0d0d0",
    2:  "#c0c0c0",
    3:  "#b0b0b0",
    4:  "#a0a0a0",
    5:  "#4db8a8",
    6:  "#40a89d",
    7:  "#359892",
    8:  "#2a8887",
    9:  "#20787c",
    10: "#166871",
}
INNER_TEN_COLOR = "#ffffff"

# Shot marker colours by integer ring
SCORE_COLORS = {
    10: "#00ff00",
    9:  "#90ee90",
    8:  "#ffff00",
    7:  "#ffa500",
    6:  "#ff6347",
    5:  "#ff0000",
}
DEFAULT_SCORE_COLOR = "#999999"

# Offsets smaller than this (mm) are reported as centred
DIRECTION_THRESHOLD_MM = 0.1

# =============================================================================
# Dashboard Defaults
# =============================================================================

DEFAULT_TREND_LIMIT = 12       # last N calendar buckets
DEFAULT_LEADERBOARD_LIMIT = 50
DEFAULT_SCORE_TREND_LIMIT = 20 # last N sessions
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50
DEFAULT_MAX_WORKERS = 8

MONTH_ABBREVIATIONS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]
