"""Internal constants shared across the library."""

AMBIENT_BASE_URL = "https://api.ambientweather.net/v1"
OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"
USER_AGENT = "jollykite/1.0"

AMBIENT_SOURCE_ID = "ambient_weather"
PROXY_SOURCE_ID = "windguru"
PROXY_HISTORY_PATH = "/api/wind-history"

HISTORY_STORAGE_KEY = "jollykite-history"
TREND_STORAGE_KEY = "jollykite-trend"
SETTINGS_STORAGE_KEY = "jollykite-settings"

# ------------------------------------------------------------------
# Unit conversion (exact, linear)
# ------------------------------------------------------------------

MPH_TO_KNOTS = 0.868976
KMH_TO_KNOTS = 0.539957
KNOTS_TO_KMH = 1.852
KNOTS_TO_MS = 0.514444

# ------------------------------------------------------------------
# Safety windows (degrees, inclusive) and speed bands (knots)
# ------------------------------------------------------------------

OFFSHORE_MIN_DEG = 225.0
OFFSHORE_MAX_DEG = 315.0
ONSHORE_MIN_DEG = 45.0
ONSHORE_MAX_DEG = 135.0
SAFE_MIN_KNOTS = 12.0
SAFE_MAX_KNOTS = 25.0
DANGER_ABOVE_KNOTS = 30.0

COLOR_DANGER = "#ef4444"
COLOR_SAFE = "#10b981"
COLOR_CAUTION = "#f59e0b"
