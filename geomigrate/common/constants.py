"""Application constants."""

USER_AGENT = "geomigrate/0.3 (+batch geocoding migration)"
GEOCODE_BASE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
DEFAULT_PAGE_SIZE = 50
DEFAULT_TIMEOUT_SECONDS = 2.0
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_DELAY_SECONDS = 0.3
DEFAULT_CONNECT_TIMEOUT_MS = 5000
REQUIRED_ENV_VARS = (
    "MONGO_URI",
    "DATABASE_NAME",
    "SOURCE_COLLECTION_NAME",
    "TARGET_COLLECTION_NAME",
    "GOOGLE_MAPS_API_KEY",
)
EXIT_SUCCESS = 0
EXIT_STARTUP_FAIL = 1
EXIT_RUN_FAILED = 2
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "event",
    "status",
    "attempt",
    "offset",
    "page_size",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
