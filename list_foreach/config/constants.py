"""Pure constants for list-foreach. No side effects at import time."""

# === HTTP ===
PAGE_TOKEN_PARAM = "pageToken"  # Query parameter carrying the cursor
NEXT_PAGE_TOKEN_FIELD = "nextPageToken"  # Response field carrying the cursor
BILLING_PROJECT_HEADER = "x-goog-user-project"
DEFAULT_USER_AGENT = "list-foreach/0.1"
DEFAULT_HTTP_TIMEOUT = 60.0  # seconds per request

# === Auth ===
GOOGLE_SCOPES = ("https://www.googleapis.com/auth/cloud-platform",)

# === Concurrency ===
DEFAULT_PARALLELISM = 1

# === Rate Limit ===
DEFAULT_RATE_LIMIT_PER_MINUTE = 0  # 0 = unlimited

# === Backoff (seconds) ===
BACKOFF_MIN_INTERVAL = 1.0
BACKOFF_MAX_INTERVAL = 60.0
BACKOFF_MULTIPLIER = 2.0
BACKOFF_JITTER = 0.1  # Uniform multiplicative jitter (+/- 10%)
