"""Constants for the dental classifier client."""

DEFAULT_BASE_URL = "https://dentalbackend-8hhh.onrender.com"
DEFAULT_CLASSIFY_PATH = "/api/classify"

MAX_FILE_SIZE = 5 * 1024 * 1024
MIN_DIMENSION = 100
MAX_DIMENSION = 4096
ACCEPTED_MIME_TYPES = ("image/jpeg", "image/png")

# The free-tier backend can take minutes to wake up
DEFAULT_TIMEOUT = 180.0
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_INITIAL_DELAY = 30.0
DEFAULT_MAX_DELAY = 60.0
DEFAULT_WARMUP_WAIT_HINT = 50.0

PROGRESS_CAP = 90
PROGRESS_STEP = 2
PROGRESS_INTERVAL = 1.0
PROGRESS_COMPLETE = 100
