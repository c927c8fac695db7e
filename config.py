import os

# Base directory
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Paths
LOG_FILE = os.path.join(BASE_DIR, "launch.log")

# Server
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "8000"))

# LMS backend (empty URL -> built-in sample backend)
BACKEND_URL = os.getenv("BACKEND_URL", "").rstrip("/")
API_TOKEN = os.getenv("API_TOKEN", "")
API_TIMEOUT = float(os.getenv("API_TIMEOUT", "10.0"))

# Test session timing
TICK_INTERVAL_SECONDS = 1.0
AUTOSAVE_INTERVAL_SECONDS = float(os.getenv("AUTOSAVE_INTERVAL", "30.0"))
WARNING_THRESHOLD_SECONDS = 300     # urgency banner only, no effect on submission

# Browser sessions
SESSION_TTL = 3600                  # 1 hour
SESSION_CLEANUP_INTERVAL = 300      # 5 minutes

# Where the UI goes when a test cannot be opened
LANDING_PATH = "/student/dashboard"
