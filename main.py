"""
main.py — entry point for the test-taking service
"""

import logging
import sys

from config import DEFAULT_HOST, DEFAULT_PORT, LOG_FILE

# ── Logging ──────────────────────────────────────────────────────────────────

def configure_logging() -> None:
    try:
        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            handlers=[
                logging.FileHandler(LOG_FILE, encoding='utf-8'),
                logging.StreamHandler(sys.stdout)
            ]
        )
    except PermissionError:
        # log file locked or read-only: console only
        logging.basicConfig(level=logging.INFO)


logger = logging.getLogger(__name__)

# ── Main ─────────────────────────────────────────────────────────────────────

def main() -> None:
    import uvicorn
    from api.app import create_app

    configure_logging()
    logger.info("=== LMS Test Session service started ===")
    logger.info(f"Listening on http://{DEFAULT_HOST}:{DEFAULT_PORT}")
    uvicorn.run(create_app(), host=DEFAULT_HOST, port=DEFAULT_PORT, log_level="warning")


if __name__ == "__main__":
    main()
