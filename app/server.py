"""
Process entrypoint: serve the API with uvicorn on SERVER_PORT.

  python -m app
  python -m app.server
"""

import logging
import sys

import uvicorn

from app.core.config import get_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Run the HTTP server until interrupted."""
    settings = get_settings()
    logger.info("Starting Journal API on port %s (env=%s)", settings.SERVER_PORT, settings.APP_ENV)
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=settings.SERVER_PORT,
        log_level="debug" if settings.DEBUG else "info",
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
