"""Main application entry point."""

import logging
import os

import uvicorn
from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from src.services.config import get_settings  # noqa: E402
from src.services.logging import setup_server_logging  # noqa: E402

settings = get_settings()
setup_server_logging(settings)
logger = logging.getLogger(__name__)


def main() -> None:
    """Create the schema if needed and serve the lease API."""
    from src.api.app import app
    from src.services import init_db

    init_db()

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    logger.info("Starting lease API on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
