"""CLI entry point for creating the lease database schema.

Usage:
    python -m src.cli.init_db

Exit Codes:
    0 - Success: all lease tables exist
    1 - Failure: error encountered; see logs

Logging:
    INFO level logs to both stdout and the configured log file
"""

import logging
import sys

from dotenv import load_dotenv


def main() -> int:
    """
    Create agreements, value_transfers and lease_events tables if missing.

    Returns:
        Exit code: 0 for success, 1 for failure
    """
    load_dotenv()

    from src.services.config import get_settings
    from src.services.logging import setup_server_logging

    settings = get_settings()
    setup_server_logging(settings)
    logger = logging.getLogger("src.cli.init_db")

    try:
        from src.services import init_db

        init_db()
        return 0
    except KeyboardInterrupt:
        logger.warning("Schema creation interrupted by user")
        return 1
    except Exception as e:
        logger.error(f"Schema creation failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
