#!/usr/bin/env python3
"""
Store maintenance script

Usage:
    python -m wellness_booking.maintenance init           Create tables
    python -m wellness_booking.maintenance sweep          Delete expired holds once
    python -m wellness_booking.maintenance sweep-forever  Run the hold sweeper loop
"""

import asyncio
import logging
import sys

from wellness_booking.config import get_config
from wellness_booking.database import close_database, get_engine, init_database
from wellness_booking.services.hold_sweeper import HoldSweeper

logger = logging.getLogger(__name__)

COMMANDS = ("init", "sweep", "sweep-forever")


def main(argv: list[str]) -> int:
    command = argv[1] if len(argv) > 1 else "init"
    if command not in COMMANDS:
        logger.error(f"❌ Unknown command: {command} (expected one of {', '.join(COMMANDS)})")
        return 2

    config = get_config()
    engine = get_engine()
    init_database(engine)

    try:
        if command == "sweep":
            removed = HoldSweeper(engine).sweep_once()
            logger.info(f"✅ Removed {removed} expired holds")
        elif command == "sweep-forever":
            sweeper = HoldSweeper(engine, interval=config.sweep_interval)
            try:
                asyncio.run(sweeper.run())
            except KeyboardInterrupt:
                logger.info("Sweeper interrupted")
        else:
            logger.info(f"✅ Database ready: {config.get_database_url()}")
    finally:
        close_database()

    return 0


if __name__ == "__main__":
    # Setup basic logging for script execution
    logging.basicConfig(
        level=get_config().log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    sys.exit(main(sys.argv))
