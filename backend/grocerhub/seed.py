"""
Seed or wipe the development database.

Usage (from backend/):
    python -m grocerhub.seed        # replace all data with the demo data set
    python -m grocerhub.seed -d     # destroy all data
"""

import argparse
import asyncio
import logging

from grocerhub.database import Database
from grocerhub.main import setup_logging
from grocerhub.services.seed_service import seed_service

logger = logging.getLogger("grocerhub.seed")


async def run(destroy: bool, create_tables: bool) -> None:
    database = Database()
    try:
        if create_tables:
            await database.create_all()
        async with database.session() as db:
            if destroy:
                await seed_service.destroy_data(db)
            else:
                result = await seed_service.import_data(db)
                logger.info(
                    "Demo users: admin=%s customer=%s driver=%s",
                    result.admin.id,
                    result.customer.user_id,
                    result.driver.user_id,
                )
    finally:
        await database.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="GrocerHub demo data seeder")
    parser.add_argument("-d", "--destroy", action="store_true", help="Delete all data and exit")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables first (development databases without migrations)",
    )
    args = parser.parse_args()

    setup_logging()
    asyncio.run(run(destroy=args.destroy, create_tables=args.create_tables))
    logger.info("Data %s", "destroyed" if args.destroy else "imported")


if __name__ == "__main__":
    main()
