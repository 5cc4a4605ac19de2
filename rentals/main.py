import asyncio
import logging
import sys

from rentals.config import config
from rentals.database.core import AsyncSessionLocal, engine, init_models
from rentals.database.errors import RentalsError
from rentals.seed import seed_fixture
from rentals.services.role_service import list_roles


async def main():
    # Configure logging
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        stream=sys.stdout,
    )

    # Development convenience; deployed databases are managed by alembic
    await init_models(engine)
    logging.info("Schema ready.")

    if config.SEED_FIXTURES:
        async with AsyncSessionLocal() as session:
            if await list_roles(session):
                logging.info("Database already has roles, skipping fixture.")
            else:
                try:
                    await seed_fixture(session)
                except RentalsError as e:
                    logging.error(f"Failed to seed fixture: {e}")
                    raise

    await engine.dispose()

if __name__ == "__main__":
    try:
        if sys.platform == "win32":
            asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logging.info("Stopped.")
