# service.py
import argparse
import asyncio
import logging
import sys

import uvicorn

from config.settings import settings
from core.logger import logger
from infrastructure.database import AsyncDatabaseManager
from infrastructure.impression_gateway import ImpressionGateway



async def ensure_schema() -> None:
    """Creates the Impressions table and exits, for deploy-time provisioning."""
    db = AsyncDatabaseManager(settings.SQL_CONNECTION_STRING)
    try:
        await ImpressionGateway(db).ensure_schema()
        logger.info(f"Table {settings.IMPRESSIONS_TABLE} is in place")
    finally:
        await db.close()


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--host", default=settings.HOST, help="Interface to bind")
    parser.add_argument("--port", type=int, default=settings.PORT, help="Port to listen on")
    parser.add_argument("--ensure-schema", action="store_true", help="Create the Impressions table and exit")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args()

    if args.debug:
        logger.setLevel(logging.DEBUG)
        logger.debug("Debug mode detected, log level set to DEBUG.")

    try:
        if args.ensure_schema:
            asyncio.run(ensure_schema())
            return

        from api.app import create_app
        uvicorn.run(create_app(), host=args.host, port=args.port, log_config=None)
    except Exception as e:
        import traceback
        logger.error(f"Unhandled exception: {str(e)}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        sys.exit(1)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logger.info("Service interrupted by user.")
    finally:
        logger.info("Service shut down")
