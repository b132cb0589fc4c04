# infrastructure/database.py
import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from config.settings import settings
from core.errors import PersistenceError
from core.logger import logger
from utils.yaml_utils import load_configuration


class AsyncDatabaseManager:
    """Owns the async engine for one connection string.

    The engine is created on first use, so a missing or bad connection
    string only surfaces when the database is actually needed.
    """

    def __init__(self, connection_string: Optional[str], engine_options: Optional[Dict[str, Any]] = None):
        self.connection_string = connection_string
        if engine_options is None:
            engine_options = load_configuration(settings.DATABASE_CONFIG_PATH)
        self.engine_options = engine_options
        self._init_lock = asyncio.Lock()
        self._engine: Optional[AsyncEngine] = None

    async def initialize(self) -> AsyncEngine:
        """Create the engine if not already done"""
        async with self._init_lock:
            if self._engine is not None:
                return self._engine

            if not self.connection_string:
                raise PersistenceError("Database connection string is not configured")

            try:
                options = {"echo": settings.SQL_ECHO}
                options.update(self.engine_options)
                self._engine = create_async_engine(self.connection_string, **options)
                logger.info(f"Created async engine for {self._engine.url.get_backend_name()}")
            except Exception as e:
                logger.error(f"Failed to create async engine: {e}")
                raise PersistenceError(f"Failed to create database engine: {e}") from e
            return self._engine

    @asynccontextmanager
    async def connect(self) -> AsyncGenerator[AsyncConnection, None]:
        """Opens a fresh pooled connection. Nothing is committed implicitly."""
        engine = await self.initialize()
        async with engine.connect() as connection:
            yield connection

    @asynccontextmanager
    async def begin(self) -> AsyncGenerator[AsyncConnection, None]:
        """Connection inside a transaction, committed on clean exit."""
        engine = await self.initialize()
        async with engine.begin() as connection:
            yield connection

    async def close(self):
        """Dispose the connection pool"""
        if self._engine is None:
            return
        try:
            await self._engine.dispose()
            logger.debug("Closed connection pool")
        except Exception as e:
            logger.error(f"Error closing connection pool: {e}")
        self._engine = None
