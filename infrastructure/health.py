# infrastructure/health.py
from sqlalchemy import text

from core.logger import logger


class DatabaseHealthChecker:
    def __init__(self, db_manager):
        self.db_manager = db_manager

    async def is_alive(self) -> bool:
        try:
            async with self.db_manager.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return False
