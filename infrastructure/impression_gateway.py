# infrastructure/impression_gateway.py
from typing import Sequence

from sqlalchemy import inspect, insert

from core.errors import PersistenceError
from core.logger import logger
from infrastructure.database import AsyncDatabaseManager
from models import Base
from models.impression import Impression
from models.payload import ImpressionRecord


class ImpressionGateway:
    """
    Writes impressions to the Impressions table.

    Each public call opens its own connection. Inserts are committed row by
    row, so a failure part way through a batch keeps the rows written before it.
    """

    def __init__(self, db: AsyncDatabaseManager):
        self.db = db
        self.table = Impression.__table__

    async def ensure_schema(self) -> None:
        """Creates the table unless it already exists. Safe to call repeatedly and concurrently."""
        try:
            async with self.db.begin() as conn:
                await conn.run_sync(Base.metadata.create_all, tables=[self.table], checkfirst=True)
            return
        except PersistenceError:
            raise
        except Exception as e:
            # Another request may have created the table between our check and create
            if await self._table_exists():
                logger.debug(f"Table {self.table.name} created concurrently: {e}")
                return
            logger.error(f"Failed to ensure table {self.table.name}: {e}")
            raise PersistenceError(f"Failed to ensure table {self.table.name}: {e}") from e

    async def _table_exists(self) -> bool:
        try:
            async with self.db.connect() as conn:
                return await conn.run_sync(lambda sync_conn: inspect(sync_conn).has_table(self.table.name))
        except Exception as e:
            logger.warning(f"Could not check for table {self.table.name}: {e}")
            return False

    async def insert_batch(self, impressions: Sequence[ImpressionRecord]) -> int:
        """
        Inserts impressions one parameterized statement at a time.

        Returns:
            int: Number of rows inserted
        """
        stmt = insert(self.table)
        inserted = 0
        try:
            async with self.db.connect() as conn:
                for impression in impressions:
                    await conn.execute(stmt, impression.to_row())
                    await conn.commit()
                    inserted += 1
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(f"Insert failed after {inserted} of {len(impressions)} impressions: {e}")
            raise PersistenceError(f"Failed to insert impressions: {e}") from e

        logger.debug(f"Inserted {inserted} impressions")
        return inserted
