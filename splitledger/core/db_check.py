import asyncio
import logging
from sqlalchemy import text
from splitledger.core.config import settings
from splitledger.db.session import engine

logger = logging.getLogger(__name__)


async def wait_for_db(retries=settings.DB_CONNECT_RETRIES):
    for i in range(retries):
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("Splitledger : Database connected")
            return
        except Exception as e:
            logger.warning(
                "Splitledger : Database not ready | [ %s/%s ] → retrying... (%s)",
                i + 1, retries, e,
            )
            await asyncio.sleep(2)

    raise RuntimeError("Database unreachable after retries")
