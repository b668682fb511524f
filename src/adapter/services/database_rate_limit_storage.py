import logging
from datetime import UTC, datetime, timedelta
from typing import Callable

from sqlalchemy.exc import IntegrityError
from sqlalchemy import delete
from sqlmodel import select, update

from src.app.services.auth.rate_limit_storage import IRateLimitStorage
from src.domain.base import utcnow
from src.domain.entities import RateLimitRecord

logger = logging.getLogger(__name__)

INSERT_RETRIES = 3


def _to_timestamp(value: datetime) -> int:
    return int(value.replace(tzinfo=UTC).timestamp())


class DatabaseRateLimitStorage(IRateLimitStorage):
    """
    Fixed-window counters in the ``rate_limits`` table.

    Counters are changed with single-statement UPDATEs so concurrent workers
    never lose a hit. Each call uses its own short-lived session and commits
    immediately, independent of the caller's unit of work.
    """

    def __init__(self, session_factory: Callable, clock: Callable[[], datetime] = utcnow):
        self.session_factory = session_factory
        self._clock = clock

    async def allow(self, key: str, limit: int, window_seconds: int) -> bool:
        async with self.session_factory() as session:
            for attempt in range(INSERT_RETRIES):
                now = self._clock()
                reset_at = now + timedelta(seconds=window_seconds)

                # Open window: count the hit
                stmt = (
                    update(RateLimitRecord)
                    .where(RateLimitRecord.key == key, RateLimitRecord.reset_at > now)
                    .values(count=RateLimitRecord.count + 1)
                )
                result = await session.execute(stmt)

                # Elapsed window: restart it with this hit
                if result.rowcount == 0:
                    stmt = (
                        update(RateLimitRecord)
                        .where(RateLimitRecord.key == key, RateLimitRecord.reset_at <= now)
                        .values(count=1, window_started_at=now, reset_at=reset_at)
                    )
                    result = await session.execute(stmt)

                # No record yet
                if result.rowcount == 0:
                    session.add(
                        RateLimitRecord(
                            key=key, count=1, window_started_at=now, reset_at=reset_at
                        )
                    )
                    try:
                        await session.flush()
                    except IntegrityError:
                        # Another worker inserted the same key first
                        await session.rollback()
                        if attempt == INSERT_RETRIES - 1:
                            raise
                        continue

                count_stmt = select(RateLimitRecord.count).where(RateLimitRecord.key == key)
                count = (await session.execute(count_stmt)).scalar_one()
                await session.commit()
                return count <= limit

    async def get_remaining_attempts(self, key: str, limit: int, window_seconds: int) -> int:
        record = await self._get_active(key)
        if record is None:
            return limit
        return max(0, limit - record.count)

    async def get_reset_time(self, key: str, window_seconds: int) -> int:
        record = await self._get_active(key)
        if record is None:
            return _to_timestamp(self._clock() + timedelta(seconds=window_seconds))
        return _to_timestamp(record.reset_at)

    async def reset(self, key: str) -> None:
        async with self.session_factory() as session:
            await session.execute(delete(RateLimitRecord).where(RateLimitRecord.key == key))
            await session.commit()

    async def clear(self) -> None:
        async with self.session_factory() as session:
            result = await session.execute(delete(RateLimitRecord))
            await session.commit()
            logger.info(f"Cleared {result.rowcount} rate limit records")

    async def _get_active(self, key: str):
        async with self.session_factory() as session:
            stmt = select(RateLimitRecord).where(
                RateLimitRecord.key == key, RateLimitRecord.reset_at > self._clock()
            )
            result = await session.exec(stmt)
            return result.one_or_none()
