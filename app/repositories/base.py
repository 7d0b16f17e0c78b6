from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import DuplicateRecordError, GatewayError
from app.core.utils import LoggerMixin


R = TypeVar("R")

# Reads are idempotent and get one extra attempt on a dropped connection.
READ_ATTEMPTS = 2


class BaseRepository(LoggerMixin):
    """
    Shared session handling for repositories.

    Each call opens its own session from the factory, so a repository
    instance can be shared across concurrent requests.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        super().__init__()
        self.session_factory = session_factory

    async def _read(self, op: Callable[[AsyncSession], Awaitable[R]]) -> R:
        for attempt in range(1, READ_ATTEMPTS + 1):
            try:
                async with self.session_factory() as db:
                    return await op(db)
            except (OperationalError, InterfaceError) as e:
                if attempt < READ_ATTEMPTS:
                    self.log_warning(
                        {
                            "event_type": "db_read_retry",
                            "attempt": attempt,
                            "error": str(e),
                        }
                    )
                    continue
                raise GatewayError(f"Database read failed: {e}") from e
            except SQLAlchemyError as e:
                raise GatewayError(f"Database read failed: {e}") from e
        raise GatewayError("Database read failed")

    async def _write(self, op: Callable[[AsyncSession], Awaitable[R]]) -> R:
        async with self.session_factory() as db:
            try:
                result = await op(db)
                await db.commit()
                return result
            except IntegrityError as e:
                await db.rollback()
                raise DuplicateRecordError(str(e.orig)) from e
            except SQLAlchemyError as e:
                await db.rollback()
                raise GatewayError(f"Database write failed: {e}") from e

    async def _add(self, instance: Any) -> Any:
        """Insert ``instance`` and return it with generated columns loaded."""

        async def op(db: AsyncSession):
            db.add(instance)
            await db.flush()
            await db.refresh(instance)
            return instance

        return await self._write(op)
