from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, List, Optional, Sequence

from sqlalchemy import case, delete, literal, select, update
from sqlalchemy.exc import InterfaceError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql.elements import ColumnElement
from . import errors, models
import logging

logger = logging.getLogger(__name__)


def _touched(now):
    """
    ``updated_at`` value for an UPDATE. ``now`` is taken before the row lock,
    so a writer that commits later may carry an older stamp; the row keeps the
    newer of the two and never moves backwards.
    """
    stamp = literal(now, models.Hotel.updated_at.type)
    return case((models.Hotel.updated_at > stamp, models.Hotel.updated_at), else_=stamp)


@dataclass(frozen=True)
class UnitsUpdate:
    """Outcome of a guarded ``available_units`` increment."""
    applied: bool
    hotel: Optional[models.Hotel]
    # Post-value when applied, value observed at the failed check otherwise,
    # None when no hotel has the id
    units: Optional[int]

    @property
    def found(self) -> bool:
        return self.units is not None


class CatalogStore:
    """
    Durable hotel storage. Every method runs in its own transaction, so a
    cancelled call is either fully committed or fully rolled back.
    """

    def __init__(self, sessions: async_sessionmaker[AsyncSession]):
        self._sessions = sessions

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._sessions.begin() as session:
                yield session
        except (OperationalError, InterfaceError, PoolTimeoutError) as e:
            logger.error(f"Catalog store failure, transaction rolled back: {e}")
            raise errors.store_unavailable(type(e).__name__) from e

    async def get(self, hotel_id: str) -> models.Hotel | None:
        async with self._transaction() as session:
            return await session.get(models.Hotel, hotel_id)

    async def scan(self, predicate: ColumnElement[bool], order_by: Sequence[ColumnElement] = ()) -> List[models.Hotel]:
        stmt = select(models.Hotel).where(predicate).order_by(*order_by)
        async with self._transaction() as session:
            result = await session.execute(stmt)
            hotels = list(result.scalars().all())
        logger.debug(f"Scan matched {len(hotels)} hotels")
        return hotels

    async def insert(self, values: dict) -> models.Hotel:
        now = models.utcnow()
        hotel = models.Hotel(id=models.new_hotel_id(), created_at=now, updated_at=now, **values)
        async with self._transaction() as session:
            session.add(hotel)
        logger.info(f"Inserted hotel '{hotel.id}' with {hotel.available_units} available units")
        return hotel

    async def update_fields(self, hotel_id: str, values: dict) -> models.Hotel | None:
        """Plain field update. An empty ``values`` is a no-op read."""
        if not values:
            return await self.get(hotel_id)
        stmt = (
            update(models.Hotel)
            .where(models.Hotel.id == hotel_id)
            .values(**values, updated_at=_touched(models.utcnow()))
            .returning(models.Hotel)
        )
        async with self._transaction() as session:
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def increment_units(self, hotel_id: str, delta: int, guard_minimum: int | None = None) -> UnitsUpdate:
        """
        Adds ``delta`` to ``available_units`` in one conditional UPDATE.

        With ``guard_minimum`` set, the row only changes while its current
        value is at least ``guard_minimum``; the comparison and the write are
        the same statement, so concurrent callers cannot both pass the check
        on a stale value.
        """
        stmt = update(models.Hotel).where(models.Hotel.id == hotel_id)
        if guard_minimum is not None:
            stmt = stmt.where(models.Hotel.available_units >= guard_minimum)
        stmt = stmt.values(
            available_units=models.Hotel.available_units + delta,
            updated_at=_touched(models.utcnow()),
        ).returning(models.Hotel)

        async with self._transaction() as session:
            hotel = (await session.execute(stmt)).scalar_one_or_none()
            if hotel is not None:
                return UnitsUpdate(applied=True, hotel=hotel, units=hotel.available_units)
            units = await session.scalar(
                select(models.Hotel.available_units).where(models.Hotel.id == hotel_id)
            )
        return UnitsUpdate(applied=False, hotel=None, units=units)

    async def delete(self, hotel_id: str) -> models.Hotel | None:
        stmt = delete(models.Hotel).where(models.Hotel.id == hotel_id).returning(models.Hotel)
        async with self._transaction() as session:
            hotel = (await session.execute(stmt)).scalar_one_or_none()
        if hotel is not None:
            logger.info(f"Deleted hotel '{hotel_id}'")
        return hotel
