"""
Room inventory adjustments.

``reserve`` and ``release`` each map to a single conditional UPDATE in the
store. Nothing here reads a count, computes a new one and writes it back, and
nothing caches counts between calls: the database row is the only copy, which
keeps the guarantee across processes and not just within one event loop.
"""
from . import errors, schemas
from .store import CatalogStore
import logging

logger = logging.getLogger(__name__)


def _require_positive_count(count) -> int:
    if isinstance(count, bool) or not isinstance(count, int):
        raise errors.invalid_argument("Room count must be an integer", count=repr(count))
    if count <= 0:
        raise errors.invalid_argument("Room count must be positive", count=count)
    return count


class InventoryController:
    def __init__(self, store: CatalogStore):
        self.store = store

    async def reserve(self, hotel_id: str, count: int) -> schemas.HotelRead:
        """
        Takes ``count`` rooms off ``hotel_id`` if at least that many remain.

        Raises INVALID_ARGUMENT for a non-positive count, NOT_FOUND for an
        unknown hotel and INSUFFICIENT_INVENTORY (with the remaining count)
        when too few rooms are left. None of these are retried here.
        """
        count = _require_positive_count(count)
        outcome = await self.store.increment_units(hotel_id, -count, guard_minimum=count)
        if outcome.applied:
            logger.info(f"Reserved {count} rooms at hotel '{hotel_id}', {outcome.units} left")
            return schemas.HotelRead.from_model(outcome.hotel)
        if not outcome.found:
            raise errors.not_found(hotel_id)
        logger.warning(f"Insufficient rooms at hotel '{hotel_id}'. Requested: {count}, Remaining: {outcome.units}")
        raise errors.insufficient_inventory(hotel_id, requested=count, remaining=outcome.units)

    async def release(self, hotel_id: str, count: int) -> schemas.HotelRead:
        """Puts ``count`` rooms back, e.g. after a cancellation."""
        count = _require_positive_count(count)
        outcome = await self.store.increment_units(hotel_id, count)
        if not outcome.applied:
            raise errors.not_found(hotel_id)
        logger.info(f"Released {count} rooms at hotel '{hotel_id}', {outcome.units} left")
        return schemas.HotelRead.from_model(outcome.hotel)
