from pydantic import ValidationError
from typing import Dict, List

from . import errors, schemas
from .database import create_session_factory
from .filters import DEFAULT_MIN_AVAILABLE_UNITS, FilterCompiler
from .inventory import InventoryController
from .store import CatalogStore
import logging

logger = logging.getLogger(__name__)

UNITS_FIELD = "available_units"


def _validate(model, payload, rejected: Dict[str, List[str]] | None = None):
    """Validates ``payload`` and reports every violated field in one error."""
    fields: Dict[str, List[str]] = dict(rejected or {})
    if isinstance(payload, model):
        if fields:
            raise errors.validation_failed(fields)
        return payload
    if not isinstance(payload, dict):
        raise errors.validation_failed({"__root__": ["Payload must be a JSON object"]})
    try:
        validated = model.model_validate(payload)
    except ValidationError as e:
        for path, messages in schemas.field_errors(e).items():
            fields.setdefault(path, []).extend(messages)
        validated = None
    if fields:
        raise errors.validation_failed(fields)
    return validated


class CatalogService:
    """
    Entry point for everything the HTTP layer can do to the catalog. Reads go
    through the filter compiler; room counts only change through the
    inventory controller or ``correct_available_units``.
    """

    def __init__(self, store: CatalogStore, filters: FilterCompiler, inventory: InventoryController):
        self.store = store
        self.filters = filters
        self.inventory = inventory

    async def create_hotel(self, payload) -> schemas.HotelRead:
        data = _validate(schemas.HotelCreate, payload)
        hotel = await self.store.insert(data.to_columns())
        logger.info(f"Created hotel '{hotel.id}' ({hotel.name})")
        return schemas.HotelRead.from_model(hotel)

    async def get_hotel(self, hotel_id: str) -> schemas.HotelRead:
        hotel_id = schemas.parse_hotel_id(hotel_id)
        hotel = await self.store.get(hotel_id)
        if hotel is None:
            logger.warning(f"Hotel requested but not found: {hotel_id}")
            raise errors.not_found(hotel_id)
        return schemas.HotelRead.from_model(hotel)

    async def list_hotels(self, criteria=None, order=None) -> List[schemas.HotelRead]:
        criteria = schemas.parse_filter_criteria(criteria)
        order = schemas.parse_sort_order(order)
        hotels = await self.store.scan(self.filters.compile(criteria), self.filters.order_by(order))
        return [schemas.HotelRead.from_model(h) for h in hotels]

    async def search_hotels(self, term: str, order=None) -> List[schemas.HotelRead]:
        predicate = self.filters.compile_search(term)
        order = schemas.parse_sort_order(order)
        hotels = await self.store.scan(predicate, self.filters.order_by(order))
        logger.info(f"Search for '{term}' matched {len(hotels)} hotels")
        return [schemas.HotelRead.from_model(h) for h in hotels]

    async def list_available(self, min_units: int = DEFAULT_MIN_AVAILABLE_UNITS, order=None) -> List[schemas.HotelRead]:
        return await self.list_hotels(self.filters.availability(min_units), order)

    async def update_hotel(self, hotel_id: str, payload) -> schemas.HotelRead:
        hotel_id = schemas.parse_hotel_id(hotel_id)
        rejected = {}
        if isinstance(payload, dict) and UNITS_FIELD in payload:
            payload = {k: v for k, v in payload.items() if k != UNITS_FIELD}
            rejected[UNITS_FIELD] = [
                "Available rooms change only through reservations or the room correction path"
            ]
        data = _validate(schemas.HotelUpdate, payload, rejected)
        hotel = await self.store.update_fields(hotel_id, data.to_columns())
        if hotel is None:
            raise errors.not_found(hotel_id)
        logger.info(f"Updated hotel '{hotel_id}' fields: {sorted(data.model_fields_set)}")
        return schemas.HotelRead.from_model(hotel)

    async def correct_available_units(self, hotel_id: str, units: int) -> schemas.HotelRead:
        """
        Administrative override that overwrites the room count outright.
        Booking flows must use ``reserve_units`` / ``release_units`` instead;
        an overwrite racing with reservations wins or loses as a whole.
        """
        hotel_id = schemas.parse_hotel_id(hotel_id)
        if isinstance(units, bool) or not isinstance(units, int) or units < 0:
            raise errors.invalid_argument("Available rooms must be a non-negative integer", units=repr(units))
        hotel = await self.store.update_fields(hotel_id, {UNITS_FIELD: units})
        if hotel is None:
            raise errors.not_found(hotel_id)
        logger.warning(f"Room count of hotel '{hotel_id}' corrected to {units}")
        return schemas.HotelRead.from_model(hotel)

    async def delete_hotel(self, hotel_id: str) -> schemas.HotelRead:
        hotel_id = schemas.parse_hotel_id(hotel_id)
        hotel = await self.store.delete(hotel_id)
        if hotel is None:
            logger.warning(f"Attempted to delete non-existent hotel '{hotel_id}'")
            raise errors.not_found(hotel_id)
        return schemas.HotelRead.from_model(hotel)

    async def reserve_units(self, hotel_id: str, count: int) -> schemas.HotelRead:
        return await self.inventory.reserve(schemas.parse_hotel_id(hotel_id), count)

    async def release_units(self, hotel_id: str, count: int) -> schemas.HotelRead:
        return await self.inventory.release(schemas.parse_hotel_id(hotel_id), count)


def build_catalog_service(engine) -> CatalogService:
    """Wires store, filter compiler and inventory controller around ``engine``."""
    store = CatalogStore(create_session_factory(engine))
    return CatalogService(store=store, filters=FilterCompiler(), inventory=InventoryController(store))
