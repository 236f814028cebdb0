from fastapi import FastAPI, APIRouter, Body, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Optional
import logging
from contextlib import asynccontextmanager

# Use relative imports within the service package
from . import config, errors, schemas
from .database import create_engine, create_tables
from .service import CatalogService, build_catalog_service

# Configure logging basic setup
logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')
logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    errors.ErrorKind.INVALID_ARGUMENT: status.HTTP_400_BAD_REQUEST,
    errors.ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    errors.ErrorKind.INSUFFICIENT_INVENTORY: status.HTTP_409_CONFLICT,
    errors.ErrorKind.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    errors.ErrorKind.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def get_catalog_service(request: Request) -> CatalogService:
    """FastAPI dependency to inject the catalog service built at startup."""
    return request.app.state.catalog_service


def _one(hotel: schemas.HotelRead, message: str | None = None) -> dict:
    body = {"success": True, "data": hotel.model_dump(mode="json")}
    if message:
        body["message"] = message
    return body


def _many(hotels: list[schemas.HotelRead]) -> dict:
    return {"success": True, "count": len(hotels), "data": [h.model_dump(mode="json") for h in hotels]}


def _requested_count(payload: Any):
    # Count validation belongs to the inventory controller
    return payload.get("count") if isinstance(payload, dict) else None


router = APIRouter(prefix="/api/hotels")


@router.get("", tags=["Hotels"], summary="List Hotels")
async def list_hotels(
    city: Optional[str] = None,
    country: Optional[str] = None,
    min_price: Optional[str] = None,
    max_price: Optional[str] = None,
    min_rating: Optional[str] = None,
    min_available_units: Optional[str] = None,
    name_contains: Optional[str] = None,
    order: Optional[str] = None,
    service: CatalogService = Depends(get_catalog_service),
):
    """Lists hotels matching every supplied filter, newest first by default."""
    criteria = {
        "city": city,
        "country": country,
        "min_price": min_price,
        "max_price": max_price,
        "min_rating": min_rating,
        "min_available_units": min_available_units,
        "name_contains": name_contains,
    }
    criteria = {key: value for key, value in criteria.items() if value is not None}
    return _many(await service.list_hotels(criteria, order))


@router.get("/search/{term}", tags=["Hotels"], summary="Search Hotels")
async def search_hotels(term: str, order: Optional[str] = None, service: CatalogService = Depends(get_catalog_service)):
    """Literal, case-insensitive search over hotel name, address and city."""
    return _many(await service.search_hotels(term, order))


@router.get("/available", tags=["Hotels"], summary="List Available Hotels")
async def list_available_hotels(
    min_rooms: Optional[str] = Query(None, description="Minimum available rooms, defaults to 1"),
    order: Optional[str] = None,
    service: CatalogService = Depends(get_catalog_service),
):
    if min_rooms is None:
        return _many(await service.list_available(order=order))
    try:
        min_units = int(min_rooms)
    except ValueError:
        raise errors.invalid_argument("Minimum rooms must be an integer", min_units=min_rooms)
    return _many(await service.list_available(min_units, order))


@router.get("/{hotel_id}", tags=["Hotels"], summary="Get Hotel Details")
async def read_hotel(hotel_id: str, service: CatalogService = Depends(get_catalog_service)):
    return _one(await service.get_hotel(hotel_id))


@router.post("", status_code=status.HTTP_201_CREATED, tags=["Management"], summary="Create Hotel")
async def create_hotel(payload: Any = Body(...), service: CatalogService = Depends(get_catalog_service)):
    """Creates a hotel; every invalid field is reported in one response."""
    return _one(await service.create_hotel(payload), "Hotel created successfully")


@router.put("/{hotel_id}", tags=["Management"], summary="Update Hotel")
async def update_hotel(hotel_id: str, payload: Any = Body(...), service: CatalogService = Depends(get_catalog_service)):
    """Partially updates hotel fields. Room counts are not accepted here."""
    return _one(await service.update_hotel(hotel_id, payload), "Hotel updated successfully")


@router.put("/{hotel_id}/rooms", tags=["Management"], summary="Correct Available Rooms")
async def correct_available_rooms(hotel_id: str, payload: Any = Body(...), service: CatalogService = Depends(get_catalog_service)):
    """Administrative override of the available room count."""
    units = payload.get("available_units") if isinstance(payload, dict) else None
    return _one(await service.correct_available_units(hotel_id, units), "Available rooms corrected")


@router.patch("/{hotel_id}/rooms/reserve", tags=["Inventory"], summary="Reserve Rooms")
async def reserve_rooms(hotel_id: str, payload: Any = Body(...), service: CatalogService = Depends(get_catalog_service)):
    return _one(await service.reserve_units(hotel_id, _requested_count(payload)), "Rooms reserved")


@router.patch("/{hotel_id}/rooms/release", tags=["Inventory"], summary="Release Rooms")
async def release_rooms(hotel_id: str, payload: Any = Body(...), service: CatalogService = Depends(get_catalog_service)):
    return _one(await service.release_units(hotel_id, _requested_count(payload)), "Rooms released")


@router.delete("/{hotel_id}", tags=["Management"], summary="Delete Hotel")
async def delete_hotel(hotel_id: str, service: CatalogService = Depends(get_catalog_service)):
    return _one(await service.delete_hotel(hotel_id), "Hotel deleted successfully")


async def catalog_error_handler(request: Request, exc: errors.CatalogError):
    status_code = STATUS_BY_KIND[exc.kind]
    logger.info(f"{request.method} {request.url.path} failed with {exc.kind.value}: {exc.message}")
    headers = {"Retry-After": "1"} if exc.retryable else None
    return JSONResponse(status_code=status_code, content={"success": False, "error": exc.to_dict()}, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Unparseable or missing bodies get the same 400 envelope as core validation."""
    return await catalog_error_handler(request, errors.validation_failed(schemas.field_errors(exc)))


async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unexpected error while handling {request.method} {request.url.path}") # Log full traceback
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": {"kind": "internal", "message": "An unexpected error occurred"}},
    )


def create_app(database_url: str | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Hotel Catalog Service starting up...")
        engine = create_engine(database_url)
        try:
            await create_tables(engine)
            app.state.catalog_service = build_catalog_service(engine)
            yield
            logger.info("Hotel Catalog Service shutting down...")
        finally:
            await engine.dispose() # Clean up engine resources

    app = FastAPI(
        title="Hotel Catalog Service",
        description="Manages hotels, catalog searches and room availability.",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.get("/health", tags=["Monitoring"], summary="Health Check")
    async def health_check():
        return {"status": "healthy"}

    app.include_router(router)
    app.add_exception_handler(errors.CatalogError, catalog_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("catalog_service.main:app", host=config.APP_HOST, port=config.APP_PORT)
