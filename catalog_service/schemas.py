from pydantic import BaseModel, ConfigDict, ValidationError, conint, confloat, constr, field_validator, model_validator
from typing import Dict, List, Optional
import datetime
import enum
import uuid

from . import errors

Name = constr(strip_whitespace=True, min_length=2, max_length=255)
Address = constr(strip_whitespace=True, min_length=5, max_length=255)
Place = constr(strip_whitespace=True, min_length=1, max_length=128) # city / country
Rating = confloat(ge=0, le=5, allow_inf_nan=False)
Price = confloat(ge=0, allow_inf_nan=False)
# Request bodies are JSON, so numbers must arrive as numbers
StrictRating = confloat(strict=True, ge=0, le=5, allow_inf_nan=False)
StrictPrice = confloat(strict=True, ge=0, allow_inf_nan=False)
UnitCount = conint(strict=True, ge=0)


class Location(BaseModel):
    model_config = ConfigDict(extra="forbid")

    address: Address
    city: Place
    country: Place


class LocationUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    address: Optional[Address] = None
    city: Optional[Place] = None
    country: Optional[Place] = None

    @field_validator("address", "city", "country")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class HotelCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Name
    location: Location
    rating: Optional[StrictRating] = None
    description: Optional[str] = None
    unit_price: StrictPrice
    available_units: UnitCount # Allows 0
    image_ref: Optional[str] = None # Opaque media reference, never inspected

    def to_columns(self) -> dict:
        values = self.model_dump(exclude={"location"})
        values.update(self.location.model_dump())
        return values


class HotelUpdate(BaseModel):
    """
    Partial field update. ``available_units`` is deliberately absent: it only
    moves through reservations or the administrative correction path.
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[Name] = None
    location: Optional[LocationUpdate] = None
    rating: Optional[StrictRating] = None
    description: Optional[str] = None
    unit_price: Optional[StrictPrice] = None
    image_ref: Optional[str] = None

    @field_validator("name", "location", "unit_price")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value

    def to_columns(self) -> dict:
        values = self.model_dump(exclude_unset=True, exclude={"location"})
        if self.location is not None:
            values.update(self.location.model_dump(exclude_unset=True))
        return values


class HotelRead(BaseModel):
    id: str
    name: str
    location: Location
    rating: Optional[float] = None
    description: Optional[str] = None
    unit_price: float
    available_units: int
    image_ref: Optional[str] = None
    created_at: datetime.datetime
    updated_at: datetime.datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def as_utc(cls, value: datetime.datetime) -> datetime.datetime:
        # SQLite hands back naive values; they were written as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=datetime.timezone.utc)
        return value.astimezone(datetime.timezone.utc)

    @classmethod
    def from_model(cls, hotel) -> "HotelRead":
        return cls(
            id=hotel.id,
            name=hotel.name,
            location=Location.model_construct(address=hotel.address, city=hotel.city, country=hotel.country),
            rating=hotel.rating,
            description=hotel.description,
            unit_price=hotel.unit_price,
            available_units=hotel.available_units,
            image_ref=hotel.image_ref,
            created_at=hotel.created_at,
            updated_at=hotel.updated_at,
        )


class SortOrder(str, enum.Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    RATING_DESC = "rating_desc"


class FilterCriteria(BaseModel):
    """Request-scoped catalog filter. Absent fields impose no constraint."""
    model_config = ConfigDict(extra="forbid")

    city: Optional[str] = None
    country: Optional[str] = None
    min_price: Optional[Price] = None
    max_price: Optional[Price] = None
    min_rating: Optional[Rating] = None
    min_available_units: Optional[conint(ge=0)] = None
    name_contains: Optional[str] = None

    @field_validator("city", "country", "name_contains")
    @classmethod
    def blank_is_absent(cls, value):
        if value is None:
            return None
        return value.strip() or None

    @model_validator(mode="after")
    def price_range_ordered(self):
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price must not exceed max_price")
        return self


def field_errors(exc) -> Dict[str, List[str]]:
    """Groups every pydantic error message under its dotted field path."""
    fields: Dict[str, List[str]] = {}
    for err in exc.errors():
        path = ".".join(str(part) for part in err["loc"]) or "__root__"
        fields.setdefault(path, []).append(err["msg"])
    return fields


def parse_hotel_id(value) -> str:
    """Returns the canonical form of a hotel id or raises INVALID_ARGUMENT."""
    if not isinstance(value, str):
        raise errors.invalid_argument("Invalid hotel ID format", hotel_id=repr(value))
    try:
        return str(uuid.UUID(value))
    except ValueError:
        raise errors.invalid_argument("Invalid hotel ID format", hotel_id=value)


def parse_filter_criteria(raw) -> FilterCriteria:
    if raw is None:
        return FilterCriteria()
    if isinstance(raw, FilterCriteria):
        return raw
    try:
        return FilterCriteria.model_validate(raw)
    except ValidationError as e:
        raise errors.invalid_argument("Invalid filter criteria", fields=field_errors(e))


def parse_sort_order(raw) -> SortOrder:
    if raw is None:
        return SortOrder.NEWEST
    try:
        return SortOrder(raw)
    except ValueError:
        raise errors.invalid_argument(
            f"Unknown sort order '{raw}'", allowed=[order.value for order in SortOrder]
        )
