from typing import List

from sqlalchemy import and_, or_, true
from sqlalchemy.sql.elements import ColumnElement
from . import errors, models, schemas
import logging

logger = logging.getLogger(__name__)

DEFAULT_MIN_AVAILABLE_UNITS = 1


def contains_literal(column, term: str) -> ColumnElement[bool]:
    """Case-insensitive substring match; LIKE wildcards in ``term`` stay literal."""
    return column.icontains(term, autoescape=True)


class FilterCompiler:
    """
    Turns request criteria into one boolean predicate over ``hotels`` plus an
    ordering. Stateless, so one instance can serve every request.
    """

    def compile(self, criteria: schemas.FilterCriteria) -> ColumnElement[bool]:
        Hotel = models.Hotel
        clauses: List[ColumnElement[bool]] = []

        if criteria.city is not None:
            clauses.append(contains_literal(Hotel.city, criteria.city))
        if criteria.country is not None:
            clauses.append(contains_literal(Hotel.country, criteria.country))
        if criteria.name_contains is not None:
            clauses.append(contains_literal(Hotel.name, criteria.name_contains))
        if criteria.min_price is not None:
            clauses.append(Hotel.unit_price >= criteria.min_price)
        if criteria.max_price is not None:
            clauses.append(Hotel.unit_price <= criteria.max_price)
        if criteria.min_rating is not None:
            # NULL ratings never satisfy the comparison, so unrated hotels drop out
            clauses.append(Hotel.rating >= criteria.min_rating)
        if criteria.min_available_units is not None:
            clauses.append(Hotel.available_units >= criteria.min_available_units)

        logger.debug(f"Compiled {len(clauses)} filter clauses from {criteria.model_dump(exclude_none=True)}")
        if not clauses:
            return true()
        return and_(*clauses)

    def compile_search(self, term: str) -> ColumnElement[bool]:
        """Free-text search across name, address and city."""
        if not isinstance(term, str) or not term.strip():
            raise errors.invalid_argument("Search term is required")
        term = term.strip()
        Hotel = models.Hotel
        return or_(
            contains_literal(Hotel.name, term),
            contains_literal(Hotel.address, term),
            contains_literal(Hotel.city, term),
        )

    def availability(self, min_units: int = DEFAULT_MIN_AVAILABLE_UNITS) -> schemas.FilterCriteria:
        if isinstance(min_units, bool) or not isinstance(min_units, int):
            raise errors.invalid_argument("Minimum rooms must be an integer", min_units=repr(min_units))
        if min_units < 0:
            raise errors.invalid_argument("Minimum rooms cannot be negative", min_units=min_units)
        return schemas.FilterCriteria(min_available_units=min_units)

    def order_by(self, order: schemas.SortOrder = schemas.SortOrder.NEWEST) -> List[ColumnElement]:
        Hotel = models.Hotel
        if order is schemas.SortOrder.NEWEST:
            primary = [Hotel.created_at.desc()]
        elif order is schemas.SortOrder.OLDEST:
            primary = [Hotel.created_at.asc()]
        elif order is schemas.SortOrder.PRICE_ASC:
            primary = [Hotel.unit_price.asc(), Hotel.created_at.desc()]
        elif order is schemas.SortOrder.PRICE_DESC:
            primary = [Hotel.unit_price.desc(), Hotel.created_at.desc()]
        elif order is schemas.SortOrder.RATING_DESC:
            primary = [Hotel.rating.desc().nulls_last(), Hotel.created_at.desc()]
        else:
            raise errors.invalid_argument(f"Unknown sort order '{order}'")
        # Tie-breaker keeps the order deterministic
        return primary + [Hotel.id.asc()]
