"""
Tests for catalog filtering, searching and ordering.
"""

import pytest
import pytest_asyncio

from catalog_service.errors import CatalogError, ErrorKind
from catalog_service.filters import FilterCompiler
from catalog_service.schemas import FilterCriteria, SortOrder


@pytest_asyncio.fixture
async def catalog(service, hotel_payload):
    """Four hotels created oldest to newest."""
    created = []
    for overrides in (
        dict(name="Hotel Paris Centrale", location={"city": "Paris", "country": "France"},
             unit_price=180.0, rating=4.5, available_units=5),
        dict(name="Parisia Inn", location={"city": "PARIS Center", "country": "France"},
             unit_price=95.0, rating=None, available_units=0),
        dict(name="Berlin Loft", location={"address": "5 Torstrasse", "city": "Berlin", "country": "Germany"},
             unit_price=120.0, rating=3.9, available_units=2),
        dict(name="Lisbon Sun", location={"address": "8 Rua Augusta", "city": "Lisbon", "country": "Portugal"},
             unit_price=60.0, rating=4.8, available_units=9),
    ):
        created.append(await service.create_hotel(hotel_payload(**overrides)))
    return created


def names(hotels):
    return [h.name for h in hotels]


class TestListHotels:

    async def test_no_criteria_returns_everything_newest_first(self, service, catalog):
        hotels = await service.list_hotels()
        assert names(hotels) == ["Lisbon Sun", "Berlin Loft", "Parisia Inn", "Hotel Paris Centrale"]

    async def test_empty_criteria_object_matches_everything(self, service, catalog):
        hotels = await service.list_hotels(FilterCriteria())
        assert len(hotels) == 4

    async def test_city_is_case_insensitive_substring(self, service, catalog):
        hotels = await service.list_hotels({"city": "paris"})
        assert set(names(hotels)) == {"Hotel Paris Centrale", "Parisia Inn"}

    async def test_country_filter(self, service, catalog):
        hotels = await service.list_hotels({"country": "GERMANY"})
        assert names(hotels) == ["Berlin Loft"]

    async def test_price_bounds_are_inclusive(self, service, catalog):
        hotels = await service.list_hotels({"min_price": 95, "max_price": 180})
        assert set(names(hotels)) == {"Hotel Paris Centrale", "Parisia Inn", "Berlin Loft"}

    async def test_min_price_alone(self, service, catalog):
        hotels = await service.list_hotels({"min_price": 120})
        assert set(names(hotels)) == {"Hotel Paris Centrale", "Berlin Loft"}

    async def test_max_price_alone(self, service, catalog):
        hotels = await service.list_hotels({"max_price": 60})
        assert names(hotels) == ["Lisbon Sun"]

    async def test_min_rating_excludes_unrated_hotels(self, service, catalog):
        hotels = await service.list_hotels({"min_rating": 0})
        assert "Parisia Inn" not in names(hotels)
        assert len(hotels) == 3

    async def test_min_rating_is_inclusive(self, service, catalog):
        hotels = await service.list_hotels({"min_rating": 4.5})
        assert set(names(hotels)) == {"Hotel Paris Centrale", "Lisbon Sun"}

    async def test_criteria_are_combined_with_and(self, service, catalog):
        hotels = await service.list_hotels({"city": "paris", "min_available_units": 1})
        assert names(hotels) == ["Hotel Paris Centrale"]

    async def test_name_contains(self, service, catalog):
        hotels = await service.list_hotels({"name_contains": "LOFT"})
        assert names(hotels) == ["Berlin Loft"]

    async def test_blank_strings_impose_no_constraint(self, service, catalog):
        hotels = await service.list_hotels({"city": "  "})
        assert len(hotels) == 4

    async def test_surrounding_whitespace_is_ignored(self, service, catalog):
        hotels = await service.list_hotels({"city": " paris ", "name_contains": " inn\t"})
        assert names(hotels) == ["Parisia Inn"]

    async def test_min_price_above_max_price_is_invalid(self, service, catalog):
        with pytest.raises(CatalogError) as exc_info:
            await service.list_hotels({"min_price": 200, "max_price": 100})
        assert exc_info.value.kind is ErrorKind.INVALID_ARGUMENT

    async def test_negative_bound_is_invalid(self, service, catalog):
        with pytest.raises(CatalogError) as exc_info:
            await service.list_hotels({"min_available_units": -1})
        assert exc_info.value.kind is ErrorKind.INVALID_ARGUMENT
        assert "min_available_units" in exc_info.value.details["fields"]


class TestOrdering:

    async def test_oldest_first(self, service, catalog):
        hotels = await service.list_hotels(order="oldest")
        assert names(hotels)[0] == "Hotel Paris Centrale"

    async def test_price_ascending(self, service, catalog):
        hotels = await service.list_hotels(order=SortOrder.PRICE_ASC)
        assert [h.unit_price for h in hotels] == [60.0, 95.0, 120.0, 180.0]

    async def test_rating_descending_puts_unrated_last(self, service, catalog):
        hotels = await service.list_hotels(order="rating_desc")
        assert names(hotels) == ["Lisbon Sun", "Hotel Paris Centrale", "Berlin Loft", "Parisia Inn"]

    async def test_unknown_order_is_invalid(self, service, catalog):
        with pytest.raises(CatalogError) as exc_info:
            await service.list_hotels(order="cheapest")
        assert exc_info.value.kind is ErrorKind.INVALID_ARGUMENT


class TestAvailability:

    async def test_default_requires_one_room(self, service, catalog):
        hotels = await service.list_available()
        assert "Parisia Inn" not in names(hotels)
        assert len(hotels) == 3

    async def test_explicit_zero_includes_fully_booked(self, service, catalog):
        hotels = await service.list_available(0)
        assert "Parisia Inn" in names(hotels)
        assert len(hotels) == 4

    async def test_minimum_is_inclusive(self, service, catalog):
        hotels = await service.list_available(5)
        assert set(names(hotels)) == {"Hotel Paris Centrale", "Lisbon Sun"}

    async def test_negative_minimum_is_invalid(self, service, catalog):
        with pytest.raises(CatalogError) as exc_info:
            await service.list_available(-1)
        assert exc_info.value.kind is ErrorKind.INVALID_ARGUMENT

    async def test_reservation_moves_hotel_out_of_availability(self, service, catalog):
        berlin = catalog[2]
        await service.reserve_units(berlin.id, 2)
        hotels = await service.list_available()
        assert "Berlin Loft" not in names(hotels)


class TestSearch:

    async def test_search_matches_name_address_and_city(self, service, catalog):
        assert names(await service.search_hotels("lisbon")) == ["Lisbon Sun"]
        assert names(await service.search_hotels("torstrasse")) == ["Berlin Loft"]
        assert set(names(await service.search_hotels("PARIS"))) == {"Hotel Paris Centrale", "Parisia Inn"}

    async def test_percent_is_literal(self, service, hotel_payload):
        await service.create_hotel(hotel_payload(name="Hotel 100% Fun"))
        await service.create_hotel(hotel_payload(name="Hotel 1000 Fun"))
        assert names(await service.search_hotels("100%")) == ["Hotel 100% Fun"]

    async def test_underscore_is_literal(self, service, hotel_payload):
        await service.create_hotel(hotel_payload(name="Inn_Place"))
        await service.create_hotel(hotel_payload(name="Inn Place"))
        assert names(await service.search_hotels("inn_")) == ["Inn_Place"]

    async def test_parenthesis_is_literal(self, service, hotel_payload):
        await service.create_hotel(hotel_payload(name="Inn (Old Town)"))
        await service.create_hotel(hotel_payload(name="Inn Old Town"))
        assert names(await service.search_hotels("(old")) == ["Inn (Old Town)"]

    async def test_backslash_and_regex_characters_are_literal(self, service, hotel_payload):
        await service.create_hotel(hotel_payload(name="Hotel A.*B"))
        await service.create_hotel(hotel_payload(name="Hotel AxxB"))
        assert names(await service.search_hotels(".*")) == ["Hotel A.*B"]
        assert await service.search_hotels("\\") == []

    async def test_blank_search_term_is_invalid(self, service):
        with pytest.raises(CatalogError) as exc_info:
            await service.search_hotels("   ")
        assert exc_info.value.kind is ErrorKind.INVALID_ARGUMENT


class TestFilterCompiler:

    def test_empty_criteria_compiles_to_true(self):
        predicate = FilterCompiler().compile(FilterCriteria())
        assert str(predicate) == "true"

    def test_every_ordering_ends_with_id_tie_breaker(self):
        compiler = FilterCompiler()
        for order in SortOrder:
            clauses = compiler.order_by(order)
            assert "hotels.id" in str(clauses[-1])
