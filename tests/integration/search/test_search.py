"""
Search against the seeded SQLite catalog.
"""

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError

from catalog.search import (
    CatalogStore,
    InvalidArgumentError,
    PredicateComposer,
    ProductSearchService,
    StoreUnavailableError,
    bound_parameters,
    parse_filters,
)

LIVE_IDS = {
    "prod-mouse",
    "prod-mouse-pro",
    "prod-keyboard",
    "prod-stand",
    "prod-cookbook",
    "prod-monitor",
    "prod-webcam",
}


def ids(products):
    return [product.id for product in products]


class TestFiltering:
    def test_no_filters_returns_every_live_product(self, service):
        result = service.search({})

        assert result.total == 7
        assert set(ids(result.products)) == LIVE_IDS
        assert result.facets is None

    def test_category_and_min_price(self, service):
        result = service.search({"categoryId": "cat-electronics", "minPrice": 120})

        assert set(ids(result.products)) == {"prod-mouse-pro", "prod-keyboard", "prod-stand"}
        assert result.total == 3

    def test_min_price_excludes_cheaper_product(self, add_products, empty_engine, settings):
        add_products(
            dict(id="a", sku="A", name="Product A", price=100, category="cat-a"),
            dict(id="b", sku="B", name="Product B", price=150, category="cat-a"),
        )
        service = ProductSearchService(CatalogStore(empty_engine), settings=settings)

        result = service.search({"categoryId": "cat-a", "minPrice": 120})

        assert ids(result.products) == ["b"]
        assert result.total == 1

    def test_brand_ids_and_price_range(self, service):
        result = service.search(
            {"brandIds": ["brand-acme", "brand-bolt"], "minPrice": 40, "maxPrice": 130}
        )

        assert set(ids(result.products)) == {"prod-keyboard", "prod-cookbook", "prod-webcam"}

    def test_boolean_flags(self, service):
        assert ids(service.search({"isFeatured": True}).products) == ["prod-mouse-pro"]
        assert ids(service.search({"isBestseller": True}).products) == ["prod-cookbook"]

    def test_status_and_visibility(self, service):
        assert ids(service.search({"status": "draft"}).products) == ["prod-monitor"]
        assert ids(service.search({"visibility": "hidden"}).products) == ["prod-webcam"]

    def test_text_query_matches_description(self, service):
        result = service.search({"query": "MECHANICAL"})
        assert ids(result.products) == ["prod-keyboard"]

    def test_text_query_treats_wildcards_literally(self, service):
        assert service.search({"query": "%"}).total == 0

    def test_soft_deleted_products_never_match(self, service):
        assert service.search({"query": "Headphones"}).total == 0
        assert service.search({"attributes": [{"attributeCode": "color", "value": "black"}]}).total == 5

    def test_no_match_is_an_empty_page(self, service):
        result = service.search({"query": "nothing like this"})

        assert result.products == []
        assert result.total == 0
        assert result.total_pages == 0


class TestAttributeFilters:
    def test_eq_by_code(self, service):
        result = service.search(
            {"status": "active", "attributes": [{"attributeCode": "color", "value": "white"}]}
        )
        assert ids(result.products) == ["prod-stand"]

    def test_eq_by_id(self, service):
        result = service.search({"attributes": [{"attributeId": "attr-memory", "value": "16"}]})
        assert ids(result.products) == ["prod-keyboard"]

    def test_numeric_comparison(self, service):
        result = service.search(
            {"attributes": [{"attributeCode": "memory_gb", "operator": "gte", "minValue": 10}]}
        )
        assert ids(result.products) == ["prod-keyboard"]

    def test_between(self, service):
        result = service.search(
            {
                "sortBy": "name",
                "sortOrder": "asc",
                "attributes": [
                    {"attributeCode": "memory_gb", "operator": "between", "minValue": 4, "maxValue": 8}
                ],
            }
        )
        assert ids(result.products) == ["prod-webcam", "prod-mouse-pro"]

    def test_between_with_one_bound_is_ignored(self, service):
        filtered = service.search(
            {
                "categoryId": "cat-electronics",
                "attributes": [{"attributeCode": "memory_gb", "operator": "between", "minValue": 4}],
            }
        )
        unfiltered = service.search({"categoryId": "cat-electronics"})

        assert ids(filtered.products) == ids(unfiltered.products)
        assert filtered.total == unfiltered.total

    def test_skipped_attribute_filter_matches_an_empty_request(self, service):
        skipped = service.search(
            {"attributes": [{"attributeCode": "memory_gb", "operator": "between", "minValue": 4}]}
        )
        absent = service.search({})

        assert ids(skipped.products) == ids(absent.products)
        assert skipped.total == absent.total
        assert skipped.facets is None
        assert skipped.facets == absent.facets

    def test_nin(self, service):
        result = service.search(
            {
                "status": "active",
                "visibility": "visible",
                "attributes": [{"attributeCode": "color", "operator": "nin", "values": ["black", "grey"]}],
            }
        )
        assert ids(result.products) == ["prod-stand"]

    def test_like(self, service):
        result = service.search(
            {"attributes": [{"attributeCode": "material", "operator": "like", "value": "PLAST"}]}
        )
        assert ids(result.products) == ["prod-mouse"]

    def test_multi_valued_attribute_does_not_duplicate_rows(self, service):
        result = service.search(
            {"attributes": [{"attributeCode": "color", "operator": "in", "values": ["black", "grey"]}]}
        )

        assert len(ids(result.products)) == len(set(ids(result.products)))
        assert result.total == 5

    def test_filters_on_several_attributes(self, service):
        result = service.search(
            {
                "attributes": [
                    {"attributeCode": "color", "value": "black"},
                    {"attributeId": "attr-memory", "operator": "gte", "minValue": 1},
                ]
            }
        )

        assert set(ids(result.products)) == {"prod-mouse-pro", "prod-keyboard", "prod-webcam"}
        assert result.total == 3


class TestSortingAndPaging:
    def test_relevance_puts_exact_name_first(self, service):
        result = service.search({"query": "wireless mouse", "sortBy": "relevance"})

        assert ids(result.products) == ["prod-mouse", "prod-mouse-pro", "prod-keyboard"]

    def test_price_ascending(self, service):
        result = service.search({"sortBy": "price", "sortOrder": "asc", "limit": 3})
        assert ids(result.products) == ["prod-monitor", "prod-mouse", "prod-cookbook"]

    @pytest.mark.parametrize("order", ["asc", "desc"])
    def test_rating_nulls_last(self, service, order):
        result = service.search({"sortBy": "rating", "sortOrder": order, "limit": 100})
        rated = [product.average_rating for product in result.products]

        first_null = rated.index(None)
        assert all(rating is None for rating in rated[first_null:])

    def test_popularity(self, service):
        result = service.search({"sortBy": "popularity", "limit": 2})
        assert ids(result.products) == ["prod-mouse-pro", "prod-cookbook"]

    def test_default_is_newest_first(self, service):
        result = service.search({"limit": 3})
        assert ids(result.products) == ["prod-mouse-pro", "prod-stand", "prod-mouse"]

    def test_pages_cover_every_product_once(self, service):
        seen = []
        first = service.search({"limit": 2})
        for page in range(1, first.total_pages + 1):
            seen.extend(ids(service.search({"limit": 2, "page": page}).products))

        assert first.total_pages == 4
        assert len(seen) == 7
        assert set(seen) == LIVE_IDS

    def test_offset_takes_precedence(self, service):
        by_offset = service.search({"limit": 2, "offset": 2, "page": 4})
        by_page = service.search({"limit": 2, "page": 2})

        assert by_offset.page == 2
        assert ids(by_offset.products) == ids(by_page.products)


class TestErrors:
    @pytest.mark.parametrize(
        "raw", [{"limit": -1}, {"limit": 0}, {"limit": 1000}, {"sortBy": "bogus"}]
    )
    def test_malformed_requests(self, service, raw):
        with pytest.raises(InvalidArgumentError):
            service.search(raw)

    def test_store_failure_is_surfaced(self, settings):
        # Empty in-memory database: the catalog tables do not exist
        broken = ProductSearchService(CatalogStore(create_engine("sqlite://")), settings=settings)

        with pytest.raises(StoreUnavailableError) as exc_info:
            broken.search({})

        assert isinstance(exc_info.value.__cause__, SQLAlchemyError)


class TestBoundParameters:
    def test_driver_receives_the_compiled_values(self, catalog_engine, store):
        fragments = PredicateComposer().compose(
            parse_filters({"query": "mouse", "categoryIds": ["cat-electronics", "cat-books"]})
        )
        statement = fragments.count_statement()
        sent = []

        def capture(conn, cursor, sql, parameters, context, executemany):
            sent.append(tuple(parameters))

        event.listen(catalog_engine, "before_cursor_execute", capture)
        try:
            store.scalar(statement)
        finally:
            event.remove(catalog_engine, "before_cursor_execute", capture)

        assert sent == [bound_parameters(statement, catalog_engine.dialect)]
        assert sent[0] == ("mouse",) * 5 + ("cat-electronics", "cat-books")
