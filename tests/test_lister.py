import pytest

from api_tool_catalog.catalog.lister import EndpointCatalog, determine_category, list_endpoints
from api_tool_catalog.errors import CatalogValidationError
from conftest import make_descriptor


class TestDetermineCategory:
    def test_first_tag_lowercased(self):
        assert determine_category(make_descriptor("a", path="/pages", tags=["Pages", "Other"])) == "pages"

    def test_segment_lookup(self):
        assert determine_category(make_descriptor("a", path="/assets/{id}")) == "media"

    def test_unmapped_segment_used_as_is(self):
        assert determine_category(make_descriptor("a", path="/Reports/daily")) == "reports"

    def test_root_path_is_general(self):
        assert determine_category(make_descriptor("a", path="/")) == "general"


class TestEndpointCatalogList:
    def test_ordering_by_method_then_path(self, cms_store):
        listing = EndpointCatalog.from_store(cms_store).list()
        flat = [(e["method"], e["path"]) for entries in listing["endpoints"].values() for e in entries]
        assert flat == [
            ("GET", "/pages"),
            ("GET", "/pages/{id}"),
            ("POST", "/pages"),
            ("PUT", "/users/{userId}/roles"),
            ("DELETE", "/pages/{id}"),
        ]
        assert listing["categories"] == ["pages", "user-management", "content"]
        assert listing["total"] == 5

    def test_ordering_is_deterministic(self, cms_store):
        catalog = EndpointCatalog.from_store(cms_store)
        assert catalog.list(search_term="page") == catalog.list(search_term="page")

    def test_method_filter_case_normalized(self, cms_store):
        listing = EndpointCatalog.from_store(cms_store).list(method_filter="get")
        assert listing["total"] == 2

    def test_category_filter_substring(self, cms_store):
        listing = EndpointCatalog.from_store(cms_store).list(category_filter="PAG")
        assert listing["total"] == 3

    def test_search_matches_name_description_or_path(self, cms_store):
        catalog = EndpointCatalog.from_store(cms_store)
        assert catalog.list(search_term="roles")["total"] == 1
        assert catalog.list(search_term="Create a")["total"] == 1
        assert catalog.list(search_term="delete_")["total"] == 1

    def test_compact_entry(self, cms_store):
        entry = EndpointCatalog.from_store(cms_store).list(method_filter="PUT")["endpoints"]["user-management"][0]
        assert entry == {
            "name": "setUserRoles",
            "method": "PUT",
            "path": "/users/{userId}/roles",
            "description": "Set user roles",
        }

    def test_detailed_entry(self, cms_store):
        listing = EndpointCatalog.from_store(cms_store).list(method_filter="PUT", include_details=True)
        entry = listing["endpoints"]["user-management"][0]
        assert entry["tags"] == []
        assert entry["has_path_params"] is True
        assert entry["requires_body"] is True
        assert entry["parameter_count"] == 2

    def test_invalid_method_rejected(self, cms_store):
        with pytest.raises(CatalogValidationError):
            EndpointCatalog.from_store(cms_store).list(method_filter="HEAD")

    def test_short_search_rejected(self, cms_store):
        with pytest.raises(CatalogValidationError):
            EndpointCatalog.from_store(cms_store).list(search_term=" p ")


class TestListEndpoints:
    def test_success_shape(self, cms_store):
        result = list_endpoints(cms_store)
        assert result["success"] is True
        assert result["total_endpoints"] == 5
        assert "endpoint_schema_provider" in result["next_step_instruction"]
        assert result["instructions"]

    def test_method_with_no_matches_is_empty(self, store):
        store.write(
            store.chunk_path(1),
            [make_descriptor("getA", path="/a"), make_descriptor("postA", method="POST", path="/a")],
        )
        result = list_endpoints(store, method_filter="PUT")
        assert result["success"] is True
        assert result["total_endpoints"] == 0
        assert result["categories"] == []
        assert result["endpoints"] == {}

    def test_invalid_filter_returns_recovery_hints(self, cms_store):
        result = list_endpoints(cms_store, method_filter="TRACE")
        assert result["success"] is False
        assert "TRACE" in result["message"]
        assert result["available_filters"]["methods"] == ["GET", "POST", "PUT", "DELETE", "PATCH"]
        assert result["available_filters"]["categories"] == ["content", "pages", "user-management"]

    def test_corrupt_catalog_is_not_treated_as_empty(self, cms_store):
        cms_store.chunk_path(1).write_text("{broken")
        result = list_endpoints(cms_store)
        assert result["success"] is False
        assert result["available_filters"]["categories"] == []
