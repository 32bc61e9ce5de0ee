"""Tests for pagination arithmetic."""

import pytest

from poketeams.models.pagination import calculate_pagination_metadata, create_pagination_params


class TestCreatePaginationParams:
    def test_offset_from_page_and_limit(self) -> None:
        """Offset skips the earlier pages."""
        params = create_pagination_params(3, 10)

        assert (params.page, params.limit, params.offset) == (3, 10, 20)

    @pytest.mark.parametrize(("page", "limit"), [(0, 0), (-2, -5)])
    def test_floors_at_one(self, page: int, limit: int) -> None:
        """Page and limit below 1 are treated as 1."""
        params = create_pagination_params(page, limit)

        assert (params.page, params.limit, params.offset) == (1, 1, 0)


class TestPaginationMetadata:
    def test_middle_page(self) -> None:
        """A middle page has both neighbours."""
        meta = calculate_pagination_metadata(page=2, limit=5, total=12)

        assert meta.total_pages == 3
        assert meta.has_next is True
        assert meta.has_prev is True

    def test_last_page(self) -> None:
        """The last page has no next page."""
        meta = calculate_pagination_metadata(page=3, limit=5, total=12)

        assert meta.has_next is False

    def test_empty_result(self) -> None:
        """No rows means zero pages."""
        meta = calculate_pagination_metadata(page=1, limit=10, total=0)

        assert meta.total_pages == 0
        assert meta.has_next is False
        assert meta.has_prev is False

    def test_serializes_camel_case(self) -> None:
        """Wire names are camelCase."""
        data = calculate_pagination_metadata(page=1, limit=10, total=25).model_dump(by_alias=True)

        assert data["totalPages"] == 3
        assert data["hasNext"] is True
        assert data["hasPrev"] is False
