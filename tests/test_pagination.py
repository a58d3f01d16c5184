"""
Tests for page requests and pagination metadata.
"""

import pytest
from pydantic import ValidationError

from querygovernor.config import GovernorConfig, MAX_UNLIMITED_ROWS
from querygovernor.sql.pagination import PageRequest, Pagination, paginate_sql, resolve_limit


class TestResolveLimit:
    """Tests for resolve_limit()."""

    def test_default_request(self):
        assert resolve_limit(PageRequest()) == 500

    def test_explicit_limit(self):
        assert resolve_limit(PageRequest(limit=50)) == 50

    def test_unlimited_is_capped(self):
        assert resolve_limit(PageRequest(limit=50, unlimited=True)) == MAX_UNLIMITED_ROWS

    def test_unlimited_cap_comes_from_config(self):
        config = GovernorConfig(max_unlimited_rows=2_000)
        assert resolve_limit(PageRequest(unlimited=True), config) == 2_000

    def test_default_limit_comes_from_config(self):
        config = GovernorConfig(default_query_limit=200)

        assert resolve_limit(PageRequest(), config) == 200
        assert resolve_limit(PageRequest(limit=50), config) == 50

    def test_negative_values_rejected(self):
        with pytest.raises(ValidationError):
            PageRequest(limit=-1)
        with pytest.raises(ValidationError):
            PageRequest(offset=-1)


class TestPaginateSql:
    """Tests for paginate_sql()."""

    def test_select_is_rewritten(self):
        limited, effective = paginate_sql("SELECT * FROM orders", PageRequest(limit=100, offset=200))

        assert effective == 100
        assert limited.sql == "SELECT * FROM orders LIMIT 100 OFFSET 200"
        assert limited.was_limited

    def test_non_select_passes_through(self):
        limited, effective = paginate_sql("DELETE FROM orders", PageRequest(limit=100))

        assert limited.sql == "DELETE FROM orders"
        assert not limited.was_limited
        assert effective == 100

    def test_unlimited_uses_cap(self):
        limited, effective = paginate_sql("SELECT 1", PageRequest(unlimited=True))

        assert effective == MAX_UNLIMITED_ROWS
        assert limited.sql == f"SELECT 1 LIMIT {MAX_UNLIMITED_ROWS}"


class TestPagination:
    """Tests for Pagination.from_rows()."""

    def test_full_page_has_more(self):
        page = Pagination.from_rows(row_count=100, effective_limit=100, offset=0, was_limited=True)

        assert page.has_more
        assert page.total_returned == 100
        assert page.limit == 100

    def test_short_page_has_no_more(self):
        page = Pagination.from_rows(row_count=42, effective_limit=100, offset=200, was_limited=True)

        assert not page.has_more
        assert page.offset == 200
