import pytest
from sqlalchemy import select

from approval_system.core.config import settings
from approval_system.models.auth.permission import Permission
from approval_system.utils.pagination import clamp_page, normalize_page_size, paginate


class TestPagination:
    def test_clamp_moves_back_to_last_page(self):
        assert clamp_page(3, 10, 20) == 2
        assert clamp_page(5, 10, 41) == 5

    def test_clamp_with_no_rows(self):
        assert clamp_page(4, 10, 0) == 1

    def test_clamp_fixes_page_below_one(self):
        assert clamp_page(0, 10, 5) == 1
        assert clamp_page(-2, 10, 5) == 1

    def test_page_size_bounds(self):
        assert normalize_page_size(0) == settings.DEFAULT_PAGE_SIZE
        assert normalize_page_size(settings.MAX_PAGE_SIZE + 100) == settings.MAX_PAGE_SIZE


@pytest.mark.asyncio
class TestPaginateQuery:
    """The three seeded permissions, two per page"""

    async def test_serves_requested_page(self, session):
        page = await paginate(session, select(Permission).order_by(Permission.id), page_index=2, page_size=2)
        assert page["page_index"] == 2
        assert page["count"] == 3
        assert [p.code for p in page["data"]] == ["APPLICATION_SUBMIT"]

    async def test_page_past_the_end_falls_back(self, session):
        page = await paginate(session, select(Permission).order_by(Permission.id), page_index=4, page_size=2)
        assert page["page_index"] == 2
        assert len(page["data"]) == 1

    async def test_empty_query_serves_first_page(self, session):
        query = select(Permission).where(Permission.code == "MISSING")
        page = await paginate(session, query, page_index=3, page_size=2)
        assert page == {"page_index": 1, "page_size": 2, "count": 0, "data": []}
