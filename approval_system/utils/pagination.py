"""
Page helpers shared by every list endpoint.

Pages are 1-based. When a page past the end is requested (for example the last
item of the last page was just deleted) the last non-empty page is served
instead, and ``page_index`` in the result reports the page actually served.
"""
import math
from typing import Any, Dict, List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from approval_system.core.config import settings


def normalize_page_size(page_size: int) -> int:
    if not page_size or page_size < 1:
        return settings.DEFAULT_PAGE_SIZE
    return min(page_size, settings.MAX_PAGE_SIZE)


def clamp_page(page_index: int, page_size: int, total: int) -> int:
    """Return the page to serve: ``page_index`` moved back onto the last non-empty page."""
    page_index = max(page_index or 1, 1)
    if total <= 0:
        return 1
    last_page = max(math.ceil(total / page_size), 1)
    return min(page_index, last_page)


def page_result(page_index: int, page_size: int, count: int, data: List[Any]) -> Dict[str, Any]:
    return {
        "page_index": page_index,
        "page_size": page_size,
        "count": count,
        "data": data,
    }


async def paginate(
    session: AsyncSession,
    query: Select,
    page_index: int = 1,
    page_size: int = 10,
) -> Dict[str, Any]:
    """Run ``query`` for one page with underflow correction."""
    page_size = normalize_page_size(page_size)

    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await session.execute(count_query)).scalar() or 0

    page_index = clamp_page(page_index, page_size, total)
    skip = (page_index - 1) * page_size

    result = await session.execute(query.offset(skip).limit(page_size))
    return page_result(page_index, page_size, total, list(result.scalars().all()))
