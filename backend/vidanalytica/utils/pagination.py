import math
from typing import Any, Dict

from sqlalchemy.orm import Query

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def paginate(query: Query, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> Dict[str, Any]:
    """
    Slice a query into one page.

    Returns {"items", "total", "page", "total_pages"}; page and limit are
    clamped to sane bounds rather than rejected.
    """
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return {
        "items": items,
        "total": total,
        "page": page,
        "total_pages": math.ceil(total / limit) if total else 0,
    }
