"""Page/limit handling for list endpoints that page at the database"""
from math import ceil
from typing import Dict, Tuple

from coachhub.config.settings import PaginationConfig

def get_pagination_params(args) -> Tuple[int, int]:
    """Read ?page= and ?limit= from request args, falling back to defaults on junk."""
    try:
        page = max(1, int(args.get("page") or 1))
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(args.get("limit") or PaginationConfig.DEFAULT_LIMIT)
    except (TypeError, ValueError):
        limit = PaginationConfig.DEFAULT_LIMIT
    return page, max(1, min(limit, PaginationConfig.MAX_LIMIT))

def skip_for(page: int, limit: int) -> int:
    return (page - 1) * limit

def pagination_meta(page: int, limit: int, total: int) -> Dict:
    total_pages = ceil(total / limit) if total else 1
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrev": page > 1
    }
