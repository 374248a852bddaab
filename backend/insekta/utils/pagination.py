import math
from typing import List, Tuple


def paginate(query, page: int, limit: int, default_limit: int = 10) -> Tuple[List, dict]:
    """skip/limit over an ordered query -> (items, pagination block)"""
    page = page if page and page >= 1 else 1
    limit = limit if limit and limit >= 1 else default_limit

    total = query.count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, {
        "totalData": total,
        "totalPages": math.ceil(total / limit),
        "currentPage": page,
        "limit": limit,
    }


def contains(column, search: str):
    """Case-insensitive substring filter"""
    return column.ilike(f"%{search}%")
