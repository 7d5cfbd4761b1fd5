"""Pagination, search and sorting helpers shared by the list endpoints"""

import math
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import or_

MAX_LIMIT = 100


@dataclass(frozen=True)
class Pagination:
    skip: int
    take: int
    page: int
    limit: int


def apply_pagination(
    page: Optional[int] = None, limit: Optional[int] = None, default_limit: int = 10
) -> Pagination:
    """Clamp page (>= 1) and limit (1..100) and compute the row offset"""
    page = max(1, page or 1)
    limit = min(MAX_LIMIT, max(1, limit or default_limit))
    return Pagination(skip=(page - 1) * limit, take=limit, page=page, limit=limit)


def create_paginated_result(items: list, total: int, page: int, limit: int) -> dict[str, Any]:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "data": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": total_pages,
            "hasNext": page < total_pages,
            "hasPrev": page > 1,
        },
    }


def build_search_filter(columns: list, term: Optional[str]):
    """Case-insensitive substring match across ``columns`` combined with OR"""
    if not term or not term.strip():
        return None
    pattern = f"%{term.strip()}%"
    return or_(*(column.ilike(pattern) for column in columns))


def resolve_sort(sort_fields: dict[str, Any], sort_by: Optional[str], sort_order: Optional[str]):
    """Translate a whitelisted camelCase sort key into an ORDER BY clause"""
    column = sort_fields.get(sort_by or "createdAt", sort_fields["createdAt"])
    return column.asc() if sort_order == "asc" else column.desc()


def paginate_query(query, pagination: Pagination, order_by) -> tuple[list, int]:
    """Run ``query`` for one page, returning (rows, total matching rows)"""
    total = query.order_by(None).count()
    rows = query.order_by(order_by).offset(pagination.skip).limit(pagination.take).all()
    return rows, total
