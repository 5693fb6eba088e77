"""
Pagination and status-summary helpers shared by the listing endpoints.
"""
import math
from typing import Any, Dict, List, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Query

from app.db.models.application import Application
from app.db.models.enums import ApplicationStatus


def paginate(query: Query, page: int, limit: int) -> Tuple[List[Any], int]:
    """Return one page of results and the total row count."""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total


def pagination_payload(page: int, limit: int, total: int, total_key: str) -> Dict[str, Any]:
    """Pagination block of a listing response; total_key names the total field."""
    return {
        "currentPage": page,
        "totalPages": math.ceil(total / limit) if limit else 0,
        total_key: total,
        "hasNext": page * limit < total,
        "hasPrev": page > 1,
    }


def status_summary(query: Query) -> Dict[str, int]:
    """
    Count applications per status for an Application query.

    The query's filters and joins are kept; ordering and paging are not.
    """
    rows = (
        query.order_by(None)
        .with_entities(Application.status, func.count(Application.id))
        .group_by(Application.status)
        .all()
    )
    counts = {status: count for status, count in rows}
    summary = {"total": sum(counts.values())}
    for status in ApplicationStatus:
        summary[status.value.lower()] = counts.get(status, 0)
    return summary
