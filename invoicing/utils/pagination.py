"""List pagination and sorting helpers shared by list endpoints."""

import math
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from invoicing.errors import ValidationFailedError

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def paginate(
    items: Sequence[T], page: int = 1, limit: int = DEFAULT_PAGE_SIZE
) -> Tuple[List[T], Dict[str, Any]]:
    """
    Slice ``items`` to one page.

    Args:
        items: Full, already filtered and sorted list
        page: 1-based page number
        limit: Page size, 1..100

    Returns:
        Tuple of (page items, meta dict with page, limit, total, total_pages)

    Raises:
        ValidationFailedError: If page or limit is out of range
    """
    if page < 1:
        raise ValidationFailedError("page must be at least 1")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationFailedError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

    total = len(items)
    start = (page - 1) * limit
    meta = {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if total else 0,
    }
    return list(items[start : start + limit]), meta


def sort_records(
    items: List[T],
    sort_by: Optional[str],
    sort_order: str = "desc",
    allowed: Optional[Dict[str, Callable[[T], Any]]] = None,
) -> List[T]:
    """Sort by one of the ``allowed`` keys; unknown keys are rejected."""
    if not sort_by:
        return items
    if sort_order not in ("asc", "desc"):
        raise ValidationFailedError("sort_order must be 'asc' or 'desc'")
    if not allowed or sort_by not in allowed:
        raise ValidationFailedError(
            f"Cannot sort by '{sort_by}'",
            details={"allowed": sorted(allowed or {})},
        )
    return sorted(items, key=allowed[sort_by], reverse=sort_order == "desc")
