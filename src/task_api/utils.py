from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union


def _page_url(path: str, page: int, per_page: int, default_per_page: int) -> str:
    if per_page != default_per_page:
        return f"{path}?page={page}&per_page={per_page}"
    return f"{path}?page={page}"


# PUBLIC_INTERFACE
def pagination_envelope(
    items: Union[Sequence[Any], Iterable[Any]],
    total: int,
    page: int,
    per_page: int,
    path: str,
    default_per_page: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Build a standard pagination envelope for list endpoints.

    Args:
        items: The list/iterable of items for the current page.
        total: Total number of items (ignoring pagination).
        page: 1-based page number that was requested.
        per_page: Page size used for the query.
        path: Absolute URL of the list endpoint, without query string.
        default_per_page: Page size that need not be repeated in page links.

    Returns:
        Dict with keys: current_page, data, per_page, from, to, total,
        last_page, path, first_page_url, prev_page_url, next_page_url.
    """
    materialized: List[Any] = list(items) if not isinstance(items, list) else items
    page = max(int(page), 1)
    per_page = max(int(per_page), 1)
    total = max(int(total), 0)
    default_per_page = per_page if default_per_page is None else default_per_page

    last_page = max(math.ceil(total / per_page), 1)
    first: Optional[int] = None
    last: Optional[int] = None
    if materialized:
        first = (page - 1) * per_page + 1
        last = first + len(materialized) - 1

    return {
        "current_page": page,
        "data": materialized,
        "per_page": per_page,
        "from": first,
        "to": last,
        "total": total,
        "last_page": last_page,
        "path": path,
        "first_page_url": _page_url(path, 1, per_page, default_per_page),
        "prev_page_url": _page_url(path, page - 1, per_page, default_per_page) if page > 1 else None,
        "next_page_url": _page_url(path, page + 1, per_page, default_per_page) if page < last_page else None,
    }
