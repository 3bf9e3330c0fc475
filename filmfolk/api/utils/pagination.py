from typing import Tuple

from flask import request, abort

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def parse_pagination() -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        page_size = int(request.args.get("page_size", str(DEFAULT_PAGE_SIZE)))
    except ValueError:
        abort(400, description="page and page_size must be integers")
    page = max(page, 1)
    page_size = max(1, min(page_size, MAX_PAGE_SIZE))
    return page, page_size


def paginate(query, page: int, page_size: int):
    """Return (rows, total) for an unordered-count, ordered-fetch query."""
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * page_size).limit(page_size).all()
    return rows, total


def page_envelope(data, page: int, page_size: int, total: int) -> dict:
    return {"data": data, "meta": {"page": page, "page_size": page_size, "total": total}}
