from __future__ import annotations

import json
from datetime import datetime
from typing import Any


def iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def clean_str(value: Any) -> str | None:
    """Strip a form/JSON value; empty becomes None."""
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def parse_int(value: Any, default: int | None = None) -> int | None:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_page(args: Any, *, default_limit: int = 20, max_limit: int = 100) -> tuple[int, int]:
    """Read page/limit from request args, clamped to sane bounds."""
    page = max(parse_int(args.get("page"), 1) or 1, 1)
    limit = parse_int(args.get("limit"), default_limit) or default_limit
    limit = min(max(limit, 1), max_limit)
    return page, limit


def page_payload(items: list[dict], *, total: int, page: int, limit: int) -> dict[str, Any]:
    pages = (total + limit - 1) // limit if total else 0
    return {"items": items, "total": total, "page": page, "limit": limit, "pages": pages}


def load_json_list(raw: str | None) -> list:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return []
    return value if isinstance(value, list) else []


def dump_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True)
