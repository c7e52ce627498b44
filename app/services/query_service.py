# app/services/query_service.py
from collections.abc import Mapping
from typing import Iterable, List, Optional

from sqlalchemy import inspect as sa_inspect

from app.schemas.auth import Principal
from app.schemas.escalation import FilterSet
from app.utils.branches import same_branch
from app.utils.dates import day_first_to_iso, parse_aging


def field_value(row, name: str):
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def row_values(row) -> list:
    if isinstance(row, Mapping):
        return list(row.values())
    return [getattr(row, attr.key) for attr in sa_inspect(row).mapper.column_attrs]


def _text(value) -> str:
    return "" if value is None else str(value)


def scope_to_principal(rows: Iterable, principal: Principal) -> list:
    """Rows the principal may see: everything for ADMIN, own branch otherwise."""
    if principal.is_admin:
        return list(rows)
    return [r for r in rows if same_branch(field_value(r, "branch"), principal.role)]


def matches_search(row, search: str) -> bool:
    if not search:
        return True
    needle = search.lower()
    return any(needle in _text(v).lower() for v in row_values(row))


def matches_date(row, date_filter: str) -> bool:
    """
    Substring match on the stored date text.

    Rows stored as DD-MM-YYYY are also tried in their YYYY-MM-DD form, so
    "2026-01-16" finds "16-01-2026".
    """
    if not date_filter:
        return True
    stored = _text(field_value(row, "date")).strip()
    if not stored:
        return False
    needle = date_filter.strip().lower()
    if needle in stored.lower():
        return True
    converted = day_first_to_iso(stored)
    return converted is not None and needle in converted


def matches_aging(row, bucket: str) -> bool:
    if not bucket:
        return True
    aging = parse_aging(field_value(row, "aging"))
    if bucket == "0-5":
        return aging <= 5
    if bucket == "6-10":
        return 6 <= aging <= 10
    if bucket == "11+":
        return aging > 10
    return True


def filter_escalations(rows: Iterable, principal: Principal, filters: Optional[FilterSet] = None) -> List:
    """
    Role scope first, then every filter ANDed together. Input order is kept.

    The branch filter can only narrow the role scope, never widen it.
    """
    filters = filters or FilterSet()
    status = filters.status.lower()
    branch = filters.branch.strip().lower()

    result = []
    for row in scope_to_principal(rows, principal):
        if not matches_search(row, filters.search):
            continue
        if status and _text(field_value(row, "status")).lower() != status:
            continue
        if branch and _text(field_value(row, "branch")).strip().lower() != branch:
            continue
        if not matches_date(row, filters.date):
            continue
        if not matches_aging(row, filters.aging):
            continue
        result.append(row)
    return result
