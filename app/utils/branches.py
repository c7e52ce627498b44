# app/utils/branches.py
from typing import Mapping, Optional, Sequence

from app.core.config import settings

BRANCHES = tuple(settings.BRANCHES)
BRANCH_ALIASES = {k.strip().upper(): v for k, v in settings.BRANCH_ALIASES.items()}


def normalize_branch(value) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def canonicalize_branch(
    value,
    branches: Sequence[str] = BRANCHES,
    aliases: Mapping[str, str] = BRANCH_ALIASES,
) -> Optional[str]:
    """
    Resolve free text to one canonical branch, or None when unresolved.

    Aliases are checked first (keys match case-insensitively), then a
    case-insensitive exact match against the enumeration.
    """
    text = "" if value is None else str(value).strip()
    if not text:
        return None

    key = text.upper()
    alias = next((v for k, v in aliases.items() if k.strip().upper() == key), None)
    if alias is not None:
        # alias targets must themselves be canonical
        return canonicalize_branch(alias, branches, {})

    wanted = text.lower()
    for branch in branches:
        if branch.lower() == wanted:
            return branch
    return None


def same_branch(a, b) -> bool:
    return normalize_branch(a) == normalize_branch(b)
