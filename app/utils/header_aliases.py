# app/utils/header_aliases.py
from typing import Dict, Mapping, Optional, Sequence

CANONICAL_FIELDS = (
    "date",
    "case_id",
    "branch",
    "brand",
    "service_type",
    "reason",
    "city",
    "aging",
    "status",
    "remark",
)

# normalized header text -> canonical field
HEADER_ALIASES: Dict[str, str] = {
    # Date
    "date": "date", "date logged": "date", "logged date": "date", "entry date": "date", "date of entry": "date",
    # ID
    "id": "case_id", "reference id": "case_id", "case id": "case_id", "reference no": "case_id",
    "ref id": "case_id", "ticket id": "case_id",
    # Branch
    "branch": "branch", "location": "branch", "branch / location": "branch", "store": "branch", "hub": "branch",
    # Brand
    "brand": "brand", "model": "brand", "brand / model": "brand", "product": "brand", "make": "brand",
    # Service type
    "service type": "service_type",
    # Reason
    "reason": "reason", "issue": "reason", "primary issue": "reason", "complaint": "reason", "problem": "reason",
    # City
    "city": "city", "region": "city", "district": "city", "town": "city",
    # Aging
    "aging": "aging", "aging (days)": "aging", "days": "aging", "pending days": "aging", "age": "aging",
    # Status
    "status": "status", "current status": "status", "case status": "status",
    # Remark
    "remark": "remark", "remarks": "remark", "technician remarks": "remark", "note": "remark", "comments": "remark",
}


def normalize_header(value) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def resolve_header(value, aliases: Mapping[str, str] = HEADER_ALIASES) -> Optional[str]:
    return aliases.get(normalize_header(value))


def build_column_map(headers: Sequence, aliases: Mapping[str, str] = HEADER_ALIASES) -> Dict[str, int]:
    """
    Map canonical field -> column index for a header row.

    Unknown headers are skipped. If two columns resolve to the same field the
    later one wins.
    """
    col_map: Dict[str, int] = {}
    for idx, header in enumerate(headers):
        field = resolve_header(header, aliases)
        if field:
            col_map[field] = idx
    return col_map
