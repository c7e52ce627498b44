# app/services/report_service.py
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Sequence

from app.schemas.auth import Principal
from app.schemas.report import BranchCount, DashboardSummary, ReportRow, StatusMix
from app.services.query_service import field_value, matches_date, scope_to_principal
from app.utils.branches import BRANCHES, canonicalize_branch, same_branch
from app.utils.dates import parse_aging

# cases older than this many days count as "aging" on the dashboard
AGING_THRESHOLD_DAYS = 5


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _status(row) -> str:
    return str(field_value(row, "status") or "").lower()


def branch_performance(
    rows: Iterable,
    principal: Principal,
    branches: Sequence[str] = BRANCHES,
    date: str = "",
) -> List[ReportRow]:
    """
    Per-branch totals, open/closed counts, average aging and compliance.

    One bucket per branch the principal may see, including empty ones.
    Compliance is the rounded percentage of closed cases.
    """
    relevant = scope_to_principal(rows, principal)
    if date:
        relevant = [r for r in relevant if matches_date(r, date)]

    stats: Dict[str, Dict[str, int]] = {}
    for b in branches:
        if not principal.is_admin and not same_branch(b, principal.role):
            continue
        stats[b] = {"total": 0, "open": 0, "closed": 0, "total_aging": 0}

    for row in relevant:
        branch = canonicalize_branch(field_value(row, "branch"), branches)
        if branch is None or branch not in stats:
            continue
        bucket = stats[branch]
        bucket["total"] += 1
        bucket["total_aging"] += parse_aging(field_value(row, "aging"))
        status = _status(row)
        if status == "open":
            bucket["open"] += 1
        elif status == "closed":
            bucket["closed"] += 1

    report = []
    for branch in sorted(stats):
        s = stats[branch]
        if s["total"]:
            avg = Decimal(s["total_aging"]) / Decimal(s["total"])
            avg_aging = str(avg.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
            compliance = _round_half_up(s["closed"] / s["total"] * 100)
        else:
            avg_aging, compliance = "0.0", 0
        report.append(ReportRow(branch=branch, avg_aging=avg_aging, compliance=compliance, **s))
    return report


def branch_counts(rows: Iterable, limit: int = 10) -> List[BranchCount]:
    counts: Dict[str, int] = {}
    for row in rows:
        branch = field_value(row, "branch")
        counts[branch] = counts.get(branch, 0) + 1
    return [BranchCount(branch=b, count=c) for b, c in list(counts.items())[:limit]]


def dashboard_summary(rows: Iterable) -> DashboardSummary:
    """
    Stat-card counts plus the status mix chart.

    The cards count open_new as status Open only; the chart's open slice is
    anything not closed and not past the aging threshold.
    """
    rows = list(rows)
    open_new = aging = closed = 0
    mix = StatusMix()
    for row in rows:
        status = _status(row)
        days = parse_aging(field_value(row, "aging"))
        if status == "closed":
            closed += 1
            mix.closed += 1
        elif days > AGING_THRESHOLD_DAYS:
            aging += 1
            mix.aging += 1
        else:
            mix.open += 1
            if status == "open":
                open_new += 1
    return DashboardSummary(
        total=len(rows),
        open_new=open_new,
        aging=aging,
        closed=closed,
        status_mix=mix,
        branch_counts=branch_counts(rows),
    )
