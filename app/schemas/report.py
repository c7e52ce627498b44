# app/schemas/report.py
from typing import List

from pydantic import BaseModel


class ReportRow(BaseModel):
    branch: str
    total: int = 0
    open: int = 0
    closed: int = 0
    total_aging: int = 0
    avg_aging: str = "0.0"
    compliance: int = 0


class BranchCount(BaseModel):
    branch: str
    count: int


class StatusMix(BaseModel):
    # slices add up to the total
    open: int = 0
    aging: int = 0
    closed: int = 0


class DashboardSummary(BaseModel):
    total: int
    open_new: int
    aging: int
    closed: int
    status_mix: StatusMix = StatusMix()
    branch_counts: List[BranchCount] = []
