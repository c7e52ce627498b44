# app/api/v1/reports.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from app.core.dependencies import get_db, get_principal
from app.schemas.auth import Principal
from app.schemas.report import ReportRow
from app.services.escalation_service import EscalationService
from app.services.export_service import export_report_csv, report_filename
from app.services.report_service import branch_performance

router = APIRouter()


@router.get("/branches", response_model=List[ReportRow])
def branch_report(
    date: str = Query(""),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    """
    Branch performance summary, optionally limited to a date (substring match).
    """
    return branch_performance(EscalationService(db).find_all(), principal, date=date)


@router.get("/branches/export")
def export_branch_report(
    date: str = Query(""),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    report = branch_performance(EscalationService(db).find_all(), principal, date=date)
    if not report:
        raise HTTPException(status_code=404, detail="No data to export")
    return Response(
        content=export_report_csv(report),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{report_filename()}"'},
    )
