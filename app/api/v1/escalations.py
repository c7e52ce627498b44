# app/api/v1/escalations.py
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, File, HTTPException, Response, UploadFile
from sqlalchemy.orm import Session

from app.core.dependencies import get_db, get_filters, get_principal, require_admin
from app.core.exceptions import (
    BranchNotPermitted,
    EscalationError,
    ImportFileError,
)
from app.schemas.auth import Principal
from app.schemas.escalation import (
    BulkInsertOut,
    EscalationCreate,
    EscalationOut,
    EscalationUpdate,
    FilterSet,
    ImportResult,
    RowFailure,
)
from app.schemas.report import DashboardSummary
from app.services.escalation_service import EscalationService
from app.services.export_service import CASE_EXPORT_FILENAME, export_escalations_csv
from app.services.import_service import ImportService
from app.services.query_service import filter_escalations
from app.services.report_service import dashboard_summary

router = APIRouter()


def _raise_http(e: EscalationError):
    if isinstance(e, BranchNotPermitted):
        raise HTTPException(status_code=403, detail=e.message)
    raise HTTPException(status_code=400, detail=e.message)


@router.get("", response_model=List[EscalationOut])
def list_escalations(db: Session = Depends(get_db)):
    """
    Every record, newest first, with no role scoping applied.
    """
    return EscalationService(db).find_all()


@router.get("/view", response_model=List[EscalationOut])
def view_escalations(
    filters: FilterSet = Depends(get_filters),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    rows = EscalationService(db).find_all()
    return filter_escalations(rows, principal, filters)


@router.get("/summary", response_model=DashboardSummary)
def summary(
    filters: FilterSet = Depends(get_filters),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    rows = filter_escalations(EscalationService(db).find_all(), principal, filters)
    return dashboard_summary(rows)


@router.get("/export")
def export_escalations(
    filters: FilterSet = Depends(get_filters),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    rows = filter_escalations(EscalationService(db).find_all(), principal, filters)
    if not rows:
        raise HTTPException(status_code=404, detail="No data to export")
    return Response(
        content=export_escalations_csv(rows),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{CASE_EXPORT_FILENAME}"'},
    )


@router.post("", response_model=EscalationOut, status_code=201)
def create_escalation(
    payload: EscalationCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    try:
        return EscalationService(db).insert_one(payload, principal)
    except EscalationError as e:
        _raise_http(e)


@router.post("/bulk", response_model=BulkInsertOut, status_code=201)
def bulk_create(
    rows: List[Dict[str, Any]] = Body(...),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    result = EscalationService(db).insert_many(rows, principal)
    return BulkInsertOut(
        inserted=len(result.inserted),
        failed=len(result.failed),
        errors=[RowFailure(**f) for f in result.failed],
    )


@router.post("/import", response_model=ImportResult)
async def import_escalations(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    svc = ImportService(db)
    try:
        return await svc.handle_upload(file, principal)
    except ImportFileError as e:
        raise HTTPException(status_code=400, detail=f"Import error: {e.message}")


@router.delete("/all")
def delete_all(db: Session = Depends(get_db), _=Depends(require_admin)):
    count = EscalationService(db).delete_all()
    return {"message": "All escalations deleted", "deleted": count}


@router.get("/{escalation_id}", response_model=EscalationOut)
def get_escalation(escalation_id: int, db: Session = Depends(get_db)):
    obj = EscalationService(db).get(escalation_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Escalation not found")
    return obj


@router.put("/{escalation_id}", response_model=EscalationOut)
def update_escalation(
    escalation_id: int,
    payload: EscalationUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    try:
        obj = EscalationService(db).update_by_id(escalation_id, payload, principal)
    except EscalationError as e:
        _raise_http(e)
    if not obj:
        raise HTTPException(status_code=404, detail="Escalation not found")
    return obj


@router.delete("/{escalation_id}")
def delete_escalation(
    escalation_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    try:
        deleted = EscalationService(db).delete_by_id(escalation_id, principal)
    except EscalationError as e:
        _raise_http(e)
    if not deleted:
        raise HTTPException(status_code=404, detail="Escalation not found")
    return {"message": "Escalation deleted"}
