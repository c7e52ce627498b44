# app/schemas/escalation.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, field_validator

from app.utils.dates import parse_aging

AgingBucket = Literal["", "0-5", "6-10", "11+"]


class EscalationBase(BaseModel):
    date: str
    case_id: str
    branch: str
    brand: Optional[str] = ""
    service_type: Optional[str] = ""
    reason: Optional[str] = ""
    city: Optional[str] = ""
    aging: int = 0
    status: Optional[str] = "Open"
    remark: Optional[str] = ""

    @field_validator("date", "case_id", "branch", "brand", "service_type", "reason", "city", "status", "remark", mode="before")
    @classmethod
    def _strip(cls, v):
        if v is None:
            return v
        return str(v).strip()

    @field_validator("aging", mode="before")
    @classmethod
    def _aging(cls, v):
        return parse_aging(v)


class EscalationCreate(EscalationBase):
    pass


class EscalationUpdate(EscalationBase):
    """Full-record replacement, same shape as create."""


class EscalationOut(BaseModel):
    id: int
    date: str
    case_id: str
    branch: str
    brand: Optional[str] = None
    service_type: Optional[str] = None
    reason: Optional[str] = None
    city: Optional[str] = None
    aging: int
    status: str
    remark: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FilterSet(BaseModel):
    search: str = ""
    status: str = ""
    branch: str = ""
    date: str = ""
    aging: AgingBucket = ""

    @field_validator("aging", mode="before")
    @classmethod
    def _bucket(cls, v):
        if not isinstance(v, str):
            return v
        v = v.strip()
        # an unescaped "+" in a query string arrives as a space
        return "11+" if v == "11" else v


class RowFailure(BaseModel):
    index: int
    message: str


class BulkInsertOut(BaseModel):
    inserted: int
    failed: int
    errors: List[RowFailure] = []


class ImportResult(BaseModel):
    # accepted + rejected == total_rows
    total_rows: int
    accepted: int
    rejected: int
    # storage layer, only meaningful when accepted > 0
    inserted: int = 0
    failed: int = 0
    errors: List[RowFailure] = []
    message: str
