# app/core/dependencies.py
from typing import Generator, Optional

from fastapi import Depends, Header, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.exceptions import UnknownPrincipal
from app.db.session import SessionLocal
from app.schemas.auth import Principal
from app.schemas.escalation import FilterSet
from app.services.auth_service import AuthService


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_principal(x_role: Optional[str] = Header(None)) -> Principal:
    """
    Build the acting principal from the X-Role header.

    The role is whatever the client chose at login; it is not verified here.
    """
    if not x_role:
        raise HTTPException(status_code=401, detail="Missing X-Role header")
    try:
        return AuthService().principal_for_role(x_role)
    except UnknownPrincipal as e:
        raise HTTPException(status_code=401, detail=e.message)


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Admin only")
    return principal


def get_filters(
    search: str = "",
    status: str = "",
    branch: str = "",
    date: str = "",
    aging: str = "",
) -> FilterSet:
    """Query-string filter set; a bad aging bucket is a 422 like any other bad param."""
    try:
        return FilterSet(search=search, status=status, branch=branch, date=date, aging=aging)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))
