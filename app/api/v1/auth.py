# app/api/v1/auth.py
from fastapi import APIRouter, Depends, HTTPException

from app.core.dependencies import get_principal
from app.core.exceptions import InvalidPassword, UnknownPrincipal
from app.schemas.auth import LoginRequest, Principal
from app.services.auth_service import AuthService

router = APIRouter()


@router.post("/login", response_model=Principal)
def login(payload: LoginRequest):
    """
    Check the shared password and resolve the username to a role.

    Clients send the returned role back as X-Role on later calls.
    """
    svc = AuthService()
    try:
        return svc.login(payload.username, payload.password)
    except (InvalidPassword, UnknownPrincipal) as e:
        raise HTTPException(status_code=401, detail=e.message)


@router.get("/me", response_model=Principal)
def me(principal: Principal = Depends(get_principal)):
    return principal
