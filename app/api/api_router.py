# app/api/api_router.py
from fastapi import APIRouter
from app.api.v1 import auth, escalations, reports

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/v1/auth", tags=["auth"])
api_router.include_router(escalations.router, prefix="/v1/escalations", tags=["escalations"])
api_router.include_router(reports.router, prefix="/v1/reports", tags=["reports"])
