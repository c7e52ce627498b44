# app/main.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from app.api.api_router import api_router
from app.core.config import settings
from app.db import init_db
import logging
from app.core.logging import configure_logging

configure_logging()
logger = logging.getLogger("app.requests")

app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    logger.info("%s %s %s", request.method, request.url.path, response.status_code)
    return response


app.include_router(api_router, prefix="/api")


@app.get("/health", response_class=PlainTextResponse)
def health():
    return "OK"


@app.on_event("startup")
def on_startup():
    logging.info("Starting up: initializing DB...")
    init_db.init_db()
    logging.info("Startup complete")
