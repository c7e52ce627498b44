# app/core/logging.py
import logging
import sys

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = None):
    level = (level or settings.LOG_LEVEL).upper()
    root = logging.getLogger()
    # uvicorn --reload imports main twice; don't stack handlers
    if not any(getattr(h, "_escalations", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._escalations = True
        root.addHandler(handler)
    root.setLevel(level)
    # sqlalchemy echoes every statement at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
