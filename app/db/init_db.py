# app/db/init_db.py
from app.db.session import engine
from app.db.base import Base
import logging


def init_db():
    # Create all tables if not exist
    from app import models  # import to ensure modules define models
    Base.metadata.create_all(bind=engine)
    logging.info("Escalation tables ready on %s", engine.url.render_as_string(hide_password=True))
