import os

# must be set before app.db.session builds the engine
os.environ["DATABASE_URL"] = "sqlite://"

import io

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook

from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.main import app
from app.models.escalation import Escalation
from app.schemas.auth import Principal
from app.services.auth_service import AuthService


@pytest.fixture(autouse=True)
def _tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def admin() -> Principal:
    return AuthService().principal_for_role("ADMIN")


@pytest.fixture
def chennai() -> Principal:
    return AuthService().principal_for_role("Chennai")


@pytest.fixture
def seed():
    """Insert rows directly and close the session before the test continues."""

    def _seed(*rows):
        session = SessionLocal()
        try:
            objs = [Escalation(**{"aging": 0, "status": "Open", **r}) for r in rows]
            session.add_all(objs)
            session.commit()
            return [o.id for o in objs]
        finally:
            session.close()

    return _seed


def make_xlsx(rows) -> bytes:
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def make_csv(lines) -> bytes:
    return ("\n".join(lines) + "\n").encode("utf-8")
