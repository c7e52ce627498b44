# app/models/__init__.py
from app.models import escalation  # noqa: F401
from app.models.escalation import Escalation  # noqa: F401
