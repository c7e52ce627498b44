# app/schemas/auth.py
from pydantic import BaseModel

from app.core.config import settings


class LoginRequest(BaseModel):
    username: str
    password: str


class Principal(BaseModel):
    """The acting user: ADMIN or one canonical branch."""

    role: str
    display_name: str

    @property
    def is_admin(self) -> bool:
        return self.role == settings.ADMIN_ROLE
