# app/services/auth_service.py
import hmac
import logging

from app.core.config import settings
from app.core.exceptions import InvalidPassword, UnknownPrincipal
from app.schemas.auth import Principal
from app.utils.branches import canonicalize_branch

logger = logging.getLogger(__name__)


class AuthService:
    """
    Shared-password login.

    There are no user accounts: the username is either ADMIN or a branch name,
    and everyone uses the same password. The resulting role is trusted by the
    API as sent back in the X-Role header.
    """

    def __init__(self, shared_password: str = None):
        self.shared_password = shared_password if shared_password is not None else settings.SHARED_PASSWORD

    def login(self, username: str, password: str) -> Principal:
        if not hmac.compare_digest(str(password).encode(), self.shared_password.encode()):
            logger.info("Login rejected for %r: bad password", username)
            raise InvalidPassword()
        principal = self.principal_for_role(username)
        logger.info("Login as %s", principal.role)
        return principal

    def principal_for_role(self, role: str) -> Principal:
        role = (role or "").strip()
        if role.upper() == settings.ADMIN_ROLE:
            return Principal(role=settings.ADMIN_ROLE, display_name="Administrator")
        branch = canonicalize_branch(role)
        if branch is None:
            raise UnknownPrincipal()
        return Principal(role=branch, display_name=f"Branch Manager ({branch})")
