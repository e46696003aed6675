from dataclasses import dataclass
from uuid import UUID

from equizz.core.core import Service
from equizz.core.modules.user.models import User, UserRole
from equizz.errors import AccessDeniedError, UserNotFoundError


@dataclass(frozen=True)
class AuthContext:
    """Identity attached to a request once its access token has been verified."""

    user: User
    session_id: UUID


class AccessService(Service):
    async def authenticate(self, token: str) -> AuthContext:
        """Verify an access token and resolve the user behind it."""
        verified = await self.core.services.session.verify_access_token(token)
        user = await self.core.services.user.find_user(verified.user_id)
        if user is None:
            raise UserNotFoundError
        return AuthContext(user=user, session_id=verified.session_id)

    def ensure_admin(self, auth: AuthContext) -> User:
        """Ensure the authenticated user is admin, raise AccessDeniedError if not."""
        if auth.user.role != UserRole.ADMIN:
            raise AccessDeniedError("Admin privileges required", code="ADMIN_REQUIRED")
        return auth.user

    def ensure_student(self, auth: AuthContext) -> User:
        if auth.user.role != UserRole.STUDENT:
            raise AccessDeniedError("Student account required", code="STUDENT_REQUIRED")
        return auth.user
