import uuid
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.config import settings
from clinic.core.errors import ApiError, not_found
from clinic.core import security
from clinic.modules.auth.models import AdminUser
from clinic.modules.auth.repository import AdminUserRepository
from clinic.modules.notifications import templates
from clinic.modules.notifications.service import NotificationsService

log = logging.getLogger(__name__)

class AuthService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = AdminUserRepository(session)

    async def authenticate(self, username: str, password: str) -> tuple[AdminUser, str]:
        user = await self.repo.get_by_username(username)
        if not user or not security.verify_password(password, user.password_hash):
            log.info(f"Failed login for username={username!r}")
            raise ApiError(401, "Invalid username or password")
        token = security.create_access_token(user.id, user.username, user.email)
        log.info(f"Admin {user.username} logged in")
        return user, token

    async def get(self, user_id: uuid.UUID) -> AdminUser:
        user = await self.repo.get(user_id)
        if not user:
            raise not_found("User")
        return user

    async def request_password_reset(self, email: str) -> None:
        user = await self.repo.get_by_email(email)
        if not user:
            log.info(f"Password reset requested for unknown email {email}")
            return
        token = security.create_password_reset_token(user.email)
        link = f"{settings.SITE_URL.rstrip('/')}/reset-password/{token}"
        subject, html, text = templates.password_reset(user.username, link)
        await NotificationsService(self.session).try_send_email(user.email, subject, html, text)

    def check_reset_token(self, token: str) -> str:
        payload = security.decode_token(token, security.PASSWORD_RESET)
        if not payload or not payload.get("email"):
            raise ApiError(400, "Invalid or expired reset token")
        return payload["email"]

    async def reset_password(self, token: str, password: str) -> AdminUser:
        email = self.check_reset_token(token)
        user = await self.repo.get_by_email(email)
        if not user:
            raise not_found("User")
        user.password_hash = security.hash_password(password)
        await self.session.commit()
        log.info(f"Password reset for admin {user.username}")
        return user

    async def setup_default_admin(self) -> tuple[AdminUser, bool]:
        """Create the bootstrap admin; returns ``(user, created)``."""
        existing = await self.repo.get_by_username(settings.DEFAULT_ADMIN_USERNAME)
        if existing:
            return existing, False
        user = await self.repo.create(
            username=settings.DEFAULT_ADMIN_USERNAME,
            email=settings.DEFAULT_ADMIN_EMAIL,
            password_hash=security.hash_password(settings.DEFAULT_ADMIN_PASSWORD),
        )
        await self.session.commit()
        log.info(f"Created default admin {user.username}")
        return user, True
