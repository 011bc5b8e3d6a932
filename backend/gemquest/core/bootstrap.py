# gemquest/core/bootstrap.py
"""
Bootstrap module for application initialization.
Seeds the role reference data and creates a default Super Administrator on
first startup.
"""
import logging

from gemquest.config import Settings, settings as default_settings
from gemquest.core.permissions import SEED_ROLES, SUPER_ADMIN
from gemquest.core.security import hash_password
from gemquest.models import UserRole
from gemquest.repository import PrincipalRepository, TortoisePrincipalRepository

logger = logging.getLogger("uvicorn.error")

async def seed_roles(repo: PrincipalRepository | None = None) -> None:
    """Create every seeded role that does not exist yet. Safe to run on every startup."""
    repo = repo or TortoisePrincipalRepository()
    for name, description in SEED_ROLES:
        await repo.ensure_role(name, description)

async def ensure_default_admin(
    repo: PrincipalRepository | None = None,
    settings: Settings = default_settings,
) -> None:
    """
    If nobody holds the global Super Administrator role, create a confirmed
    admin account from the environment and grant it that role.
    Only takes effect when ADMIN_PASSWORD is set (to avoid a default weak password).
    Environment variables:
      ADMIN_USERNAME (default: "admin")
      ADMIN_EMAIL    (default: "admin@example.com")
      ADMIN_PASSWORD (required, otherwise won't create)
    """
    repo = repo or TortoisePrincipalRepository()
    super_admin = await repo.ensure_role(SUPER_ADMIN)

    has_admin = await UserRole.filter(role_id=super_admin.id, client_id__isnull=True).exists()
    if has_admin:
        return

    if not settings.admin_password:
        logger.warning("[bootstrap] No Super Administrator present, but ADMIN_PASSWORD not set -> skip creating default admin.")
        return

    user = await repo.find_user_by_email(settings.admin_email)
    if user is None:
        # If username is already taken, create a non-conflicting name
        username = settings.admin_username
        suffix = 1
        while await repo.find_user_by_username(username):
            suffix += 1
            username = f"{settings.admin_username}{suffix}"

        user = await repo.create_user(
            username=username,
            email=settings.admin_email,
            password_hash=hash_password(settings.admin_password),
            email_confirmed=True,
        )
        logger.warning("[bootstrap] Created default admin -> username=%s email=%s id=%s",
                       user.username, user.email, user.id)

    await repo.assign_role(user.id, super_admin.id, None)
