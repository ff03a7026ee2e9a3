# nextlevel/core/bootstrap.py
"""
Bootstrap module for application initialization.
Handles initial setup tasks such as creating default admin user on first startup.
"""
import os
import logging
from nextlevel.models.user import ROLE_ADMIN, User
from nextlevel.core.security import hash_password

logger = logging.getLogger("uvicorn.error")

async def ensure_default_admin() -> User | None:
    """
    If no admin exists in the database, create a default admin based on environment variables.
    Only takes effect under the following conditions:
      - Currently no user with role="admin"
      - And ADMIN_PASSWORD is set (to avoid using default weak password)
    Environment variables:
      ADMIN_EMAIL    (default: "admin@example.com")
      ADMIN_NAME     (default: "Administrator")
      ADMIN_PASSWORD (required, otherwise won't create)

    If an account with ADMIN_EMAIL already exists it is promoted instead of
    creating a second account with the same email.
    """
    # Check if any admin user already exists
    if await User.filter(role=ROLE_ADMIN).exists():
        return None

    admin_password = os.getenv("ADMIN_PASSWORD")
    if not admin_password:
        logger.warning("[bootstrap] No admin present, but ADMIN_PASSWORD not set -> skip creating default admin.")
        return None

    admin_email = os.getenv("ADMIN_EMAIL", "admin@example.com")
    admin_name = os.getenv("ADMIN_NAME", "Administrator")

    existing = await User.get_or_none(email=admin_email)
    if existing:
        existing.role = ROLE_ADMIN
        await existing.save(update_fields=["role", "updated_at"])
        logger.warning("[bootstrap] Promoted existing account to admin -> email=%s id=%s", existing.email, existing.id)
        return existing

    u = await User.create(
        email=admin_email,
        name=admin_name,
        password_hash=hash_password(admin_password),
        role=ROLE_ADMIN,
    )
    logger.warning("[bootstrap] Created default admin -> email=%s id=%s", u.email, u.id)
    return u
