"""
Seed script to create the first super admin.

Run once (after edusphere.db.schema) with env set:
  SUPER_ADMIN_EMAIL=admin@example.com
  SUPER_ADMIN_PASSWORD=YourSecurePassword

An existing user with that email is promoted to super_admin and gets the new password.
"""
import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.auth.models import User
from edusphere.auth.security import hash_password
from edusphere.core.config import settings
from edusphere.core.enums import UserRole
from edusphere.db.session import AsyncSessionLocal

DEFAULT_SUPER_ADMIN_FULL_NAME = "Super Admin"


async def seed_super_admin(db: AsyncSession) -> None:
    email = (settings.super_admin_email or "").strip().lower()
    password = settings.super_admin_password
    if not email or not password:
        print("No SUPER_ADMIN_EMAIL/SUPER_ADMIN_PASSWORD; skipping super admin user.")
        return

    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if not user:
        db.add(
            User(
                school_id=None,
                full_name=DEFAULT_SUPER_ADMIN_FULL_NAME,
                email=email,
                password_hash=hash_password(password),
                role=UserRole.SUPER_ADMIN.value,
                is_active=True,
            )
        )
        print("Created super admin:", email)
    else:
        user.role = UserRole.SUPER_ADMIN.value
        user.school_id = None
        user.class_id = None
        user.is_active = True
        user.password_hash = hash_password(password)
        print("Updated existing user to super admin:", email)

    await db.commit()
    print("Super admin seed done.")


async def main() -> None:
    async with AsyncSessionLocal() as db:
        try:
            await seed_super_admin(db)
        except Exception as e:
            await db.rollback()
            print("Error:", e)
            raise


if __name__ == "__main__":
    asyncio.run(main())
