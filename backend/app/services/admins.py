"""Management of admin console accounts."""

from __future__ import annotations

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.db.models import ActivityLog, Admin, AdminRole, ProductReport, SystemSetting
from app.services.auth import hash_password, normalize_email

logger = get_logger(__name__)


class AdminAccountError(Exception):
    """Raised when an account change is not allowed."""

    def __init__(self, message: str, status_code: int = 400):
        self.status_code = status_code
        super().__init__(message)


class AdminNotFoundError(AdminAccountError):
    def __init__(self):
        super().__init__("Admin not found", status_code=404)


class AdminAccountService:
    """Create, edit and remove console accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_admins(self) -> list[Admin]:
        result = await self.db.execute(select(Admin).order_by(Admin.created_at.desc()))
        return list(result.scalars().all())

    async def get_admin(self, admin_id: str) -> Admin:
        admin = await self.db.get(Admin, admin_id)
        if admin is None:
            raise AdminNotFoundError()
        return admin

    async def create_admin(
        self, email: str, password: str, full_name: str, role: AdminRole = AdminRole.ADMIN
    ) -> Admin:
        """Create an account.

        Raises:
            AdminAccountError: If the email is already taken.
        """
        email = normalize_email(email)
        existing = await self.db.execute(select(Admin.id).where(Admin.email == email))
        if existing.scalar_one_or_none() is not None:
            raise AdminAccountError("Email already registered")

        admin = Admin(
            email=email,
            password_hash=hash_password(password),
            full_name=full_name,
            role=role,
        )
        self.db.add(admin)
        await self.db.flush()

        logger.info("admin_created", admin_id=admin.id, role=role.value)
        return admin

    async def update_admin(
        self,
        admin_id: str,
        acting_admin_id: str,
        full_name: str | None = None,
        role: AdminRole | None = None,
        is_active: bool | None = None,
    ) -> tuple[Admin, dict[str, object]]:
        """Apply the given field changes.

        Returns:
            Tuple of (updated admin, mapping of the fields that were supplied).

        Raises:
            AdminNotFoundError: If the account does not exist.
            AdminAccountError: If an admin tries to deactivate themselves.
        """
        admin = await self.get_admin(admin_id)
        if admin_id == acting_admin_id and is_active is False:
            raise AdminAccountError("Cannot deactivate your own account")

        changes: dict[str, object] = {}
        if full_name is not None:
            admin.full_name = full_name
            changes["full_name"] = full_name
        if role is not None:
            admin.role = role
            changes["role"] = role.value
        if is_active is not None:
            admin.is_active = is_active
            changes["is_active"] = is_active
        await self.db.flush()

        logger.info("admin_updated", admin_id=admin_id, fields=sorted(changes))
        return admin, changes

    async def delete_admin(self, admin_id: str, acting_admin_id: str) -> str:
        """Delete an account, detaching it from rows it authored.

        Returns:
            The deleted account's email, for the audit trail.
        """
        admin = await self.get_admin(admin_id)
        if admin_id == acting_admin_id:
            raise AdminAccountError("Cannot delete your own account")
        email = admin.email

        # Not every connection enforces ON DELETE SET NULL
        await self.db.execute(
            update(ActivityLog).where(ActivityLog.admin_id == admin_id).values(admin_id=None)
        )
        await self.db.execute(
            update(SystemSetting)
            .where(SystemSetting.updated_by == admin_id)
            .values(updated_by=None)
        )
        await self.db.execute(
            update(ProductReport)
            .where(ProductReport.reviewed_by == admin_id)
            .values(reviewed_by=None)
        )
        await self.db.execute(delete(Admin).where(Admin.id == admin_id))

        logger.info("admin_deleted", admin_id=admin_id)
        return email
