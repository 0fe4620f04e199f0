"""
JunkHub Backend — Account Service
===================================

What:  Registration, login, "who am I", profile edits and password flows for
       all three account kinds.
How:   The three kinds share one code path keyed on `Role`; the role decides
       which table is queried and which preconditions apply (owners must be
       approved before they can log in).
Who:   Called by the auth, users, owner and admin route handlers.

Password reset flow:
    1. request_password_reset(email, phone, role)
       The phone number acts as the second factor. A random token is
       returned once; only its SHA-256 digest is stored, with an expiry of
       RESET_TOKEN_TTL_MINUTES. Older tokens for the account and any expired
       tokens are purged at this point.
    2. reset_password(token, new_password)
       Unknown or expired token → InvalidStateError. On success the
       password changes and the token row is deleted (single use).
"""

import hashlib
import logging
import secrets
import uuid
from datetime import datetime, timedelta
from typing import Optional, Tuple, Type, Union

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.credentials import TokenIdentity, hash_password, issue_token, verify_password
from app.auth.dependencies import ensure_owner_approved
from app.config import settings
from app.database import as_utc, utcnow
from app.exceptions import (
    DuplicateEmailError,
    InvalidStateError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from app.models import Admin, Owner, PasswordResetToken, User
from app.models.enums import Role
from app.schemas.accounts import (
    RegisterOwnerRequest,
    RegisterUserRequest,
    UpdateAdminProfileRequest,
    UpdateOwnerProfileRequest,
    UpdateUserProfileRequest,
)
from app.services.notification_service import notification_service

logger = logging.getLogger(__name__)

Account = Union[User, Owner, Admin]

_MODELS: dict = {
    Role.USER: User,
    Role.OWNER: Owner,
    Role.ADMIN: Admin,
}

OWNER_PENDING_MESSAGE = "Registration successful. Your account is pending admin approval."


def _digest(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


class AccountService:
    """Account lifecycle operations. Stateless; every call receives a session."""

    # ── Lookups ───────────────────────────────────────────────────────────

    def model_for(self, role: Role) -> Type[Account]:
        return _MODELS[Role(role)]

    async def find_by_email(self, db: AsyncSession, role: Role, email: str) -> Optional[Account]:
        model = self.model_for(role)
        result = await db.execute(select(model).where(model.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_account(self, db: AsyncSession, role: Role, account_id: uuid.UUID) -> Account:
        model = self.model_for(role)
        account = await db.get(model, account_id)
        if account is None:
            raise NotFoundError(role.label, account_id)
        return account

    async def _ensure_email_free(self, db: AsyncSession, role: Role, email: str) -> None:
        if await self.find_by_email(db, role, email) is not None:
            raise DuplicateEmailError(email)

    # ══════════════════════════════════════════════════════════════════════
    # Registration & Login
    # ══════════════════════════════════════════════════════════════════════

    async def register_user(self, db: AsyncSession, data: RegisterUserRequest) -> Tuple[User, str]:
        await self._ensure_email_free(db, Role.USER, data.email)
        user = User(
            email=data.email,
            password_hash=await hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            wishlist=[],
        )
        db.add(user)
        await db.flush()
        logger.info("Registered user %s", user.id)
        return user, issue_token(user.id, user.email, Role.USER)

    async def register_owner(
        self, db: AsyncSession, data: RegisterOwnerRequest
    ) -> Tuple[Owner, Optional[str]]:
        """
        Creates an unapproved owner and tells every admin about it.

        No token is issued while the owner awaits approval.
        """
        await self._ensure_email_free(db, Role.OWNER, data.email)
        owner = Owner(
            email=data.email,
            password_hash=await hash_password(data.password),
            business_name=data.business_name,
            business_address=data.business_address,
            phone=data.phone,
            approved=False,
        )
        db.add(owner)
        await db.flush()
        logger.info("Registered owner %s (pending approval)", owner.id)

        await notification_service.owner_registered(db, owner.business_name)

        token = issue_token(owner.id, owner.email, Role.OWNER) if owner.approved else None
        return owner, token

    async def login(
        self, db: AsyncSession, role: Role, email: str, password: str
    ) -> Tuple[Account, str]:
        """
        Verifies credentials and issues a token.

        Raises:
            UnauthenticatedError: unknown email or wrong password (same message).
            PendingApprovalError: correct owner credentials, not yet approved.
        """
        account = await self.find_by_email(db, role, email)
        if account is None or not await verify_password(password, account.password_hash):
            raise UnauthenticatedError("Invalid email or password")

        if role is Role.OWNER:
            ensure_owner_approved(account)

        return account, issue_token(account.id, account.email, role)

    async def me(self, db: AsyncSession, identity: TokenIdentity) -> Account:
        """Current account for any role; owners must still be approved."""
        account = await self.get_account(db, identity.role, identity.id)
        if identity.role is Role.OWNER:
            ensure_owner_approved(account)
        return account

    # ══════════════════════════════════════════════════════════════════════
    # Profiles
    # ══════════════════════════════════════════════════════════════════════

    async def update_user_profile(
        self, db: AsyncSession, user_id: uuid.UUID, data: UpdateUserProfileRequest
    ) -> User:
        user = await self.get_account(db, Role.USER, user_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(user, field, value)
        await db.flush()
        return user

    async def update_owner_profile(
        self, db: AsyncSession, owner_id: uuid.UUID, data: UpdateOwnerProfileRequest
    ) -> Owner:
        owner = await self.get_account(db, Role.OWNER, owner_id)
        changes = data.model_dump(exclude_unset=True, exclude={"current_password", "new_password"})

        if data.new_password:
            if not data.current_password:
                raise ValidationError(
                    "Current password is required to set a new password",
                    field="currentPassword",
                )
            await self._check_current_password(owner, data.current_password)
            owner.password_hash = await hash_password(data.new_password)

        for field, value in changes.items():
            setattr(owner, field, value)
        await db.flush()
        return owner

    async def update_admin_profile(
        self, db: AsyncSession, admin_id: uuid.UUID, data: UpdateAdminProfileRequest
    ) -> Admin:
        admin = await self.get_account(db, Role.ADMIN, admin_id)
        changes = data.model_dump(exclude_unset=True)
        if "email" in changes:
            changes["email"] = changes["email"].lower()
            if changes["email"] != admin.email:
                await self._ensure_email_free(db, Role.ADMIN, changes["email"])
        for field, value in changes.items():
            setattr(admin, field, value)
        await db.flush()
        return admin

    # ══════════════════════════════════════════════════════════════════════
    # Passwords
    # ══════════════════════════════════════════════════════════════════════

    async def _check_current_password(self, account: Account, current_password: str) -> None:
        if not await verify_password(current_password, account.password_hash):
            raise ValidationError("Current password is incorrect", field="currentPassword")

    async def change_password(
        self,
        db: AsyncSession,
        role: Role,
        account_id: uuid.UUID,
        current_password: str,
        new_password: str,
    ) -> None:
        account = await self.get_account(db, role, account_id)
        await self._check_current_password(account, current_password)
        account.password_hash = await hash_password(new_password)
        await db.flush()
        logger.info("Password changed for %s %s", role.value, account_id)

    async def request_password_reset(
        self, db: AsyncSession, role: Role, email: str, phone: str
    ) -> Tuple[str, datetime]:
        """
        Issues a reset token when email and phone identify one account.

        Returns:
            (raw_token, expires_at). The raw token is not stored anywhere.
        """
        account = await self.find_by_email(db, role, email)
        if account is None or (account.phone or "").strip() != phone.strip():
            raise NotFoundError(
                "Account",
                message="No account found with that email and phone number",
            )

        now = utcnow()
        await db.execute(
            delete(PasswordResetToken).where(
                (PasswordResetToken.expires_at <= now)
                | (
                    (PasswordResetToken.account_id == account.id)
                    & (PasswordResetToken.role == role.value)
                )
            )
        )

        raw_token = secrets.token_urlsafe(32)
        expires_at = now + timedelta(minutes=settings.reset_token_ttl_minutes)
        db.add(
            PasswordResetToken(
                token_hash=_digest(raw_token),
                role=role.value,
                account_id=account.id,
                expires_at=expires_at,
            )
        )
        await db.flush()
        logger.info("Issued password reset token for %s %s", role.value, account.id)
        return raw_token, expires_at

    async def reset_password(self, db: AsyncSession, raw_token: str, new_password: str) -> Role:
        """Consumes a reset token and sets the new password. Returns the account role."""
        record = await db.get(PasswordResetToken, _digest(raw_token))
        if record is None or as_utc(record.expires_at) <= utcnow():
            raise InvalidStateError("Invalid or expired reset token")

        role = Role(record.role)
        account = await db.get(self.model_for(role), record.account_id)
        if account is None:
            raise NotFoundError(role.label, record.account_id)

        account.password_hash = await hash_password(new_password)
        await db.delete(record)
        await db.flush()
        logger.info("Password reset completed for %s %s", role.value, account.id)
        return role


# Singleton instance
account_service = AccountService()
