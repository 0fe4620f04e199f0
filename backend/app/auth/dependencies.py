"""
JunkHub Backend — Identity Resolution and Authorization Gate
==============================================================

What:  FastAPI dependencies that turn a request into a verified principal.
How:   1. Identity resolution reads the token from the auth cookie (first) or
          the `Authorization: Bearer` header (fallback) and decodes it.
       2. The gate checks the role, loads the account row and enforces
          account-state preconditions (owners must be approved).
Who:   Every protected route declares one of `require_user`, `require_owner`,
       `require_admin` or `require_any_role(...)`.

Failure ladder (first failing step wins, nothing is written):
    no token                   → 401 "Authentication required"
    bad / expired token        → 401 "Invalid or expired token"
    role mismatch              → 403 "<Role> access required"
    account row gone           → 401 "<Role> not found"
    owner not approved         → 403 PENDING_APPROVAL

Usage:
    @router.get("/api/owner/stats")
    async def stats(owner: OwnerIdentity = Depends(require_owner)):
        ...
"""

import uuid
from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from fastapi import Depends
from fastapi.security import APIKeyCookie, HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.credentials import TokenIdentity, decode_token
from app.config import settings
from app.database import get_db_session
from app.exceptions import ForbiddenError, PendingApprovalError, UnauthenticatedError
from app.models import Admin, Owner, User
from app.models.enums import Role

# Both schemes are optional on their own; get_token_identity decides
bearer_scheme = HTTPBearer(auto_error=False)
cookie_scheme = APIKeyCookie(name=settings.auth_cookie_name, auto_error=False)


# ══════════════════════════════════════════════════════════════════════════
# Principals
# ══════════════════════════════════════════════════════════════════════════

class UserIdentity(BaseModel):
    role: Literal["user"] = "user"
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    created_at: Optional[datetime] = None


class OwnerIdentity(BaseModel):
    role: Literal["owner"] = "owner"
    id: uuid.UUID
    email: str
    business_name: str
    business_address: str
    phone: str
    approved: bool
    created_at: Optional[datetime] = None


class AdminIdentity(BaseModel):
    role: Literal["admin"] = "admin"
    id: uuid.UUID
    email: str
    name: str
    created_at: Optional[datetime] = None


# Token claims merged with the account row, discriminated by role
Identity = Annotated[
    Union[UserIdentity, OwnerIdentity, AdminIdentity],
    Field(discriminator="role"),
]

_ACCOUNT_MODELS = {
    Role.USER: (User, UserIdentity),
    Role.OWNER: (Owner, OwnerIdentity),
    Role.ADMIN: (Admin, AdminIdentity),
}


# ══════════════════════════════════════════════════════════════════════════
# Identity Resolution
# ══════════════════════════════════════════════════════════════════════════

def extract_token(
    cookie_token: Optional[str],
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    """The cookie wins when both are present."""
    if cookie_token:
        return cookie_token
    if credentials and credentials.credentials:
        return credentials.credentials
    return None


async def get_token_identity(
    cookie_token: Optional[str] = Depends(cookie_scheme),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenIdentity:
    token = extract_token(cookie_token, credentials)
    if token is None:
        raise UnauthenticatedError("Authentication required")
    return decode_token(token)


# ══════════════════════════════════════════════════════════════════════════
# Authorization Gate
# ══════════════════════════════════════════════════════════════════════════

def ensure_owner_approved(owner: Owner) -> None:
    if not owner.approved:
        raise PendingApprovalError(context={"owner_id": str(owner.id)})


def require_account(role: Role):
    """
    Dependency factory: the caller must hold a valid token for `role` whose
    account still exists and is usable.

    Returns the matching principal model (UserIdentity, OwnerIdentity or
    AdminIdentity).
    """
    model, principal_cls = _ACCOUNT_MODELS[role]

    async def account_gate(
        identity: TokenIdentity = Depends(get_token_identity),
        db: AsyncSession = Depends(get_db_session),
    ):
        if identity.role != role:
            raise ForbiddenError(
                f"{role.label} access required",
                context={"required": role.value, "actual": identity.role.value},
            )

        account = await db.get(model, identity.id)
        if account is None:
            raise UnauthenticatedError(f"{role.label} not found")

        if role is Role.OWNER:
            ensure_owner_approved(account)

        return principal_cls.model_validate(account, from_attributes=True)

    account_gate.__name__ = f"require_{role.value}"
    return account_gate


def require_any_role(*roles: Role):
    """
    Dependency factory that only checks role membership.

    Account rows and account state are not checked; handlers using this must
    load the account themselves.
    """
    allowed = frozenset(roles)

    async def role_gate(identity: TokenIdentity = Depends(get_token_identity)) -> TokenIdentity:
        if identity.role not in allowed:
            raise ForbiddenError(
                "Access denied",
                context={"allowed": sorted(r.value for r in allowed), "actual": identity.role.value},
            )
        return identity

    return role_gate


require_user = require_account(Role.USER)
require_owner = require_account(Role.OWNER)
require_admin = require_account(Role.ADMIN)
require_authenticated = require_any_role(Role.USER, Role.OWNER, Role.ADMIN)
