"""
JunkHub Backend — Credential Layer
====================================

What:  Password hashing/verification and signed-token issuance/verification.
How:   bcrypt through passlib's CryptContext; HS256 JWTs through python-jose.
Who:   Used by the account service (register, login, password change) and by
       the identity resolution dependency on every authenticated request.

Token payload:
    {"id": "<account uuid>", "email": "...", "role": "user|owner|admin",
     "iat": <issued at>, "exp": <expiry>}

bcrypt is CPU-bound (tens of milliseconds at the default cost), so hashing
and verification run in the threadpool instead of on the event loop.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.exceptions import UnauthenticatedError
from app.models.enums import Role

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


class TokenIdentity(BaseModel):
    """The decoded, verified claims of an access token."""

    id: uuid.UUID
    email: str
    role: Role


# ── Passwords ─────────────────────────────────────────────────────────────

async def hash_password(plain: str) -> str:
    """Returns a salted bcrypt hash of `plain`."""
    return await run_in_threadpool(pwd_context.hash, plain)


async def verify_password(plain: str, hashed: str) -> bool:
    """
    Checks `plain` against a stored hash.

    A malformed or unrecognised stored hash counts as a mismatch rather than
    an error, so a corrupted row cannot be used to distinguish accounts.
    """
    try:
        return await run_in_threadpool(pwd_context.verify, plain, hashed)
    except (ValueError, TypeError):
        logger.warning("Stored password hash could not be identified")
        return False


# ── Tokens ────────────────────────────────────────────────────────────────

def issue_token(
    account_id: Union[uuid.UUID, str],
    email: str,
    role: Union[Role, str],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Signs an access token for an account.

    Args:
        account_id:    Primary key of the account in its role's table.
        email:         Account email at issue time.
        role:          Account kind.
        expires_delta: Lifetime override; defaults to JWT_EXPIRE_DAYS.
    """
    now = datetime.now(timezone.utc)
    lifetime = expires_delta if expires_delta is not None else timedelta(days=settings.jwt_expire_days)
    payload = {
        "id": str(account_id),
        "email": email,
        "role": Role(role).value,
        "iat": int(now.timestamp()),
        "exp": int((now + lifetime).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> TokenIdentity:
    """
    Verifies signature and expiry and returns the token's identity.

    Raises:
        UnauthenticatedError: malformed, tampered, expired, missing claims or
            an unknown role. All cases share one message.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return TokenIdentity(id=payload["id"], email=payload["email"], role=payload["role"])
    except (JWTError, KeyError, PydanticValidationError) as exc:
        logger.debug("Rejected access token: %s", exc)
        raise UnauthenticatedError("Invalid or expired token") from exc
