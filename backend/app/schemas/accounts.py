"""
JunkHub Backend — Account Schemas
===================================

Request bodies for registration, login, profile edits and password flows,
plus the public representations of users, owners and admins. Password
hashes never leave the service layer: none of the output models has a
field for them.
"""

import uuid
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import EmailStr, Field, field_validator

from app.schemas.common import CamelModel, ImageDataURI, NonEmptyStr, Password, PhoneNumber, reject_null


def _lower(value: str) -> str:
    return value.strip().lower()


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════

class RegisterUserRequest(CamelModel):
    email: EmailStr
    password: Password
    first_name: NonEmptyStr
    last_name: NonEmptyStr
    phone: Optional[PhoneNumber] = None

    normalize_email = field_validator("email")(_lower)


class RegisterOwnerRequest(CamelModel):
    email: EmailStr
    password: Password
    business_name: NonEmptyStr
    business_address: NonEmptyStr
    phone: PhoneNumber

    normalize_email = field_validator("email")(_lower)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)

    normalize_email = field_validator("email")(_lower)


class UpdateUserProfileRequest(CamelModel):
    first_name: Optional[NonEmptyStr] = None
    last_name: Optional[NonEmptyStr] = None
    phone: Optional[PhoneNumber] = None
    address: Optional[str] = None
    profile_pic: Optional[ImageDataURI] = None

    not_null = field_validator("first_name", "last_name", mode="before")(reject_null)


class UpdateOwnerProfileRequest(CamelModel):
    business_name: Optional[NonEmptyStr] = None
    business_address: Optional[NonEmptyStr] = None
    phone: Optional[PhoneNumber] = None
    profile_pic: Optional[ImageDataURI] = None
    # Changing the password requires the current one
    current_password: Optional[str] = None
    new_password: Optional[Password] = None

    not_null = field_validator("business_name", "business_address", "phone", mode="before")(reject_null)


class UpdateAdminProfileRequest(CamelModel):
    name: Optional[NonEmptyStr] = None
    email: Optional[EmailStr] = None
    profile_pic: Optional[ImageDataURI] = None

    not_null = field_validator("name", "email", mode="before")(reject_null)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: Password


class ForgotPasswordRequest(CamelModel):
    email: EmailStr
    phone: PhoneNumber
    role: Literal["user", "owner"] = "user"

    normalize_email = field_validator("email")(_lower)


class ResetPasswordRequest(CamelModel):
    reset_token: str = Field(min_length=1)
    new_password: Password


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════

class UserOut(CamelModel):
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    profile_pic: Optional[str] = None
    created_at: datetime


class OwnerOut(CamelModel):
    id: uuid.UUID
    email: str
    business_name: str
    business_address: str
    phone: str
    profile_pic: Optional[str] = None
    approved: bool
    created_at: datetime


class AdminOut(CamelModel):
    id: uuid.UUID
    email: str
    name: str
    profile_pic: Optional[str] = None
    created_at: datetime


class UserAuthResponse(CamelModel):
    user: UserOut
    token: str


class OwnerAuthResponse(CamelModel):
    owner: OwnerOut
    token: str


class AdminAuthResponse(CamelModel):
    admin: AdminOut
    token: str


class OwnerRegisterResponse(CamelModel):
    message: str
    owner: OwnerOut
    token: Optional[str] = None


class UserMe(UserOut):
    role: Literal["user"] = "user"
    wishlist: List[str] = []


class OwnerMe(OwnerOut):
    role: Literal["owner"] = "owner"


class AdminMe(AdminOut):
    role: Literal["admin"] = "admin"


class MeResponse(CamelModel):
    user: Annotated[Union[UserMe, OwnerMe, AdminMe], Field(discriminator="role")]


class UserEnvelope(CamelModel):
    user: UserOut


class OwnerEnvelope(CamelModel):
    owner: OwnerOut


class AdminEnvelope(CamelModel):
    admin: AdminOut


class ForgotPasswordResponse(CamelModel):
    message: str
    reset_token: str
    expires_at: datetime
