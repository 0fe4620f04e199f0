"""
JunkHub Backend — Shared Schema Building Blocks
=================================================

What:  Base model, reusable constrained types and generic response shapes.
How:   `CamelModel` serializes snake_case attributes as camelCase JSON
       (`first_name` → `firstName`) and accepts either spelling on input.
       FastAPI serializes response models by alias, so every API payload
       is camelCase.
"""

import re
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Constrained Types
# ══════════════════════════════════════════════════════════════════════════

# Images travel as base64 data URIs and are stored inline
IMAGE_DATA_URI_RE = re.compile(r"^data:image/(png|jpeg|jpg|gif|webp|svg\+xml);base64,")
MAX_IMAGE_MB = 50


def validate_image_data_uri(value: str) -> str:
    if not value:
        raise ValueError("Image data is required")
    if not IMAGE_DATA_URI_RE.match(value):
        raise ValueError(
            "Invalid image format. Must be a base64 data URI with format: "
            "data:image/[type];base64,[data]"
        )
    payload = value.split(",", 1)[1]
    size_mb = (len(payload) * 3 / 4) / (1024 * 1024)
    if size_mb > MAX_IMAGE_MB:
        raise ValueError(
            f"Image size ({size_mb:.2f}MB) exceeds maximum allowed size of {MAX_IMAGE_MB}MB"
        )
    return value


ImageDataURI = Annotated[str, AfterValidator(validate_image_data_uri)]

# Philippine mobile numbers: 09XXXXXXXXX or +639XXXXXXXXX
PHONE_PATTERN = r"^(\+63|0)?9\d{9}$"
PhoneNumber = Annotated[str, StringConstraints(strip_whitespace=True, pattern=PHONE_PATTERN)]

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Password = Annotated[str, StringConstraints(min_length=6, max_length=128)]


def reject_null(value):
    """Partial updates may omit a required column but never clear it."""
    if value is None:
        raise ValueError("Field cannot be null")
    return value


# ══════════════════════════════════════════════════════════════════════════
# Generic Responses
# ══════════════════════════════════════════════════════════════════════════

class MessageResponse(CamelModel):
    message: str


class FieldError(BaseModel):
    field: str
    message: str


class PathError(BaseModel):
    path: str
    msg: str


class ErrorResponse(BaseModel):
    """
    Error body returned by every global exception handler.

    Validation failures also carry `errors` and `details`.
    """

    error: str = Field(description="Human-readable error message")
    code: str = Field(description="Stable machine-readable error code")
    request_id: str = Field(default="", description="Correlation ID for support")
    errors: Optional[List[PathError]] = None
    details: Optional[List[FieldError]] = None


class HealthResponse(CamelModel):
    status: str = Field(description="healthy or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float
