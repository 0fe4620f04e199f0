"""
JunkHub Backend — Ownership Predicate
=======================================

One check used by every handler that guards a resource by ownership:

    missing record        → NotFoundError (404)
    principal not owner   → ForbiddenError "Access denied" (403)

`owner_ids_of` maps a record to the id (or ids) allowed to act on it. Orders
are the multi-owner case: every owner whose shop supplied an item may update
the order's status.
"""

import uuid
from typing import Awaitable, Callable, Iterable, Optional, TypeVar, Union

from app.exceptions import ForbiddenError, NotFoundError

T = TypeVar("T")

OwnerIds = Union[uuid.UUID, Iterable[uuid.UUID], None]


def authorize_owner(
    record: Optional[T],
    owner_ids_of: Callable[[T], OwnerIds],
    principal_id: uuid.UUID,
    resource: str,
) -> T:
    if record is None:
        raise NotFoundError(resource)

    owners = owner_ids_of(record)
    if owners is None:
        allowed = set()
    elif isinstance(owners, uuid.UUID):
        allowed = {owners}
    else:
        allowed = set(owners)

    if principal_id not in allowed:
        raise ForbiddenError(
            "Access denied",
            context={"resource": resource, "principal_id": str(principal_id)},
        )
    return record


async def load_owned(
    fetch: Awaitable[Optional[T]],
    owner_ids_of: Callable[[T], OwnerIds],
    principal_id: uuid.UUID,
    resource: str,
) -> T:
    """Awaits a loader and applies `authorize_owner` to the result."""
    record = await fetch
    return authorize_owner(record, owner_ids_of, principal_id, resource)
