"""Ownership authorization for mutable resources.

A principal may mutate a resource only if it is the recorded owner. There is
no role hierarchy or admin override. The caller loads the resource first, so
a missing resource is reported as not found before ownership is considered.
"""

from __future__ import annotations

import logging

from app.core.auth import Principal
from app.core.errors import ForbiddenAppError

logger = logging.getLogger(__name__)


def is_owner(principal: Principal, owner_id: int) -> bool:
    return owner_id == principal.user_id


def ensure_owner(principal: Principal, owner_id: int, *, action: str = "manage") -> None:
    """Raise unless ``principal`` owns the resource.

    Args:
        principal: Authenticated caller.
        owner_id: Owning principal id recorded on the loaded resource.
        action: Verb used in the error message (e.g. "update", "delete").

    Raises:
        ForbiddenAppError: If the ids differ.
    """
    if is_owner(principal, owner_id):
        return

    logger.warning(
        "ownership.denied",
        extra={"user_id": principal.user_id, "owner_id": owner_id, "action": action},
    )
    raise ForbiddenAppError(
        code="forbidden",
        message=f"you can only {action} your own articles",
    )
