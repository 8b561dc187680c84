"""
Akademi Backend — Route Dependencies
======================================

What:  FastAPI dependencies that hand route handlers the application-owned
       store, services, and the role gates.
How:   Everything is read from `request.app.state`, populated by create_app(),
       so tests can build an app around their own store and clients.

Role gates:
    require_admin  → role must be "admin"
    require_staff  → role must be "admin" or "moderator"

    The caller's identity is the `email` query parameter, looked up in the
    Users collection as-is. Nothing verifies that the caller owns that email.
    A missing email, a missing record or an unknown role are all rejected
    with 403.
"""

import logging
from typing import Optional

from fastapi import Depends, Query, Request

from akademi.database import Collections, MongoStore
from akademi.exceptions import AuthorizationError
from akademi.schemas.user import ADMIN_ROLES, STAFF_ROLES
from akademi.services.payment_service import PaymentService
from akademi.services.scholarship_service import ScholarshipService
from akademi.services.user_service import user_service

logger = logging.getLogger(__name__)


def get_store(request: Request) -> MongoStore:
    return request.app.state.store


async def get_collections(store: MongoStore = Depends(get_store)) -> Collections:
    """Collection handles; the readiness gate has normally connected already."""
    return await store.ensure_connection()


def get_scholarship_service(request: Request) -> ScholarshipService:
    return request.app.state.scholarship_service


def get_payment_service(request: Request) -> PaymentService:
    return request.app.state.payment_service


def require_role(allowed: frozenset, denial_message: str):
    """Build a dependency admitting only callers whose stored role is in `allowed`."""

    async def check_role(
        request: Request,
        email: Optional[str] = Query(
            default=None,
            description="Email of the acting user; its stored role is checked",
        ),
        collections: Collections = Depends(get_collections),
    ) -> str:
        role = await user_service.get_role(collections.users, email)
        if role not in allowed:
            request.state.rejection = f"role {role!r} not in {sorted(allowed)}"
            logger.warning("Role gate denied %s (role=%s, required=%s)", email, role, sorted(allowed))
            raise AuthorizationError(
                message=denial_message,
                context={"required_roles": sorted(allowed)},
            )
        return role

    return check_role


require_admin = require_role(ADMIN_ROLES, "Access denied: administrator role required")
require_staff = require_role(STAFF_ROLES, "Access denied: moderator or administrator role required")
