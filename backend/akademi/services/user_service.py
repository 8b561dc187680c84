"""
Akademi Backend — User Service
================================

What:  User registration, lookup, listing and role changes against the Users
       collection.
How:   Each method performs exactly one store round trip (create-user does a
       find then, only if absent, an insert). Driver errors are wrapped in
       DatabaseError; malformed ids and unknown roles raise ValidationError
       before the store is touched.
Who:   Called by the user route handlers and by the role gates.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo.errors import PyMongoError

from akademi.database import parse_object_id
from akademi.exceptions import DatabaseError, ValidationError
from akademi.schemas.common import InsertResultResponse, UpdateResultResponse, to_jsonable
from akademi.schemas.user import CreateUserRequest, Role

logger = logging.getLogger(__name__)

EXISTING_USER_MESSAGE = "User already exists"


class UserService:
    """Stateless operations on the Users collection; the collection is passed per call."""

    async def create_user(self, users: Any, request: CreateUserRequest) -> InsertResultResponse:
        """
        Register a user on first sign-in.

        Idempotent by email: when a record already exists nothing is written and
        the response carries `insertedId: null`. New users always start with the
        least-privileged role.
        """
        try:
            existing = await users.find_one({"userEmail": request.email})
            if existing:
                logger.info("create-user: record already exists for %s", request.email)
                return InsertResultResponse(message=EXISTING_USER_MESSAGE, inserted_id=None)

            result = await users.insert_one({
                "userName": request.display_name,
                "userEmail": request.email,
                "role": Role.USER.value,
                "created_at": datetime.now(timezone.utc),
            })
        except PyMongoError as e:
            logger.error("Database error creating user %s: %s", request.email, str(e))
            raise DatabaseError(
                message="Could not register the user. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("create-user: inserted %s for %s", result.inserted_id, request.email)
        return InsertResultResponse.from_result(result)

    async def get_user(self, users: Any, email: str) -> Dict[str, Any]:
        """The user record for `email`, or an empty dict when there is none."""
        try:
            user = await users.find_one({"userEmail": email})
        except PyMongoError as e:
            logger.error("Database error fetching user %s: %s", email, str(e))
            raise DatabaseError(
                message="Could not retrieve the user. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e
        return to_jsonable(user) if user else {}

    async def get_role(self, users: Any, email: Optional[str]) -> Optional[str]:
        """Role stored for `email`; None when the email is blank, unknown, or the stored role is not a string."""
        if not email:
            return None
        try:
            user = await users.find_one({"userEmail": email}, projection={"role": 1})
        except PyMongoError as e:
            logger.error("Database error looking up role for %s: %s", email, str(e))
            raise DatabaseError(
                message="Could not verify your role. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e
        if not user:
            return None
        role = user.get("role")
        return role if isinstance(role, str) else None

    async def list_users(self, users: Any) -> List[Dict[str, Any]]:
        try:
            records = await users.find().to_list()
        except PyMongoError as e:
            logger.error("Database error listing users: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve users. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e
        return to_jsonable(records)

    async def update_role(self, users: Any, user_id: str, role: Optional[str]) -> UpdateResultResponse:
        """
        Set the role of one user.

        Raises:
            ValidationError: `role` is not user, moderator or admin.
            InvalidIdentifierError: `user_id` is not an ObjectId.
            DatabaseError: the update failed.
        """
        valid_roles = [r.value for r in Role]
        if role not in valid_roles:
            raise ValidationError(
                message=f"Invalid role '{role}'. Must be one of: {', '.join(valid_roles)}",
                field="role",
            )
        object_id = parse_object_id(user_id, resource="user")

        try:
            result = await users.update_one({"_id": object_id}, {"$set": {"role": role}})
        except PyMongoError as e:
            logger.error("Database error updating role of %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not update the role. Please try again.",
                context={"user_id": user_id, "error_type": type(e).__name__},
            ) from e

        logger.info("Role of user %s set to %s (matched=%d)", user_id, role, result.matched_count)
        return UpdateResultResponse.from_result(result)


user_service = UserService()
