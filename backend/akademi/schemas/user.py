"""
Akademi Backend — User Schemas
================================

Request shape for sign-in registration, and the role vocabulary.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Role(str, Enum):
    """Authorization levels, lowest first."""
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


ADMIN_ROLES = frozenset({Role.ADMIN.value})
STAFF_ROLES = frozenset({Role.ADMIN.value, Role.MODERATOR.value})


class CreateUserRequest(BaseModel):
    """Body of POST /create-user, as sent by the front end after sign-in."""
    display_name: Optional[str] = Field(default=None, alias="displayName")
    email: str = Field(min_length=1, description="Unique key for the user record")

    model_config = {"populate_by_name": True}

    @field_validator("email")
    @classmethod
    def strip_email(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("email must not be blank")
        return stripped
