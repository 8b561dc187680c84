"""
Akademi Backend — User Routes
===============================

Route Inventory:
    POST  /create-user          register on first sign-in (idempotent by email)
    GET   /users/{email}        user record, or {} when unknown
    GET   /all-users            every user            (admin, ?email=)
    PATCH /update-role/{id}     set a user's role     (admin, ?email=, ?role=)
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from akademi.database import Collections
from akademi.dependencies import get_collections, require_admin
from akademi.schemas.common import ErrorResponse, InsertResultResponse, UpdateResultResponse
from akademi.schemas.user import CreateUserRequest
from akademi.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])


@router.post(
    "/create-user",
    response_model=InsertResultResponse,
    summary="Register a user on first sign-in",
)
async def create_user(
    body: CreateUserRequest,
    collections: Collections = Depends(get_collections),
) -> InsertResultResponse:
    return await user_service.create_user(collections.users, body)


@router.get("/users/{email}", summary="Get a user by email")
async def get_user(
    email: str,
    collections: Collections = Depends(get_collections),
) -> Dict[str, Any]:
    return await user_service.get_user(collections.users, email)


@router.get(
    "/all-users",
    dependencies=[Depends(require_admin)],
    responses={403: {"model": ErrorResponse}},
    summary="List all users (admin only)",
)
async def list_users(collections: Collections = Depends(get_collections)) -> List[Dict[str, Any]]:
    return await user_service.list_users(collections.users)


@router.patch(
    "/update-role/{user_id}",
    response_model=UpdateResultResponse,
    dependencies=[Depends(require_admin)],
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="Change a user's role (admin only)",
)
async def update_role(
    user_id: str,
    role: Optional[str] = Query(default=None, description="user, moderator or admin"),
    collections: Collections = Depends(get_collections),
) -> UpdateResultResponse:
    return await user_service.update_role(collections.users, user_id, role)
