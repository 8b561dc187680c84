"""
Akademi Backend — Scholarship Routes
======================================

Route Inventory:
    GET  /                    six cheapest scholarships, newest first on ties
    GET  /all-data            every scholarship
    GET  /scholarship/{id}    one scholarship with its reviews, or {}
    POST /add-scholarship     insert a scholarship (moderator or admin, ?email=)
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends

from akademi.database import Collections
from akademi.dependencies import get_collections, get_scholarship_service, require_staff
from akademi.schemas.common import ErrorResponse, InsertResultResponse
from akademi.services.scholarship_service import ScholarshipService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Scholarships"])


@router.get("/", summary="Top scholarships by lowest application fee")
async def list_top_scholarships(
    collections: Collections = Depends(get_collections),
    service: ScholarshipService = Depends(get_scholarship_service),
) -> List[Dict[str, Any]]:
    return await service.list_top(collections.scholarships)


@router.get("/all-data", summary="All scholarships")
async def list_all_scholarships(
    collections: Collections = Depends(get_collections),
    service: ScholarshipService = Depends(get_scholarship_service),
) -> List[Dict[str, Any]]:
    return await service.list_all(collections.scholarships)


@router.get(
    "/scholarship/{scholarship_id}",
    responses={400: {"description": "Malformed identifier", "model": ErrorResponse}},
    summary="Scholarship detail with reviews",
)
async def get_scholarship(
    scholarship_id: str,
    collections: Collections = Depends(get_collections),
    service: ScholarshipService = Depends(get_scholarship_service),
) -> Dict[str, Any]:
    return await service.get_detail(collections.scholarships, scholarship_id)


@router.post(
    "/add-scholarship",
    response_model=InsertResultResponse,
    dependencies=[Depends(require_staff)],
    responses={403: {"model": ErrorResponse}},
    summary="Add a scholarship (moderator or admin)",
)
async def add_scholarship(
    document: Dict[str, Any] = Body(...),
    collections: Collections = Depends(get_collections),
    service: ScholarshipService = Depends(get_scholarship_service),
) -> InsertResultResponse:
    return await service.create(collections.scholarships, document)
