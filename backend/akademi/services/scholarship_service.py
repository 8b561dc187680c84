"""
Akademi Backend — Scholarship Service
=======================================

What:  Listing, detail and creation of scholarships.
How:   One store operation per method:
         - top listing:  find().sort(applicationFees ↑, _id ↓).limit(6)
         - all listing:  find()
         - detail:       aggregate [$match _id, $lookup Reviews.postId → reviews]
         - create:       insert_one(body)
       When degraded mode is enabled and a listing comes back empty, the
       static catalogue from akademi.fallback is returned instead.
Who:   Called by the scholarship route handlers.
"""

import logging
from typing import Any, Dict, List

from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from akademi.database import REVIEWS_COLLECTION, parse_object_id
from akademi.exceptions import DatabaseError
from akademi.fallback import TOP_SCHOLARSHIPS_LIMIT, degraded_catalogue, degraded_top_scholarships
from akademi.schemas.common import InsertResultResponse, to_jsonable

logger = logging.getLogger(__name__)

# Cheapest first; newest first among equal fees
TOP_SCHOLARSHIPS_SORT = [("applicationFees", ASCENDING), ("_id", DESCENDING)]


def detail_pipeline(scholarship_id: Any) -> List[Dict[str, Any]]:
    """Aggregation joining a scholarship with its reviews."""
    return [
        {"$match": {"_id": scholarship_id}},
        {
            "$lookup": {
                "from": REVIEWS_COLLECTION,
                "localField": "_id",
                "foreignField": "postId",
                "as": "reviews",
            }
        },
    ]


class ScholarshipService:
    """
    Scholarship reads and writes.

    Args:
        degraded_mode: serve the static catalogue for empty listings.
    """

    def __init__(self, degraded_mode: bool = False):
        self.degraded_mode = degraded_mode

    async def list_top(self, scholarships: Any) -> List[Dict[str, Any]]:
        try:
            cursor = (
                scholarships.find()
                .sort(TOP_SCHOLARSHIPS_SORT)
                .limit(TOP_SCHOLARSHIPS_LIMIT)
            )
            records = await cursor.to_list()
        except PyMongoError as e:
            logger.error("Database error listing top scholarships: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve scholarships. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        if not records and self.degraded_mode:
            logger.warning("Scholarships collection is empty; serving degraded top listing")
            return degraded_top_scholarships()
        return to_jsonable(records)

    async def list_all(self, scholarships: Any) -> List[Dict[str, Any]]:
        try:
            records = await scholarships.find().to_list()
        except PyMongoError as e:
            logger.error("Database error listing scholarships: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve scholarships. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        if not records and self.degraded_mode:
            logger.warning("Scholarships collection is empty; serving degraded catalogue")
            return degraded_catalogue()
        return to_jsonable(records)

    async def get_detail(self, scholarships: Any, scholarship_id: str) -> Dict[str, Any]:
        """
        One scholarship with a `reviews` array, or {} when no record has that id.

        Raises:
            InvalidIdentifierError: `scholarship_id` is not an ObjectId (400).
        """
        object_id = parse_object_id(scholarship_id, resource="scholarship")

        try:
            cursor = await scholarships.aggregate(detail_pipeline(object_id))
            records = await cursor.to_list()
        except PyMongoError as e:
            logger.error("Database error fetching scholarship %s: %s", scholarship_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the scholarship. Please try again.",
                context={"scholarship_id": scholarship_id, "error_type": type(e).__name__},
            ) from e

        return to_jsonable(records[0]) if records else {}

    async def create(self, scholarships: Any, document: Dict[str, Any]) -> InsertResultResponse:
        """Insert the scholarship exactly as submitted."""
        try:
            result = await scholarships.insert_one(dict(document))
        except PyMongoError as e:
            logger.error("Database error adding scholarship: %s", str(e))
            raise DatabaseError(
                message="Could not add the scholarship. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("Scholarship %s added", result.inserted_id)
        return InsertResultResponse.from_result(result)
