"""
Akademi Backend — Degraded-Mode Catalogue
===========================================

What:  A fixed set of scholarships served by the listing routes when degraded
       mode is enabled (DEGRADED_MODE=true) and the Scholarships collection is
       empty.
How:   ScholarshipService asks for `degraded_catalogue()` or
       `degraded_top_scholarships()`; both return fresh copies so callers can
       mutate the result freely.

This is a constant, not a cache: it never reflects store contents and is never
written back.
"""

import copy
from typing import Any, Dict, Iterable, List

TOP_SCHOLARSHIPS_LIMIT = 6

# Identifiers are fixed so that `_id` descending keeps a stable "newest first" order.
FALLBACK_SCHOLARSHIPS: List[Dict[str, Any]] = [
    {
        "_id": "6650f1a2c3d4e5f601000001",
        "scholarshipName": "Global Excellence Scholarship",
        "universityName": "University of Oxford",
        "universityCountry": "United Kingdom",
        "universityCity": "Oxford",
        "universityWorldRank": 3,
        "subjectCategory": "Engineering",
        "scholarshipCategory": "Full fund",
        "degree": "Masters",
        "applicationFees": 0,
        "serviceCharge": 15,
        "applicationDeadline": "2026-12-31",
        "scholarshipDescription": "Fully funded graduate study for outstanding international applicants.",
        "rating": 4.8,
    },
    {
        "_id": "6650f1a2c3d4e5f601000002",
        "scholarshipName": "Future Leaders Grant",
        "universityName": "University of Toronto",
        "universityCountry": "Canada",
        "universityCity": "Toronto",
        "universityWorldRank": 21,
        "subjectCategory": "Doctor",
        "scholarshipCategory": "Partial",
        "degree": "Bachelor",
        "applicationFees": 25,
        "serviceCharge": 10,
        "applicationDeadline": "2026-11-15",
        "scholarshipDescription": "Partial tuition support for first-generation undergraduates.",
        "rating": 4.5,
    },
    {
        "_id": "6650f1a2c3d4e5f601000003",
        "scholarshipName": "Asia Pacific Research Fellowship",
        "universityName": "National University of Singapore",
        "universityCountry": "Singapore",
        "universityCity": "Singapore",
        "universityWorldRank": 8,
        "subjectCategory": "Engineering",
        "scholarshipCategory": "Full fund",
        "degree": "Masters",
        "applicationFees": 0,
        "serviceCharge": 20,
        "applicationDeadline": "2027-01-20",
        "scholarshipDescription": "Research-track fellowship with stipend and tuition waiver.",
        "rating": 4.7,
    },
    {
        "_id": "6650f1a2c3d4e5f601000004",
        "scholarshipName": "Agriculture Innovation Award",
        "universityName": "Wageningen University",
        "universityCountry": "Netherlands",
        "universityCity": "Wageningen",
        "universityWorldRank": 151,
        "subjectCategory": "Agriculture",
        "scholarshipCategory": "Self-fund",
        "degree": "Diploma",
        "applicationFees": 40,
        "serviceCharge": 5,
        "applicationDeadline": "2026-10-30",
        "scholarshipDescription": "Tuition discount for sustainable farming programmes.",
        "rating": 4.1,
    },
    {
        "_id": "6650f1a2c3d4e5f601000005",
        "scholarshipName": "Medical Sciences Merit Scholarship",
        "universityName": "University of Melbourne",
        "universityCountry": "Australia",
        "universityCity": "Melbourne",
        "universityWorldRank": 14,
        "subjectCategory": "Doctor",
        "scholarshipCategory": "Partial",
        "degree": "Masters",
        "applicationFees": 25,
        "serviceCharge": 12,
        "applicationDeadline": "2026-12-01",
        "scholarshipDescription": "Merit-based award covering half of the tuition fees.",
        "rating": 4.4,
    },
    {
        "_id": "6650f1a2c3d4e5f601000006",
        "scholarshipName": "Nordic Sustainability Scholarship",
        "universityName": "KTH Royal Institute of Technology",
        "universityCountry": "Sweden",
        "universityCity": "Stockholm",
        "universityWorldRank": 73,
        "subjectCategory": "Engineering",
        "scholarshipCategory": "Full fund",
        "degree": "Masters",
        "applicationFees": 60,
        "serviceCharge": 10,
        "applicationDeadline": "2027-02-01",
        "scholarshipDescription": "Tuition and living allowance for sustainability engineering.",
        "rating": 4.6,
    },
    {
        "_id": "6650f1a2c3d4e5f601000007",
        "scholarshipName": "Community College Transfer Grant",
        "universityName": "University of California, Berkeley",
        "universityCountry": "United States",
        "universityCity": "Berkeley",
        "universityWorldRank": 10,
        "subjectCategory": "Agriculture",
        "scholarshipCategory": "Partial",
        "degree": "Bachelor",
        "applicationFees": 75,
        "serviceCharge": 15,
        "applicationDeadline": "2026-09-30",
        "scholarshipDescription": "Support for transfer students completing a bachelor's degree.",
        "rating": 4.3,
    },
]


def rank_top_scholarships(
    scholarships: Iterable[Dict[str, Any]],
    limit: int = TOP_SCHOLARSHIPS_LIMIT,
) -> List[Dict[str, Any]]:
    """
    Order by applicationFees ascending, newest `_id` first among equal fees,
    and keep at most `limit` entries.

    Mirrors the store-side sort used by the top-scholarships route. Missing
    fees sort first, as they do in MongoDB.
    """
    by_newest = sorted(scholarships, key=lambda s: str(s.get("_id", "")), reverse=True)
    # Stable sort: the newest-first order survives among equal fees
    ranked = sorted(by_newest, key=_fee_key)
    return ranked[:limit]


def _fee_key(scholarship: Dict[str, Any]):
    fee = scholarship.get("applicationFees")
    if fee is None:
        return (0, 0)
    return (1, fee)


def degraded_catalogue() -> List[Dict[str, Any]]:
    """All fallback scholarships, as a deep copy."""
    return copy.deepcopy(FALLBACK_SCHOLARSHIPS)


def degraded_top_scholarships() -> List[Dict[str, Any]]:
    """The fallback catalogue ranked like the top-scholarships route."""
    return rank_top_scholarships(degraded_catalogue())
