#!/usr/bin/env python3
"""
Response models for API endpoints.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict, Any


class MatchListResponse(BaseModel):
    """Matches for one student or company, best first."""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "success": True,
                "count": 1,
                "fromCache": False,
                "cachedAt": "2026-02-01T12:00:00+00:00",
                "matches": [{
                    "id": "550e8400-e29b-41d4-a716-446655440000",
                    "studentId": "6ba7b810-9dad-11d1-80b4-00c04fd430c8",
                    "companyId": "6ba7b811-9dad-11d1-80b4-00c04fd430c8",
                    "matchScore": 40,
                    "matchType": "basic",
                    "status": "pending"
                }]
            }
        }
    )

    success: bool
    count: int
    matches: List[Dict[str, Any]]
    from_cache: bool = Field(alias="fromCache")
    cached_at: Optional[str] = Field(None, alias="cachedAt")


class MatchResponse(BaseModel):
    """A single match."""
    success: bool
    match: Dict[str, Any]


class DataResponse(BaseModel):
    """Generic envelope for breakdown, quality, stats, batch and recommendations."""
    success: bool
    data: Dict[str, Any]
