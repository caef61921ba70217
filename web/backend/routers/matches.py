#!/usr/bin/env python3
"""
Matching endpoints - compute, view and manage student/company matches.
"""

import uuid
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, HTTPException

from core.matching_service import MatchingEngine
from ..dependencies import get_engine
from ..models.requests import StatusUpdateRequest, BatchRequest, RecommendationsRequest
from ..models.responses import MatchListResponse, MatchResponse, DataResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/matching", tags=["matching"])


def validate_uuid(value: str, name: str = "id") -> str:
    """Validate that value is a valid UUID format."""
    try:
        uuid.UUID(value)
        return value
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid {name} format: {value}. Must be a valid UUID."
        )


@router.get("/student/{student_id}", response_model=MatchListResponse)
def get_student_matches(
    student_id: str,
    limit: int = Query(default=20, ge=1, le=100, description="Maximum matches to return"),
    min_score: float = Query(default=0, ge=0, le=100, alias="minScore", description="Minimum match score"),
    type: str = Query(default="all", description="all, jobs or internships"),
    force_refresh: bool = Query(default=False, alias="forceRefresh", description="Bypass the cache"),
    engine: MatchingEngine = Depends(get_engine)
):
    """
    Get companies matched to a student.

    Served from the cache when the same query ran within the TTL.
    """
    validate_uuid(student_id, "student_id")
    result = engine.get_matches_for_student(
        student_id, limit=limit, min_score=min_score, scope=type, force_refresh=force_refresh
    )
    return MatchListResponse(success=True, **result.to_dict())


@router.get("/company/{company_id}", response_model=MatchListResponse)
def get_company_matches(
    company_id: str,
    limit: int = Query(default=20, ge=1, le=100, description="Maximum matches to return"),
    min_score: float = Query(default=0, ge=0, le=100, alias="minScore", description="Minimum match score"),
    job_id: Optional[str] = Query(default=None, alias="jobId"),
    internship_id: Optional[str] = Query(default=None, alias="internshipId"),
    force_refresh: bool = Query(default=False, alias="forceRefresh", description="Bypass the cache"),
    engine: MatchingEngine = Depends(get_engine)
):
    """
    Get students matched to a company, optionally for one job or internship.
    """
    validate_uuid(company_id, "company_id")
    result = engine.get_matches_for_company(
        company_id,
        limit=limit,
        min_score=min_score,
        job_id=job_id,
        internship_id=internship_id,
        force_refresh=force_refresh
    )
    return MatchListResponse(success=True, **result.to_dict())


@router.get("/stats", response_model=DataResponse)
def get_match_stats(
    student_id: Optional[str] = Query(default=None, alias="studentId"),
    company_id: Optional[str] = Query(default=None, alias="companyId"),
    engine: MatchingEngine = Depends(get_engine)
):
    """Score and status statistics, optionally for one student or company."""
    return DataResponse(success=True, data=engine.get_match_stats(student_id=student_id, company_id=company_id))


@router.post("/recommendations", response_model=DataResponse)
def get_recommendations(
    request: RecommendationsRequest,
    engine: MatchingEngine = Depends(get_engine)
):
    """Recommendations for exactly one student or company."""
    data = engine.get_recommendations(
        student_id=request.student_id,
        company_id=request.company_id,
        criteria=request.criteria
    )
    return DataResponse(success=True, data=data)


@router.post("/batch", response_model=DataResponse)
def run_batch(
    request: BatchRequest,
    engine: MatchingEngine = Depends(get_engine)
):
    """
    Regenerate matches for companies x students.

    Per-pair failures are reported in the result, never as an error response.
    """
    result = engine.run_batch(
        company_ids=request.company_ids,
        student_ids=request.student_ids,
        scope=request.type
    )
    return DataResponse(success=True, data=result.to_dict())


@router.get("/quality/{match_id}", response_model=DataResponse)
def get_match_quality(
    match_id: str,
    engine: MatchingEngine = Depends(get_engine)
):
    validate_uuid(match_id, "match_id")
    return DataResponse(success=True, data=engine.get_quality(match_id))


@router.get("/{match_id}", response_model=MatchResponse)
def get_match(
    match_id: str,
    engine: MatchingEngine = Depends(get_engine)
):
    validate_uuid(match_id, "match_id")
    return MatchResponse(success=True, match=engine.get_match(match_id).to_dict())


@router.patch("/{match_id}/status", response_model=MatchResponse)
def update_match_status(
    match_id: str,
    request: StatusUpdateRequest,
    engine: MatchingEngine = Depends(get_engine)
):
    """
    Move a match to a new status and record who did it.
    """
    validate_uuid(match_id, "match_id")
    match = engine.update_match_status(match_id, request.status, request.performed_by, request.metadata)
    return MatchResponse(success=True, match=match.to_dict())


@router.get("/{match_id}/breakdown", response_model=DataResponse)
def get_match_breakdown(
    match_id: str,
    engine: MatchingEngine = Depends(get_engine)
):
    """Per-component scores; components never evaluated are listed separately."""
    validate_uuid(match_id, "match_id")
    return DataResponse(success=True, data=engine.get_match_breakdown(match_id))
