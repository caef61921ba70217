#!/usr/bin/env python3
"""
Request models for API endpoints.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional


class StatusUpdateRequest(BaseModel):
    """Request to move a match to a new status."""
    model_config = ConfigDict(populate_by_name=True)

    status: str = Field(..., description="pending, viewed, shortlisted, contacted, rejected or accepted")
    performed_by: str = Field(..., alias="performedBy", description="student, company or system")
    metadata: Dict[str, Any] = Field(default_factory=dict)


class BatchRequest(BaseModel):
    """Request to regenerate matches in bulk."""
    model_config = ConfigDict(populate_by_name=True)

    company_ids: Optional[List[str]] = Field(None, alias="companyIds")
    student_ids: Optional[List[str]] = Field(None, alias="studentIds")
    type: str = Field(default="all", description="all, jobs or internships")


class RecommendationsRequest(BaseModel):
    """Request recommendations for exactly one student or company."""
    model_config = ConfigDict(populate_by_name=True)

    student_id: Optional[str] = Field(None, alias="studentId")
    company_id: Optional[str] = Field(None, alias="companyId")
    criteria: Dict[str, Any] = Field(default_factory=dict)
