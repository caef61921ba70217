"""Data Transfer Objects for match records.

DTOs carry Match data out of the Unit of Work so that callers (cache,
web layer, batch workers) never hold ORM objects after the session is
closed. to_dict() uses the camelCase wire names.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class InteractionDTO:
    """One entry of a match's interaction history."""
    action: str
    performed_by: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[datetime] = None

    @classmethod
    def from_orm(cls, interaction) -> "InteractionDTO":
        return cls(
            action=interaction.action,
            performed_by=interaction.performed_by,
            metadata=dict(interaction.interaction_metadata or {}),
            timestamp=interaction.timestamp,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'action': self.action,
            'performedBy': self.performed_by,
            'metadata': self.metadata,
            'timestamp': _iso(self.timestamp),
        }


@dataclass
class MatchDTO:
    """Plain copy of a StudentCompanyMatch row and its history."""
    id: str
    student_id: str
    company_id: str
    match_score: int
    match_type: str
    status: str
    match_components: Dict[str, Any] = field(default_factory=dict)
    ai_insights: Dict[str, Any] = field(default_factory=dict)
    interaction_history: List[InteractionDTO] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_orm(cls, match) -> "MatchDTO":
        return cls(
            id=str(match.id),
            student_id=str(match.student_id),
            company_id=str(match.company_id),
            match_score=match.match_score,
            match_type=match.match_type,
            status=match.status,
            match_components=dict(match.match_components or {}),
            ai_insights=dict(match.ai_insights or {}),
            interaction_history=[InteractionDTO.from_orm(i) for i in match.interaction_history],
            created_at=match.created_at,
            updated_at=match.updated_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'studentId': self.student_id,
            'companyId': self.company_id,
            'matchScore': self.match_score,
            'matchType': self.match_type,
            'status': self.status,
            'matchComponents': self.match_components,
            'aiInsights': self.ai_insights,
            'interactionHistory': [i.to_dict() for i in self.interaction_history],
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }
