#!/usr/bin/env python3
"""
Scoring Models - Data structures shared by the remote and local scorers.
"""

import math
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional


STUDENT_TO_COMPANIES = "student_to_companies"
COMPANY_TO_STUDENTS = "company_to_students"
DIRECTIONS = (STUDENT_TO_COMPANIES, COMPANY_TO_STUDENTS)

# Components a match may carry; a missing one was not evaluated
COMPONENT_NAMES = ("skills", "experience", "education")


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


@dataclass
class EntitySnapshot:
    """Read-only view of a student or company taken at selection time."""
    id: str
    kind: str  # student|company
    skills: List[str] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'kind': self.kind,
            'skills': list(self.skills),
            **self.attributes,
        }


@dataclass
class ComponentScore:
    score: float
    matched_items: List[str] = field(default_factory=list)
    missing_items: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'score': self.score,
            'matchedItems': list(self.matched_items),
            'missingItems': list(self.missing_items),
        }


@dataclass
class MatchInsights:
    summary: str = ""
    strengths: List[str] = field(default_factory=list)
    concerns: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'summary': self.summary,
            'strengths': list(self.strengths),
            'concerns': list(self.concerns),
        }


@dataclass
class ScoredPair:
    """One scored (subject, candidate) pair, before persistence."""
    candidate_id: str
    score: float
    components: Dict[str, ComponentScore] = field(default_factory=dict)
    insights: MatchInsights = field(default_factory=MatchInsights)
    match_type: str = "basic"

    @property
    def match_score(self) -> int:
        """Score as persisted: rounded half up, clamped to [0, 100]."""
        return max(0, min(100, round_half_up(self.score)))

    def components_dict(self) -> Dict[str, Any]:
        return {name: component.to_dict() for name, component in self.components.items()}


@dataclass
class ScoringOptions:
    min_score: float = 0.0
    limit: int = 20
    scope: str = "all"
    direction: str = STUDENT_TO_COMPANIES
    posting: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'minScore': self.min_score,
            'limit': self.limit,
            'type': self.scope,
            'direction': self.direction,
            'jobRequirements': self.posting,
        }
