#!/usr/bin/env python3
"""
Scoring Module - scoring, persistence and quality of student/company matches.

Public API:
- ScoringService: remote-first scorer with local fallback
- LocalScorer: deterministic skills-overlap scorer
- MatchStore: idempotent upsert and status updates
- QualityAssessor: quality report for one match

- models.py: Data structures (EntitySnapshot, ScoredPair, ScoringOptions)
- interfaces.py: Scorer abstraction shared by remote and local scorers
- local_scorer.py: Fallback scoring formula
- persistence.py: Match Store
- quality.py: Quality Assessor
- service.py: ScoringService coordinator
"""

from core.scorer.models import (
    EntitySnapshot, ScoredPair, ScoringOptions, ComponentScore, MatchInsights,
    STUDENT_TO_COMPANIES, COMPANY_TO_STUDENTS
)
from core.scorer.interfaces import Scorer
from core.scorer.local_scorer import LocalScorer
from core.scorer.service import ScoringService
from core.scorer.persistence import MatchStore, UpsertResult
from core.scorer.quality import QualityAssessor

__all__ = [
    'ScoringService', 'LocalScorer', 'Scorer', 'MatchStore', 'UpsertResult', 'QualityAssessor',
    'EntitySnapshot', 'ScoredPair', 'ScoringOptions', 'ComponentScore', 'MatchInsights',
    'STUDENT_TO_COMPANIES', 'COMPANY_TO_STUDENTS',
]
