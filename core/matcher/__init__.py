"""Matcher Module - candidate selection and match DTOs."""
from core.matcher.dto import MatchDTO, InteractionDTO
from core.matcher.selector import (
    CandidateSelector, SelectionFilters,
    student_snapshot, company_snapshot, posting_subject_snapshot
)

__all__ = [
    'CandidateSelector', 'SelectionFilters',
    'MatchDTO', 'InteractionDTO',
    'student_snapshot', 'company_snapshot', 'posting_subject_snapshot',
]
