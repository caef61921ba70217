#!/usr/bin/env python3
"""
Matching Engine - the operations exposed to the API layer and the CLI.

On-demand reads go through the cache:

    cache hit  -> stored list returned as-is
    cache miss -> select candidates -> score (remote, else basic)
               -> upsert matches -> cache the list

Status updates and batch runs drop the cached lists of every subject they
touch. Only not-found and invalid-request errors (and a repeated write
conflict) reach the caller; provider and cache failures are absorbed.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError
from sqlalchemy.orm import sessionmaker

from core.cache import MatchCacheService, make_cache_key
from core.exceptions import (
    SubjectNotFoundError, InvalidRequestError, ProviderUnavailableError
)
from core.matcher.dto import MatchDTO
from core.matcher.selector import (
    CandidateSelector, SelectionFilters, SCOPES,
    student_snapshot, company_snapshot, posting_subject_snapshot, posting_to_dict
)
from core.provider.client import ProviderClient
from core.scorer import ScoringService, MatchStore, QualityAssessor, ScoringOptions
from core.scorer.models import STUDENT_TO_COMPANIES, COMPANY_TO_STUDENTS, COMPONENT_NAMES
from core.utils import as_uuid, as_uuid_list
from database.uow import match_uow
from pipeline.batch import BatchMatcher, BatchResult

logger = logging.getLogger(__name__)

DEFAULT_RECOMMENDATION_LIMIT = 10


class _ProviderRecommendations(BaseModel):
    model_config = ConfigDict(extra="allow")

    recommendations: List[Dict[str, Any]]


@dataclass
class MatchListResult:
    """Matches in camelCase dict form, best first."""
    matches: List[Dict[str, Any]]
    from_cache: bool
    cached_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'matches': self.matches,
            'count': len(self.matches),
            'fromCache': self.from_cache,
            'cachedAt': self.cached_at,
        }


class MatchingEngine:
    def __init__(
        self,
        session_factory: sessionmaker,
        selector: CandidateSelector,
        scoring: ScoringService,
        store: MatchStore,
        cache: MatchCacheService,
        quality: QualityAssessor,
        batch: BatchMatcher,
        provider_client: Optional[ProviderClient] = None,
        cache_ttl_seconds: int = 3600,
        default_limit: int = 20,
        default_min_score: float = 0.0,
        student_recommendations_path: str = "/api/matching/recommendations",
        company_recommendations_path: str = "/api/matching/company-recommendations"
    ):
        self.session_factory = session_factory
        self.selector = selector
        self.scoring = scoring
        self.store = store
        self.cache = cache
        self.quality = quality
        self.batch = batch
        self.provider_client = provider_client
        self.cache_ttl_seconds = cache_ttl_seconds
        self.default_limit = default_limit
        self.default_min_score = default_min_score
        self.student_recommendations_path = student_recommendations_path
        self.company_recommendations_path = company_recommendations_path

    def _query_bounds(self, limit: Optional[int], min_score: Optional[float]):
        limit = self.default_limit if limit is None else limit
        min_score = self.default_min_score if min_score is None else min_score
        if not isinstance(limit, int) or limit < 1:
            raise InvalidRequestError(f"limit must be a positive integer, got {limit!r}")
        if not 0 <= min_score <= 100:
            raise InvalidRequestError(f"minScore must be between 0 and 100, got {min_score!r}")
        return limit, float(min_score)

    def _cached(self, key: str, compute, force_refresh: bool, exclude_ids) -> MatchListResult:
        # Exclusion lists are caller-specific; those queries skip the cache
        if exclude_ids:
            return MatchListResult(matches=compute(), from_cache=False)
        cached = self.cache.get_or_compute(
            key, compute, ttl_seconds=self.cache_ttl_seconds, force_refresh=force_refresh
        )
        return MatchListResult(matches=cached.data, from_cache=cached.from_cache, cached_at=cached.cached_at)

    def get_matches_for_student(
        self,
        student_id: Any,
        limit: Optional[int] = None,
        min_score: Optional[float] = None,
        scope: str = "all",
        force_refresh: bool = False,
        exclude_ids: Optional[List[Any]] = None
    ) -> MatchListResult:
        """Companies matched to one student, scoped to all/jobs/internships."""
        limit, min_score = self._query_bounds(limit, min_score)
        if scope not in SCOPES:
            raise InvalidRequestError(f"Unknown scope '{scope}', expected one of {', '.join(SCOPES)}")
        student_id = as_uuid(student_id, "studentId")
        exclude_ids = as_uuid_list(exclude_ids, "excludeIds")

        with match_uow(self.session_factory) as repo:
            if repo.students.get_by_id(student_id) is None:
                raise SubjectNotFoundError(f"Student {student_id} not found")

        def compute() -> List[Dict[str, Any]]:
            with match_uow(self.session_factory) as repo:
                student = repo.students.get_by_id(student_id)
                filters = SelectionFilters(scope=scope, exclude_ids=exclude_ids)
                candidates = self.selector.select_candidates(repo, student, STUDENT_TO_COMPANIES, filters)
                subject = student_snapshot(student)
                candidate_snapshots = self.selector.candidate_snapshots(repo, candidates, scope)

            options = ScoringOptions(
                min_score=min_score, limit=limit, scope=scope, direction=STUDENT_TO_COMPANIES
            )
            return self._score_and_store(subject, candidate_snapshots, options, student_id, STUDENT_TO_COMPANIES)

        key = make_cache_key(STUDENT_TO_COMPANIES, student_id, limit, min_score, scope)
        return self._cached(key, compute, force_refresh, exclude_ids)

    def get_matches_for_company(
        self,
        company_id: Any,
        limit: Optional[int] = None,
        min_score: Optional[float] = None,
        job_id: Optional[Any] = None,
        internship_id: Optional[Any] = None,
        force_refresh: bool = False,
        exclude_ids: Optional[List[Any]] = None
    ) -> MatchListResult:
        """Students matched to one company, optionally for one job or internship."""
        limit, min_score = self._query_bounds(limit, min_score)
        if job_id is not None and internship_id is not None:
            raise InvalidRequestError("Specify either jobId or internshipId, not both")
        company_id = as_uuid(company_id, "companyId")
        job_id = as_uuid(job_id, "jobId") if job_id is not None else None
        internship_id = as_uuid(internship_id, "internshipId") if internship_id is not None else None
        exclude_ids = as_uuid_list(exclude_ids, "excludeIds")
        filters = SelectionFilters(job_id=job_id, internship_id=internship_id, exclude_ids=exclude_ids)

        with match_uow(self.session_factory) as repo:
            company = repo.companies.get_by_id(company_id)
            if company is None:
                raise SubjectNotFoundError(f"Company {company_id} not found")
            self.selector.resolve_posting(repo, company, filters)

        def compute() -> List[Dict[str, Any]]:
            with match_uow(self.session_factory) as repo:
                company = repo.companies.get_by_id(company_id)
                posting = self.selector.resolve_posting(repo, company, filters)
                candidates = self.selector.select_candidates(repo, company, COMPANY_TO_STUDENTS, filters)
                if posting is not None:
                    subject = posting_subject_snapshot(company, posting)
                else:
                    subject = company_snapshot(company)
                candidate_snapshots = self.selector.candidate_snapshots(repo, candidates)
                posting_data = posting_to_dict(posting) if posting is not None else None

            options = ScoringOptions(
                min_score=min_score, limit=limit, direction=COMPANY_TO_STUDENTS, posting=posting_data
            )
            return self._score_and_store(subject, candidate_snapshots, options, company_id, COMPANY_TO_STUDENTS)

        if job_id is not None:
            scope_key = f"job:{job_id}"
        elif internship_id is not None:
            scope_key = f"internship:{internship_id}"
        else:
            scope_key = "all"
        key = make_cache_key(COMPANY_TO_STUDENTS, company_id, limit, min_score, scope_key)
        return self._cached(key, compute, force_refresh, exclude_ids)

    def _score_and_store(self, subject, candidates, options, subject_id, direction) -> List[Dict[str, Any]]:
        scored = self.scoring.score(subject, candidates, options)
        results = self.store.upsert(scored, subject_id, direction)
        logger.info(
            f"Scored {len(candidates)} candidates for {subject.kind} {subject_id}: "
            f"{len(results)} matches ({sum(1 for r in results if r.created)} new)"
        )
        return [r.match.to_dict() for r in results]

    def get_match(self, match_id: Any) -> MatchDTO:
        return self.store.get_match(match_id)

    def update_match_status(
        self,
        match_id: Any,
        status: str,
        performed_by: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> MatchDTO:
        match = self.store.update_status(match_id, status, performed_by, metadata)
        self.cache.invalidate_subjects([match.student_id, match.company_id])
        return match

    def get_match_breakdown(self, match_id: Any) -> Dict[str, Any]:
        """Component view of one match; absent components are listed as not evaluated."""
        match = self.store.get_match(match_id)
        evaluated = sorted(match.match_components)
        return {
            'matchId': match.id,
            'matchScore': match.match_score,
            'matchType': match.match_type,
            'components': match.match_components,
            'evaluated': evaluated,
            'notEvaluated': [name for name in COMPONENT_NAMES if name not in match.match_components],
            'insights': match.ai_insights,
        }

    def run_batch(
        self,
        company_ids: Optional[List[Any]] = None,
        student_ids: Optional[List[Any]] = None,
        scope: str = "all",
        stop_event: Optional[threading.Event] = None
    ) -> BatchResult:
        return self.batch.run(company_ids=company_ids, student_ids=student_ids, scope=scope, stop_event=stop_event)

    def get_quality(self, match_id: Any) -> Dict[str, Any]:
        return self.quality.assess(self.store.get_match(match_id))

    def get_match_stats(self, student_id: Optional[Any] = None, company_id: Optional[Any] = None) -> Dict[str, Any]:
        return self.store.get_stats(student_id=student_id, company_id=company_id)

    @staticmethod
    def _parse_recommendations(data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return _ProviderRecommendations.model_validate(data).model_dump()
        except ValidationError as e:
            raise ProviderUnavailableError(
                f"Malformed recommendations response: {e.error_count()} validation errors"
            ) from e

    def get_recommendations(
        self,
        student_id: Optional[Any] = None,
        company_id: Optional[Any] = None,
        criteria: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Provider recommendations for one student or company, else their best stored matches."""
        if (student_id is None) == (company_id is None):
            raise InvalidRequestError("Specify exactly one of studentId or companyId")
        criteria = dict(criteria or {})

        with match_uow(self.session_factory) as repo:
            if student_id is not None:
                student_id = as_uuid(student_id, "studentId")
                if repo.students.get_by_id(student_id) is None:
                    raise SubjectNotFoundError(f"Student {student_id} not found")
            else:
                company_id = as_uuid(company_id, "companyId")
                if repo.companies.get_by_id(company_id) is None:
                    raise SubjectNotFoundError(f"Company {company_id} not found")

        if self.provider_client is not None:
            if student_id is not None:
                path, payload = self.student_recommendations_path, {'studentId': str(student_id)}
            else:
                path, payload = self.company_recommendations_path, {'companyId': str(company_id)}
            payload['criteria'] = criteria
            try:
                data = self._parse_recommendations(self.provider_client.post_json(path, payload))
                data.setdefault('type', 'ai')
                data.setdefault('generatedAt', datetime.now(timezone.utc).isoformat())
                return data
            except ProviderUnavailableError as e:
                logger.warning(f"Recommendations unavailable from provider, using stored matches: {e}")

        limit = criteria.get('limit') or DEFAULT_RECOMMENDATION_LIMIT
        matches = self.store.list_matches(student_id=student_id, company_id=company_id, limit=limit)
        return {
            'recommendations': [m.to_dict() for m in matches],
            'type': 'basic',
            'generatedAt': datetime.now(timezone.utc).isoformat(),
        }
