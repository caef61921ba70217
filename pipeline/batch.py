"""Bulk match regeneration.

Scores every (student, company) pair of the selected sets on a bounded
worker pool. Each pair is scored and upserted independently, so one
failing or slow pair never aborts or stalls the others, and a cancelled
run leaves already-committed matches in place.
"""

import time
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import sessionmaker

from core.cache import MatchCacheService
from core.matcher.selector import CandidateSelector, SCOPES, student_snapshot
from core.exceptions import InvalidRequestError
from core.scorer import ScoringService, MatchStore, ScoringOptions, EntitySnapshot, STUDENT_TO_COMPANIES
from core.utils import as_uuid_list
from database.uow import match_uow

logger = logging.getLogger(__name__)

BATCH_CONTEXT = "batch"


@dataclass
class BatchResult:
    """Summary of one batch run."""
    total: int = 0
    created: int = 0
    updated: int = 0
    failed: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)
    cancelled: bool = False
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'created': self.created,
            'updated': self.updated,
            'failed': self.failed,
            'errors': list(self.errors),
            'cancelled': self.cancelled,
            'durationSeconds': self.duration_seconds,
        }


class BatchMatcher:
    def __init__(
        self,
        session_factory: sessionmaker,
        selector: CandidateSelector,
        scoring: ScoringService,
        store: MatchStore,
        cache: Optional[MatchCacheService] = None,
        max_workers: int = 8,
        default_company_limit: int = 50,
        default_student_limit: int = 100
    ):
        self.session_factory = session_factory
        self.selector = selector
        self.scoring = scoring
        self.store = store
        self.cache = cache
        self.max_workers = max_workers
        self.default_company_limit = default_company_limit
        self.default_student_limit = default_student_limit

    def _load_snapshots(self, company_ids, student_ids, scope: str):
        with match_uow(self.session_factory) as repo:
            if company_ids:
                companies = repo.companies.get_by_ids(company_ids)
            else:
                companies = repo.companies.list_active(self.default_company_limit)

            if student_ids:
                students = repo.students.get_by_ids(student_ids)
            else:
                students = repo.students.list_active(self.default_student_limit)

            company_snapshots = self.selector.candidate_snapshots(repo, companies, scope)
            student_snapshots = [student_snapshot(s) for s in students]

        return company_snapshots, student_snapshots

    def _process_pair(
        self,
        student: EntitySnapshot,
        company: EntitySnapshot,
        scope: str,
        stop_event: threading.Event
    ) -> Optional[bool]:
        """Score and store one pair. Returns created flag, or None if skipped."""
        if stop_event.is_set():
            return None

        options = ScoringOptions(min_score=0, limit=1, scope=scope, direction=STUDENT_TO_COMPANIES)
        scored = self.scoring.score(student, [company], options)
        if not scored:
            raise RuntimeError("Scorer returned no result for pair")

        result = self.store.upsert(scored, student.id, STUDENT_TO_COMPANIES, context=BATCH_CONTEXT)
        return result[0].created

    def run(
        self,
        company_ids: Optional[List[Any]] = None,
        student_ids: Optional[List[Any]] = None,
        scope: str = "all",
        stop_event: Optional[threading.Event] = None
    ) -> BatchResult:
        """Regenerate matches for the cross-product of companies x students.

        Args:
            company_ids: Explicit companies; unknown ids are skipped.
                Defaults to the first active companies by id.
            student_ids: Explicit students, same rules.
            scope: all|jobs|internships, controls which postings feed
                company skills.
            stop_event: Set to stop scheduling further pairs.

        Returns:
            BatchResult with per-pair failures in errors
        """
        if scope not in SCOPES:
            raise InvalidRequestError(f"Unknown scope '{scope}', expected one of {', '.join(SCOPES)}")
        if stop_event is None:
            stop_event = threading.Event()

        start = time.time()
        result = BatchResult()

        companies, students = self._load_snapshots(
            as_uuid_list(company_ids, "companyId"),
            as_uuid_list(student_ids, "studentId"),
            scope
        )
        pairs = [(s, c) for c in companies for s in students]
        result.total = len(pairs)

        logger.info(
            f"Batch matching started: {len(companies)} companies x {len(students)} students "
            f"= {result.total} pairs (workers={self.max_workers}, scope={scope})"
        )

        touched = set()
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="batch-match") as executor:
            futures = {}
            for student, company in pairs:
                if stop_event.is_set():
                    break
                future = executor.submit(self._process_pair, student, company, scope, stop_event)
                futures[future] = (student, company)

            for future in as_completed(futures):
                student, company = futures[future]
                try:
                    created = future.result()
                except Exception as e:
                    logger.error(f"Batch pair failed: student={student.id} company={company.id}: {e}")
                    result.failed += 1
                    result.errors.append({'studentId': student.id, 'companyId': company.id, 'error': str(e)})
                    continue

                if created is None:
                    continue
                touched.update((student.id, company.id))
                if created:
                    result.created += 1
                else:
                    result.updated += 1

        result.cancelled = stop_event.is_set()
        result.duration_seconds = round(time.time() - start, 3)

        if self.cache is not None and touched:
            self.cache.invalidate_subjects(touched)

        logger.info(
            f"Batch matching finished in {result.duration_seconds}s: created={result.created} "
            f"updated={result.updated} failed={result.failed} cancelled={result.cancelled}"
        )
        return result
