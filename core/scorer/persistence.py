#!/usr/bin/env python3
"""
Persistence Operations - Match Store.

Saves scored pairs as StudentCompanyMatch rows, one per (student, company):

- existing row: score, components, insights and type are overwritten and
  updated_at is bumped; status and history stay as they are
- new row: created as "pending" with a single "created" history entry

Every pair is written in its own unit of work. Writes to the same pair are
serialized in-process by a striped lock and across processes by the
unique constraint; a constraint violation is retried once as
read-modify-write before PersistenceConflictError reaches the caller.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from tenacity import (
    retry,
    stop_after_attempt,
    retry_if_exception_type,
    before_sleep_log
)

from core.exceptions import MatchNotFoundError, PersistenceConflictError, InvalidStatusError
from core.matcher.dto import MatchDTO
from core.scorer.models import ScoredPair, STUDENT_TO_COMPANIES, DIRECTIONS
from core.utils import as_uuid
from database.models import MATCH_STATUSES, PERFORMERS
from database.uow import match_uow

logger = logging.getLogger(__name__)

LOCK_STRIPES = 64


@dataclass
class UpsertResult:
    match: MatchDTO
    created: bool


class MatchStore:
    """Sole writer of StudentCompanyMatch rows."""

    def __init__(self, session_factory: sessionmaker, lock_stripes: int = LOCK_STRIPES):
        self.session_factory = session_factory
        self._locks = [threading.Lock() for _ in range(lock_stripes)]

    def _lock_for(self, student_id, company_id) -> threading.Lock:
        return self._locks[hash((str(student_id), str(company_id))) % len(self._locks)]

    def upsert(
        self,
        scored_pairs: Sequence[ScoredPair],
        subject_id: Any,
        direction: str,
        context: Optional[str] = None
    ) -> List[UpsertResult]:
        """Create or update one match per scored pair.

        Args:
            scored_pairs: Output of the scoring service
            subject_id: Student id for student_to_companies, company id otherwise
            direction: student_to_companies | company_to_students
            context: Tag recorded on the "created" entry; defaults to direction

        Returns:
            One UpsertResult per pair, in input order
        """
        if direction not in DIRECTIONS:
            raise ValueError(f"Unknown direction: {direction}")

        subject_id = as_uuid(subject_id, "subjectId")
        created_metadata = {'type': context or direction, 'sourceId': str(subject_id)}

        results = []
        for pair in scored_pairs:
            candidate_id = as_uuid(pair.candidate_id, "candidateId")
            if direction == STUDENT_TO_COMPANIES:
                student_id, company_id = subject_id, candidate_id
            else:
                student_id, company_id = candidate_id, subject_id
            results.append(self._upsert_one(student_id, company_id, pair, created_metadata))

        created = sum(1 for r in results if r.created)
        logger.debug(f"Upserted {len(results)} matches for {subject_id} ({created} new)")
        return results

    @retry(
        stop=stop_after_attempt(2),
        retry=retry_if_exception_type(PersistenceConflictError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
    def _upsert_one(
        self,
        student_id,
        company_id,
        pair: ScoredPair,
        created_metadata: Dict[str, Any]
    ) -> UpsertResult:
        with self._lock_for(student_id, company_id):
            try:
                with match_uow(self.session_factory) as repo:
                    existing = repo.matches.get_existing_match(student_id, company_id, for_update=True)
                    if existing is not None:
                        match = repo.matches.apply_score(
                            existing,
                            match_score=pair.match_score,
                            match_components=pair.components_dict(),
                            match_type=pair.match_type,
                            ai_insights=pair.insights.to_dict(),
                        )
                        created = False
                    else:
                        match = repo.matches.create_match(
                            student_id=student_id,
                            company_id=company_id,
                            match_score=pair.match_score,
                            match_components=pair.components_dict(),
                            match_type=pair.match_type,
                            ai_insights=pair.insights.to_dict(),
                            created_metadata=created_metadata,
                        )
                        created = True
                    dto = MatchDTO.from_orm(match)
            except IntegrityError as e:
                raise PersistenceConflictError(
                    f"Concurrent write on match ({student_id}, {company_id})"
                ) from e

        return UpsertResult(match=dto, created=created)

    def get_match(self, match_id: Any) -> MatchDTO:
        match_id = as_uuid(match_id, "matchId")
        with match_uow(self.session_factory) as repo:
            match = repo.matches.get_by_id(match_id)
            if match is None:
                raise MatchNotFoundError(f"Match {match_id} not found")
            return MatchDTO.from_orm(match)

    def update_status(
        self,
        match_id: Any,
        status: str,
        performed_by: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> MatchDTO:
        """Set status and append the matching history entry.

        No transition graph is enforced: any known status may follow any other.
        """
        if status not in MATCH_STATUSES:
            raise InvalidStatusError(f"Unknown status '{status}', expected one of {', '.join(MATCH_STATUSES)}")
        if performed_by not in PERFORMERS:
            raise InvalidStatusError(f"Unknown performer '{performed_by}', expected one of {', '.join(PERFORMERS)}")

        match_id = as_uuid(match_id, "matchId")
        with match_uow(self.session_factory) as repo:
            match = repo.matches.get_by_id(match_id)
            if match is None:
                raise MatchNotFoundError(f"Match {match_id} not found")

            previous = match.status
            with self._lock_for(match.student_id, match.company_id):
                repo.matches.append_interaction(match, status, performed_by, metadata)
                match.status = status
                repo.db.flush()
            dto = MatchDTO.from_orm(match)

        logger.info(f"Match {match_id} status {previous} -> {status} by {performed_by}")
        return dto

    def list_matches(
        self,
        student_id: Optional[Any] = None,
        company_id: Optional[Any] = None,
        limit: Optional[int] = None
    ) -> List[MatchDTO]:
        """Stored matches of one student or one company, best first."""
        with match_uow(self.session_factory) as repo:
            if student_id is not None:
                matches = repo.matches.get_matches_for_student(as_uuid(student_id, "studentId"), limit=limit)
            else:
                matches = repo.matches.get_matches_for_company(as_uuid(company_id, "companyId"), limit=limit)
            return [MatchDTO.from_orm(m) for m in matches]

    def get_stats(self, student_id: Optional[Any] = None, company_id: Optional[Any] = None) -> Dict[str, Any]:
        student_id = as_uuid(student_id, "studentId") if student_id is not None else None
        company_id = as_uuid(company_id, "companyId") if company_id is not None else None
        with match_uow(self.session_factory) as repo:
            return repo.matches.get_stats(student_id=student_id, company_id=company_id)
