import logging
from typing import List, Optional, Any, Dict

from sqlalchemy import select, func, case

from database.models import StudentCompanyMatch, MatchInteraction, MATCH_STATUSES, utcnow
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class MatchRepository(BaseRepository):
    def get_by_id(self, match_id: Any) -> Optional[StudentCompanyMatch]:
        stmt = select(StudentCompanyMatch).where(StudentCompanyMatch.id == match_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_existing_match(
        self,
        student_id: Any,
        company_id: Any,
        for_update: bool = False
    ) -> Optional[StudentCompanyMatch]:
        stmt = select(StudentCompanyMatch).where(
            StudentCompanyMatch.student_id == student_id,
            StudentCompanyMatch.company_id == company_id
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def create_match(
        self,
        student_id: Any,
        company_id: Any,
        match_score: int,
        match_components: Dict[str, Any],
        match_type: str,
        ai_insights: Dict[str, Any],
        created_metadata: Optional[Dict[str, Any]] = None
    ) -> StudentCompanyMatch:
        """Insert a new pending match with its single "created" history entry.

        Flushes immediately so a natural-key collision surfaces here as an
        IntegrityError rather than at commit time.
        """
        now = utcnow()
        match = StudentCompanyMatch(
            student_id=student_id,
            company_id=company_id,
            match_score=match_score,
            match_components=match_components,
            match_type=match_type,
            ai_insights=ai_insights,
            status='pending',
            created_at=now,
            updated_at=now,
        )
        match.interaction_history.append(MatchInteraction(
            action='created',
            performed_by='system',
            interaction_metadata=created_metadata or {},
            timestamp=now,
        ))
        self.db.add(match)
        self.db.flush()
        return match

    def apply_score(
        self,
        match: StudentCompanyMatch,
        match_score: int,
        match_components: Dict[str, Any],
        match_type: str,
        ai_insights: Dict[str, Any]
    ) -> StudentCompanyMatch:
        """Overwrite score fields in place; status and history are untouched."""
        match.match_score = match_score
        match.match_components = match_components
        match.match_type = match_type
        match.ai_insights = ai_insights
        match.updated_at = utcnow()
        self.db.flush()
        return match

    def append_interaction(
        self,
        match: StudentCompanyMatch,
        action: str,
        performed_by: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> MatchInteraction:
        now = utcnow()
        interaction = MatchInteraction(
            action=action,
            performed_by=performed_by,
            interaction_metadata=metadata or {},
            timestamp=now,
        )
        match.interaction_history.append(interaction)
        match.updated_at = now
        self.db.flush()
        return interaction

    def get_matches_for_student(
        self,
        student_id: Any,
        min_score: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[StudentCompanyMatch]:
        stmt = select(StudentCompanyMatch).where(StudentCompanyMatch.student_id == student_id)
        if min_score is not None:
            stmt = stmt.where(StudentCompanyMatch.match_score >= min_score)
        stmt = stmt.order_by(StudentCompanyMatch.match_score.desc(), StudentCompanyMatch.id)
        if limit:
            stmt = stmt.limit(limit)
        return self.db.execute(stmt).scalars().all()

    def get_matches_for_company(
        self,
        company_id: Any,
        min_score: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[StudentCompanyMatch]:
        stmt = select(StudentCompanyMatch).where(StudentCompanyMatch.company_id == company_id)
        if min_score is not None:
            stmt = stmt.where(StudentCompanyMatch.match_score >= min_score)
        stmt = stmt.order_by(StudentCompanyMatch.match_score.desc(), StudentCompanyMatch.id)
        if limit:
            stmt = stmt.limit(limit)
        return self.db.execute(stmt).scalars().all()

    def count_for_pair(self, student_id: Any, company_id: Any) -> int:
        stmt = select(func.count(StudentCompanyMatch.id)).where(
            StudentCompanyMatch.student_id == student_id,
            StudentCompanyMatch.company_id == company_id
        )
        return self.db.execute(stmt).scalar_one()

    def get_stats(
        self,
        student_id: Optional[Any] = None,
        company_id: Optional[Any] = None
    ) -> Dict[str, Any]:
        """Aggregate score and status counts, optionally for one student/company."""
        status_counts = [
            func.coalesce(func.sum(case((StudentCompanyMatch.status == status, 1), else_=0)), 0)
            .label(f"{status}_count")
            for status in MATCH_STATUSES
        ]
        stmt = select(
            func.count(StudentCompanyMatch.id).label('total_matches'),
            func.avg(StudentCompanyMatch.match_score).label('avg_score'),
            func.max(StudentCompanyMatch.match_score).label('max_score'),
            func.min(StudentCompanyMatch.match_score).label('min_score'),
            *status_counts
        )
        if student_id is not None:
            stmt = stmt.where(StudentCompanyMatch.student_id == student_id)
        if company_id is not None:
            stmt = stmt.where(StudentCompanyMatch.company_id == company_id)

        row = self.db.execute(stmt).mappings().one()

        return {
            'totalMatches': int(row['total_matches'] or 0),
            'avgScore': round(float(row['avg_score']), 2) if row['avg_score'] is not None else 0,
            'maxScore': int(row['max_score'] or 0),
            'minScore': int(row['min_score'] or 0),
            **{f"{status}Count": int(row[f"{status}_count"]) for status in MATCH_STATUSES},
        }
