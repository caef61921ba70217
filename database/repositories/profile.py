import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional, Union

from sqlalchemy import select, func, or_

from database.models import (
    Student, StudentSkill, StudentIndustryPreference, StudentEducation,
    Company, Job, Internship, StudentCompanyMatch, MatchInteraction, utcnow
)
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

Posting = Union[Job, Internship]


def _lowered(values: Iterable[str]) -> List[str]:
    return sorted({v.strip().lower() for v in values if v and v.strip()})


class StudentRepository(BaseRepository):
    def get_by_id(self, student_id: Any) -> Optional[Student]:
        stmt = select(Student).where(Student.id == student_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_ids(self, student_ids: List[Any]) -> List[Student]:
        if not student_ids:
            return []
        stmt = select(Student).where(Student.id.in_(student_ids)).order_by(Student.id)
        return self.db.execute(stmt).scalars().all()

    def list_active(self, limit: int) -> List[Student]:
        stmt = select(Student).where(Student.is_active.is_(True)).order_by(Student.id).limit(limit)
        return self.db.execute(stmt).scalars().all()

    def find_for_posting(
        self,
        posting: Posting,
        exclude_ids: Optional[List[Any]] = None,
        limit: int = 100
    ) -> List[Student]:
        """Students satisfying a job/internship's declared requirements.

        Each requirement narrows the result only when the posting declares it.
        """
        stmt = select(Student).where(Student.is_active.is_(True))

        required_skills = _lowered(posting.required_skills or [])
        if required_skills:
            stmt = stmt.where(Student.skills.any(func.lower(StudentSkill.name).in_(required_skills)))

        if posting.education_field:
            stmt = stmt.where(Student.education.any(
                func.lower(StudentEducation.field) == posting.education_field.strip().lower()
            ))

        if posting.min_experience_years:
            stmt = stmt.where(Student.experience_years >= posting.min_experience_years)

        if posting.location_city:
            stmt = stmt.where(func.lower(Student.location_city) == posting.location_city.strip().lower())

        if exclude_ids:
            stmt = stmt.where(Student.id.notin_(exclude_ids))

        stmt = stmt.order_by(Student.id).limit(limit)
        return self.db.execute(stmt).scalars().all()

    def find_for_company(
        self,
        company: Company,
        exclude_ids: Optional[List[Any]] = None,
        limit: int = 100
    ) -> List[Student]:
        """Students interested in the company's industry, plus students who viewed it."""
        stmt = select(Student).where(Student.is_active.is_(True))

        if company.industry:
            industry_pref = Student.industry_preferences.any(
                func.lower(StudentIndustryPreference.industry) == company.industry.strip().lower()
            )
            viewed = (
                select(StudentCompanyMatch.student_id)
                .join(MatchInteraction, MatchInteraction.match_id == StudentCompanyMatch.id)
                .where(
                    StudentCompanyMatch.company_id == company.id,
                    MatchInteraction.action == 'viewed'
                )
            )
            stmt = stmt.where(or_(industry_pref, Student.id.in_(viewed)))

        if exclude_ids:
            stmt = stmt.where(Student.id.notin_(exclude_ids))

        stmt = stmt.order_by(Student.id).limit(limit)
        return self.db.execute(stmt).scalars().all()


class CompanyRepository(BaseRepository):
    def get_by_id(self, company_id: Any) -> Optional[Company]:
        stmt = select(Company).where(Company.id == company_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_ids(self, company_ids: List[Any]) -> List[Company]:
        if not company_ids:
            return []
        stmt = select(Company).where(Company.id.in_(company_ids)).order_by(Company.id)
        return self.db.execute(stmt).scalars().all()

    def list_active(self, limit: int) -> List[Company]:
        stmt = select(Company).where(Company.is_active.is_(True)).order_by(Company.id).limit(limit)
        return self.db.execute(stmt).scalars().all()

    def find_for_student(
        self,
        student: Student,
        scope: str = "all",
        exclude_ids: Optional[List[Any]] = None,
        limit: int = 100,
        now: Optional[datetime] = None
    ) -> List[Company]:
        """Active companies compatible with the student's declared preferences.

        scope "jobs"/"internships" keeps only companies with at least one
        active, non-expired posting of that kind.
        """
        now = now or utcnow()
        stmt = select(Company).where(Company.is_active.is_(True))

        industries = _lowered(student.preferred_industries)
        if industries:
            stmt = stmt.where(func.lower(Company.industry).in_(industries))

        if student.preferred_company_size:
            stmt = stmt.where(func.lower(Company.size) == student.preferred_company_size.strip().lower())

        if student.preferred_location:
            stmt = stmt.where(func.lower(Company.location_city) == student.preferred_location.strip().lower())

        posting_model = {'jobs': Job, 'internships': Internship}.get(scope)
        if posting_model is not None:
            with_postings = select(posting_model.company_id).where(
                posting_model.status == 'active',
                or_(posting_model.deadline.is_(None), posting_model.deadline > now)
            )
            stmt = stmt.where(Company.id.in_(with_postings))

        if exclude_ids:
            stmt = stmt.where(Company.id.notin_(exclude_ids))

        stmt = stmt.order_by(Company.id).limit(limit)
        return self.db.execute(stmt).scalars().all()


class PostingRepository(BaseRepository):
    def get_job(self, job_id: Any) -> Optional[Job]:
        return self.db.execute(select(Job).where(Job.id == job_id)).scalar_one_or_none()

    def get_internship(self, internship_id: Any) -> Optional[Internship]:
        stmt = select(Internship).where(Internship.id == internship_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def active_for_company(
        self,
        company_id: Any,
        kind: str,
        now: Optional[datetime] = None
    ) -> List[Posting]:
        """Active, non-expired jobs or internships of one company."""
        now = now or utcnow()
        model = Job if kind == 'jobs' else Internship
        stmt = (
            select(model)
            .where(
                model.company_id == company_id,
                model.status == 'active',
                or_(model.deadline.is_(None), model.deadline > now)
            )
            .order_by(model.id)
        )
        return self.db.execute(stmt).scalars().all()
