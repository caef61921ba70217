"""
Candidate Selector - bounded candidate sets for one subject.

Student -> companies: active companies narrowed by the student's declared
industry, size and location preferences; scope "jobs"/"internships" keeps
companies with at least one open posting of that kind.

Company -> students: with a job/internship, students meeting its declared
requirements; otherwise students interested in the company's industry plus
students who already viewed the company.

Results are ordered by id and capped, so identical inputs always give the
same candidates.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from core.exceptions import SubjectNotFoundError, InvalidRequestError
from core.scorer.models import EntitySnapshot, STUDENT_TO_COMPANIES, COMPANY_TO_STUDENTS
from database.models import Student, Company, Job, Internship
from database.repository import MatchingRepository

logger = logging.getLogger(__name__)

SCOPES = ("all", "jobs", "internships")

Posting = Union[Job, Internship]


@dataclass
class SelectionFilters:
    scope: str = "all"
    job_id: Optional[Any] = None
    internship_id: Optional[Any] = None
    exclude_ids: List[Any] = field(default_factory=list)


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def student_snapshot(student: Student) -> EntitySnapshot:
    return EntitySnapshot(
        id=str(student.id),
        kind="student",
        skills=student.skill_names,
        attributes={
            'name': student.name,
            'locationCity': student.location_city,
            'experienceYears': student.experience_years,
            'preferredIndustries': student.preferred_industries,
            'preferredCompanySize': student.preferred_company_size,
            'preferredLocation': student.preferred_location,
            'education': [
                {'field': e.field, 'level': e.level, 'institution': e.institution}
                for e in student.education
            ],
        },
    )


def posting_to_dict(posting: Posting) -> Dict[str, Any]:
    return {
        'id': str(posting.id),
        'kind': 'job' if isinstance(posting, Job) else 'internship',
        'title': posting.title,
        'requiredSkills': list(posting.required_skills or []),
        'educationField': posting.education_field,
        'minExperienceYears': posting.min_experience_years,
        'locationCity': posting.location_city,
        'deadline': _iso(posting.deadline),
    }


def company_snapshot(company: Company, postings: Optional[List[Posting]] = None) -> EntitySnapshot:
    """Company skills plus the required skills of the given open postings."""
    skills = list(company.skills or [])
    seen = {s.strip().lower() for s in skills}
    for posting in postings or []:
        for skill in posting.required_skills or []:
            if skill.strip().lower() not in seen:
                seen.add(skill.strip().lower())
                skills.append(skill)

    return EntitySnapshot(
        id=str(company.id),
        kind="company",
        skills=skills,
        attributes={
            'name': company.name,
            'industry': company.industry,
            'size': company.size,
            'locationCity': company.location_city,
            'postings': [posting_to_dict(p) for p in postings or []],
        },
    )


def posting_subject_snapshot(company: Company, posting: Posting) -> EntitySnapshot:
    """Company as subject, scored on one posting's required skills."""
    snapshot = company_snapshot(company)
    snapshot.skills = list(posting.required_skills or [])
    snapshot.attributes['posting'] = posting_to_dict(posting)
    return snapshot


class CandidateSelector:
    def __init__(self, max_candidates: int = 100):
        self.max_candidates = max_candidates

    def select_candidates(
        self,
        repo: MatchingRepository,
        subject: Union[Student, Company],
        direction: str,
        filters: Optional[SelectionFilters] = None
    ) -> List[Union[Student, Company]]:
        filters = filters or SelectionFilters()
        if filters.scope not in SCOPES:
            raise InvalidRequestError(f"Unknown scope '{filters.scope}', expected one of {', '.join(SCOPES)}")

        if direction == STUDENT_TO_COMPANIES:
            candidates = repo.companies.find_for_student(
                subject,
                scope=filters.scope,
                exclude_ids=filters.exclude_ids,
                limit=self.max_candidates,
            )
        elif direction == COMPANY_TO_STUDENTS:
            posting = self.resolve_posting(repo, subject, filters)
            if posting is not None:
                candidates = repo.students.find_for_posting(
                    posting, exclude_ids=filters.exclude_ids, limit=self.max_candidates
                )
            else:
                candidates = repo.students.find_for_company(
                    subject, exclude_ids=filters.exclude_ids, limit=self.max_candidates
                )
        else:
            raise ValueError(f"Unknown direction: {direction}")

        logger.debug(f"Selected {len(candidates)} candidates for {direction} subject {subject.id}")
        return candidates

    def resolve_posting(
        self,
        repo: MatchingRepository,
        company: Company,
        filters: SelectionFilters
    ) -> Optional[Posting]:
        """Load the job/internship named in filters; it must belong to company."""
        if filters.job_id is not None:
            posting = repo.postings.get_job(filters.job_id)
            label = f"Job {filters.job_id}"
        elif filters.internship_id is not None:
            posting = repo.postings.get_internship(filters.internship_id)
            label = f"Internship {filters.internship_id}"
        else:
            return None

        if posting is None or posting.company_id != company.id:
            raise SubjectNotFoundError(f"{label} not found for company {company.id}")
        return posting

    def candidate_snapshots(
        self,
        repo: MatchingRepository,
        candidates: List[Union[Student, Company]],
        scope: str = "all"
    ) -> List[EntitySnapshot]:
        snapshots = []
        for candidate in candidates:
            if isinstance(candidate, Student):
                snapshots.append(student_snapshot(candidate))
            else:
                snapshots.append(company_snapshot(candidate, self.open_postings(repo, candidate, scope)))
        return snapshots

    @staticmethod
    def open_postings(repo: MatchingRepository, company: Company, scope: str = "all") -> List[Posting]:
        kinds = ("jobs", "internships") if scope == "all" else (scope,)
        postings: List[Posting] = []
        for kind in kinds:
            postings.extend(repo.postings.active_for_company(company.id, kind))
        return postings
