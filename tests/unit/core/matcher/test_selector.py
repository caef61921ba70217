#!/usr/bin/env python3
"""
Tests for CandidateSelector against a SQLite database.
"""

import uuid

import pytest

from core.exceptions import SubjectNotFoundError, InvalidRequestError
from core.matcher.selector import CandidateSelector, SelectionFilters, company_snapshot
from core.scorer.models import ScoredPair, STUDENT_TO_COMPANIES, COMPANY_TO_STUDENTS
from core.scorer.persistence import MatchStore
from database.uow import match_uow
from tests.fixtures.matching_fixtures import ordered_ids

pytestmark = pytest.mark.db


def _select(session_factory, subject_loader, direction, filters=None, max_candidates=100):
    selector = CandidateSelector(max_candidates=max_candidates)
    with match_uow(session_factory) as repo:
        subject = subject_loader(repo)
        return [c.id for c in selector.select_candidates(repo, subject, direction, filters)]


class TestStudentToCompanies:

    def test_preferences_narrow_companies(self, session_factory, seed):
        fintech_large = seed.company("A", industry="fintech", size="large", location_city="Berlin")
        seed.company("B", industry="gaming", size="large", location_city="Berlin")
        seed.company("C", industry="fintech", size="small", location_city="Berlin")
        seed.company("D", industry="fintech", size="large", location_city="Paris")
        seed.company("E", industry="fintech", size="large", location_city="Berlin", is_active=False)
        student_id = seed.student(
            industries=["FinTech"], preferred_company_size="large", preferred_location="berlin"
        )

        ids = _select(session_factory, lambda r: r.students.get_by_id(student_id), STUDENT_TO_COMPANIES)

        assert ids == [fintech_large]

    def test_no_preferences_returns_all_active_in_id_order(self, session_factory, seed):
        ids = ordered_ids(3)
        for company_id in reversed(ids):
            seed.company(id=company_id)
        student_id = seed.student()

        selected = _select(session_factory, lambda r: r.students.get_by_id(student_id), STUDENT_TO_COMPANIES)

        assert selected == ids

    def test_scope_requires_open_posting_of_that_kind(self, session_factory, seed):
        with_job = seed.company("Jobs")
        seed.job(with_job)
        with_expired_job = seed.company("Expired")
        seed.job(with_expired_job, deadline_in_days=-1)
        with_closed_job = seed.company("Closed")
        seed.job(with_closed_job, status="closed")
        with_internship = seed.company("Interns")
        seed.internship(with_internship, deadline_in_days=None)
        student_id = seed.student()

        load = lambda r: r.students.get_by_id(student_id)
        assert _select(session_factory, load, STUDENT_TO_COMPANIES, SelectionFilters(scope="jobs")) == [with_job]
        assert _select(session_factory, load, STUDENT_TO_COMPANIES,
                       SelectionFilters(scope="internships")) == [with_internship]

    def test_exclude_ids_and_cap(self, session_factory, seed):
        ids = ordered_ids(5)
        for company_id in ids:
            seed.company(id=company_id)
        student_id = seed.student()

        selected = _select(
            session_factory,
            lambda r: r.students.get_by_id(student_id),
            STUDENT_TO_COMPANIES,
            SelectionFilters(exclude_ids=[ids[0]]),
            max_candidates=2
        )

        assert selected == ids[1:3]

    def test_unknown_scope_rejected(self, session_factory, seed):
        student_id = seed.student()
        with pytest.raises(InvalidRequestError):
            _select(session_factory, lambda r: r.students.get_by_id(student_id), STUDENT_TO_COMPANIES,
                    SelectionFilters(scope="everything"))


class TestCompanyToStudents:

    def test_posting_requirements(self, session_factory, seed):
        company_id = seed.company(industry="software")
        job_id = seed.job(
            company_id,
            required_skills=["Python", "Go"],
            education_field="Computer Science",
            min_experience_years=2,
            location_city="Berlin"
        )
        good = seed.student("good", skills=["python"], education=["computer science"],
                            experience_years=3, location_city="Berlin")
        seed.student("junior", skills=["python"], education=["computer science"],
                     experience_years=1, location_city="Berlin")
        seed.student("no-skill", skills=["java"], education=["computer science"],
                     experience_years=3, location_city="Berlin")
        seed.student("other-field", skills=["go"], education=["history"],
                     experience_years=3, location_city="Berlin")
        seed.student("elsewhere", skills=["go"], education=["computer science"],
                     experience_years=3, location_city="Paris")

        ids = _select(session_factory, lambda r: r.companies.get_by_id(company_id), COMPANY_TO_STUDENTS,
                      SelectionFilters(job_id=job_id))

        assert ids == [good]

    def test_posting_without_requirements_selects_active_students(self, session_factory, seed):
        company_id = seed.company()
        internship_id = seed.internship(company_id)
        a = seed.student("a")
        seed.student("inactive", is_active=False)

        ids = _select(session_factory, lambda r: r.companies.get_by_id(company_id), COMPANY_TO_STUDENTS,
                      SelectionFilters(internship_id=internship_id))

        assert ids == [a]

    def test_industry_preference_union_viewed(self, session_factory, seed):
        company_id = seed.company(industry="fintech")
        interested = seed.student("interested", industries=["fintech"])
        viewer = seed.student("viewer", industries=["gaming"])
        seed.student("unrelated", industries=["gaming"])

        store = MatchStore(session_factory)
        [result] = store.upsert([ScoredPair(candidate_id=str(company_id), score=10)], viewer, STUDENT_TO_COMPANIES)
        store.update_status(result.match.id, "viewed", "student")

        ids = _select(session_factory, lambda r: r.companies.get_by_id(company_id), COMPANY_TO_STUDENTS)

        assert sorted(ids) == sorted([interested, viewer])

    def test_posting_of_another_company_is_not_found(self, session_factory, seed):
        company_id = seed.company()
        other_job = seed.job(seed.company("other"))

        with pytest.raises(SubjectNotFoundError):
            _select(session_factory, lambda r: r.companies.get_by_id(company_id), COMPANY_TO_STUDENTS,
                    SelectionFilters(job_id=other_job))

    def test_missing_posting_is_not_found(self, session_factory, seed):
        company_id = seed.company()

        with pytest.raises(SubjectNotFoundError):
            _select(session_factory, lambda r: r.companies.get_by_id(company_id), COMPANY_TO_STUDENTS,
                    SelectionFilters(job_id=uuid.uuid4()))

    def test_no_candidates_is_empty_not_error(self, session_factory, seed):
        company_id = seed.company(industry="mining")
        seed.student(industries=["gaming"])

        assert _select(session_factory, lambda r: r.companies.get_by_id(company_id), COMPANY_TO_STUDENTS) == []


class TestSnapshots:

    def test_company_snapshot_merges_open_posting_skills(self, session_factory, seed):
        company_id = seed.company(skills=["python", "SQL"])
        seed.job(company_id, required_skills=["sql", "docker"])
        seed.job(company_id, required_skills=["cobol"], status="closed")
        seed.internship(company_id, required_skills=["figma"])

        selector = CandidateSelector()
        with match_uow(session_factory) as repo:
            company = repo.companies.get_by_id(company_id)
            all_skills = company_snapshot(company, selector.open_postings(repo, company, "all")).skills
            job_skills = company_snapshot(company, selector.open_postings(repo, company, "jobs")).skills

        assert sorted(all_skills) == ["SQL", "docker", "figma", "python"]
        assert sorted(job_skills) == ["SQL", "docker", "python"]
