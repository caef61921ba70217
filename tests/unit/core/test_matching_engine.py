#!/usr/bin/env python3
"""
End-to-end tests for MatchingEngine over SQLite and a dict-backed Redis mock.
"""

import uuid
from unittest.mock import Mock, patch

import pytest

from core.app_context import AppContext
from core.cache.match_cache import MatchCacheService
from core.config_loader import AppConfig
from core.exceptions import (
    SubjectNotFoundError, MatchNotFoundError, InvalidRequestError, ProviderUnavailableError
)
from core.provider import ProviderClient
from database.uow import match_uow
from tests.mocks.cache_mocks import make_dict_redis

pytestmark = pytest.mark.db


@pytest.fixture
def redis_store():
    return make_dict_redis()


@pytest.fixture
def ctx(session_factory, redis_store):
    client, _ = redis_store
    with patch('core.cache.match_cache.Redis') as mock_redis_class:
        mock_redis_class.from_url.return_value = client
        cache = MatchCacheService()
    return AppContext.build(AppConfig(), session_factory=session_factory, cache=cache)


@pytest.fixture
def engine(ctx):
    return ctx.engine


@pytest.fixture
def student_with_companies(seed):
    student_id = seed.student("S", skills=["python", "sql"])
    target = seed.company("Target", skills=["python", "sql", "go"])
    partial = seed.company("Partial", skills=["python"])
    return student_id, target, partial


class TestStudentMatches:

    def test_basic_scores_persisted_and_ranked(self, engine, student_with_companies):
        student_id, target, partial = student_with_companies

        result = engine.get_matches_for_student(student_id, limit=5, min_score=0)

        assert result.from_cache is False
        assert [m["companyId"] for m in result.matches] == [str(target), str(partial)]
        top = result.matches[0]
        assert top["matchScore"] == 40
        assert top["matchType"] == "basic"
        assert top["status"] == "pending"
        assert top["matchComponents"]["skills"]["matchedItems"] == ["python", "sql"]
        assert top["matchComponents"]["skills"]["missingItems"] == ["go"]

    def test_second_call_served_from_cache(self, engine, student_with_companies):
        student_id, _, _ = student_with_companies
        first = engine.get_matches_for_student(student_id, limit=5, min_score=0)

        with patch.object(engine.selector, "select_candidates") as select, \
                patch.object(engine.store, "upsert") as upsert, \
                patch.object(engine.scoring, "score") as score:
            second = engine.get_matches_for_student(student_id, limit=5, min_score=0)

        assert second.from_cache is True
        assert second.matches == first.matches
        select.assert_not_called()
        score.assert_not_called()
        upsert.assert_not_called()

    def test_different_query_shape_misses(self, engine, student_with_companies):
        student_id, _, _ = student_with_companies
        engine.get_matches_for_student(student_id, limit=5, min_score=0)

        result = engine.get_matches_for_student(student_id, limit=5, min_score=30)

        assert result.from_cache is False
        assert len(result.matches) == 1

    def test_force_refresh_rescoring_is_idempotent(self, engine, session_factory, student_with_companies):
        student_id, target, _ = student_with_companies
        first = engine.get_matches_for_student(student_id, limit=5)

        second = engine.get_matches_for_student(student_id, limit=5, force_refresh=True)

        assert second.from_cache is False
        assert [m["id"] for m in second.matches] == [m["id"] for m in first.matches]
        assert second.matches[0]["updatedAt"] >= first.matches[0]["updatedAt"]
        assert [i["action"] for i in second.matches[0]["interactionHistory"]] == ["created"]
        with match_uow(session_factory) as repo:
            assert repo.matches.count_for_pair(student_id, target) == 1

    def test_unknown_student_not_found_before_cache(self, engine, redis_store):
        client, _ = redis_store
        with pytest.raises(SubjectNotFoundError):
            engine.get_matches_for_student(uuid.uuid4())
        client.get.assert_not_called()

    def test_no_candidates_returns_empty_list(self, engine, seed):
        student_id = seed.student(industries=["aerospace"])
        seed.company(industry="retail")

        assert engine.get_matches_for_student(student_id).matches == []

    def test_invalid_parameters(self, engine, seed):
        student_id = seed.student()
        with pytest.raises(InvalidRequestError):
            engine.get_matches_for_student("not-a-uuid")
        with pytest.raises(InvalidRequestError):
            engine.get_matches_for_student(student_id, limit=0)
        with pytest.raises(InvalidRequestError):
            engine.get_matches_for_student(student_id, min_score=101)
        with pytest.raises(InvalidRequestError):
            engine.get_matches_for_student(student_id, scope="gigs")

    def test_exclude_ids_bypass_cache(self, engine, redis_store, student_with_companies):
        student_id, target, partial = student_with_companies
        _, store = redis_store

        result = engine.get_matches_for_student(student_id, exclude_ids=[str(target)])

        assert [m["companyId"] for m in result.matches] == [str(partial)]
        assert store == {}


class TestCompanyMatches:

    def test_job_requirements_drive_subject_skills(self, engine, seed):
        company_id = seed.company(skills=["java"])
        job_id = seed.job(company_id, required_skills=["python", "sql"])
        one_skill = seed.student("one", skills=["python"])
        seed.student("none", skills=["rust"])

        result = engine.get_matches_for_company(company_id, job_id=job_id)

        assert [m["studentId"] for m in result.matches] == [str(one_skill)]
        assert result.matches[0]["matchScore"] == 20

    def test_unknown_company_and_posting(self, engine, seed):
        with pytest.raises(SubjectNotFoundError):
            engine.get_matches_for_company(uuid.uuid4())
        company_id = seed.company()
        with pytest.raises(SubjectNotFoundError):
            engine.get_matches_for_company(company_id, internship_id=uuid.uuid4())

    def test_job_and_internship_together_rejected(self, engine, seed):
        company_id = seed.company()
        with pytest.raises(InvalidRequestError):
            engine.get_matches_for_company(company_id, job_id=uuid.uuid4(), internship_id=uuid.uuid4())


class TestMatchOperations:

    def _first_match(self, engine, student_with_companies):
        student_id, _, _ = student_with_companies
        return engine.get_matches_for_student(student_id, limit=5).matches[0]

    def test_status_update_keeps_score(self, engine, student_with_companies):
        match = self._first_match(engine, student_with_companies)

        updated = engine.update_match_status(match["id"], "shortlisted", "company", {})

        assert updated.status == "shortlisted"
        assert updated.match_score == match["matchScore"]
        assert [i.action for i in updated.interaction_history] == ["created", "shortlisted"]
        assert engine.get_match(match["id"]).status == "shortlisted"

    def test_status_update_invalidates_cached_lists(self, engine, student_with_companies):
        student_id, _, _ = student_with_companies
        match = self._first_match(engine, student_with_companies)

        engine.update_match_status(match["id"], "viewed", "student")
        result = engine.get_matches_for_student(student_id, limit=5)

        assert result.from_cache is False
        assert result.matches[0]["status"] == "viewed"

    def test_breakdown_lists_missing_components(self, engine, student_with_companies):
        match = self._first_match(engine, student_with_companies)

        breakdown = engine.get_match_breakdown(match["id"])

        assert breakdown["evaluated"] == ["skills"]
        assert breakdown["notEvaluated"] == ["experience", "education"]
        assert breakdown["components"]["skills"]["score"] == 100.0

    def test_quality_fallback(self, engine, student_with_companies):
        match = self._first_match(engine, student_with_companies)

        report = engine.get_quality(match["id"])

        assert report["qualityScore"] == 40
        assert report["confidence"] == 0.7
        assert report["factors"][0] == {"name": "skills", "score": 100.0}
        assert report["factors"][1] == {"name": "experience", "score": 0}
        assert len(report["recommendations"]) == 2

    def test_missing_match(self, engine):
        with pytest.raises(MatchNotFoundError):
            engine.get_match(uuid.uuid4())
        with pytest.raises(MatchNotFoundError):
            engine.get_quality(uuid.uuid4())

    def test_stats(self, engine, student_with_companies):
        student_id, _, _ = student_with_companies
        engine.get_matches_for_student(student_id, limit=5)

        stats = engine.get_match_stats(student_id=student_id)

        assert stats["totalMatches"] == 2
        assert stats["maxScore"] == 40


class TestRecommendations:

    def test_requires_exactly_one_subject(self, engine):
        with pytest.raises(InvalidRequestError):
            engine.get_recommendations()
        with pytest.raises(InvalidRequestError):
            engine.get_recommendations(student_id=uuid.uuid4(), company_id=uuid.uuid4())

    def test_basic_recommendations_from_stored_matches(self, engine, student_with_companies):
        student_id, target, _ = student_with_companies
        engine.get_matches_for_student(student_id, limit=5)

        data = engine.get_recommendations(student_id=student_id, criteria={"limit": 1})

        assert data["type"] == "basic"
        assert [m["companyId"] for m in data["recommendations"]] == [str(target)]
        assert "generatedAt" in data

    def test_provider_recommendations(self, engine, student_with_companies):
        student_id, _, _ = student_with_companies
        engine.provider_client = Mock(spec=ProviderClient)
        engine.provider_client.post_json.return_value = {"recommendations": [{"companyId": "x"}]}

        data = engine.get_recommendations(student_id=student_id)

        assert data["type"] == "ai"
        assert data["recommendations"] == [{"companyId": "x"}]
        path, payload = engine.provider_client.post_json.call_args[0]
        assert path == "/api/matching/recommendations"
        assert payload["studentId"] == str(student_id)

    def test_provider_failure_falls_back(self, engine, seed):
        company_id = seed.company()
        engine.provider_client = Mock(spec=ProviderClient)
        engine.provider_client.post_json.side_effect = ProviderUnavailableError("down")

        data = engine.get_recommendations(company_id=company_id)

        assert data == {"recommendations": [], "type": "basic", "generatedAt": data["generatedAt"]}

    @pytest.mark.parametrize("body", [{"unexpected": True}, {"recommendations": "nope"}])
    def test_malformed_provider_body_falls_back(self, engine, student_with_companies, body):
        student_id, target, _ = student_with_companies
        engine.get_matches_for_student(student_id, limit=5)
        engine.provider_client = Mock(spec=ProviderClient)
        engine.provider_client.post_json.return_value = body

        data = engine.get_recommendations(student_id=student_id, criteria={"limit": 1})

        assert data["type"] == "basic"
        assert "unexpected" not in data
        assert [m["companyId"] for m in data["recommendations"]] == [str(target)]
