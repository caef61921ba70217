#!/usr/bin/env python3
"""
Tests for MatchStore upsert and status updates.
"""

import uuid
import threading
from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError

from core.exceptions import MatchNotFoundError, InvalidStatusError, PersistenceConflictError
from core.scorer.models import ScoredPair, ComponentScore, MatchInsights, STUDENT_TO_COMPANIES, COMPANY_TO_STUDENTS
from core.scorer.persistence import MatchStore
from database.repositories.match import MatchRepository
from database.uow import match_uow

pytestmark = pytest.mark.db


def _pair(candidate_id, score, match_type="basic"):
    return ScoredPair(
        candidate_id=str(candidate_id),
        score=score,
        components={'skills': ComponentScore(score=score * 2.5, matched_items=["python"], missing_items=["go"])},
        insights=MatchInsights(summary=f"Basic match score: {round(score)}%", strengths=["python"], concerns=["go"]),
        match_type=match_type,
    )


@pytest.fixture
def store(session_factory):
    return MatchStore(session_factory)


@pytest.fixture
def pair_ids(seed):
    return seed.student(), seed.company()


def _count(session_factory, student_id, company_id):
    with match_uow(session_factory) as repo:
        return repo.matches.count_for_pair(student_id, company_id)


class TestUpsert:

    def test_creates_pending_match_with_single_created_entry(self, store, pair_ids):
        student_id, company_id = pair_ids

        [result] = store.upsert([_pair(company_id, 40)], student_id, STUDENT_TO_COMPANIES)

        assert result.created is True
        match = result.match
        assert match.student_id == str(student_id)
        assert match.company_id == str(company_id)
        assert match.match_score == 40
        assert match.status == "pending"
        assert match.match_type == "basic"
        assert match.match_components["skills"]["matchedItems"] == ["python"]
        assert match.ai_insights["summary"] == "Basic match score: 40%"
        assert len(match.interaction_history) == 1
        created = match.interaction_history[0]
        assert (created.action, created.performed_by) == ("created", "system")
        assert created.metadata == {"type": STUDENT_TO_COMPANIES, "sourceId": str(student_id)}

    def test_company_direction_maps_ids(self, store, pair_ids):
        student_id, company_id = pair_ids

        [result] = store.upsert([_pair(student_id, 10)], company_id, COMPANY_TO_STUDENTS, context="batch")

        assert result.match.student_id == str(student_id)
        assert result.match.company_id == str(company_id)
        assert result.match.interaction_history[0].metadata["type"] == "batch"

    def test_rescoring_updates_in_place(self, store, session_factory, pair_ids):
        student_id, company_id = pair_ids
        [first] = store.upsert([_pair(company_id, 40)], student_id, STUDENT_TO_COMPANIES)
        store.update_status(first.match.id, "shortlisted", "company")

        [second] = store.upsert([_pair(company_id, 72.6, match_type="ai")], student_id, STUDENT_TO_COMPANIES)

        assert second.created is False
        assert second.match.id == first.match.id
        assert second.match.match_score == 73
        assert second.match.match_type == "ai"
        assert second.match.status == "shortlisted"
        assert second.match.updated_at >= first.match.updated_at
        actions = [i.action for i in second.match.interaction_history]
        assert actions == ["created", "shortlisted"]
        assert _count(session_factory, student_id, company_id) == 1

    def test_score_clamped_on_write(self, store, pair_ids):
        student_id, company_id = pair_ids
        [result] = store.upsert([_pair(company_id, 180)], student_id, STUDENT_TO_COMPANIES)
        assert result.match.match_score == 100

    def test_concurrent_upserts_leave_one_match(self, store, session_factory, pair_ids):
        student_id, company_id = pair_ids
        errors = []
        barrier = threading.Barrier(6)

        def worker(score):
            try:
                barrier.wait()
                store.upsert([_pair(company_id, score)], student_id, STUDENT_TO_COMPANIES)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(10 * i,)) for i in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert _count(session_factory, student_id, company_id) == 1
        with match_uow(session_factory) as repo:
            match = repo.matches.get_existing_match(student_id, company_id)
            assert [i.action for i in match.interaction_history] == ["created"]

    def test_conflict_retried_once_then_updates(self, store, session_factory, pair_ids):
        student_id, company_id = pair_ids
        store.upsert([_pair(company_id, 20)], student_id, STUDENT_TO_COMPANIES)

        original = MatchRepository.get_existing_match
        calls = {"n": 0}

        def first_call_misses(self, *args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 1:
                return None
            return original(self, *args, **kwargs)

        with patch.object(MatchRepository, "get_existing_match", first_call_misses):
            [result] = store.upsert([_pair(company_id, 60)], student_id, STUDENT_TO_COMPANIES)

        assert calls["n"] == 2
        assert result.created is False
        assert result.match.match_score == 60
        assert _count(session_factory, student_id, company_id) == 1

    def test_repeated_conflict_surfaces(self, store, pair_ids):
        student_id, company_id = pair_ids

        def always_conflict(self, **kwargs):
            raise IntegrityError("INSERT", {}, Exception("duplicate key"))

        with patch.object(MatchRepository, "create_match", always_conflict):
            with pytest.raises(PersistenceConflictError):
                store.upsert([_pair(company_id, 60)], student_id, STUDENT_TO_COMPANIES)


class TestStatusUpdates:

    def test_status_update_appends_interaction(self, store, pair_ids):
        student_id, company_id = pair_ids
        [created] = store.upsert([_pair(company_id, 40)], student_id, STUDENT_TO_COMPANIES)

        updated = store.update_status(created.match.id, "shortlisted", "company", {"note": "strong"})

        assert updated.status == "shortlisted"
        assert updated.match_score == 40
        last = updated.interaction_history[-1]
        assert (last.action, last.performed_by, last.metadata) == ("shortlisted", "company", {"note": "strong"})
        assert len(updated.interaction_history) == 2

    def test_any_status_from_any_status(self, store, pair_ids):
        student_id, company_id = pair_ids
        [created] = store.upsert([_pair(company_id, 40)], student_id, STUDENT_TO_COMPANIES)

        store.update_status(created.match.id, "rejected", "company")
        reopened = store.update_status(created.match.id, "pending", "system")

        assert reopened.status == "pending"

    def test_unknown_status_rejected(self, store, pair_ids):
        student_id, company_id = pair_ids
        [created] = store.upsert([_pair(company_id, 40)], student_id, STUDENT_TO_COMPANIES)

        with pytest.raises(InvalidStatusError):
            store.update_status(created.match.id, "hired", "company")
        with pytest.raises(InvalidStatusError):
            store.update_status(created.match.id, "viewed", "recruiter")

    def test_missing_match(self, store):
        with pytest.raises(MatchNotFoundError):
            store.update_status(uuid.uuid4(), "viewed", "student")
        with pytest.raises(MatchNotFoundError):
            store.get_match(uuid.uuid4())


class TestStats:

    def test_empty_stats_are_zero(self, store):
        stats = store.get_stats()
        assert stats["totalMatches"] == 0
        assert stats["avgScore"] == 0
        assert stats["pendingCount"] == 0

    def test_stats_for_student(self, store, seed):
        student_id = seed.student()
        companies = [seed.company(), seed.company()]
        results = store.upsert([_pair(companies[0], 20), _pair(companies[1], 60)], student_id, STUDENT_TO_COMPANIES)
        store.update_status(results[1].match.id, "accepted", "student")
        store.upsert([_pair(companies[0], 90)], seed.student(), STUDENT_TO_COMPANIES)

        stats = store.get_stats(student_id=student_id)

        assert stats["totalMatches"] == 2
        assert stats["avgScore"] == 40
        assert stats["maxScore"] == 60
        assert stats["minScore"] == 20
        assert stats["pendingCount"] == 1
        assert stats["acceptedCount"] == 1
