#!/usr/bin/env python3
"""
Local Scorer - deterministic fallback used when the AI provider is unavailable.

Only the skills component is computed:

    matched = S ∩ T
    skills  = |matched| / max(|S|, 1) * 100
    missing = T - S
    score   = skills * weight("skills")

where S is the subject's skill set and T the candidate's. Skill names are
compared case-insensitively; reported items keep their original spelling.
"""

import logging
from typing import Dict, List, Optional, Sequence

from core.scorer.interfaces import Scorer
from core.scorer.models import (
    EntitySnapshot, ScoredPair, ScoringOptions, ComponentScore, MatchInsights,
    round_half_up,
)

logger = logging.getLogger(__name__)

DEFAULT_COMPONENT_WEIGHTS = {'skills': 0.4}


def _normalize(name: str) -> str:
    return name.strip().casefold()


def _skill_index(skills: Sequence[str]) -> Dict[str, str]:
    """Map normalized skill name -> first spelling seen."""
    index: Dict[str, str] = {}
    for skill in skills:
        if not skill or not skill.strip():
            continue
        index.setdefault(_normalize(skill), skill.strip())
    return index


def calculate_skills_component(
    subject_skills: Sequence[str],
    candidate_skills: Sequence[str]
) -> ComponentScore:
    subject = _skill_index(subject_skills)
    candidate = _skill_index(candidate_skills)

    matched_keys = subject.keys() & candidate.keys()
    missing_keys = candidate.keys() - subject.keys()

    score = len(matched_keys) / max(len(subject), 1) * 100.0

    return ComponentScore(
        score=score,
        matched_items=sorted(subject[k] for k in matched_keys),
        missing_items=sorted(candidate[k] for k in missing_keys),
    )


class LocalScorer(Scorer):
    """Pure skills-overlap scorer. Never raises for well-formed input."""

    match_type = "basic"

    def __init__(self, component_weights: Optional[Dict[str, float]] = None):
        self.component_weights = dict(component_weights or DEFAULT_COMPONENT_WEIGHTS)

    def score(
        self,
        subject: EntitySnapshot,
        candidates: Sequence[EntitySnapshot],
        options: ScoringOptions
    ) -> List[ScoredPair]:
        results: List[ScoredPair] = []

        for candidate in candidates:
            skills = calculate_skills_component(subject.skills, candidate.skills)
            score = skills.score * self.component_weights.get('skills', 0.0)

            if score < options.min_score:
                continue

            results.append(ScoredPair(
                candidate_id=candidate.id,
                score=score,
                components={'skills': skills},
                insights=MatchInsights(
                    summary=f"Basic match score: {round_half_up(score)}%",
                    strengths=list(skills.matched_items),
                    concerns=list(skills.missing_items),
                ),
                match_type=self.match_type,
            ))

        # sorted() is stable: equal scores keep candidate input order
        results = sorted(results, key=lambda r: r.score, reverse=True)

        logger.debug(f"Local scorer kept {len(results)}/{len(candidates)} candidates for {subject.id}")

        return results[:options.limit]
