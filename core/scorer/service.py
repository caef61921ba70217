#!/usr/bin/env python3
"""
Scoring Service - picks the scorer for each request.

The remote AI scorer is tried first when one is configured. Only a
ScoringUnavailableError switches to the local fallback; anything else is a
bug and propagates.
"""

import logging
from typing import List, Optional, Sequence

from core.exceptions import ScoringUnavailableError
from core.scorer.interfaces import Scorer
from core.scorer.local_scorer import LocalScorer
from core.scorer.models import EntitySnapshot, ScoredPair, ScoringOptions

logger = logging.getLogger(__name__)


class ScoringService:
    def __init__(self, local: LocalScorer, remote: Optional[Scorer] = None):
        self.local = local
        self.remote = remote

    def score(
        self,
        subject: EntitySnapshot,
        candidates: Sequence[EntitySnapshot],
        options: ScoringOptions
    ) -> List[ScoredPair]:
        if not candidates:
            return []

        if self.remote is not None:
            try:
                results = self.remote.score(subject, candidates, options)
                return self._apply_policy(results, options)
            except ScoringUnavailableError as e:
                logger.warning(
                    f"Remote scoring unavailable for {subject.kind} {subject.id}, "
                    f"using basic scorer: {e}"
                )

        return self.local.score(subject, candidates, options)

    @staticmethod
    def _apply_policy(results: List[ScoredPair], options: ScoringOptions) -> List[ScoredPair]:
        """Filter by min_score, rank and truncate provider output."""
        kept = [r for r in results if r.score >= options.min_score]
        kept = sorted(kept, key=lambda r: r.score, reverse=True)
        return kept[:options.limit]
