"""
Scorer Interface - common contract for remote and local scoring strategies.
"""
from abc import ABC, abstractmethod
from typing import List, Sequence

from core.scorer.models import EntitySnapshot, ScoredPair, ScoringOptions


class Scorer(ABC):
    """
    Abstract interface for scoring a subject against a batch of candidates.
    """

    @abstractmethod
    def score(
        self,
        subject: EntitySnapshot,
        candidates: Sequence[EntitySnapshot],
        options: ScoringOptions
    ) -> List[ScoredPair]:
        """
        Score every candidate against the subject.

        Returns pairs ranked by descending score, filtered by
        options.min_score and truncated to options.limit.
        """
        pass
