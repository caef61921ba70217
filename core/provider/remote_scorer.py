"""
Remote Scorer - scores candidates through the external AI provider.

Request:  {"subject": {...}, "candidates": [{...}], "options": {...}}
Response: {"matches": [{"candidateId", "score", "components", "insights"}]}
"""
import logging
from typing import Dict, List, Sequence

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from core.exceptions import ScoringUnavailableError
from core.provider.client import ProviderClient
from core.scorer.interfaces import Scorer
from core.scorer.models import (
    EntitySnapshot, ScoredPair, ScoringOptions, ComponentScore, MatchInsights
)

logger = logging.getLogger(__name__)


class _RemoteComponent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    score: float
    matched_items: List[str] = Field(default_factory=list, alias="matchedItems")
    missing_items: List[str] = Field(default_factory=list, alias="missingItems")


class _RemoteInsights(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary: str = Field(default="", validation_alias=AliasChoices("summary", "matchSummary"))
    strengths: List[str] = Field(default_factory=list)
    concerns: List[str] = Field(default_factory=list)


class _RemoteMatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    candidate_id: str = Field(alias="candidateId")
    score: float
    components: Dict[str, _RemoteComponent] = Field(default_factory=dict)
    insights: _RemoteInsights = Field(default_factory=_RemoteInsights)


class _RemoteResponse(BaseModel):
    matches: List[_RemoteMatch]


class RemoteScorer(Scorer):
    """Scorer backed by the provider's /calculate endpoint.

    Any failure raises ScoringUnavailableError; an empty result is only
    returned when the provider itself ranked nothing.
    """

    match_type = "ai"

    def __init__(self, client: ProviderClient, path: str = "/api/matching/calculate"):
        self.client = client
        self.path = path

    def score(
        self,
        subject: EntitySnapshot,
        candidates: Sequence[EntitySnapshot],
        options: ScoringOptions
    ) -> List[ScoredPair]:
        payload = {
            'subject': subject.to_dict(),
            'candidates': [c.to_dict() for c in candidates],
            'options': options.to_dict(),
        }

        data = self.client.post_json(self.path, payload, error_cls=ScoringUnavailableError)

        try:
            parsed = _RemoteResponse.model_validate(data)
        except ValidationError as e:
            raise ScoringUnavailableError(f"Malformed scoring response: {e.error_count()} validation errors") from e

        known_ids = {c.id for c in candidates}
        seen = set()
        results: List[ScoredPair] = []
        for item in parsed.matches:
            if item.candidate_id not in known_ids:
                raise ScoringUnavailableError(f"Provider scored unknown candidate {item.candidate_id}")
            if item.candidate_id in seen:
                continue
            seen.add(item.candidate_id)
            results.append(ScoredPair(
                candidate_id=item.candidate_id,
                score=max(0.0, min(100.0, item.score)),
                components={
                    name: ComponentScore(
                        score=component.score,
                        matched_items=component.matched_items,
                        missing_items=component.missing_items,
                    )
                    for name, component in item.components.items()
                },
                insights=MatchInsights(
                    summary=item.insights.summary,
                    strengths=item.insights.strengths,
                    concerns=item.insights.concerns,
                ),
                match_type=self.match_type,
            ))

        logger.info(f"Remote scorer returned {len(results)} matches for {subject.kind} {subject.id}")
        return results
