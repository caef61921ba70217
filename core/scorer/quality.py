"""
Quality Assessor - confidence report for one existing match.

Asks the provider's assess-quality endpoint when one is configured; the
local report is built from the stored score and components only. A report
missing any of qualityScore, confidence, factors or recommendations is
treated like an unreachable provider.
"""
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.exceptions import QualityUnavailableError
from core.matcher.dto import MatchDTO
from core.provider.client import ProviderClient
from core.scorer.models import COMPONENT_NAMES

logger = logging.getLogger(__name__)

FALLBACK_RECOMMENDATIONS = [
    "Consider scheduling an interview to assess fit",
    "Review the candidate's portfolio for more insights",
]


class _QualityFactor(BaseModel):
    model_config = ConfigDict(extra="allow", allow_inf_nan=False)

    name: str
    score: float


class _QualityReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow", allow_inf_nan=False)

    quality_score: float = Field(alias="qualityScore")
    confidence: float
    factors: List[_QualityFactor]
    recommendations: List[str]


class QualityAssessor:
    def __init__(
        self,
        client: Optional[ProviderClient] = None,
        path: str = "/api/matching/assess-quality",
        fallback_confidence: float = 0.7
    ):
        self.client = client
        self.path = path
        self.fallback_confidence = fallback_confidence

    def assess(self, match: MatchDTO) -> Dict[str, Any]:
        if self.client is not None:
            try:
                data = self.client.post_json(
                    self.path, {'match': match.to_dict()}, error_cls=QualityUnavailableError
                )
                return self._parse_report(data, match)
            except QualityUnavailableError as e:
                logger.warning(f"Quality assessment unavailable for match {match.id}, using basic report: {e}")

        return self.basic_report(match)

    def _parse_report(self, data: Dict[str, Any], match: MatchDTO) -> Dict[str, Any]:
        try:
            report = _QualityReport.model_validate(data)
        except ValidationError as e:
            raise QualityUnavailableError(
                f"Malformed quality report: {e.error_count()} validation errors"
            ) from e

        result = report.model_dump(by_alias=True)
        result.setdefault('matchId', match.id)
        return result

    def basic_report(self, match: MatchDTO) -> Dict[str, Any]:
        factors = []
        for name in COMPONENT_NAMES:
            component = match.match_components.get(name) or {}
            factors.append({'name': name, 'score': component.get('score', 0)})

        return {
            'matchId': match.id,
            'qualityScore': match.match_score,
            'confidence': self.fallback_confidence,
            'factors': factors,
            'recommendations': list(FALLBACK_RECOMMENDATIONS),
        }
