"""Weighted scoring engine combining the five factor scorers."""

from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from railmatch.matching.config import FACTOR_ORDER, MatchingConfig, get_matching_config
from railmatch.matching.factors import (
    FactorResult,
    cargo_type_score,
    date_overlap_score,
    price_match_score,
    regional_proximity_score,
    wagon_type_score,
)

FACTOR_LABELS: dict[str, str] = {
    "wagonType": "Тип вагона",
    "cargoType": "Совместимость груза и вагона",
    "dateOverlap": "Совпадение дат",
    "regionalProximity": "Географическая близость маршрутов",
    "priceMatch": "Совпадение цены",
}

# Persisted metadata keys, in factor order.
METADATA_KEYS: dict[str, str] = {
    "wagonType": "wagonTypeMatch",
    "cargoType": "cargoTypeMatch",
    "dateOverlap": "dateOverlap",
    "regionalProximity": "regionalProximity",
    "priceMatch": "priceMatch",
}


@dataclass(frozen=True)
class ScoringReason:
    factor: str
    label: str
    score: float
    weight: float
    explanation: str


@dataclass(frozen=True)
class MatchScore:
    score: int
    reasons: list[ScoringReason] = field(default_factory=list)
    metadata: dict[str, float] = field(default_factory=dict)

    @property
    def fraction(self) -> float:
        """Score on the 0-1 scale used for storage."""
        return self.score / 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "reasons": [asdict(reason) for reason in self.reasons],
            "metadata": dict(self.metadata),
        }

    def to_metadata_json(self, computed_at: datetime) -> str:
        """Serialized blob stored on the Match row."""
        payload = {
            "reasons": [asdict(reason) for reason in self.reasons],
            "metadata": dict(self.metadata),
            "computedAt": computed_at.isoformat(),
        }
        return json.dumps(payload, ensure_ascii=False, sort_keys=True)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _factor_results(offer: Any, request: Any, config: MatchingConfig) -> dict[str, FactorResult]:
    return {
        "wagonType": wagon_type_score(offer.wagon_type, request.wagon_type),
        # Cargo dictates the physically required wagon, so the request's cargo
        # is checked against the offer's wagon.
        "cargoType": cargo_type_score(
            request.cargo_type,
            offer.wagon_type,
            config.cargo_wagon_compatibility,
            unknown_score=config.unknown_compatibility_score,
        ),
        "dateOverlap": date_overlap_score(
            offer.available_from,
            offer.available_until,
            request.loading_date,
            request.required_by_date,
            min_overlap_days=config.min_date_overlap_days,
        ),
        "regionalProximity": regional_proximity_score(
            offer.departure_region,
            offer.arrival_region,
            request.departure_region,
            request.arrival_region,
            config.region_proximity,
            partial_base=config.partial_region_base,
            partial_step=config.partial_region_step,
            partial_cap=config.partial_region_cap,
            unknown_score=config.unknown_proximity_score,
        ),
        "priceMatch": price_match_score(
            offer.price_per_wagon,
            request.max_price_per_wagon,
            tolerance_percentage=config.price_tolerance_percentage,
        ),
    }


def score_match(offer: Any, request: Any, config: MatchingConfig | None = None) -> MatchScore:
    """Score one offer against one request.

    ``offer`` and ``request`` may be ORM rows or any objects exposing the same
    attributes. The result always carries five reasons in factor order.
    """
    if config is None:
        config = get_matching_config()
    results = _factor_results(offer, request, config)

    reasons = [
        ScoringReason(
            factor=factor,
            label=FACTOR_LABELS[factor],
            score=results[factor].score,
            weight=config.weight(factor),
            explanation=results[factor].explanation,
        )
        for factor in FACTOR_ORDER
    ]
    weighted = sum(reason.score * reason.weight for reason in reasons)
    final_score = max(0, min(100, _round_half_up(weighted * 100)))

    return MatchScore(
        score=final_score,
        reasons=reasons,
        metadata={METADATA_KEYS[factor]: results[factor].score for factor in FACTOR_ORDER},
    )
