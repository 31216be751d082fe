"""Matching weights, thresholds and compatibility tables.

The reference values live in this module; a JSON file named by
``MATCHING_CONFIG_PATH`` can override any of them without code changes.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from railmatch.core.config import get_config
from railmatch.core.exceptions import ConfigurationError
from railmatch.models.enums import CargoType, WagonType

FACTOR_ORDER: tuple[str, ...] = (
    "wagonType",
    "cargoType",
    "dateOverlap",
    "regionalProximity",
    "priceMatch",
)

RegionPair = frozenset

DEFAULT_WEIGHTS: dict[str, float] = {
    "wagonType": 0.25,
    "cargoType": 0.25,
    "dateOverlap": 0.15,
    "regionalProximity": 0.15,
    "priceMatch": 0.20,
}

_W = WagonType
DEFAULT_CARGO_WAGON_COMPATIBILITY: dict[CargoType, dict[WagonType, float]] = {
    CargoType.COAL: {
        _W.GONDOLA: 1.0, _W.HOPPER: 0.9, _W.BOXCAR: 0.7, _W.PLATFORM: 0.3,
        _W.TANK: 0.0, _W.FLATCAR: 0.5, _W.REFRIGERATOR: 0.0,
    },
    CargoType.OIL: {
        _W.TANK: 1.0, _W.BOXCAR: 0.6, _W.HOPPER: 0.2, _W.GONDOLA: 0.1,
        _W.PLATFORM: 0.0, _W.FLATCAR: 0.0, _W.REFRIGERATOR: 0.0,
    },
    CargoType.GRAIN: {
        _W.HOPPER: 1.0, _W.GONDOLA: 0.8, _W.BOXCAR: 0.7, _W.TANK: 0.0,
        _W.PLATFORM: 0.2, _W.FLATCAR: 0.2, _W.REFRIGERATOR: 0.3,
    },
    CargoType.METAL: {
        _W.PLATFORM: 1.0, _W.FLATCAR: 0.95, _W.GONDOLA: 0.8, _W.BOXCAR: 0.6,
        _W.HOPPER: 0.2, _W.TANK: 0.0, _W.REFRIGERATOR: 0.0,
    },
    CargoType.CHEMICAL: {
        _W.TANK: 0.95, _W.BOXCAR: 0.8, _W.PLATFORM: 0.3, _W.FLATCAR: 0.3,
        _W.GONDOLA: 0.1, _W.HOPPER: 0.0, _W.REFRIGERATOR: 0.5,
    },
    CargoType.TIMBER: {
        _W.PLATFORM: 1.0, _W.FLATCAR: 0.95, _W.GONDOLA: 0.7, _W.BOXCAR: 0.8,
        _W.HOPPER: 0.2, _W.TANK: 0.0, _W.REFRIGERATOR: 0.0,
    },
    CargoType.CONTAINER: {
        _W.PLATFORM: 1.0, _W.FLATCAR: 0.95, _W.BOXCAR: 0.8, _W.GONDOLA: 0.5,
        _W.HOPPER: 0.1, _W.TANK: 0.0, _W.REFRIGERATOR: 0.0,
    },
    CargoType.BULK: {
        _W.GONDOLA: 0.9, _W.HOPPER: 0.95, _W.BOXCAR: 0.7, _W.PLATFORM: 0.4,
        _W.FLATCAR: 0.4, _W.TANK: 0.0, _W.REFRIGERATOR: 0.0,
    },
    CargoType.OTHER: {
        _W.BOXCAR: 0.8, _W.GONDOLA: 0.6, _W.PLATFORM: 0.6, _W.FLATCAR: 0.6,
        _W.HOPPER: 0.4, _W.TANK: 0.3, _W.REFRIGERATOR: 0.4,
    },
}

# Undirected: each pair is stored once.
DEFAULT_REGION_PROXIMITY: dict[RegionPair, float] = {
    frozenset({"Кемеровская область", "Новосибирская область"}): 0.95,
    frozenset({"Свердловская область", "Тюменская область"}): 0.9,
    frozenset({"Свердловская область"}): 1.0,
    frozenset({"Пермский край", "Свердловская область"}): 0.85,
    frozenset({"Московская область"}): 1.0,
    frozenset({"Ленинградская область"}): 1.0,
    frozenset({"Московская область", "Ленинградская область"}): 0.8,
    frozenset({"Московская область", "Тверская область"}): 0.9,
    frozenset({"Самарская область", "Ленинградская область"}): 0.7,
    frozenset({"Омская область", "Республика Татарстан"}): 0.75,
}


def region_pair(first: str, second: str) -> RegionPair:
    """Canonical order-free key for two regions."""
    return frozenset({first, second})


@dataclass(frozen=True)
class MatchingConfig:
    """Immutable snapshot of every tunable used by the scoring engine."""

    weights: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    cargo_wagon_compatibility: Mapping[CargoType, Mapping[WagonType, float]] = field(
        default_factory=lambda: {cargo: dict(row) for cargo, row in DEFAULT_CARGO_WAGON_COMPATIBILITY.items()}
    )
    region_proximity: Mapping[RegionPair, float] = field(default_factory=lambda: dict(DEFAULT_REGION_PROXIMITY))
    price_tolerance_percentage: float = 15.0
    min_score_threshold: float = 0.5
    min_date_overlap_days: float = 1.0
    partial_region_base: float = 0.6
    partial_region_step: float = 0.5
    partial_region_cap: float = 0.9
    unknown_compatibility_score: float = 0.5
    unknown_proximity_score: float = 0.4

    def __post_init__(self) -> None:
        # Freeze the nested tables so a shared config cannot drift between pairs.
        object.__setattr__(self, "weights", MappingProxyType(dict(self.weights)))
        object.__setattr__(
            self,
            "cargo_wagon_compatibility",
            MappingProxyType(
                {cargo: MappingProxyType(dict(row)) for cargo, row in self.cargo_wagon_compatibility.items()}
            ),
        )
        object.__setattr__(self, "region_proximity", MappingProxyType(dict(self.region_proximity)))
        validate_matching_config(self)

    def weight(self, factor: str) -> float:
        return self.weights[factor]

    def proximity(self, first: str, second: str) -> float | None:
        return self.region_proximity.get(region_pair(first, second))

    @property
    def min_score_percent(self) -> float:
        return self.min_score_threshold * 100


def _check_unit_interval(name: str, value: float) -> None:
    if not isinstance(value, (int, float)) or math.isnan(value) or not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{name} must be within [0, 1], got {value!r}.")


def validate_matching_config(config: MatchingConfig) -> None:
    """Raise ConfigurationError when a matching configuration is unusable."""
    missing = [factor for factor in FACTOR_ORDER if factor not in config.weights]
    unknown = [factor for factor in config.weights if factor not in FACTOR_ORDER]
    if missing or unknown:
        raise ConfigurationError(f"Weights must cover exactly {FACTOR_ORDER}; missing={missing}, unknown={unknown}.")
    for factor, value in config.weights.items():
        _check_unit_interval(f"weights.{factor}", value)
    total = sum(config.weights.values())
    if not math.isclose(total, 1.0, abs_tol=1e-6):
        raise ConfigurationError(f"Weights must sum to 1.0, got {total:.6f}.")

    for cargo, row in config.cargo_wagon_compatibility.items():
        if not isinstance(cargo, CargoType):
            raise ConfigurationError(f"Unknown cargo type in compatibility matrix: {cargo!r}.")
        for wagon, value in row.items():
            if not isinstance(wagon, WagonType):
                raise ConfigurationError(f"Unknown wagon type in compatibility matrix: {cargo.value}/{wagon!r}.")
            _check_unit_interval(f"compatibility.{cargo.value}.{wagon.value}", value)

    for pair, value in config.region_proximity.items():
        if not isinstance(pair, frozenset) or not 1 <= len(pair) <= 2:
            raise ConfigurationError(f"Region proximity key must be a pair of regions, got {pair!r}.")
        _check_unit_interval(f"region_proximity.{'/'.join(sorted(pair))}", value)

    if config.price_tolerance_percentage <= 0:
        raise ConfigurationError("price_tolerance_percentage must be > 0.")
    if config.min_date_overlap_days < 0:
        raise ConfigurationError("min_date_overlap_days must be >= 0.")
    if config.partial_region_step < 0:
        raise ConfigurationError("partial_region_step must be >= 0.")
    _check_unit_interval("min_score_threshold", config.min_score_threshold)
    _check_unit_interval("partial_region_base", config.partial_region_base)
    _check_unit_interval("partial_region_cap", config.partial_region_cap)
    _check_unit_interval("unknown_compatibility_score", config.unknown_compatibility_score)
    _check_unit_interval("unknown_proximity_score", config.unknown_proximity_score)


def _parse_enum(enum_cls: type, raw: str, where: str):
    try:
        return enum_cls(str(raw).upper())
    except ValueError as exc:
        raise ConfigurationError(f"Unknown {enum_cls.__name__} '{raw}' in {where}.") from exc


def _parse_compatibility(raw: Mapping[str, Mapping[str, float]]) -> dict[CargoType, dict[WagonType, float]]:
    parsed: dict[CargoType, dict[WagonType, float]] = {}
    for cargo_raw, row in raw.items():
        cargo = _parse_enum(CargoType, cargo_raw, "cargoWagonCompatibility")
        parsed[cargo] = {
            _parse_enum(WagonType, wagon_raw, f"cargoWagonCompatibility.{cargo.value}"): float(value)
            for wagon_raw, value in row.items()
        }
    return parsed


def _parse_proximity(raw: Any) -> dict[RegionPair, float]:
    """Accept ``[{"regions": [a, b], "score": x}]`` or ``{"a|b": x}``."""
    parsed: dict[RegionPair, float] = {}
    if isinstance(raw, Mapping):
        items = [(key.split("|"), value) for key, value in raw.items()]
    else:
        items = [(entry.get("regions", []), entry.get("score")) for entry in raw]
    for regions, value in items:
        cleaned = [str(region).strip() for region in regions if str(region).strip()]
        if not 1 <= len(cleaned) <= 2 or value is None:
            raise ConfigurationError(f"Invalid region proximity entry: {regions!r} -> {value!r}.")
        key = region_pair(cleaned[0], cleaned[-1])
        if key in parsed and parsed[key] != float(value):
            raise ConfigurationError(f"Conflicting proximity values for {sorted(key)}.")
        parsed[key] = float(value)
    return parsed


_SCALAR_KEYS = {
    "priceTolerancePercentage": "price_tolerance_percentage",
    "minScoreThreshold": "min_score_threshold",
    "minDateOverlapDays": "min_date_overlap_days",
    "partialRegionBase": "partial_region_base",
    "partialRegionStep": "partial_region_step",
    "partialRegionCap": "partial_region_cap",
    "unknownCompatibilityScore": "unknown_compatibility_score",
    "unknownProximityScore": "unknown_proximity_score",
}


def matching_config_from_dict(data: Mapping[str, Any], base: MatchingConfig | None = None) -> MatchingConfig:
    """Overlay a camelCase JSON document onto ``base`` (reference defaults)."""
    base = base or MatchingConfig()
    overrides: dict[str, Any] = {}

    if "weights" in data:
        weights = dict(base.weights)
        weights.update({key: float(value) for key, value in data["weights"].items()})
        overrides["weights"] = weights
    if "cargoWagonCompatibility" in data:
        matrix = {cargo: dict(row) for cargo, row in base.cargo_wagon_compatibility.items()}
        for cargo, row in _parse_compatibility(data["cargoWagonCompatibility"]).items():
            matrix.setdefault(cargo, {}).update(row)
        overrides["cargo_wagon_compatibility"] = matrix
    if "regionalProximity" in data:
        if data.get("replaceRegionalProximity"):
            overrides["region_proximity"] = _parse_proximity(data["regionalProximity"])
        else:
            proximity = dict(base.region_proximity)
            proximity.update(_parse_proximity(data["regionalProximity"]))
            overrides["region_proximity"] = proximity
    for json_key, attr in _SCALAR_KEYS.items():
        if json_key in data:
            overrides[attr] = float(data[json_key])

    unknown = set(data) - {"weights", "cargoWagonCompatibility", "regionalProximity", "replaceRegionalProximity"} - set(_SCALAR_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown matching config keys: {sorted(unknown)}.")
    return replace(base, **overrides)


def load_matching_config(path: str | Path | None) -> MatchingConfig:
    """Load reference defaults, optionally overlaid with a JSON file."""
    if path is None:
        return MatchingConfig()
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Cannot read matching config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError("Matching config file must contain a JSON object.")
    return matching_config_from_dict(data)


@lru_cache(maxsize=1)
def get_matching_config() -> MatchingConfig:
    """Active matching configuration for the running process."""
    return load_matching_config(get_config().MATCHING_CONFIG_PATH)
