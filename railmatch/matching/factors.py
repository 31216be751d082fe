"""Independent factor scorers for the offer/request compatibility score.

Every scorer is a pure function returning a ``FactorResult`` whose score is in
``[0, 1]`` and whose explanation is shown to end users as-is. No scorer reads
the clock; dates only come from the arguments.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Mapping

from railmatch.models.enums import CargoType, WagonType

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class FactorResult:
    score: float
    explanation: str


def _enum_value(value: object) -> str:
    return getattr(value, "value", value)


def _as_naive_utc(value: datetime | date) -> datetime:
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _format_amount(value: float) -> str:
    return format(float(value), ".2f").rstrip("0").rstrip(".")


def wagon_type_score(offer_wagon: WagonType | str, request_wagon: WagonType | str | None) -> FactorResult:
    """Exact wagon type match; a missing preference is mildly favourable."""
    if request_wagon is None:
        return FactorResult(0.7, "Тип вагона не указан в заявке")

    offer_value = _enum_value(offer_wagon)
    request_value = _enum_value(request_wagon)
    if offer_value == request_value:
        return FactorResult(1.0, f"Тип вагона совпадает: {offer_value}")

    return FactorResult(
        0.6,
        f"Тип вагона отличается (предложение: {offer_value}, заявка: {request_value})",
    )


def cargo_type_score(
    cargo_type: CargoType | str,
    offer_wagon: WagonType | str,
    compatibility: Mapping[CargoType, Mapping[WagonType, float]],
    unknown_score: float = 0.5,
) -> FactorResult:
    """Look up how well the offered wagon carries the requested cargo."""
    value: float | None = None
    try:
        row = compatibility.get(CargoType(_enum_value(cargo_type)))
        if row is not None:
            value = row.get(WagonType(_enum_value(offer_wagon)))
    except ValueError:
        value = None

    if value is None:
        return FactorResult(
            unknown_score,
            f"Неизвестная совместимость груза {_enum_value(cargo_type)} с вагоном {_enum_value(offer_wagon)}",
        )
    if value == 1.0:
        return FactorResult(1.0, "Идеальная совместимость груза и вагона")
    if value >= 0.8:
        return FactorResult(value, "Хорошая совместимость груза и вагона")
    if value >= 0.5:
        return FactorResult(value, "Приемлемая совместимость груза и вагона")
    return FactorResult(value, "Слабая совместимость груза и вагона")


def date_overlap_score(
    offer_from: datetime | date,
    offer_until: datetime | date,
    loading_date: datetime | date,
    required_by_date: datetime | date,
    min_overlap_days: float = 1.0,
) -> FactorResult:
    """Share of the request window covered by the offer's availability."""
    offer_start = _as_naive_utc(offer_from)
    offer_end = _as_naive_utc(offer_until)
    request_start = _as_naive_utc(loading_date)
    request_end = _as_naive_utc(required_by_date)

    if offer_start > request_end or offer_end < request_start:
        return FactorResult(0.0, "Даты доступности вагона и сроки доставки не совпадают")

    overlap_start = max(offer_start, request_start)
    overlap_end = min(offer_end, request_end)
    overlap_days = (overlap_end - overlap_start).total_seconds() / SECONDS_PER_DAY

    if overlap_days < min_overlap_days:
        return FactorResult(0.3, "Минимальное совпадение дат")

    request_days = (request_end - request_start).total_seconds() / SECONDS_PER_DAY
    ratio = 1.0 if request_days <= 0 else max(0.0, min(1.0, overlap_days / request_days))

    if ratio >= 0.9:
        return FactorResult(1.0, "Даты идеально совпадают")
    if ratio >= 0.7:
        return FactorResult(0.9, "Даты хорошо совпадают")
    if ratio >= 0.5:
        return FactorResult(0.7, "Даты приемлемо совпадают")
    return FactorResult(0.4, "Частичное совпадение дат")


def regional_proximity_score(
    offer_departure: str,
    offer_arrival: str,
    request_departure: str,
    request_arrival: str,
    proximity: Mapping[frozenset, float],
    partial_base: float = 0.6,
    partial_step: float = 0.5,
    partial_cap: float = 0.9,
    unknown_score: float = 0.4,
) -> FactorResult:
    """Route similarity: exact, one shared endpoint, or known nearby departures."""
    departure_match = offer_departure == request_departure
    arrival_match = offer_arrival == request_arrival

    if departure_match and arrival_match:
        return FactorResult(1.0, "Маршруты полностью совпадают")

    matched_sides = int(departure_match) + int(arrival_match)
    if matched_sides:
        score = min(partial_cap, partial_base + partial_step * matched_sides)
        side = "отправления" if departure_match else "назначения"
        return FactorResult(score, f"Совпадает регион {side}")

    known = proximity.get(frozenset({offer_departure, request_departure}))
    if known is not None:
        return FactorResult(known, "Регионы находятся на приемлемом расстоянии")

    return FactorResult(unknown_score, "Регионы удалены, но маршрут возможен")


def price_match_score(
    offer_price: float,
    max_price: float | None,
    tolerance_percentage: float = 15.0,
) -> FactorResult:
    """Offer price against the seeker's ceiling, with a soft tolerance band."""
    if max_price is None:
        return FactorResult(0.7, "Максимальная цена не указана в заявке")

    if offer_price <= max_price:
        return FactorResult(
            1.0,
            f"Цена предложения ниже максимума ({_format_amount(offer_price)} ≤ {_format_amount(max_price)})",
        )

    if max_price <= 0:
        return FactorResult(0.2, "Цена значительно превышена (максимум заявки не положителен)")

    exceeded_percent = (offer_price - max_price) * 100 / max_price
    if exceeded_percent <= tolerance_percentage:
        score = max(0.5, 1.0 - (exceeded_percent / tolerance_percentage) * 0.5)
        return FactorResult(
            score,
            f"Цена превышена на {exceeded_percent:.1f}%, но в пределах допуска ({_format_amount(tolerance_percentage)}%)",
        )

    score = max(0.2, 1.0 - (exceeded_percent / 100) * 0.8)
    return FactorResult(score, f"Цена значительно превышена ({exceeded_percent:.1f}%)")
