"""Seed an operator, a seeker, their offers and requests, then score matches."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from railmatch.core.logging_config import configure_logging
from railmatch.database.db import get_db_session, init_db
from railmatch.models import CargoType, Company, FreightRequest, Offer, WagonType
from railmatch.services.match_sync_service import MatchSyncService

logger = logging.getLogger("railmatch.scripts.seed_data")


def _day(value: str) -> datetime:
    return datetime.fromisoformat(value).replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class SeedRoute:
    departure_station: str
    departure_region: str
    arrival_station: str
    arrival_region: str


KUZBASS_NSK = SeedRoute("Кузбасс", "Кемеровская область", "Новосибирск", "Новосибирская область")
EKB_MSK = SeedRoute("Екатеринбург", "Свердловская область", "Москва", "Московская область")
SAMARA_SPB = SeedRoute("Самара", "Самарская область", "Санкт-Петербург", "Ленинградская область")
OMSK_KAZAN = SeedRoute("Омск", "Омская область", "Казань", "Республика Татарстан")


def _seed_companies(session) -> tuple[Company, Company]:
    operator = Company(
        name="ЖД Логистика",
        inn="7701234567",
        description="Оператор железнодорожного транспорта",
        is_operator=True,
        is_seeker=False,
    )
    seeker = Company(
        name="Уральский Металлургический Завод",
        inn="6601987654",
        description="Производитель металлопродукции",
        is_operator=False,
        is_seeker=True,
    )
    session.add_all([operator, seeker])
    session.flush()
    return operator, seeker


def _offer(company: Company, wagon: WagonType, cargo: CargoType, count: int, route: SeedRoute,
           start: str, end: str, price: float, description: str) -> Offer:
    return Offer(
        company_id=company.id,
        wagon_type=wagon,
        cargo_type=cargo,
        wagon_count=count,
        departure_station=route.departure_station,
        departure_region=route.departure_region,
        arrival_station=route.arrival_station,
        arrival_region=route.arrival_region,
        available_from=_day(start),
        available_until=_day(end),
        price_per_wagon=price,
        description=description,
    )


def _request(company: Company, cargo: CargoType, wagon: WagonType | None, weight: float, route: SeedRoute,
             loading: str, required_by: str, max_price: float | None, description: str) -> FreightRequest:
    return FreightRequest(
        company_id=company.id,
        cargo_type=cargo,
        wagon_type=wagon,
        cargo_weight=weight,
        departure_station=route.departure_station,
        departure_region=route.departure_region,
        arrival_station=route.arrival_station,
        arrival_region=route.arrival_region,
        loading_date=_day(loading),
        required_by_date=_day(required_by),
        max_price_per_wagon=max_price,
        description=description,
    )


def seed(session) -> list[int]:
    """Insert the demo dataset and return the new request ids."""
    operator, seeker = _seed_companies(session)
    session.add_all(
        [
            _offer(operator, WagonType.GONDOLA, CargoType.COAL, 50, KUZBASS_NSK,
                   "2024-12-01", "2024-12-31", 45000, "Полувагоны для перевозки угля"),
            _offer(operator, WagonType.PLATFORM, CargoType.METAL, 30, EKB_MSK,
                   "2024-11-25", "2024-12-25", 52000, "Платформы для металлопроката"),
            _offer(operator, WagonType.TANK, CargoType.OIL, 20, SAMARA_SPB,
                   "2024-12-05", "2024-12-20", 68000, "Цистерны для нефтепродуктов"),
        ]
    )
    requests = [
        _request(seeker, CargoType.METAL, WagonType.PLATFORM, 2100, EKB_MSK,
                 "2024-12-01", "2024-12-15", 55000, "Перевозка металлопроката"),
        _request(seeker, CargoType.COAL, WagonType.GONDOLA, 3000, KUZBASS_NSK,
                 "2024-12-05", "2024-12-20", 48000, "Перевозка угля"),
        _request(seeker, CargoType.GRAIN, WagonType.HOPPER, 1500, OMSK_KAZAN,
                 "2024-12-10", "2024-12-25", 42000, "Транспортировка зерна"),
    ]
    session.add_all(requests)
    session.commit()
    return [request.id for request in requests]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Seed demo companies, offers and requests.")
    parser.add_argument("--skip-matching", action="store_true", help="Do not score matches after seeding.")
    args = parser.parse_args(argv)
    configure_logging()
    init_db()

    try:
        with get_db_session() as session:
            if session.execute(select(Company).where(Company.inn == "7701234567")).scalar_one_or_none():
                logger.info("seed.already_present", extra={"event": "seed.already_present"})
                return 0
            request_ids = seed(session)
            logger.info("seed.inserted", extra={"event": "seed.inserted", "request_ids": request_ids})
            if not args.skip_matching:
                service = MatchSyncService(session)
                for request_id in request_ids:
                    service.sync_request(request_id)
    except SQLAlchemyError as exc:
        logger.error("seed.failed", extra={"event": "seed.failed", "error": str(exc)})
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
