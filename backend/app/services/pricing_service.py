"""
Service Layer per il calcolo prezzi
Progetto: Rental Manager (Gestionale Noleggio)

Calcola il costo di un noleggio giorno per giorno applicando i
moltiplicatori stagionali e lo sconto giornaliero.
"""

import datetime
import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Season

# Logger per questo modulo
logger = logging.getLogger(__name__)

ONE_DAY = datetime.timedelta(days=1)


@dataclass(frozen=True)
class PriceBreakdown:
    """
    Risultato del calcolo prezzo.

    Attributes:
        days: Giorni fatturabili (almeno 1)
        total: Somma delle tariffe giornaliere scontate
        discount_total: Sconto giornaliero x giorni
        daily_rates: Tariffa applicata a ciascun giorno, nell'ordine
        discount_per_day: Sconto giornaliero applicato
    """
    days: int
    total: Decimal
    discount_total: Decimal
    daily_rates: tuple[Decimal, ...]
    discount_per_day: Decimal = Decimal("0")

    @property
    def base_amount(self) -> Decimal:
        """Importo della riga base in fattura (prima dello sconto)."""
        return self.total + self.discount_total


def billable_days(start: datetime.datetime, end: datetime.datetime) -> int:
    """
    Giorni fatturabili: le frazioni di giorno sono arrotondate per eccesso,
    con un minimo di un giorno.
    """
    return max(1, math.ceil((end - start) / ONE_DAY))


def find_season(day: datetime.date, seasons: Iterable[Season]) -> Optional[Season]:
    """Prima stagione (nell'ordine dato) che contiene il giorno."""
    for season in seasons:
        if season.contains(day):
            return season
    return None


def compute_price(
    daily_rate: Decimal,
    start: datetime.datetime,
    end: datetime.datetime,
    discount_per_day: Decimal,
    seasons: Sequence[Season] = (),
) -> PriceBreakdown:
    """
    Calcola il prezzo di un noleggio.

    Si parte dalla data di inizio e si avanza di un giorno per ogni giorno
    fatturabile (non fino alla data di fine): per ogni giorno la tariffa
    base è moltiplicata per la stagione che lo contiene, poi si sottrae
    lo sconto senza scendere sotto zero. Nessun arrotondamento intermedio.

    Args:
        daily_rate: Tariffa giornaliera base dell'auto
        start: Inizio noleggio
        end: Fine noleggio
        discount_per_day: Sconto giornaliero
        seasons: Stagioni candidate; a parità vince la prima

    Returns:
        PriceBreakdown: Giorni, totale e dettaglio giornaliero
    """
    daily_rate = Decimal(daily_rate)
    discount = Decimal(discount_per_day)
    days = billable_days(start, end)

    rates = []
    day = start.date()
    for _ in range(days):
        rate = daily_rate
        season = find_season(day, seasons)
        if season is not None:
            rate = daily_rate * Decimal(season.price_multiplier)
        rates.append(max(Decimal("0"), rate - discount))
        day += ONE_DAY

    return PriceBreakdown(
        days=days,
        total=sum(rates, Decimal("0")),
        discount_total=discount * days,
        daily_rates=tuple(rates),
        discount_per_day=discount,
    )


class PricingService:
    """Recupera le stagioni dal database e applica compute_price."""

    async def get_seasons_for_period(
        self,
        db: AsyncSession,
        start: datetime.datetime,
        end: datetime.datetime,
    ) -> list[Season]:
        """
        Stagioni che intersecano i giorni fatturabili del periodo.

        L'ordine (data di inizio, poi data di creazione) decide quale
        stagione vince quando più stagioni coprono lo stesso giorno.
        """
        first_day = start.date()
        last_day = first_day + ONE_DAY * (billable_days(start, end) - 1)
        result = await db.execute(
            select(Season)
            .where(Season.start_date <= last_day, Season.end_date >= first_day)
            .order_by(Season.start_date.asc(), Season.created_at.asc())
        )
        return list(result.scalars().all())

    async def quote(
        self,
        db: AsyncSession,
        daily_rate: Decimal,
        start: datetime.datetime,
        end: datetime.datetime,
        discount_per_day: Decimal = Decimal("0"),
    ) -> PriceBreakdown:
        """
        Calcola il prezzo di un periodo con le stagioni correnti.

        Returns:
            PriceBreakdown: Dettaglio del prezzo
        """
        seasons = await self.get_seasons_for_period(db, start, end)
        breakdown = compute_price(daily_rate, start, end, discount_per_day, seasons)
        logger.debug(
            "Prezzo calcolato: %s giorni, totale %s (%d stagioni candidate)",
            breakdown.days, breakdown.total, len(seasons),
        )
        return breakdown


# Istanza singleton del service
pricing_service = PricingService()
