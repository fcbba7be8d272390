"""
Test per il calcolo prezzi giorno per giorno.

Le funzioni di calcolo sono pure: i test usano stagioni non salvate.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from app.models import Season
from app.services.pricing_service import billable_days, compute_price, pricing_service


def season(start: date, end: date, multiplier: str, name: str = "Stagione") -> Season:
    return Season(name=name, start_date=start, end_date=end, price_multiplier=Decimal(multiplier))


# ============================================================
# Giorni fatturabili
# ============================================================


class TestBillableDays:
    """Test per il conteggio dei giorni fatturabili."""

    def test_whole_days(self):
        """Test cinque giorni esatti."""
        assert billable_days(datetime(2026, 3, 1, 10), datetime(2026, 3, 6, 10)) == 5

    def test_partial_day_rounds_up(self):
        """Test due ore oltre il quinto giorno contano come sesto giorno."""
        assert billable_days(datetime(2026, 3, 1, 10), datetime(2026, 3, 6, 12)) == 6

    def test_same_day_is_one_day(self):
        """Test noleggio di poche ore nello stesso giorno."""
        assert billable_days(datetime(2026, 3, 1, 9), datetime(2026, 3, 1, 17)) == 1

    def test_overnight_short_rental(self):
        """Test noleggio a cavallo della mezzanotte sotto le 24 ore."""
        assert billable_days(datetime(2026, 3, 1, 20), datetime(2026, 3, 2, 8)) == 1


# ============================================================
# Calcolo prezzo
# ============================================================


class TestComputePrice:
    """Test per compute_price."""

    def test_no_season_no_discount(self):
        """Test 5 giorni a 5000 senza stagioni: 25000."""
        result = compute_price(
            Decimal("5000"), datetime(2026, 3, 1, 10), datetime(2026, 3, 6, 10), Decimal("0"), []
        )
        assert result.days == 5
        assert result.total == Decimal("25000")
        assert result.discount_total == Decimal("0")

    def test_season_covering_whole_period(self):
        """Test moltiplicatore 1.2 su tutti i 5 giorni: 30000."""
        seasons = [season(date(2026, 2, 1), date(2026, 3, 31), "1.2")]
        result = compute_price(
            Decimal("5000"), datetime(2026, 3, 1, 10), datetime(2026, 3, 6, 10), Decimal("0"), seasons
        )
        assert result.total == Decimal("30000")

    def test_season_covering_part_of_period(self):
        """Test stagione che copre solo gli ultimi due giorni (estremi inclusi)."""
        seasons = [season(date(2026, 3, 4), date(2026, 3, 5), "1.5")]
        result = compute_price(
            Decimal("1000"), datetime(2026, 3, 1, 10), datetime(2026, 3, 6, 10), Decimal("0"), seasons
        )
        # 1, 2, 3 marzo a 1000; 4 e 5 marzo a 1500
        assert result.daily_rates == (
            Decimal("1000"), Decimal("1000"), Decimal("1000"), Decimal("1500"), Decimal("1500"),
        )
        assert result.total == Decimal("6000")

    def test_discount_per_day(self):
        """Test sconto giornaliero sottratto a ogni giorno."""
        result = compute_price(
            Decimal("5000"), datetime(2026, 3, 1, 10), datetime(2026, 3, 6, 10), Decimal("500"), []
        )
        assert result.total == Decimal("22500")
        assert result.discount_total == Decimal("2500")
        assert result.base_amount == Decimal("25000")

    @pytest.mark.parametrize("discount", ["5000", "7500"])
    def test_discount_not_below_zero(self, discount):
        """Test sconto pari o superiore alla tariffa: ogni giorno vale 0."""
        result = compute_price(
            Decimal("5000"), datetime(2026, 3, 1, 10), datetime(2026, 3, 4, 10), Decimal(discount), []
        )
        assert result.total == Decimal("0")
        assert all(rate == Decimal("0") for rate in result.daily_rates)

    def test_season_with_discount(self):
        """Test stagione e sconto insieme: (5000 x 1.2 - 1000) x 5."""
        seasons = [season(date(2026, 1, 1), date(2026, 12, 31), "1.2")]
        result = compute_price(
            Decimal("5000"), datetime(2026, 3, 1, 10), datetime(2026, 3, 6, 10), Decimal("1000"), seasons
        )
        assert result.total == Decimal("25000")

    def test_walk_starts_from_start_date_for_billable_days(self):
        """Test il conteggio parte dalla data di inizio e avanza di un giorno per iterazione."""
        # Dalle 22:00 del 31 marzo alle 10:00 del 2 aprile: 36 ore -> 2 giorni (31/3 e 1/4)
        seasons = [season(date(2026, 4, 1), date(2026, 4, 30), "2")]
        result = compute_price(
            Decimal("100"), datetime(2026, 3, 31, 22), datetime(2026, 4, 2, 10), Decimal("0"), seasons
        )
        assert result.days == 2
        assert result.daily_rates == (Decimal("100"), Decimal("200"))

    def test_overlapping_seasons_first_match_wins(self):
        """Test con stagioni sovrapposte vince la prima nell'ordine dato."""
        low = season(date(2026, 3, 1), date(2026, 3, 31), "1.1", name="Marzo")
        high = season(date(2026, 3, 5), date(2026, 3, 10), "1.5", name="Festività")
        result = compute_price(
            Decimal("1000"), datetime(2026, 3, 6, 10), datetime(2026, 3, 7, 10), Decimal("0"), [low, high]
        )
        assert result.total == Decimal("1100")

        result = compute_price(
            Decimal("1000"), datetime(2026, 3, 6, 10), datetime(2026, 3, 7, 10), Decimal("0"), [high, low]
        )
        assert result.total == Decimal("1500")

    def test_no_rounding_during_sum(self):
        """Test nessun arrotondamento intermedio sui centesimi."""
        seasons = [season(date(2026, 1, 1), date(2026, 12, 31), "1.15")]
        result = compute_price(
            Decimal("33.33"), datetime(2026, 3, 1), datetime(2026, 3, 4), Decimal("0"), seasons
        )
        assert result.total == Decimal("33.33") * Decimal("1.15") * 3


# ============================================================
# Stagioni dal database
# ============================================================


class TestPricingServiceQuote:
    """Test per la lettura delle stagioni dal database."""

    async def test_quote_uses_stored_seasons(self, db, make_season):
        """Test il preventivo applica le stagioni salvate."""
        await make_season(date(2026, 3, 1), date(2026, 3, 31), "1.2")
        result = await pricing_service.quote(
            db, Decimal("5000"), datetime(2026, 3, 1, 10), datetime(2026, 3, 6, 10)
        )
        assert result.total == Decimal("30000")

    async def test_seasons_outside_period_are_ignored(self, db, make_season):
        """Test le stagioni che non toccano il periodo non vengono lette."""
        await make_season(date(2026, 7, 1), date(2026, 8, 31), "2")
        seasons = await pricing_service.get_seasons_for_period(
            db, datetime(2026, 3, 1, 10), datetime(2026, 3, 6, 10)
        )
        assert seasons == []

    async def test_overlapping_stored_seasons_ordered_by_start(self, db, make_season):
        """Test tra stagioni sovrapposte vince quella che inizia prima."""
        await make_season(date(2026, 3, 5), date(2026, 3, 10), "1.5", name="Festività")
        await make_season(date(2026, 3, 1), date(2026, 3, 31), "1.1", name="Marzo")
        result = await pricing_service.quote(
            db, Decimal("1000"), datetime(2026, 3, 6, 10), datetime(2026, 3, 7, 10)
        )
        assert result.total == Decimal("1100")
