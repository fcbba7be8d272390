"""
Test per la gestione della flotta e delle stagioni.
"""

from datetime import date, datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import (
    AuthorizationError,
    ConflictError,
    DuplicateError,
    InvalidStateError,
    NotFoundError,
)
from app.models import Car, User
from app.schemas.car import CarCreate, CarUpdate, normalize_plate
from app.schemas.season import SeasonCreate
from app.services.car_service import car_service
from app.services.season_service import season_service


# ============================================================
# Targhe
# ============================================================


class TestNormalizePlate:
    """Test per normalize_plate."""

    def test_uppercase_without_spaces(self):
        """Test targa normalizzata in maiuscolo e senza spazi."""
        assert normalize_plate(" kda 123a ") == "KDA123A"

    def test_invalid_plate(self):
        """Test caratteri non ammessi."""
        with pytest.raises(ValueError):
            normalize_plate("KDA/123")

    def test_schema_rejects_zero_rate(self):
        """Test la tariffa giornaliera deve essere positiva."""
        with pytest.raises(ValidationError):
            CarCreate(plate="KDA123A", make="Toyota", model="Vitz", daily_rate=Decimal("0"))


# ============================================================
# Auto
# ============================================================


class TestCarService:
    """Test per CarService."""

    def test_reverse_collections_never_lazy_load(self):
        """Test le collezioni inverse non vengono caricate implicitamente in async."""
        assert inspect(Car).relationships["bookings"].lazy == "raise"
        assert inspect(User).relationships["cars"].lazy == "raise"

    async def test_owner_creates_own_car(self, db, owner, other_owner):
        """Test un proprietario registra l'auto sempre a proprio nome."""
        data = CarCreate(
            plate="kdb 456b",
            make="Mazda",
            model="Demio",
            daily_rate=Decimal("3500"),
            owner_id=other_owner.id,
        )
        car = await car_service.create(db, data, owner)

        assert car.owner_id == owner.id
        assert car.plate == "KDB456B"
        assert car.status == "available"

    async def test_duplicate_plate(self, db, admin, make_car):
        """Test targa già registrata -> ConflictError."""
        await make_car(plate="KDC789C")
        data = CarCreate(plate="kdc789c", make="Subaru", model="Forester", daily_rate=Decimal("6000"))

        with pytest.raises(ConflictError):
            await car_service.create(db, data, admin)

    async def test_plate_registered_concurrently(self, mock_db, admin):
        """Test vincolo unique violato al commit -> rollback e DuplicateError."""
        mock_result = MagicMock()
        mock_result.scalar.return_value = False
        mock_db.execute.return_value = mock_result
        mock_db.commit.side_effect = IntegrityError(
            "INSERT INTO cars", {}, Exception("UNIQUE constraint failed: cars.plate")
        )
        data = CarCreate(plate="KDD111D", make="Nissan", model="X-Trail", daily_rate=Decimal("5500"))

        with pytest.raises(DuplicateError):
            await car_service.create(mock_db, data, admin)
        mock_db.rollback.assert_awaited_once()

    async def test_owner_lists_only_own_cars(self, db, owner, other_owner, make_car):
        """Test un proprietario vede solo le sue auto."""
        mine = await make_car(owner=owner)
        await make_car(owner=other_owner)

        cars, total = await car_service.get_all(db, owner)
        assert total == 1
        assert cars[0].id == mine.id

    async def test_owner_cannot_read_other_car(self, db, owner, other_owner, make_car):
        """Test accesso all'auto di un altro proprietario -> AuthorizationError."""
        car = await make_car(owner=other_owner)
        with pytest.raises(AuthorizationError):
            await car_service.get_by_id(db, car.id, owner)

    async def test_owner_updates_rate_and_sets_maintenance(self, db, owner, make_car):
        """Test il proprietario modifica tariffa e mette l'auto in manutenzione."""
        car = await make_car(owner=owner)

        updated = await car_service.update(
            db, car.id, CarUpdate(daily_rate=Decimal("6500"), status="maintenance"), owner
        )
        assert updated.daily_rate == Decimal("6500")
        assert updated.status == "maintenance"
        assert updated.make == "Toyota"

        back = await car_service.update(db, car.id, CarUpdate(status="available"), owner)
        assert back.status == "available"

    async def test_status_change_refused_while_rented(self, db, admin, make_car, make_booking):
        """Test auto con prenotazione attiva: resta noleggiata."""
        car = await make_car(status="rented")
        await make_booking(
            car, datetime(2026, 3, 8, 8), datetime(2026, 3, 12, 8), status="active"
        )

        with pytest.raises(InvalidStateError):
            await car_service.update(db, car.id, CarUpdate(status="maintenance"), admin)

        # La tariffa resta modificabile anche durante il noleggio
        updated = await car_service.update(db, car.id, CarUpdate(daily_rate=Decimal("5500")), admin)
        assert updated.daily_rate == Decimal("5500")
        assert updated.status == "rented"

    async def test_owner_cannot_update_other_car(self, db, owner, other_owner, make_car):
        """Test modifica dell'auto di un altro proprietario -> AuthorizationError."""
        car = await make_car(owner=other_owner)
        with pytest.raises(AuthorizationError):
            await car_service.update(db, car.id, CarUpdate(model="Land Cruiser"), owner)

    def test_rented_status_not_settable(self):
        """Test lo stato noleggiata non si imposta a mano."""
        with pytest.raises(ValidationError):
            CarUpdate(status="rented")

    async def test_soft_delete_refused_with_open_bookings(
        self, db, admin, make_car, make_booking
    ):
        """Test auto con prenotazioni in arrivo non cancellabile."""
        car = await make_car()
        await make_booking(car, datetime(2026, 4, 1, 10), datetime(2026, 4, 3, 10))

        with pytest.raises(ConflictError):
            await car_service.soft_delete(db, car.id, admin)

    async def test_soft_delete_hides_car(self, db, admin, make_car, make_booking):
        """Test auto cancellata: esclusa da lista e dettaglio, storico conservato."""
        car = await make_car()
        await make_booking(
            car, datetime(2026, 2, 1, 10), datetime(2026, 2, 3, 10), status="completed"
        )

        await car_service.soft_delete(db, car.id, admin)
        assert car.is_deleted

        cars, total = await car_service.get_all(db, admin)
        assert total == 0
        with pytest.raises(NotFoundError):
            await car_service.get_by_id(db, car.id, admin)

    async def test_quote_applies_seasons(self, db, admin, make_car, make_season):
        """Test preventivo con stagione e sconto."""
        car = await make_car()
        await make_season(date(2026, 12, 20), date(2027, 1, 5), "1.5", name="Natale")

        quote = await car_service.quote(
            db, car.id, admin, datetime(2026, 12, 19, 10), datetime(2026, 12, 21, 10), Decimal("500")
        )
        # 19/12 a 5000, 20/12 a 7500, meno 500 al giorno
        assert quote.total_days == 2
        assert quote.base_amount == Decimal("12500")
        assert quote.discount_total == Decimal("1000")
        assert quote.total == Decimal("11500")


# ============================================================
# Stagioni
# ============================================================


class TestSeasonService:
    """Test per SeasonService."""

    def test_end_before_start(self):
        """Test fine stagione precedente all'inizio."""
        with pytest.raises(ValidationError):
            SeasonCreate(
                name="Errata",
                start_date=date(2026, 8, 31),
                end_date=date(2026, 8, 1),
                price_multiplier=Decimal("1.2"),
            )

    async def test_admin_creates_and_deletes(self, db, admin):
        """Test creazione e cancellazione di una stagione."""
        data = SeasonCreate(
            name="Agosto",
            start_date=date(2026, 8, 1),
            end_date=date(2026, 8, 31),
            price_multiplier=Decimal("1.3"),
        )
        season = await season_service.create(db, data, admin)
        assert [s.name for s in await season_service.get_all(db)] == ["Agosto"]

        await season_service.delete(db, season.id, admin)
        assert await season_service.get_all(db) == []

    async def test_owner_cannot_create(self, db, owner):
        """Test le stagioni sono gestite solo dagli amministratori."""
        data = SeasonCreate(
            name="Agosto",
            start_date=date(2026, 8, 1),
            end_date=date(2026, 8, 31),
            price_multiplier=Decimal("1.3"),
        )
        with pytest.raises(AuthorizationError):
            await season_service.create(db, data, owner)
