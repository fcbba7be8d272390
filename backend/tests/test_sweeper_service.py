"""
Test per il controllo periodico degli stati.
"""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

from sqlalchemy import select

from app.core.scheduler import SweepScheduler
from app.models import Payment
from app.schemas.booking import BookingCreate


def booking_data(car, start, end):
    return BookingCreate(customer_name="Achieng", car_id=car.id, start_date=start, end_date=end)


class TestStatusSweeper:
    """Test per StatusSweeper.run."""

    async def test_upcoming_starting_today_is_activated(
        self, db, sweeper, booking_service, admin, make_car
    ):
        """Test prenotazione che inizia oggi più tardi: attivata, auto noleggiata."""
        car = await make_car()
        booking = await booking_service.create(
            db, booking_data(car, datetime(2026, 3, 10, 15), datetime(2026, 3, 12, 15)), admin
        )
        assert booking.status == "upcoming"

        report = await sweeper.run(db)
        assert report.activated == 1
        assert booking.status == "active"
        assert car.status == "rented"

    async def test_upcoming_starting_tomorrow_is_untouched(
        self, db, sweeper, booking_service, admin, make_car
    ):
        """Test prenotazione che inizia domani: resta in arrivo."""
        car = await make_car()
        booking = await booking_service.create(
            db, booking_data(car, datetime(2026, 3, 11, 0), datetime(2026, 3, 12, 0)), admin
        )

        report = await sweeper.run(db)
        assert report.activated == 0
        assert booking.status == "upcoming"

    async def test_ended_booking_completed_and_payment_overdue(
        self, db, sweeper, clock, booking_service, admin, make_car
    ):
        """Test il giorno dopo la fine: completata, auto libera, pagamento scaduto."""
        car = await make_car()
        booking = await booking_service.create(
            db, booking_data(car, datetime(2026, 3, 10, 8), datetime(2026, 3, 15, 8)), admin
        )
        assert car.status == "rented"

        # Il giorno di fine la prenotazione resta attiva
        clock.advance(days=5)
        report = await sweeper.run(db)
        assert report.completed == 0
        assert booking.status == "active"

        clock.advance(days=1)
        report = await sweeper.run(db)
        assert report.completed == 1
        assert report.payments_overdue == 1
        assert booking.status == "completed"
        assert car.status == "available"

        payment = (
            await db.execute(select(Payment).where(Payment.booking_id == booking.id))
        ).scalar_one()
        assert payment.status == "overdue"

    async def test_rented_car_without_active_booking_is_released(
        self, db, sweeper, make_car
    ):
        """Test auto noleggiata senza prenotazione attiva: torna disponibile."""
        car = await make_car(status="rented")

        report = await sweeper.run(db)
        assert report.cars_released == 1
        assert car.status == "available"

    async def test_car_stays_rented_while_another_booking_is_active(
        self, db, sweeper, make_car, make_booking
    ):
        """Test l'auto resta noleggiata se resta una prenotazione attiva."""
        car = await make_car(status="rented")
        ended = await make_booking(
            car, datetime(2026, 3, 1, 8), datetime(2026, 3, 5, 8), status="active"
        )
        running = await make_booking(
            car, datetime(2026, 3, 8, 8), datetime(2026, 3, 12, 8), status="active"
        )

        report = await sweeper.run(db)
        assert report.completed == 1
        assert ended.status == "completed"
        assert running.status == "active"
        assert car.status == "rented"

    async def test_second_run_changes_nothing(
        self, db, sweeper, clock, booking_service, admin, make_car
    ):
        """Test due esecuzioni consecutive: la seconda non modifica nulla."""
        car = await make_car()
        await booking_service.create(
            db, booking_data(car, datetime(2026, 3, 12, 8), datetime(2026, 3, 14, 8)), admin
        )
        await make_car(status="rented")
        clock.advance(days=2)

        first = await sweeper.run(db)
        assert first.changed

        second = await sweeper.run(db)
        assert not second.changed
        assert second.model_dump() == {
            "completed": 0,
            "activated": 0,
            "cars_released": 0,
            "payments_overdue": 0,
        }


class TestSweepScheduler:
    """Test per SweepScheduler."""

    async def test_disabled_scheduler_does_not_start(self):
        """Test intervallo 0: nessun task avviato."""
        scheduler = SweepScheduler(0)
        scheduler.start()

        assert not scheduler.enabled
        assert scheduler._task is None
        await scheduler.stop()

    async def test_failed_run_is_logged(self, caplog):
        """Test un controllo fallito non interrompe il ciclo e viene registrato."""
        sweeper = MagicMock()
        sweeper.run = AsyncMock(side_effect=RuntimeError("database non raggiungibile"))
        scheduler = SweepScheduler(60, sweeper=sweeper)

        with patch("app.core.scheduler.session_scope") as session_scope:
            session_scope.return_value.__aenter__ = AsyncMock(return_value=MagicMock())
            session_scope.return_value.__aexit__ = AsyncMock(return_value=False)
            assert await scheduler.run_once() is None

        assert "Controllo periodico degli stati fallito" in caplog.text
