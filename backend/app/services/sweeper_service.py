"""
Service Layer per il controllo periodico degli stati
Progetto: Rental Manager (Gestionale Noleggio)

Allinea prenotazioni, auto e pagamenti al passare del tempo:
1. prenotazioni in arrivo iniziate (oggi o prima) -> attive, auto noleggiata
2. auto noleggiate: prenotazioni attive concluse prima di oggi -> completate,
   auto libera; auto noleggiata senza prenotazione attiva -> libera
3. pagamenti pending scaduti prima di oggi -> overdue

I passaggi sono idempotenti: due esecuzioni consecutive non producono
modifiche alla seconda.
"""

import datetime
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.models import Booking, Car, Payment
from app.schemas.booking import BookingStatus, CarStatus, SweepReport
from app.schemas.invoice import PaymentStatus

# Logger per questo modulo
logger = logging.getLogger(__name__)


def _midnight(day: datetime.date) -> datetime.datetime:
    return datetime.datetime.combine(day, datetime.time.min)


class StatusSweeper:
    """Controllo stati guidato dall'orologio iniettato."""

    def __init__(self, clock: Clock = system_clock) -> None:
        self.clock = clock

    async def _activate_started(self, db: AsyncSession, today: datetime.date) -> int:
        """Prenotazioni upcoming con inizio oggi o prima -> active."""
        result = await db.execute(
            select(Booking)
            .where(
                Booking.status == BookingStatus.UPCOMING.value,
                Booking.start_date < _midnight(today + datetime.timedelta(days=1)),
            )
            .order_by(Booking.start_date.asc())
        )
        bookings = result.scalars().all()
        for booking in bookings:
            booking.status = BookingStatus.ACTIVE.value
            car = await db.get(Car, booking.car_id)
            if car is not None:
                car.status = CarStatus.RENTED.value
            logger.info("Prenotazione %s attivata (auto %s)", booking.id, booking.car_id)
        await db.flush()
        return len(bookings)

    async def _release_rented_cars(self, db: AsyncSession, today: datetime.date) -> tuple[int, int]:
        """
        Per ogni auto noleggiata completa le prenotazioni attive concluse
        prima di oggi e libera l'auto se non resta alcuna prenotazione attiva.

        Returns:
            (prenotazioni completate, auto liberate senza prenotazione attiva)
        """
        completed = 0
        released = 0
        cars = (
            await db.execute(select(Car).where(Car.status == CarStatus.RENTED.value))
        ).scalars().all()

        for car in cars:
            active = (
                await db.execute(
                    select(Booking).where(
                        Booking.car_id == car.id,
                        Booking.status == BookingStatus.ACTIVE.value,
                    )
                )
            ).scalars().all()

            if not active:
                car.status = CarStatus.AVAILABLE.value
                released += 1
                logger.warning(
                    "Correzione: auto %s risultava noleggiata senza prenotazione attiva", car.plate
                )
                continue

            ended = [b for b in active if b.end_date.date() < today]
            for booking in ended:
                booking.status = BookingStatus.COMPLETED.value
                logger.info("Prenotazione %s completata (fine %s)", booking.id, booking.end_date)
            completed += len(ended)
            if len(ended) == len(active):
                car.status = CarStatus.AVAILABLE.value

        await db.flush()
        return completed, released

    async def _flag_overdue(self, db: AsyncSession, today: datetime.date) -> int:
        """Pagamenti pending con scadenza prima di oggi -> overdue."""
        payments = (
            await db.execute(
                select(Payment).where(
                    Payment.status == PaymentStatus.PENDING.value,
                    Payment.due_date < today,
                )
            )
        ).scalars().all()
        for payment in payments:
            payment.status = PaymentStatus.OVERDUE.value
        await db.flush()
        return len(payments)

    async def run(self, db: AsyncSession) -> SweepReport:
        """
        Esegue il controllo stati e salva le modifiche.

        Args:
            db: Sessione database

        Returns:
            SweepReport: Conteggio delle modifiche applicate
        """
        today = self.clock.today()

        activated = await self._activate_started(db, today)
        completed, released = await self._release_rented_cars(db, today)
        overdue = await self._flag_overdue(db, today)

        report = SweepReport(
            completed=completed,
            activated=activated,
            cars_released=released,
            payments_overdue=overdue,
        )
        await db.commit()

        if report.changed:
            logger.info(
                "Controllo stati del %s: %d attivate, %d completate, %d auto liberate, %d pagamenti scaduti",
                today, activated, completed, released, overdue,
            )
        return report


# Istanza singleton del service
status_sweeper = StatusSweeper()
