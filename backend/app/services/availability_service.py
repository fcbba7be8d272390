"""
Service Layer per la verifica disponibilità
Progetto: Rental Manager (Gestionale Noleggio)

Rileva le prenotazioni in conflitto su un'auto per un dato periodo.
"""

import datetime
import logging
import uuid
from typing import Iterable, Optional

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models import Booking, Car
from app.schemas.booking import BookingStatus

# Logger per questo modulo
logger = logging.getLogger(__name__)


class AvailabilityService:
    """
    Verifica sovrapposizioni tra prenotazioni della stessa auto.

    Due periodi si sovrappongono se esistente.inizio <= nuovo.fine e
    esistente.fine >= nuovo.inizio: anche gli estremi che si toccano
    contano come conflitto.
    """

    async def has_conflict(
        self,
        db: AsyncSession,
        car_id: uuid.UUID,
        start: datetime.datetime,
        end: datetime.datetime,
        exclude_booking_id: Optional[uuid.UUID] = None,
        statuses: Optional[Iterable[BookingStatus]] = None,
    ) -> bool:
        """
        True se un'altra prenotazione occupa l'auto nel periodo.

        Args:
            db: Sessione database
            car_id: UUID dell'auto
            start: Inizio del periodo candidato
            end: Fine del periodo candidato
            exclude_booking_id: Prenotazione da ignorare (modifica di sé stessa)
            statuses: Se indicato, considera solo prenotazioni in questi stati;
                altrimenti tutte tranne quelle annullate

        Returns:
            bool: True se esiste almeno una prenotazione in conflitto
        """
        conditions = [
            Booking.car_id == car_id,
            Booking.start_date <= end,
            Booking.end_date >= start,
        ]
        if statuses is None:
            conditions.append(Booking.status != BookingStatus.CANCELLED.value)
        else:
            conditions.append(Booking.status.in_([s.value for s in statuses]))
        if exclude_booking_id is not None:
            conditions.append(Booking.id != exclude_booking_id)

        result = await db.execute(select(exists().where(*conditions)))
        conflict = bool(result.scalar())
        if conflict:
            logger.info(
                "Conflitto per auto %s nel periodo %s - %s", car_id, start, end
            )
        return conflict

    async def has_active_booking(
        self,
        db: AsyncSession,
        car_id: uuid.UUID,
        exclude_booking_id: Optional[uuid.UUID] = None,
    ) -> bool:
        """
        True se l'auto ha almeno una prenotazione attiva, a prescindere dalle date.

        Args:
            db: Sessione database
            car_id: UUID dell'auto
            exclude_booking_id: Prenotazione da ignorare (quella che si sta chiudendo)
        """
        conditions = [
            Booking.car_id == car_id,
            Booking.status == BookingStatus.ACTIVE.value,
        ]
        if exclude_booking_id is not None:
            conditions.append(Booking.id != exclude_booking_id)

        result = await db.execute(select(exists().where(*conditions)))
        return bool(result.scalar())

    async def lock_car(
        self,
        db: AsyncSession,
        car_id: uuid.UUID,
        include_deleted: bool = False,
    ) -> Car:
        """
        Carica l'auto con lock di riga (SELECT ... FOR UPDATE).

        Serializza le prenotazioni concorrenti sulla stessa auto fino al
        commit della transazione corrente.

        Raises:
            NotFoundError: Se l'auto non esiste o è stata cancellata
        """
        query = select(Car).where(Car.id == car_id).with_for_update()
        if not include_deleted:
            query = query.where(Car.deleted_at.is_(None))
        result = await db.execute(query)
        car = result.scalar_one_or_none()
        if car is None:
            logger.warning("Auto non trovata: %s", car_id)
            raise NotFoundError(f"Auto con ID {car_id} non trovata")
        return car


# Istanza singleton del service
availability_service = AvailabilityService()
