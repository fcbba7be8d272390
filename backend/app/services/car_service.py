"""
Service Layer per l'entità Car
Progetto: Rental Manager (Gestionale Noleggio)

Definisce la logica di business per la gestione della flotta.
"""

import datetime
import logging
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    ConflictError,
    DuplicateError,
    InvalidStateError,
    NotFoundError,
)
from app.models import Booking, Car, User
from app.schemas.booking import UNRESOLVED_STATUSES, CarStatus
from app.schemas.car import CarCreate, CarUpdate, PriceQuote
from app.services.availability_service import availability_service
from app.services.permissions import ensure_car_access
from app.services.pricing_service import pricing_service

# Logger per questo modulo
logger = logging.getLogger(__name__)


class CarService:
    """
    Service per la gestione delle auto.

    Un proprietario vede e gestisce solo le proprie auto; le auto
    cancellate logicamente restano in archivio per lo storico prenotazioni.
    """

    async def get_all(
        self,
        db: AsyncSession,
        user: User,
        page: int = 1,
        per_page: int = 20,
        status_filter: Optional[CarStatus] = None,
    ) -> tuple[list[Car], int]:
        """
        Recupera la lista paginata delle auto non cancellate.

        Returns:
            Tuple di (lista auto, totale count)
        """
        filter_conditions = [Car.deleted_at.is_(None)]
        if not user.is_admin:
            filter_conditions.append(Car.owner_id == user.id)
        if status_filter is not None:
            filter_conditions.append(Car.status == status_filter.value)

        query = (
            select(Car)
            .where(*filter_conditions)
            .order_by(Car.plate.asc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        cars = list((await db.execute(query)).scalars().all())

        count_query = select(func.count()).select_from(Car).where(*filter_conditions)
        total = (await db.execute(count_query)).scalar() or 0

        logger.debug("Recuperate %d auto su %d totali", len(cars), total)
        return cars, total

    async def get_by_id(self, db: AsyncSession, car_id: uuid.UUID, user: User) -> Car:
        """
        Recupera un'auto non cancellata.

        Raises:
            NotFoundError: Se l'auto non esiste o è cancellata
            AuthorizationError: Se l'utente non è admin né proprietario
        """
        result = await db.execute(
            select(Car).where(Car.id == car_id, Car.deleted_at.is_(None))
        )
        car = result.scalar_one_or_none()
        if car is None:
            logger.warning("Auto non trovata: %s", car_id)
            raise NotFoundError(f"Auto con ID {car_id} non trovata")
        ensure_car_access(user, car)
        return car

    async def create(self, db: AsyncSession, data: CarCreate, user: User) -> Car:
        """
        Inserisce un'auto in flotta.

        Un amministratore può assegnarla a qualsiasi proprietario; un
        proprietario la registra sempre a proprio nome.

        Raises:
            NotFoundError: Se il proprietario indicato non esiste
            ConflictError: Se la targa è già registrata
            DuplicateError: Se la targa viene registrata in concorrenza (vincolo unique)
        """
        owner_id = data.owner_id if user.is_admin else user.id
        if owner_id is not None and await db.get(User, owner_id) is None:
            raise NotFoundError(f"Utente con ID {owner_id} non trovato")

        duplicate = await db.execute(select(exists().where(Car.plate == data.plate)))
        if duplicate.scalar():
            raise ConflictError(f"Esiste già un'auto con targa {data.plate}")

        car = Car(
            owner_id=owner_id,
            plate=data.plate,
            make=data.make,
            model=data.model,
            year=data.year,
            daily_rate=data.daily_rate,
            status=CarStatus.AVAILABLE.value,
        )
        db.add(car)
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.warning("Errore creazione auto - targa duplicata: %s", e.orig)
            raise DuplicateError(f"Esiste già un'auto con targa {data.plate}")

        logger.info("Creata nuova auto: %s - %s", car.id, car.plate)
        return car

    async def update(
        self,
        db: AsyncSession,
        car_id: uuid.UUID,
        data: CarUpdate,
        user: User,
    ) -> Car:
        """
        Modifica tariffa, dati descrittivi e stato di un'auto.

        Il cambio di stato (available/maintenance) è rifiutato finché
        l'auto ha una prenotazione attiva: in quel caso resta noleggiata.
        Le prenotazioni esistenti mantengono il prezzo già calcolato.

        Raises:
            NotFoundError: Se l'auto non esiste o è cancellata
            AuthorizationError: Se l'utente non è admin né proprietario
            InvalidStateError: Se si cambia stato a un'auto con noleggio attivo
        """
        car = await availability_service.lock_car(db, car_id)
        ensure_car_access(user, car)

        update_data = data.model_dump(exclude_unset=True)
        status = update_data.pop("status", None)
        if status is not None and status.value != car.status:
            if await availability_service.has_active_booking(db, car.id):
                logger.warning("Cambio stato rifiutato per l'auto %s: noleggio in corso", car.plate)
                raise InvalidStateError(
                    "Impossibile cambiare stato: l'auto ha una prenotazione attiva"
                )
            logger.info("Auto %s: %s -> %s", car.plate, car.status, status.value)
            car.status = status.value

        for field, value in update_data.items():
            setattr(car, field, value)

        await db.commit()
        logger.info("Aggiornata auto %s", car.plate)
        return car

    async def soft_delete(self, db: AsyncSession, car_id: uuid.UUID, user: User) -> Car:
        """
        Cancella logicamente un'auto.

        Rifiutato se l'auto ha prenotazioni non concluse (in attesa,
        in arrivo o attive).

        Raises:
            NotFoundError: Se l'auto non esiste o è già cancellata
            AuthorizationError: Se l'utente non può operare sull'auto
            ConflictError: Se l'auto ha prenotazioni non concluse
        """
        car = await self.get_by_id(db, car_id, user)

        unresolved = await db.execute(
            select(exists().where(
                Booking.car_id == car.id,
                Booking.status.in_([s.value for s in UNRESOLVED_STATUSES]),
            ))
        )
        if unresolved.scalar():
            logger.warning("Tentativo di cancellare l'auto %s con prenotazioni aperte", car.plate)
            raise ConflictError(
                "Impossibile eliminare l'auto: ha prenotazioni in attesa, in arrivo o attive"
            )

        car.deleted_at = datetime.datetime.now(datetime.timezone.utc)
        await db.commit()
        logger.info("Cancellata logicamente auto %s", car.plate)
        return car

    async def quote(
        self,
        db: AsyncSession,
        car_id: uuid.UUID,
        user: User,
        start: datetime.datetime,
        end: datetime.datetime,
        discount_per_day: Decimal = Decimal("0"),
    ) -> PriceQuote:
        """
        Preventivo per un periodo, senza salvare nulla.

        Raises:
            NotFoundError: Se l'auto non esiste
            AuthorizationError: Se l'utente non può operare sull'auto
        """
        car = await self.get_by_id(db, car_id, user)
        breakdown = await pricing_service.quote(db, car.daily_rate, start, end, discount_per_day)
        return PriceQuote(
            car_id=car.id,
            start_date=start,
            end_date=end,
            total_days=breakdown.days,
            base_amount=breakdown.base_amount,
            discount_total=breakdown.discount_total,
            total=breakdown.total,
        )


# Istanza singleton del service
car_service = CarService()
