"""
Service Layer per le Prenotazioni
Progetto: Rental Manager (Gestionale Noleggio)

Ciclo di vita delle prenotazioni e relativi effetti su auto, fattura
e pagamenti:

    pending_approval -> upcoming | active
    upcoming -> active (controllo stati)
    active -> completed (manuale o controllo stati)
    completed -> active (riattivazione)
    * -> cancelled (finale)

Ogni operazione esegue tutte le scritture in un'unica transazione
e fa commit una sola volta alla fine.
"""

import datetime
import logging
import uuid
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.core.config import settings
from app.core.exceptions import ConflictError, InvalidStateError, NotFoundError
from app.models import Booking, Car, Invoice, Payment, User
from app.schemas.booking import (
    CAR_OCCUPYING_STATUSES,
    BookingBase,
    BookingCreate,
    BookingStatus,
    BookingUpdate,
    CarStatus,
    can_transition,
)
from app.services.availability_service import availability_service
from app.services.client_service import client_service
from app.services.invoice_service import invoice_service
from app.services.ledger_service import LedgerService
from app.services.permissions import ensure_admin, ensure_car_access
from app.services.pricing_service import PriceBreakdown, pricing_service
from app.services.sweeper_service import StatusSweeper

# Logger per questo modulo
logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "L'auto è già prenotata per le date selezionate"


def schedule_status(
    start: datetime.datetime,
    end: datetime.datetime,
    now: datetime.datetime,
) -> BookingStatus:
    """
    Stato di una prenotazione confermata in base all'ora corrente.

    Attiva se l'istante corrente cade in [inizio, fine), altrimenti in arrivo.
    """
    if start <= now < end:
        return BookingStatus.ACTIVE
    return BookingStatus.UPCOMING


class BookingService:
    """
    Service per il ciclo di vita delle prenotazioni.

    Tutte le decisioni che dipendono dall'ora corrente passano per
    l'orologio iniettato (stato iniziale, anno della fattura, scadenze).
    """

    def __init__(self, clock: Clock = system_clock) -> None:
        """
        Inizializza il service.

        Args:
            clock: Orologio di riferimento (FixedClock nei test)
        """
        self.clock = clock
        self.ledger = LedgerService(clock)
        self.sweeper = StatusSweeper(clock)

    # ------------------------------------------------------------
    # Supporto
    # ------------------------------------------------------------

    async def _get_booking(
        self,
        db: AsyncSession,
        booking_id: uuid.UUID,
        lock: bool = False,
    ) -> Booking:
        query = select(Booking).where(Booking.id == booking_id)
        if lock:
            query = query.with_for_update()
        result = await db.execute(query)
        booking = result.scalar_one_or_none()
        if booking is None:
            logger.warning("Prenotazione non trovata: %s", booking_id)
            raise NotFoundError(f"Prenotazione con ID {booking_id} non trovata")
        return booking

    async def _get_booking_car(self, db: AsyncSession, booking: Booking, user: User) -> Car:
        """Auto della prenotazione, dopo il controllo di proprietà."""
        car = await availability_service.lock_car(db, booking.car_id, include_deleted=True)
        ensure_car_access(user, car, "Puoi operare solo sulle prenotazioni delle tue auto")
        return car

    def _set_car_status(self, car: Car, status: CarStatus) -> None:
        if car.status != status.value:
            logger.info("Auto %s: %s -> %s", car.plate, car.status, status.value)
            car.status = status.value

    async def _release_car(self, db: AsyncSession, car: Car, booking_id: uuid.UUID) -> None:
        """
        Libera l'auto lasciata da una prenotazione.

        L'auto resta noleggiata se un'altra prenotazione attiva la occupa;
        un'auto in manutenzione non cambia stato.
        """
        if car.status == CarStatus.MAINTENANCE.value:
            return
        if await availability_service.has_active_booking(
            db, car.id, exclude_booking_id=booking_id
        ):
            logger.info("Auto %s resta noleggiata: altra prenotazione attiva", car.plate)
            return
        self._set_car_status(car, CarStatus.AVAILABLE)

    async def _price(self, db: AsyncSession, car: Car, data: BookingBase) -> PriceBreakdown:
        return await pricing_service.quote(
            db, car.daily_rate, data.start_date, data.end_date, data.discount_per_day
        )

    # ------------------------------------------------------------
    # Letture
    # ------------------------------------------------------------

    async def get_by_id(self, db: AsyncSession, booking_id: uuid.UUID, user: User) -> Booking:
        """
        Recupera una prenotazione.

        Raises:
            NotFoundError: Se la prenotazione non esiste
            AuthorizationError: Se l'utente non può accedere all'auto
        """
        booking = await self._get_booking(db, booking_id)
        car = await db.get(Car, booking.car_id)
        ensure_car_access(user, car, "Puoi operare solo sulle prenotazioni delle tue auto")
        return booking

    async def get_all(
        self,
        db: AsyncSession,
        user: User,
        status_filter: Optional[BookingStatus] = None,
        car_id: Optional[uuid.UUID] = None,
        page: int = 1,
        per_page: int = 20,
        sweep: Optional[bool] = None,
    ) -> tuple[list[Booking], int]:
        """
        Recupera la lista paginata delle prenotazioni.

        Se abilitato in configurazione, esegue prima il controllo stati
        così che la lista rifletta il tempo trascorso.

        Args:
            db: Sessione database
            user: Utente corrente (un proprietario vede solo le sue auto)
            status_filter: Filtro per stato
            car_id: Filtro per auto
            page: Numero pagina
            per_page: Elementi per pagina
            sweep: Forza/disabilita il controllo stati (default: configurazione)

        Returns:
            Tuple di (lista prenotazioni, totale count)
        """
        if sweep is None:
            sweep = settings.status_sweep_on_access
        if sweep:
            await self.sweeper.run(db)

        filter_conditions = []
        if not user.is_admin:
            filter_conditions.append(Car.owner_id == user.id)
        if status_filter is not None:
            filter_conditions.append(Booking.status == status_filter.value)
        if car_id is not None:
            filter_conditions.append(Booking.car_id == car_id)

        query = select(Booking).join(Car, Car.id == Booking.car_id)
        count_query = select(func.count()).select_from(Booking).join(Car, Car.id == Booking.car_id)
        if filter_conditions:
            query = query.where(*filter_conditions)
            count_query = count_query.where(*filter_conditions)

        query = query.order_by(Booking.start_date.desc()).offset((page - 1) * per_page).limit(per_page)
        bookings = list((await db.execute(query)).scalars().all())
        total = (await db.execute(count_query)).scalar() or 0

        logger.debug("Recuperate %d prenotazioni su %d totali", len(bookings), total)
        return bookings, total

    # ------------------------------------------------------------
    # Creazione e approvazione
    # ------------------------------------------------------------

    async def create(self, db: AsyncSession, data: BookingCreate, user: User) -> Booking:
        """
        Crea una prenotazione con fattura e pagamento pending.

        Logica:
        1. Lock dell'auto (deve esistere e non essere cancellata)
        2. Controllo proprietà dell'auto
        3. Controllo sovrapposizioni
        4. Calcolo prezzo
        5. Stato: pending_approval per un proprietario, altrimenti
           active/upcoming in base all'ora corrente
        6. Cliente, prenotazione, fattura, pagamento pending
        7. Auto noleggiata se la prenotazione è attiva

        Args:
            db: Sessione database
            data: Dati validati della prenotazione
            user: Utente che esegue l'operazione

        Returns:
            Booking: Prenotazione creata

        Raises:
            NotFoundError: Se l'auto non esiste o è stata cancellata
            AuthorizationError: Se il proprietario prenota un'auto non sua
            ConflictError: Se l'auto è già prenotata nel periodo
        """
        car = await availability_service.lock_car(db, data.car_id)
        ensure_car_access(user, car, "Puoi prenotare solo le tue auto")

        if await availability_service.has_conflict(db, car.id, data.start_date, data.end_date):
            raise ConflictError(CONFLICT_MESSAGE)

        breakdown = await self._price(db, car, data)
        if user.is_admin:
            status = schedule_status(data.start_date, data.end_date, self.clock.now())
        else:
            status = BookingStatus.PENDING_APPROVAL

        await client_service.ensure_exists(db, data.customer_name)

        booking = Booking(
            id=uuid.uuid4(),
            car_id=car.id,
            customer_name=data.customer_name,
            start_date=data.start_date,
            end_date=data.end_date,
            discount_per_day=data.discount_per_day,
            total_amount=breakdown.total,
            status=status.value,
        )
        db.add(booking)
        await db.flush()

        invoice = await invoice_service.create_for_booking(
            db, booking, car, breakdown, self.clock.now().year
        )
        self.ledger.seed_payment(db, booking)

        if status == BookingStatus.ACTIVE:
            self._set_car_status(car, CarStatus.RENTED)

        await db.commit()
        logger.info(
            "Creata prenotazione %s per %s su %s: %s giorni, totale %s, stato %s, fattura %s",
            booking.id, booking.customer_name, car.plate, breakdown.days,
            breakdown.total, booking.status, invoice.invoice_number,
        )
        return booking

    async def approve(self, db: AsyncSession, booking_id: uuid.UUID, user: User) -> Booking:
        """
        Approva una prenotazione in attesa.

        Raises:
            AuthorizationError: Se l'utente non è amministratore
            NotFoundError: Se la prenotazione non esiste
            InvalidStateError: Se la prenotazione non è in attesa di approvazione
        """
        ensure_admin(user, "Solo gli amministratori possono approvare le prenotazioni")
        booking = await self._get_booking(db, booking_id, lock=True)
        if booking.status != BookingStatus.PENDING_APPROVAL.value:
            raise InvalidStateError("La prenotazione non è in attesa di approvazione")

        car = await self._get_booking_car(db, booking, user)
        status = schedule_status(booking.start_date, booking.end_date, self.clock.now())
        booking.status = status.value
        if status == BookingStatus.ACTIVE:
            self._set_car_status(car, CarStatus.RENTED)

        await db.commit()
        logger.info("Approvata prenotazione %s: stato %s", booking.id, booking.status)
        return booking

    # ------------------------------------------------------------
    # Modifica
    # ------------------------------------------------------------

    async def update(
        self,
        db: AsyncSession,
        booking_id: uuid.UUID,
        data: BookingUpdate,
        user: User,
    ) -> Booking:
        """
        Modifica auto, date, cliente e sconto di una prenotazione.

        Il totale viene ricalcolato, le righe fattura riscritte e il
        pagamento da incassare riallineato al nuovo saldo. Lo stato non
        cambia; se una prenotazione attiva cambia auto, la vecchia auto
        torna libera e la nuova risulta noleggiata.

        Raises:
            NotFoundError: Se la prenotazione o la nuova auto non esistono
            AuthorizationError: Se l'utente non possiede la vecchia o la nuova auto
            InvalidStateError: Se la prenotazione è annullata
            ConflictError: Se la nuova auto è già prenotata nel periodo
        """
        booking = await self._get_booking(db, booking_id, lock=True)
        old_car = await self._get_booking_car(db, booking, user)
        if booking.status == BookingStatus.CANCELLED.value:
            raise InvalidStateError("Una prenotazione annullata non può essere modificata")

        if data.car_id == old_car.id:
            new_car = old_car
        else:
            new_car = await availability_service.lock_car(db, data.car_id)
            ensure_car_access(user, new_car, "Puoi spostare la prenotazione solo su una tua auto")

        if await availability_service.has_conflict(
            db, new_car.id, data.start_date, data.end_date, exclude_booking_id=booking.id
        ):
            raise ConflictError(CONFLICT_MESSAGE)

        breakdown = await self._price(db, new_car, data)
        await client_service.ensure_exists(db, data.customer_name)

        booking.car_id = new_car.id
        booking.customer_name = data.customer_name
        booking.start_date = data.start_date
        booking.end_date = data.end_date
        booking.discount_per_day = data.discount_per_day
        booking.total_amount = breakdown.total

        if new_car is not old_car and booking.status == BookingStatus.ACTIVE.value:
            await self._release_car(db, old_car, booking.id)
            self._set_car_status(new_car, CarStatus.RENTED)

        invoice = await invoice_service.get_for_booking(db, booking.id)
        invoice_service.rewrite(invoice, booking, new_car, breakdown)

        await self.ledger.rebalance(db, booking)
        await self.ledger.reconcile(db, booking.id)

        await db.commit()
        logger.info(
            "Modificata prenotazione %s: %s giorni, nuovo totale %s",
            booking.id, breakdown.days, breakdown.total,
        )
        return booking

    # ------------------------------------------------------------
    # Transizioni di stato
    # ------------------------------------------------------------

    async def cancel(self, db: AsyncSession, booking_id: uuid.UUID, user: User) -> Booking:
        """
        Annulla una prenotazione.

        La fattura diventa void e i pagamenti da incassare vengono eliminati;
        l'auto torna libera se la prenotazione era attiva.

        Raises:
            NotFoundError: Se la prenotazione non esiste
            AuthorizationError: Se l'utente non può accedere all'auto
            InvalidStateError: Se la prenotazione è già annullata
        """
        booking = await self._get_booking(db, booking_id, lock=True)
        car = await self._get_booking_car(db, booking, user)
        if not can_transition(BookingStatus(booking.status), BookingStatus.CANCELLED):
            raise InvalidStateError("La prenotazione è già annullata")

        previous = booking.status
        booking.status = BookingStatus.CANCELLED.value
        if previous == BookingStatus.ACTIVE.value:
            await self._release_car(db, car, booking.id)

        await self.ledger.void(db, booking.id)

        await db.commit()
        logger.info("Annullata prenotazione %s (era %s)", booking.id, previous)
        return booking

    async def complete(self, db: AsyncSession, booking_id: uuid.UUID, user: User) -> Booking:
        """
        Conclude una prenotazione attiva e libera l'auto.

        Raises:
            NotFoundError: Se la prenotazione non esiste
            AuthorizationError: Se l'utente non può accedere all'auto
            InvalidStateError: Se la prenotazione non è attiva
        """
        booking = await self._get_booking(db, booking_id, lock=True)
        car = await self._get_booking_car(db, booking, user)
        if not can_transition(BookingStatus(booking.status), BookingStatus.COMPLETED):
            raise InvalidStateError("Solo le prenotazioni attive possono essere completate")

        booking.status = BookingStatus.COMPLETED.value
        await self._release_car(db, car, booking.id)

        await db.commit()
        logger.info("Completata prenotazione %s", booking.id)
        return booking

    async def reactivate(self, db: AsyncSession, booking_id: uuid.UUID, user: User) -> Booking:
        """
        Riporta attiva una prenotazione completata.

        Blocca solo un'altra prenotazione attiva sulla stessa auto nel periodo.

        Raises:
            NotFoundError: Se la prenotazione non esiste
            AuthorizationError: Se l'utente non può accedere all'auto
            InvalidStateError: Se la prenotazione non è completata
            ConflictError: Se un'altra prenotazione attiva occupa l'auto
        """
        booking = await self._get_booking(db, booking_id, lock=True)
        car = await self._get_booking_car(db, booking, user)
        if booking.status != BookingStatus.COMPLETED.value:
            raise InvalidStateError("Solo le prenotazioni completate possono essere riattivate")

        if await availability_service.has_conflict(
            db,
            car.id,
            booking.start_date,
            booking.end_date,
            exclude_booking_id=booking.id,
            statuses=[BookingStatus.ACTIVE],
        ):
            raise ConflictError("Un'altra prenotazione attiva occupa l'auto in questo periodo")

        booking.status = BookingStatus.ACTIVE.value
        self._set_car_status(car, CarStatus.RENTED)

        await db.commit()
        logger.info("Riattivata prenotazione %s", booking.id)
        return booking

    async def delete(self, db: AsyncSession, booking_id: uuid.UUID, user: User) -> None:
        """
        Elimina fisicamente una prenotazione con fattura e pagamenti.

        L'auto torna libera se la prenotazione era attiva o in arrivo e
        nessun'altra prenotazione attiva la occupa.
        Tutto avviene nella stessa transazione.

        Raises:
            NotFoundError: Se la prenotazione non esiste
            AuthorizationError: Se l'utente non può accedere all'auto
        """
        booking = await self._get_booking(db, booking_id, lock=True)
        car = await self._get_booking_car(db, booking, user)
        previous = booking.status

        await db.execute(delete(Payment).where(Payment.booking_id == booking_id))
        await db.execute(delete(Invoice).where(Invoice.booking_id == booking_id))
        await db.execute(delete(Booking).where(Booking.id == booking_id))

        if previous in {s.value for s in CAR_OCCUPYING_STATUSES}:
            await self._release_car(db, car, booking_id)

        await db.commit()
        logger.info("Eliminata prenotazione %s (era %s)", booking_id, previous)


# Istanza singleton del service
booking_service = BookingService()
