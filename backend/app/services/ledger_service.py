"""
Service Layer per il registro pagamenti
Progetto: Rental Manager (Gestionale Noleggio)

Mantiene coerenti fattura e pagamenti di una prenotazione:
- stato fattura ricalcolato da zero dalla somma dei pagamenti incassati
- incassi parziali che riducono il pagamento da incassare
- ribilanciamento del pagamento da incassare dopo una modifica del totale

Per ogni prenotazione esiste al più un pagamento da incassare
(pending oppure overdue).
"""

import logging
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.core.exceptions import BusinessValidationError, InvalidStateError, NotFoundError
from app.models import Booking, Car, Invoice, Payment, User
from app.schemas.booking import BookingBalance, BookingStatus
from app.schemas.invoice import (
    OUTSTANDING_STATUSES,
    InvoiceStatus,
    PaymentMethod,
    PaymentStatus,
)
from app.services.permissions import ensure_car_access

# Logger per questo modulo
logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class LedgerService:
    """
    Service per pagamenti e stato delle fatture.

    reconcile, rebalance e void non eseguono commit: sono chiamati da
    BookingService dentro la transazione della prenotazione. Le operazioni
    di incasso e storno fanno commit al termine.
    """

    def __init__(self, clock: Clock = system_clock) -> None:
        """
        Inizializza il service.

        Args:
            clock: Orologio usato per le date di scadenza
        """
        self.clock = clock

    # ------------------------------------------------------------
    # Letture di supporto
    # ------------------------------------------------------------

    async def _get_booking(self, db: AsyncSession, booking_id: uuid.UUID) -> Booking:
        result = await db.execute(select(Booking).where(Booking.id == booking_id))
        booking = result.scalar_one_or_none()
        if booking is None:
            logger.warning("Prenotazione non trovata: %s", booking_id)
            raise NotFoundError(f"Prenotazione con ID {booking_id} non trovata")
        return booking

    async def _get_payment(self, db: AsyncSession, payment_id: uuid.UUID) -> Payment:
        result = await db.execute(
            select(Payment).where(Payment.id == payment_id).with_for_update()
        )
        payment = result.scalar_one_or_none()
        if payment is None:
            logger.warning("Pagamento non trovato: %s", payment_id)
            raise NotFoundError(f"Pagamento con ID {payment_id} non trovato")
        return payment

    async def _ensure_access(self, db: AsyncSession, user: User, booking: Booking) -> None:
        car = await db.get(Car, booking.car_id)
        ensure_car_access(user, car)

    async def paid_total(self, db: AsyncSession, booking_id: uuid.UUID) -> Decimal:
        """Somma dei pagamenti incassati di una prenotazione."""
        result = await db.execute(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(
                Payment.booking_id == booking_id,
                Payment.status == PaymentStatus.PAID.value,
            )
        )
        return Decimal(str(result.scalar()))

    async def get_outstanding(
        self,
        db: AsyncSession,
        booking_id: uuid.UUID,
        exclude_payment_id: Optional[uuid.UUID] = None,
    ) -> Optional[Payment]:
        """Pagamento da incassare (pending o overdue) della prenotazione, se esiste."""
        query = (
            select(Payment)
            .where(
                Payment.booking_id == booking_id,
                Payment.status.in_(OUTSTANDING_STATUSES),
            )
            .order_by(Payment.created_at.asc())
            .limit(1)
            .with_for_update()
        )
        if exclude_payment_id is not None:
            query = query.where(Payment.id != exclude_payment_id)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    # ------------------------------------------------------------
    # Riconciliazione
    # ------------------------------------------------------------

    async def reconcile(self, db: AsyncSession, booking_id: uuid.UUID) -> Optional[Invoice]:
        """
        Ricalcola lo stato della fattura dai pagamenti incassati.

        Fattura void o prenotazione annullata: nessuna modifica.
        Altrimenti paid se la somma incassata copre il totale, pending in
        caso contrario. Idempotente.

        Returns:
            Invoice aggiornata, o None se la prenotazione non ha fattura
        """
        await db.flush()
        result = await db.execute(
            select(Invoice, Booking.status)
            .join(Booking, Booking.id == Invoice.booking_id)
            .where(Invoice.booking_id == booking_id)
        )
        row = result.one_or_none()
        if row is None:
            return None
        invoice, booking_status = row

        if (
            invoice.status == InvoiceStatus.VOID.value
            or booking_status == BookingStatus.CANCELLED.value
        ):
            return invoice

        paid = await self.paid_total(db, booking_id)
        new_status = (
            InvoiceStatus.PAID.value if paid >= invoice.total else InvoiceStatus.PENDING.value
        )
        if invoice.status != new_status:
            logger.info(
                "Fattura %s: %s -> %s (incassato %s su %s)",
                invoice.invoice_number, invoice.status, new_status, paid, invoice.total,
            )
            invoice.status = new_status
        return invoice

    async def _delete_outstanding(self, db: AsyncSession, booking_id: uuid.UUID) -> int:
        """Elimina i pagamenti ancora da incassare della prenotazione."""
        result = await db.execute(
            select(Payment).where(
                Payment.booking_id == booking_id,
                Payment.status.in_(OUTSTANDING_STATUSES),
            )
        )
        payments = result.scalars().all()
        for payment in payments:
            await db.delete(payment)
        return len(payments)

    def seed_payment(self, db: AsyncSession, booking: Booking) -> Payment:
        """Pagamento pending pari al totale, con scadenza alla fine del noleggio."""
        payment = Payment(
            booking_id=booking.id,
            amount=booking.total_amount,
            due_date=booking.end_date.date(),
            status=PaymentStatus.PENDING.value,
        )
        db.add(payment)
        return payment

    async def rebalance(self, db: AsyncSession, booking: Booking) -> Optional[Payment]:
        """
        Riallinea il pagamento da incassare al nuovo totale della prenotazione.

        saldo = totale - incassato. Se positivo il pagamento da incassare
        diventa pari al saldo (creato se manca), torna pending e scade alla
        nuova data di fine. Se nullo o negativo il pagamento da incassare
        viene eliminato; l'eventuale eccedenza resta solo un dato di report.

        Returns:
            Il pagamento da incassare, o None se il saldo è coperto
        """
        await db.flush()
        balance = booking.total_amount - await self.paid_total(db, booking.id)
        outstanding = await self.get_outstanding(db, booking.id)

        if balance > ZERO:
            if outstanding is None:
                outstanding = Payment(booking_id=booking.id)
                db.add(outstanding)
            outstanding.amount = balance
            outstanding.status = PaymentStatus.PENDING.value
            outstanding.due_date = booking.end_date.date()
            logger.debug("Prenotazione %s: saldo da incassare %s", booking.id, balance)
            return outstanding

        await self._delete_outstanding(db, booking.id)
        logger.debug("Prenotazione %s saldata (saldo %s)", booking.id, balance)
        return None

    async def void(self, db: AsyncSession, booking_id: uuid.UUID) -> None:
        """Annulla la fattura ed elimina i pagamenti ancora da incassare."""
        await db.flush()
        invoice = (
            await db.execute(select(Invoice).where(Invoice.booking_id == booking_id))
        ).scalar_one_or_none()
        if invoice is not None:
            invoice.status = InvoiceStatus.VOID.value

        removed = await self._delete_outstanding(db, booking_id)
        logger.debug("Prenotazione %s: eliminati %d pagamenti da incassare", booking_id, removed)

    # ------------------------------------------------------------
    # Incassi
    # ------------------------------------------------------------

    async def _settle(
        self,
        db: AsyncSession,
        payment: Payment,
        method: PaymentMethod,
        amount: Optional[Decimal],
    ) -> Payment:
        """
        Incassa un pagamento da incassare.

        Importo minore del dovuto: nuovo pagamento paid per l'importo e
        riduzione del pagamento da incassare. Altrimenti il pagamento
        diventa paid (con l'importo effettivamente ricevuto).
        """
        if payment.status == PaymentStatus.PAID.value:
            raise InvalidStateError("Il pagamento risulta già incassato")
        if amount is None:
            amount = payment.amount
        if amount <= ZERO:
            raise BusinessValidationError.for_field(
                "amount", "L'importo del pagamento deve essere positivo"
            )

        method_value = PaymentMethod(method).value
        if amount < payment.amount:
            partial = Payment(
                booking_id=payment.booking_id,
                amount=amount,
                due_date=payment.due_date,
                status=PaymentStatus.PAID.value,
                method=method_value,
            )
            db.add(partial)
            payment.amount = payment.amount - amount
            logger.info(
                "Incasso parziale di %s sulla prenotazione %s, restano %s",
                amount, payment.booking_id, payment.amount,
            )
            settled = partial
        else:
            payment.amount = amount
            payment.status = PaymentStatus.PAID.value
            payment.method = method_value
            logger.info("Pagamento %s incassato: %s", payment.id, amount)
            settled = payment

        await self.reconcile(db, payment.booking_id)
        return settled

    async def mark_payment_paid(
        self,
        db: AsyncSession,
        payment_id: uuid.UUID,
        method: PaymentMethod,
        user: User,
        amount: Optional[Decimal] = None,
    ) -> Payment:
        """
        Segna come incassato un pagamento da incassare, anche in parte.

        Args:
            db: Sessione database
            payment_id: UUID del pagamento
            method: Metodo di pagamento
            user: Utente che esegue l'operazione
            amount: Importo ricevuto (default: intero importo dovuto)

        Returns:
            Payment: Il pagamento incassato

        Raises:
            NotFoundError: Se il pagamento non esiste
            AuthorizationError: Se l'utente non può operare sull'auto
            InvalidStateError: Se il pagamento è già incassato
            BusinessValidationError: Se l'importo non è positivo
        """
        payment = await self._get_payment(db, payment_id)
        booking = await self._get_booking(db, payment.booking_id)
        await self._ensure_access(db, user, booking)
        settled = await self._settle(db, payment, method, amount)
        await db.commit()
        return settled

    async def record_payment(
        self,
        db: AsyncSession,
        booking_id: uuid.UUID,
        amount: Decimal,
        method: PaymentMethod,
        user: User,
    ) -> Payment:
        """
        Registra un incasso sulla prenotazione.

        Con un pagamento da incassare si applica la regola degli incassi
        parziali; senza, si crea un pagamento paid con scadenza odierna.

        Raises:
            NotFoundError: Se la prenotazione non esiste
            AuthorizationError: Se l'utente non può operare sull'auto
            InvalidStateError: Se la prenotazione è annullata
            BusinessValidationError: Se l'importo non è positivo
        """
        booking = await self._get_booking(db, booking_id)
        await self._ensure_access(db, user, booking)
        if booking.status == BookingStatus.CANCELLED.value:
            raise InvalidStateError("Impossibile registrare pagamenti su una prenotazione annullata")
        if amount is None or amount <= ZERO:
            raise BusinessValidationError.for_field(
                "amount", "L'importo del pagamento deve essere positivo"
            )

        outstanding = await self.get_outstanding(db, booking_id)
        if outstanding is not None:
            settled = await self._settle(db, outstanding, method, amount)
            await db.commit()
            return settled

        payment = Payment(
            booking_id=booking_id,
            amount=amount,
            due_date=self.clock.today(),
            status=PaymentStatus.PAID.value,
            method=PaymentMethod(method).value,
        )
        db.add(payment)
        logger.info("Incasso di %s registrato sulla prenotazione %s", amount, booking_id)
        await self.reconcile(db, booking_id)
        await db.commit()
        return payment

    async def mark_payment_unpaid(
        self,
        db: AsyncSession,
        payment_id: uuid.UUID,
        user: User,
    ) -> Payment:
        """
        Riporta un pagamento incassato allo stato pending, senza metodo.

        Se la prenotazione ha già un pagamento da incassare, l'importo
        stornato vi confluisce e il pagamento stornato viene eliminato.

        Returns:
            Payment: Il pagamento da incassare risultante

        Raises:
            NotFoundError: Se il pagamento non esiste
            AuthorizationError: Se l'utente non può operare sull'auto
            InvalidStateError: Se il pagamento non è incassato o la prenotazione è annullata
        """
        payment = await self._get_payment(db, payment_id)
        booking = await self._get_booking(db, payment.booking_id)
        await self._ensure_access(db, user, booking)
        if payment.status != PaymentStatus.PAID.value:
            raise InvalidStateError("Il pagamento non risulta incassato")
        if booking.status == BookingStatus.CANCELLED.value:
            raise InvalidStateError("Impossibile stornare pagamenti di una prenotazione annullata")

        outstanding = await self.get_outstanding(db, booking.id, exclude_payment_id=payment.id)
        if outstanding is not None:
            outstanding.amount = outstanding.amount + payment.amount
            await db.delete(payment)
            result = outstanding
        else:
            payment.status = PaymentStatus.PENDING.value
            payment.method = None
            result = payment

        logger.info("Pagamento %s stornato sulla prenotazione %s", payment_id, booking.id)
        await self.reconcile(db, booking.id)
        await db.commit()
        return result

    async def get_balance(
        self,
        db: AsyncSession,
        booking_id: uuid.UUID,
        user: User,
    ) -> BookingBalance:
        """
        Situazione contabile della prenotazione.

        Raises:
            NotFoundError: Se la prenotazione non esiste
            AuthorizationError: Se l'utente non può accedere all'auto
        """
        booking = await self._get_booking(db, booking_id)
        await self._ensure_access(db, user, booking)

        paid = await self.paid_total(db, booking_id)
        result = await db.execute(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(
                Payment.booking_id == booking_id,
                Payment.status.in_(OUTSTANDING_STATUSES),
            )
        )
        outstanding = Decimal(str(result.scalar()))
        return BookingBalance(
            booking_id=booking_id,
            total=booking.total_amount,
            paid=paid,
            outstanding=outstanding,
            overpaid=max(ZERO, paid - booking.total_amount),
        )


# Istanza singleton del service
ledger_service = LedgerService()
