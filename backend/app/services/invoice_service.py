"""
Service Layer per le Fatture
Progetto: Rental Manager (Gestionale Noleggio)

Gestisce la numerazione progressiva, la composizione delle righe fattura
a partire dal calcolo prezzo e la lettura delle fatture.

Formato numero: {prefisso}/I/{contatore}/{anno} (es. DTCH/I/100/2026).
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.models import Booking, Car, Invoice, SystemSettings, User
from app.schemas.invoice import InvoiceItem, InvoiceStatus
from app.services.permissions import ensure_car_access
from app.services.pricing_service import PriceBreakdown

# Logger per questo modulo
logger = logging.getLogger(__name__)


def build_invoice_items(car: Car, breakdown: PriceBreakdown) -> list[dict]:
    """
    Righe fattura di una prenotazione.

    Una riga base con l'importo prima dello sconto e, se lo sconto è
    positivo, una riga negativa pari a sconto giornaliero x giorni,
    descritta con la valuta configurata (es. "Discount (KES 1000/day)").
    """
    items = [
        InvoiceItem(
            description=f"Car Rental: {car.display_name} ({breakdown.days} days)",
            amount=breakdown.base_amount,
        )
    ]
    if breakdown.discount_total > 0:
        items.append(
            InvoiceItem(
                description=f"Discount ({settings.currency} {breakdown.discount_per_day}/day)",
                amount=-breakdown.discount_total,
            )
        )
    return [item.to_json() for item in items]


class InvoiceService:
    """
    Service per la numerazione e la lettura delle fatture.

    La creazione e l'aggiornamento delle fatture avvengono solo tramite
    il ciclo di vita delle prenotazioni (BookingService).
    """

    async def _get_settings_for_update(self, db: AsyncSession) -> SystemSettings:
        """
        Carica il record impostazioni con lock di riga, creandolo se manca.

        Il record appena creato parte da invoice_counter_start.
        """
        result = await db.execute(
            select(SystemSettings)
            .order_by(SystemSettings.created_at.asc())
            .limit(1)
            .with_for_update()
        )
        system_settings = result.scalar_one_or_none()
        if system_settings is None:
            system_settings = SystemSettings(
                company_name=settings.company_name,
                currency=settings.currency,
                vat_rate=settings.vat_rate,
                last_invoice_counter=settings.invoice_counter_start,
            )
            db.add(system_settings)
            await db.flush()
            logger.info(
                "Creato record impostazioni con contatore fatture %s",
                system_settings.last_invoice_counter,
            )
        return system_settings

    async def next_invoice_number(self, db: AsyncSession, year: int) -> str:
        """
        Genera il prossimo numero fattura.

        Lettura, incremento e scrittura del contatore avvengono nella
        transazione corrente sotto lock della riga impostazioni: due
        creazioni concorrenti non ottengono mai lo stesso numero.

        Args:
            db: Sessione database
            year: Anno corrente (dall'orologio del chiamante)

        Returns:
            str: Numero fattura formattato
        """
        system_settings = await self._get_settings_for_update(db)
        system_settings.last_invoice_counter += settings.invoice_counter_step
        await db.flush()

        number = f"{settings.invoice_prefix}/I/{system_settings.last_invoice_counter}/{year}"
        logger.info("Assegnato numero fattura %s", number)
        return number

    async def create_for_booking(
        self,
        db: AsyncSession,
        booking: Booking,
        car: Car,
        breakdown: PriceBreakdown,
        year: int,
    ) -> Invoice:
        """
        Crea la fattura di una prenotazione appena inserita.

        Returns:
            Invoice: Fattura in stato pending
        """
        invoice = Invoice(
            booking_id=booking.id,
            invoice_number=await self.next_invoice_number(db, year),
            invoice_date=booking.start_date.date(),
            items=build_invoice_items(car, breakdown),
            total=breakdown.total,
            status=InvoiceStatus.PENDING.value,
        )
        db.add(invoice)
        return invoice

    def rewrite(
        self,
        invoice: Invoice,
        booking: Booking,
        car: Car,
        breakdown: PriceBreakdown,
    ) -> None:
        """Riscrive righe, totale e data dopo la modifica della prenotazione."""
        invoice.items = build_invoice_items(car, breakdown)
        invoice.total = breakdown.total
        invoice.invoice_date = booking.start_date.date()

    async def get_for_booking(self, db: AsyncSession, booking_id: uuid.UUID) -> Invoice:
        """
        Fattura di una prenotazione, senza controlli di accesso.

        Raises:
            NotFoundError: Se la fattura non esiste
        """
        result = await db.execute(select(Invoice).where(Invoice.booking_id == booking_id))
        invoice = result.scalar_one_or_none()
        if invoice is None:
            raise NotFoundError(f"Fattura per la prenotazione {booking_id} non trovata")
        return invoice

    async def _load_car(self, db: AsyncSession, booking_id: uuid.UUID) -> Car:
        result = await db.execute(
            select(Car).join(Booking, Booking.car_id == Car.id).where(Booking.id == booking_id)
        )
        return result.scalar_one()

    async def get_by_booking(
        self,
        db: AsyncSession,
        booking_id: uuid.UUID,
        user: User,
    ) -> Invoice:
        """
        Recupera la fattura di una prenotazione.

        Raises:
            NotFoundError: Se la fattura non esiste
            AuthorizationError: Se l'utente non può accedere all'auto prenotata
        """
        invoice = await self.get_for_booking(db, booking_id)
        ensure_car_access(user, await self._load_car(db, booking_id))
        return invoice

    async def get_by_number(
        self,
        db: AsyncSession,
        invoice_number: str,
        user: User,
    ) -> Invoice:
        """
        Recupera una fattura tramite numero.

        Raises:
            NotFoundError: Se la fattura non esiste
            AuthorizationError: Se l'utente non può accedere all'auto prenotata
        """
        result = await db.execute(
            select(Invoice).where(Invoice.invoice_number == invoice_number)
        )
        invoice = result.scalar_one_or_none()
        if invoice is None:
            logger.warning("Fattura non trovata: %s", invoice_number)
            raise NotFoundError(f"Fattura {invoice_number} non trovata")
        ensure_car_access(user, await self._load_car(db, invoice.booking_id))
        return invoice


# Istanza singleton del service
invoice_service = InvoiceService()
