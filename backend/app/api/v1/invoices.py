"""
Router FastAPI per le Fatture
Progetto: Rental Manager (Gestionale Noleggio)

Sola lettura: le fatture nascono e cambiano con le prenotazioni.
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import CurrentUser
from app.schemas.invoice import InvoiceRead
from app.services.invoice_service import invoice_service

# Router con prefix e tag
router = APIRouter(
    prefix="/invoices",
    tags=["Fatture"],
)


@router.get(
    "/booking/{booking_id}",
    name="fatture_per_prenotazione",
    summary="Fattura di una prenotazione",
    response_model=InvoiceRead,
    status_code=status.HTTP_200_OK,
)
async def get_invoice_by_booking(
    booking_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> InvoiceRead:
    """
    Recupera la fattura associata a una prenotazione.

    Raises:
        NotFoundError: Se la fattura non esiste
    """
    invoice = await invoice_service.get_by_booking(db, booking_id, user)
    return InvoiceRead.model_validate(invoice)


@router.get(
    "/number/{invoice_number:path}",
    name="fatture_per_numero",
    summary="Fattura per numero",
    description="Il numero contiene barre (es. DTCH/I/100/2026).",
    response_model=InvoiceRead,
    status_code=status.HTTP_200_OK,
)
async def get_invoice_by_number(
    invoice_number: str,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> InvoiceRead:
    invoice = await invoice_service.get_by_number(db, invoice_number, user)
    return InvoiceRead.model_validate(invoice)
