"""
Router FastAPI per le Prenotazioni
Progetto: Rental Manager (Gestionale Noleggio)

Definisce gli endpoint API per il ciclo di vita delle prenotazioni.
Le operazioni di modifica rispondono con OperationResult.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import AdminUser, CurrentUser
from app.core.results import OperationResult, run_operation, to_response
from app.schemas.booking import (
    BookingBalance,
    BookingCreate,
    BookingList,
    BookingRead,
    BookingStatus,
    BookingUpdate,
    SweepReport,
)
from app.schemas.invoice import BookingPaymentRecord
from app.services.booking_service import booking_service

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Router con prefix e tag
router = APIRouter(
    prefix="/bookings",
    tags=["Prenotazioni"],
)


# -------------------------------------------------------------------
# Endpoints
# -------------------------------------------------------------------

# IMPORTANTE: POST /sweep deve essere definito PRIMA delle route /{booking_id}.

@router.post(
    "/sweep",
    name="prenotazioni_controllo_stati",
    summary="Controllo stati",
    description="Allinea prenotazioni, auto e pagamenti alla data odierna (solo admin).",
    response_model=SweepReport,
    status_code=status.HTTP_200_OK,
)
async def sweep_statuses(
    admin: AdminUser,
    db: AsyncSession = Depends(get_db),
) -> SweepReport:
    """
    Esegue subito il controllo stati.

    Returns:
        SweepReport: Conteggio delle modifiche applicate
    """
    logger.info("Controllo stati richiesto da %s", admin.email)
    return await booking_service.sweeper.run(db)


@router.get(
    "/",
    name="prenotazioni_lista",
    summary="Lista prenotazioni",
    description="Recupera la lista paginata delle prenotazioni, con filtro per stato e auto.",
    response_model=BookingList,
    status_code=status.HTTP_200_OK,
)
async def get_bookings(
    user: CurrentUser,
    status_filter: Optional[BookingStatus] = Query(None, alias="status", description="Filtro per stato"),
    car_id: Optional[uuid.UUID] = Query(None, description="UUID dell'auto per filtro"),
    page: int = Query(1, ge=1, description="Numero pagina"),
    per_page: int = Query(20, ge=1, le=100, description="Elementi per pagina"),
    db: AsyncSession = Depends(get_db),
) -> BookingList:
    """
    Recupera la lista paginata delle prenotazioni.

    Un proprietario vede solo le prenotazioni delle proprie auto.
    """
    bookings, total = await booking_service.get_all(
        db=db,
        user=user,
        status_filter=status_filter,
        car_id=car_id,
        page=page,
        per_page=per_page,
    )

    return BookingList(
        items=[BookingRead.model_validate(b) for b in bookings],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.post(
    "/",
    name="prenotazioni_crea",
    summary="Crea prenotazione",
    description="Crea una prenotazione con fattura e pagamento pending.",
    response_model=OperationResult,
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    data: BookingCreate,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    result = await run_operation(
        db,
        booking_service.create(db, data, user),
        lambda booking: f"Prenotazione {booking.id} creata ({booking.status})",
        "Impossibile creare la prenotazione",
    )
    return to_response(result, status.HTTP_201_CREATED)


@router.get(
    "/{booking_id}",
    name="prenotazioni_dettaglio",
    summary="Dettaglio prenotazione",
    response_model=BookingRead,
    status_code=status.HTTP_200_OK,
)
async def get_booking(
    booking_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> BookingRead:
    """
    Recupera una prenotazione.

    Raises:
        NotFoundError: Se la prenotazione non esiste
    """
    booking = await booking_service.get_by_id(db, booking_id, user)
    return BookingRead.model_validate(booking)


@router.put(
    "/{booking_id}",
    name="prenotazioni_modifica",
    summary="Modifica prenotazione",
    description="Modifica auto, date, cliente e sconto; ricalcola prezzo, fattura e saldo.",
    response_model=OperationResult,
)
async def update_booking(
    booking_id: uuid.UUID,
    data: BookingUpdate,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    result = await run_operation(
        db,
        booking_service.update(db, booking_id, data, user),
        "Prenotazione aggiornata",
        "Impossibile aggiornare la prenotazione",
    )
    return to_response(result)


@router.post(
    "/{booking_id}/approve",
    name="prenotazioni_approva",
    summary="Approva prenotazione",
    description="Approva una prenotazione in attesa (solo admin).",
    response_model=OperationResult,
)
async def approve_booking(
    booking_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    result = await run_operation(
        db,
        booking_service.approve(db, booking_id, user),
        lambda booking: f"Prenotazione approvata ({booking.status})",
        "Impossibile approvare la prenotazione",
    )
    return to_response(result)


@router.post(
    "/{booking_id}/cancel",
    name="prenotazioni_annulla",
    summary="Annulla prenotazione",
    response_model=OperationResult,
)
async def cancel_booking(
    booking_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    result = await run_operation(
        db,
        booking_service.cancel(db, booking_id, user),
        "Prenotazione annullata",
        "Impossibile annullare la prenotazione",
    )
    return to_response(result)


@router.post(
    "/{booking_id}/complete",
    name="prenotazioni_completa",
    summary="Completa prenotazione",
    response_model=OperationResult,
)
async def complete_booking(
    booking_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    result = await run_operation(
        db,
        booking_service.complete(db, booking_id, user),
        "Prenotazione completata",
        "Impossibile completare la prenotazione",
    )
    return to_response(result)


@router.post(
    "/{booking_id}/reactivate",
    name="prenotazioni_riattiva",
    summary="Riattiva prenotazione",
    response_model=OperationResult,
)
async def reactivate_booking(
    booking_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    result = await run_operation(
        db,
        booking_service.reactivate(db, booking_id, user),
        "Prenotazione riattivata",
        "Impossibile riattivare la prenotazione",
    )
    return to_response(result)


@router.delete(
    "/{booking_id}",
    name="prenotazioni_elimina",
    summary="Elimina prenotazione",
    description="Elimina prenotazione, fattura e pagamenti.",
    response_model=OperationResult,
)
async def delete_booking(
    booking_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    result = await run_operation(
        db,
        booking_service.delete(db, booking_id, user),
        "Prenotazione eliminata",
        "Impossibile eliminare la prenotazione",
    )
    return to_response(result)


@router.get(
    "/{booking_id}/balance",
    name="prenotazioni_saldo",
    summary="Saldo prenotazione",
    description="Totale, incassato, da incassare ed eccedenza della prenotazione.",
    response_model=BookingBalance,
)
async def get_booking_balance(
    booking_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> BookingBalance:
    return await booking_service.ledger.get_balance(db, booking_id, user)


@router.post(
    "/{booking_id}/payments",
    name="prenotazioni_incasso",
    summary="Registra incasso",
    description="Registra un incasso, anche parziale, sulla prenotazione.",
    response_model=OperationResult,
)
async def record_booking_payment(
    booking_id: uuid.UUID,
    data: BookingPaymentRecord,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    result = await run_operation(
        db,
        booking_service.ledger.record_payment(db, booking_id, data.amount, data.method, user),
        lambda payment: f"Incasso di {payment.amount} registrato",
        "Impossibile registrare l'incasso",
    )
    return to_response(result)
