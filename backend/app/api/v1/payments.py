"""
Router FastAPI per i Pagamenti
Progetto: Rental Manager (Gestionale Noleggio)
"""

import uuid

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import CurrentUser
from app.core.results import OperationResult, run_operation, to_response
from app.schemas.invoice import PaymentRecord
from app.services.ledger_service import ledger_service

# Router con prefix e tag
router = APIRouter(
    prefix="/payments",
    tags=["Pagamenti"],
)


@router.post(
    "/{payment_id}/paid",
    name="pagamenti_incassa",
    summary="Segna pagamento come incassato",
    description=(
        "Incassa un pagamento da incassare. Con un importo inferiore al dovuto "
        "registra un incasso parziale e riduce il residuo."
    ),
    response_model=OperationResult,
)
async def mark_payment_paid(
    payment_id: uuid.UUID,
    data: PaymentRecord,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    result = await run_operation(
        db,
        ledger_service.mark_payment_paid(db, payment_id, data.method, user, amount=data.amount),
        lambda payment: f"Incasso di {payment.amount} registrato",
        "Impossibile aggiornare il pagamento",
    )
    return to_response(result)


@router.post(
    "/{payment_id}/unpaid",
    name="pagamenti_storna",
    summary="Storna pagamento",
    description="Riporta un pagamento incassato allo stato pending.",
    response_model=OperationResult,
)
async def mark_payment_unpaid(
    payment_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    result = await run_operation(
        db,
        ledger_service.mark_payment_unpaid(db, payment_id, user),
        "Pagamento riportato a pending",
        "Impossibile aggiornare il pagamento",
    )
    return to_response(result)
