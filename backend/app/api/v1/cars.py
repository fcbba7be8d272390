"""
Router FastAPI per le Auto
Progetto: Rental Manager (Gestionale Noleggio)

Definisce gli endpoint API per la flotta e il preventivo prezzi.
"""

import datetime
import uuid
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import to_wall_time
from app.core.database import get_db
from app.core.deps import CurrentUser
from app.core.exceptions import BusinessValidationError
from app.core.results import OperationResult, run_operation, to_response
from app.schemas.booking import CarStatus
from app.schemas.car import CarCreate, CarList, CarRead, CarUpdate, PriceQuote
from app.services.car_service import car_service

# Router con prefix e tag
router = APIRouter(
    prefix="/cars",
    tags=["Auto"],
)


@router.get(
    "/",
    name="auto_lista",
    summary="Lista auto",
    description="Recupera la lista paginata delle auto non cancellate.",
    response_model=CarList,
    status_code=status.HTTP_200_OK,
)
async def get_cars(
    user: CurrentUser,
    status_filter: Optional[CarStatus] = Query(None, alias="status", description="Filtro per stato"),
    page: int = Query(1, ge=1, description="Numero pagina"),
    per_page: int = Query(20, ge=1, le=100, description="Elementi per pagina"),
    db: AsyncSession = Depends(get_db),
) -> CarList:
    cars, total = await car_service.get_all(
        db, user, page=page, per_page=per_page, status_filter=status_filter
    )
    return CarList(
        items=[CarRead.model_validate(c) for c in cars],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.post(
    "/",
    name="auto_crea",
    summary="Crea auto",
    response_model=OperationResult,
    status_code=status.HTTP_201_CREATED,
)
async def create_car(
    data: CarCreate,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    result = await run_operation(
        db,
        car_service.create(db, data, user),
        lambda car: f"Auto {car.plate} creata (ID {car.id})",
        "Impossibile creare l'auto",
    )
    return to_response(result, status.HTTP_201_CREATED)


@router.get(
    "/{car_id}",
    name="auto_dettaglio",
    summary="Dettaglio auto",
    response_model=CarRead,
    status_code=status.HTTP_200_OK,
)
async def get_car(
    car_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> CarRead:
    car = await car_service.get_by_id(db, car_id, user)
    return CarRead.model_validate(car)


@router.put(
    "/{car_id}",
    name="auto_modifica",
    summary="Modifica auto",
    description="Aggiorna tariffa, marca/modello e stato (available o maintenance).",
    response_model=OperationResult,
)
async def update_car(
    car_id: uuid.UUID,
    data: CarUpdate,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    result = await run_operation(
        db,
        car_service.update(db, car_id, data, user),
        lambda car: f"Auto {car.plate} aggiornata (stato {car.status})",
        "Impossibile aggiornare l'auto",
    )
    return to_response(result)


@router.delete(
    "/{car_id}",
    name="auto_elimina",
    summary="Cancella auto",
    description="Cancellazione logica; rifiutata se l'auto ha prenotazioni non concluse.",
    response_model=OperationResult,
)
async def delete_car(
    car_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    result = await run_operation(
        db,
        car_service.soft_delete(db, car_id, user),
        lambda car: f"Auto {car.plate} cancellata",
        "Impossibile cancellare l'auto",
    )
    return to_response(result)


@router.get(
    "/{car_id}/quote",
    name="auto_preventivo",
    summary="Preventivo",
    description="Calcola il prezzo di un periodo con le stagioni correnti, senza salvare nulla.",
    response_model=PriceQuote,
    status_code=status.HTTP_200_OK,
)
async def get_quote(
    car_id: uuid.UUID,
    user: CurrentUser,
    start_date: datetime.datetime = Query(..., description="Inizio noleggio"),
    end_date: datetime.datetime = Query(..., description="Fine noleggio"),
    discount_per_day: Decimal = Query(Decimal("0"), ge=0, description="Sconto giornaliero"),
    db: AsyncSession = Depends(get_db),
) -> PriceQuote:
    """
    Preventivo per un periodo.

    Raises:
        BusinessValidationError: Se la fine non è successiva all'inizio
    """
    start_date = to_wall_time(start_date)
    end_date = to_wall_time(end_date)
    if end_date <= start_date:
        raise BusinessValidationError.for_field(
            "end_date", "La data di fine deve essere successiva alla data di inizio"
        )
    return await car_service.quote(db, car_id, user, start_date, end_date, discount_per_day)
