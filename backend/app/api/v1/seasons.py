"""
Router FastAPI per le Stagioni tariffarie
Progetto: Rental Manager (Gestionale Noleggio)
"""

import uuid

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import CurrentUser
from app.core.results import OperationResult, run_operation, to_response
from app.schemas.season import SeasonCreate, SeasonRead
from app.services.season_service import season_service

# Router con prefix e tag
router = APIRouter(
    prefix="/seasons",
    tags=["Stagioni"],
)


@router.get(
    "/",
    name="stagioni_lista",
    summary="Lista stagioni",
    description="Tutte le stagioni, ordinate per data di inizio.",
    response_model=list[SeasonRead],
    status_code=status.HTTP_200_OK,
)
async def get_seasons(
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> list[SeasonRead]:
    seasons = await season_service.get_all(db)
    return [SeasonRead.model_validate(s) for s in seasons]


@router.post(
    "/",
    name="stagioni_crea",
    summary="Crea stagione",
    description="Crea una stagione tariffaria (solo admin).",
    response_model=OperationResult,
    status_code=status.HTTP_201_CREATED,
)
async def create_season(
    data: SeasonCreate,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    result = await run_operation(
        db,
        season_service.create(db, data, user),
        lambda season: f"Stagione {season.name} creata",
        "Impossibile creare la stagione",
    )
    return to_response(result, status.HTTP_201_CREATED)


@router.delete(
    "/{season_id}",
    name="stagioni_elimina",
    summary="Elimina stagione",
    response_model=OperationResult,
)
async def delete_season(
    season_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    result = await run_operation(
        db,
        season_service.delete(db, season_id, user),
        "Stagione eliminata",
        "Impossibile eliminare la stagione",
    )
    return to_response(result)
