"""
Service Layer per le Stagioni tariffarie
Progetto: Rental Manager (Gestionale Noleggio)
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models import Season, User
from app.schemas.season import SeasonCreate
from app.services.permissions import ensure_admin

# Logger per questo modulo
logger = logging.getLogger(__name__)


class SeasonService:
    """
    Service per le stagioni.

    Le stagioni possono sovrapporsi: il calcolo prezzi usa la prima
    che contiene il giorno, in ordine di data di inizio.
    Le prenotazioni esistenti non vengono ricalcolate.
    """

    async def get_all(self, db: AsyncSession) -> list[Season]:
        """Tutte le stagioni, ordinate per data di inizio."""
        result = await db.execute(
            select(Season).order_by(Season.start_date.asc(), Season.created_at.asc())
        )
        return list(result.scalars().all())

    async def create(self, db: AsyncSession, data: SeasonCreate, user: User) -> Season:
        """
        Crea una stagione.

        Raises:
            AuthorizationError: Se l'utente non è amministratore
        """
        ensure_admin(user, "Solo gli amministratori possono gestire le stagioni")
        season = Season(**data.model_dump())
        db.add(season)
        await db.commit()
        logger.info(
            "Creata stagione %s (%s - %s, x%s)",
            season.name, season.start_date, season.end_date, season.price_multiplier,
        )
        return season

    async def delete(self, db: AsyncSession, season_id: uuid.UUID, user: User) -> None:
        """
        Elimina una stagione.

        Raises:
            AuthorizationError: Se l'utente non è amministratore
            NotFoundError: Se la stagione non esiste
        """
        ensure_admin(user, "Solo gli amministratori possono gestire le stagioni")
        season = await db.get(Season, season_id)
        if season is None:
            raise NotFoundError(f"Stagione con ID {season_id} non trovata")
        await db.delete(season)
        await db.commit()
        logger.info("Eliminata stagione %s", season.name)


# Istanza singleton del service
season_service = SeasonService()
