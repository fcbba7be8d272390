"""
Service Layer per l'entità Client
Progetto: Rental Manager (Gestionale Noleggio)

Le prenotazioni salvano il nome del cliente come testo libero; questo
service mantiene l'anagrafica clienti come indice secondario, creando
un cliente per ogni nome nuovo incontrato.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Client

# Logger per questo modulo
logger = logging.getLogger(__name__)


class ClientService:
    """
    Service per l'anagrafica clienti collegata alle prenotazioni.

    Nessuna chiave esterna lega Client a Booking: il collegamento è
    solo per nome esatto.
    """

    async def get_by_name(self, db: AsyncSession, name: str) -> Optional[Client]:
        """Cliente con esattamente questo nome, se esiste."""
        result = await db.execute(select(Client).where(Client.name == name))
        return result.scalar_one_or_none()

    async def ensure_exists(self, db: AsyncSession, name: str) -> Client:
        """
        Restituisce il cliente con questo nome, creandolo se manca.

        Il cliente viene salvato con la transazione del chiamante.

        Args:
            db: Sessione database
            name: Nome del cliente come digitato nella prenotazione

        Returns:
            Client: Cliente esistente o appena creato
        """
        await db.flush()
        client = await self.get_by_name(db, name)
        if client is not None:
            return client

        client = Client(name=name)
        db.add(client)
        logger.info("Creato nuovo cliente da prenotazione: %s", name)
        return client


# Istanza singleton del service
client_service = ClientService()
