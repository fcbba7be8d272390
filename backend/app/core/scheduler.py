"""
Controllo periodico degli stati
Progetto: Rental Manager (Gestionale Noleggio)

Task asyncio avviato nel lifespan dell'applicazione: esegue il
controllo stati ogni settings.status_sweep_interval_minutes, così che
prenotazioni e auto restino allineate anche senza traffico.
"""

import asyncio
import logging
from typing import Optional

from app.core.database import session_scope
from app.schemas.booking import SweepReport
from app.services.sweeper_service import StatusSweeper, status_sweeper

# Logger per questo modulo
logger = logging.getLogger(__name__)


class SweepScheduler:
    """
    Esecuzione periodica di StatusSweeper.

    Un'esecuzione fallita viene registrata nel log e il ciclo prosegue
    con l'intervallo successivo.
    """

    def __init__(self, interval_minutes: int, sweeper: StatusSweeper = status_sweeper) -> None:
        self.interval_seconds = interval_minutes * 60
        self.sweeper = sweeper
        self._task: Optional[asyncio.Task] = None

    @property
    def enabled(self) -> bool:
        return self.interval_seconds > 0

    async def run_once(self) -> Optional[SweepReport]:
        """Esegue un controllo in una sessione dedicata."""
        try:
            async with session_scope() as db:
                return await self.sweeper.run(db)
        except Exception:
            logger.exception("Controllo periodico degli stati fallito")
            return None

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        """Avvia il task periodico (nessun effetto se disabilitato o già avviato)."""
        if not self.enabled or self._task is not None:
            return
        self._task = asyncio.create_task(self._loop(), name="status-sweep")
        logger.info("Controllo stati programmato ogni %d secondi", self.interval_seconds)

    async def stop(self) -> None:
        """Ferma il task periodico e ne attende la chiusura."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            logger.info("Controllo periodico degli stati fermato")
        self._task = None
