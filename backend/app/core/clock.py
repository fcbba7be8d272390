"""
Orologio di sistema
Progetto: Rental Manager (Gestionale Noleggio)

Unico punto da cui il motore legge l'ora corrente: stato iniziale delle
prenotazioni, controllo periodico degli stati e anno della numerazione
fatture passano tutti da qui, così i test possono fissare il tempo.

Le date di noleggio sono orari "da parete" nel fuso di settings.timezone,
salvati senza tzinfo.
"""

import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from app.core.config import settings


def to_wall_time(
    value: datetime.datetime, tz: Optional[ZoneInfo] = None
) -> datetime.datetime:
    """
    Converte un datetime in orario locale naive.

    Un valore con fuso viene prima portato nel fuso di riferimento;
    un valore naive è già un orario locale e resta invariato.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(tz or settings.tzinfo).replace(tzinfo=None)


class Clock:
    """Orologio reale nel fuso orario configurato."""

    def __init__(self, tz: Optional[ZoneInfo] = None) -> None:
        self._tz = tz or settings.tzinfo

    def now(self) -> datetime.datetime:
        """Data/ora corrente, naive, nel fuso di riferimento."""
        return datetime.datetime.now(self._tz).replace(tzinfo=None)

    def today(self) -> datetime.date:
        """Data corrente nel fuso di riferimento."""
        return self.now().date()


class FixedClock(Clock):
    """
    Orologio fermo su un istante dato.

    Usato nei test e negli strumenti di manutenzione per rieseguire
    il controllo stati "come se" fosse una certa data.
    """

    def __init__(self, moment: datetime.datetime) -> None:
        super().__init__()
        self._moment = moment

    def now(self) -> datetime.datetime:
        return self._moment

    def advance(self, **delta) -> None:
        """Sposta l'orologio in avanti (es. advance(days=1))."""
        self._moment = self._moment + datetime.timedelta(**delta)


# Orologio condiviso dai service
system_clock = Clock()
