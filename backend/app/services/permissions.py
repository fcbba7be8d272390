"""
Controlli di autorizzazione del motore prenotazioni
Progetto: Rental Manager (Gestionale Noleggio)

Un amministratore opera su qualsiasi auto e prenotazione; un
proprietario solo sulle auto di cui è titolare. I controlli sono
eseguiti dai service prima di qualsiasi modifica.
"""

import logging

from app.core.exceptions import AuthorizationError
from app.models import Car, User

# Logger per questo modulo
logger = logging.getLogger(__name__)


def can_access_car(user: User, car: Car) -> bool:
    """True se l'utente può operare sull'auto."""
    return user.is_admin or (car.owner_id is not None and car.owner_id == user.id)


def ensure_car_access(user: User, car: Car, message: str = "Puoi operare solo sulle tue auto") -> None:
    """
    Verifica che l'utente possa operare sull'auto.

    Raises:
        AuthorizationError: Se l'utente non è admin né proprietario
    """
    if not can_access_car(user, car):
        logger.warning("Accesso negato: utente %s su auto %s", user.id, car.id)
        raise AuthorizationError(message)


def ensure_admin(user: User, message: str = "Operazione riservata agli amministratori") -> None:
    """
    Verifica che l'utente sia un amministratore.

    Raises:
        AuthorizationError: Se l'utente non è admin
    """
    if not user.is_admin:
        logger.warning("Operazione riservata agli admin rifiutata per utente %s", user.id)
        raise AuthorizationError(message)
