"""
Modelli Database SQLAlchemy
Progetto: Rental Manager (Gestionale Noleggio)

Import centralizzato di tutti i modelli per Alembic e usage generico.

Modelli:
- User: Utenti (amministratori e proprietari di auto)
- Client: Anagrafica clienti (indice secondario per nome)
- Car: Flotta
- Season: Stagioni con moltiplicatore di prezzo
- Booking: Prenotazioni
- Invoice: Fatture (1:1 con Booking)
- Payment: Pagamenti (1:N con Booking)
- SystemSettings: Impostazioni singleton (contatore fatture)
"""

# SQLAlchemy 2.0 Base declarativa
# Importato qui per essere disponibile per tutti i modelli
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class per tutti i modelli SQLAlchemy."""
    pass


from app.models.user import User
from app.models.client import Client
from app.models.car import Car
from app.models.season import Season
from app.models.booking import Booking
from app.models.invoice import Invoice
from app.models.payment import Payment
from app.models.system_settings import SystemSettings

# Esportazione di tutti i modelli per Alembic
__all__ = [
    "Base",
    "User",
    "Client",
    "Car",
    "Season",
    "Booking",
    "Invoice",
    "Payment",
    "SystemSettings",
]
