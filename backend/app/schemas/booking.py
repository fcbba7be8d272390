"""
Schemas Pydantic per le Prenotazioni
Progetto: Rental Manager (Gestionale Noleggio)

Definisce gli stati della prenotazione, la matrice delle transizioni
e gli schemi di validazione e serializzazione per l'API.
"""

import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from app.core.clock import to_wall_time


# -------------------------------------------------------------------
# Enum per gli stati
# -------------------------------------------------------------------

class BookingStatus(str, Enum):
    """Stati possibili di una prenotazione."""
    PENDING_APPROVAL = "pending_approval"
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CarStatus(str, Enum):
    """Stati possibili di un'auto della flotta."""
    AVAILABLE = "available"
    RENTED = "rented"
    MAINTENANCE = "maintenance"


# -------------------------------------------------------------------
# Matrice delle transizioni di stato valide
# -------------------------------------------------------------------

# Le transizioni automatiche (upcoming -> active -> completed) sono
# eseguite dal controllo periodico degli stati; completed -> active
# solo tramite riattivazione esplicita.
VALID_TRANSITIONS: dict[BookingStatus, list[BookingStatus]] = {
    BookingStatus.PENDING_APPROVAL: [
        BookingStatus.UPCOMING,
        BookingStatus.ACTIVE,
        BookingStatus.CANCELLED,
    ],
    BookingStatus.UPCOMING: [BookingStatus.ACTIVE, BookingStatus.CANCELLED],
    BookingStatus.ACTIVE: [BookingStatus.COMPLETED, BookingStatus.CANCELLED],
    BookingStatus.COMPLETED: [BookingStatus.ACTIVE, BookingStatus.CANCELLED],
    BookingStatus.CANCELLED: [],  # Stato finale
}

# Stati che occupano l'auto ai fini della cancellazione
CAR_OCCUPYING_STATUSES = (BookingStatus.ACTIVE, BookingStatus.UPCOMING)

# Stati che impediscono la cancellazione logica dell'auto
UNRESOLVED_STATUSES = (
    BookingStatus.PENDING_APPROVAL,
    BookingStatus.UPCOMING,
    BookingStatus.ACTIVE,
)


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    """True se la matrice ammette il passaggio da current a target."""
    return target in VALID_TRANSITIONS.get(current, [])


# -------------------------------------------------------------------
# Schemas di input
# -------------------------------------------------------------------

class BookingBase(BaseModel):
    """
    Schema base per le prenotazioni.

    Attributes:
        customer_name: Nome del cliente
        car_id: UUID dell'auto
        start_date: Inizio noleggio
        end_date: Fine noleggio (successiva all'inizio)
        discount_per_day: Sconto giornaliero (>= 0)
    """
    customer_name: str = Field(..., min_length=1, max_length=255, description="Nome del cliente")
    car_id: uuid.UUID = Field(..., description="UUID dell'auto")
    start_date: datetime.datetime = Field(..., description="Inizio noleggio")
    end_date: datetime.datetime = Field(..., description="Fine noleggio")
    discount_per_day: Decimal = Field(
        default=Decimal("0"),
        ge=Decimal("0"),
        description="Sconto giornaliero",
    )

    @field_validator("customer_name")
    @classmethod
    def validate_customer_name(cls, v: str) -> str:
        """Normalizza il nome cliente rimuovendo gli spazi esterni."""
        v = v.strip()
        if not v:
            raise ValueError("Il nome del cliente è obbligatorio")
        return v

    @field_validator("start_date", "end_date")
    @classmethod
    def drop_timezone(cls, v: datetime.datetime) -> datetime.datetime:
        """Le date sono orari locali: un valore con fuso viene convertito."""
        return to_wall_time(v)

    @model_validator(mode="after")
    def validate_period(self) -> "BookingBase":
        """La data di fine deve essere successiva alla data di inizio."""
        if self.end_date <= self.start_date:
            raise ValueError("La data di fine deve essere successiva alla data di inizio")
        return self


class BookingCreate(BookingBase):
    """Schema per la creazione di una prenotazione."""
    pass


class BookingUpdate(BookingBase):
    """
    Schema per la modifica di una prenotazione.

    Sostituisce tutti i campi che influiscono sul prezzo: auto, date, sconto.
    Lo stato NON si cambia da qui (usare le azioni dedicate).
    """
    pass


# -------------------------------------------------------------------
# Schemas di output
# -------------------------------------------------------------------

class BookingRead(BaseModel):
    """Schema per la lettura di una prenotazione."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    car_id: uuid.UUID
    customer_name: str
    start_date: datetime.datetime
    end_date: datetime.datetime
    discount_per_day: Decimal
    total_amount: Decimal
    status: BookingStatus
    created_at: datetime.datetime
    updated_at: datetime.datetime


class BookingBalance(BaseModel):
    """
    Situazione contabile di una prenotazione.

    Attributes:
        total: Totale della prenotazione
        paid: Somma dei pagamenti incassati
        outstanding: Importo ancora da incassare (pending/overdue)
        overpaid: Eccedenza incassata oltre il totale (solo informativa)
    """
    booking_id: uuid.UUID
    total: Decimal
    paid: Decimal
    outstanding: Decimal
    overpaid: Decimal


class BookingList(BaseModel):
    """Risposta paginata delle prenotazioni."""
    items: list[BookingRead]
    total: int
    page: int
    per_page: int
    total_pages: int = 0

    @model_validator(mode="after")
    def compute_total_pages(self) -> "BookingList":
        """Calcola automaticamente il numero totale di pagine."""
        if self.per_page > 0:
            self.total_pages = (self.total + self.per_page - 1) // self.per_page
        return self


class SweepReport(BaseModel):
    """Esito di un passaggio del controllo stati."""
    completed: int = Field(0, description="Prenotazioni attive concluse")
    activated: int = Field(0, description="Prenotazioni in arrivo attivate")
    cars_released: int = Field(0, description="Auto noleggiate senza prenotazione attiva liberate")
    payments_overdue: int = Field(0, description="Pagamenti segnati come scaduti")

    @property
    def changed(self) -> bool:
        """True se il passaggio ha modificato qualcosa."""
        return any((self.completed, self.activated, self.cars_released, self.payments_overdue))
