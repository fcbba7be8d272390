"""
Schemas Pydantic per le Auto
Progetto: Rental Manager (Gestionale Noleggio)
"""

import datetime
import re
import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.booking import CarStatus


def normalize_plate(plate: str) -> str:
    """
    Normalizza la targa: maiuscolo, senza spazi.

    Raises:
        ValueError: Se il formato non è valido
    """
    normalized = plate.strip().upper().replace(" ", "")
    if not re.match(r"^[A-Z0-9-]{2,20}$", normalized):
        raise ValueError(
            "Targa non valida: deve contenere 2-20 caratteri alfanumerici"
        )
    return normalized


class CarCreate(BaseModel):
    """
    Schema per l'inserimento di un'auto in flotta.

    Se owner_id è omesso da un proprietario, l'auto viene assegnata a lui.
    """
    plate: str = Field(..., description="Targa")
    make: str = Field(..., min_length=1, max_length=100, description="Marca")
    model: str = Field(..., min_length=1, max_length=100, description="Modello")
    year: Optional[int] = Field(None, ge=1950, le=2100, description="Anno di immatricolazione")
    daily_rate: Decimal = Field(..., gt=Decimal("0"), description="Tariffa giornaliera base")
    owner_id: Optional[uuid.UUID] = Field(None, description="UUID del proprietario")

    @field_validator("plate")
    @classmethod
    def validate_plate(cls, v: str) -> str:
        return normalize_plate(v)


class CarUpdate(BaseModel):
    """
    Schema per la modifica di un'auto (aggiornamento parziale).

    La targa e il proprietario non si modificano. Lo stato ammette
    solo available e maintenance: rented segue le prenotazioni attive.
    """
    make: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    year: Optional[int] = Field(None, ge=1950, le=2100)
    daily_rate: Optional[Decimal] = Field(None, gt=Decimal("0"))
    status: Optional[CarStatus] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[CarStatus]) -> Optional[CarStatus]:
        if v == CarStatus.RENTED:
            raise ValueError("Lo stato noleggiata deriva dalle prenotazioni attive")
        return v


class CarRead(BaseModel):
    """Schema per la lettura di un'auto."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    owner_id: Optional[uuid.UUID]
    plate: str
    make: str
    model: str
    year: Optional[int]
    daily_rate: Decimal
    status: CarStatus
    deleted_at: Optional[datetime.datetime]


class PriceQuote(BaseModel):
    """
    Preventivo calcolato dal motore prezzi (nulla viene salvato).

    Attributes:
        total_days: Giorni fatturabili
        base_amount: Importo prima dello sconto
        discount_total: Sconto complessivo (sconto giornaliero x giorni)
        total: Totale da pagare
    """
    car_id: uuid.UUID
    start_date: datetime.datetime
    end_date: datetime.datetime
    total_days: int
    base_amount: Decimal
    discount_total: Decimal
    total: Decimal


class CarList(BaseModel):
    """Risposta paginata delle auto."""
    items: list[CarRead]
    total: int
    page: int
    per_page: int
