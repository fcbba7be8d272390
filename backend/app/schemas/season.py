"""
Schemas Pydantic per le Stagioni tariffarie
Progetto: Rental Manager (Gestionale Noleggio)
"""

import datetime
import uuid
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SeasonCreate(BaseModel):
    """Schema per la creazione di una stagione."""
    name: str = Field(..., min_length=1, max_length=100, description="Nome della stagione")
    start_date: datetime.date = Field(..., description="Primo giorno (incluso)")
    end_date: datetime.date = Field(..., description="Ultimo giorno (incluso)")
    price_multiplier: Decimal = Field(
        ...,
        gt=Decimal("0"),
        max_digits=6,
        decimal_places=2,
        description="Moltiplicatore della tariffa giornaliera (1.00 = invariata)",
    )

    @model_validator(mode="after")
    def validate_range(self) -> "SeasonCreate":
        """L'ultimo giorno non può precedere il primo."""
        if self.end_date < self.start_date:
            raise ValueError("La data di fine stagione non può precedere la data di inizio")
        return self


class SeasonRead(BaseModel):
    """Schema per la lettura di una stagione."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    start_date: datetime.date
    end_date: datetime.date
    price_multiplier: Decimal
