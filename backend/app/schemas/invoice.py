"""
Schemas Pydantic per Fatture e Pagamenti
Progetto: Rental Manager (Gestionale Noleggio)

Contiene:
- Enums: InvoiceStatus, PaymentStatus, PaymentMethod
- Schemas per le righe fattura
- Schemas per Invoice e Payment
"""

import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# -------------------------------------------------------------------
# Enum
# -------------------------------------------------------------------

class InvoiceStatus(str, Enum):
    """Stato della fattura."""
    PENDING = "pending"
    PAID = "paid"
    VOID = "void"


class PaymentStatus(str, Enum):
    """Stato di un pagamento."""
    PAID = "paid"
    PENDING = "pending"
    OVERDUE = "overdue"


# Pagamenti ancora da incassare
OUTSTANDING_STATUSES = (PaymentStatus.PENDING.value, PaymentStatus.OVERDUE.value)


class PaymentMethod(str, Enum):
    """Metodi di pagamento supportati."""
    CASH = "cash"
    MPESA = "mpesa"
    BANK_TRANSFER = "bank_transfer"
    CARD = "card"
    OTHER = "other"


# -------------------------------------------------------------------
# Righe fattura
# -------------------------------------------------------------------

class InvoiceItem(BaseModel):
    """Riga fattura: importi negativi rappresentano sconti."""
    description: str
    amount: Decimal

    def to_json(self) -> dict[str, Any]:
        """Formato salvato nella colonna JSON (importo come stringa)."""
        return {"description": self.description, "amount": str(self.amount)}


# -------------------------------------------------------------------
# Invoice
# -------------------------------------------------------------------

class InvoiceRead(BaseModel):
    """Schema per la lettura di una fattura."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    booking_id: uuid.UUID
    invoice_number: str
    invoice_date: datetime.date
    items: list[InvoiceItem]
    total: Decimal
    status: InvoiceStatus


# -------------------------------------------------------------------
# Payment
# -------------------------------------------------------------------

class PaymentRecord(BaseModel):
    """
    Registrazione di un incasso.

    Se amount è omesso nel saldo di un pagamento specifico,
    il pagamento viene incassato per intero.
    """
    amount: Optional[Decimal] = Field(None, gt=Decimal("0"), description="Importo incassato")
    method: PaymentMethod = Field(..., description="Metodo di pagamento")


class BookingPaymentRecord(PaymentRecord):
    """Incasso registrato su una prenotazione: l'importo è obbligatorio."""
    amount: Decimal = Field(..., gt=Decimal("0"), description="Importo incassato")


class PaymentRead(BaseModel):
    """Schema per la lettura di un pagamento."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    booking_id: uuid.UUID
    amount: Decimal
    due_date: datetime.date
    status: PaymentStatus
    method: Optional[PaymentMethod]

    @field_validator("method", mode="before")
    @classmethod
    def empty_method_is_none(cls, v):
        return v or None
