"""
Schemas Pydantic per il progetto Rental Manager

Questo modulo contiene tutti gli schemi Pydantic utilizzati per la validazione
e serializzazione delle risposte API.
"""

# Import degli schemi per renderli disponibili tramite import diretto
# es: from app.schemas import BookingRead, CarRead, etc.

from app.schemas.booking import (
    VALID_TRANSITIONS,
    BookingBalance,
    BookingCreate,
    BookingList,
    BookingRead,
    BookingStatus,
    BookingUpdate,
    CarStatus,
    SweepReport,
    can_transition,
)
from app.schemas.car import CarCreate, CarList, CarRead, CarUpdate, PriceQuote
from app.schemas.invoice import (
    BookingPaymentRecord,
    InvoiceItem,
    InvoiceRead,
    InvoiceStatus,
    PaymentMethod,
    PaymentRead,
    PaymentRecord,
    PaymentStatus,
)
from app.schemas.season import SeasonCreate, SeasonRead

__all__ = [
    # Booking
    "VALID_TRANSITIONS",
    "BookingBalance",
    "BookingCreate",
    "BookingList",
    "BookingRead",
    "BookingStatus",
    "BookingUpdate",
    "CarStatus",
    "SweepReport",
    "can_transition",
    # Car
    "CarCreate",
    "CarList",
    "CarUpdate",
    "CarRead",
    "PriceQuote",
    # Invoice / Payment
    "BookingPaymentRecord",
    "InvoiceItem",
    "InvoiceRead",
    "InvoiceStatus",
    "PaymentMethod",
    "PaymentRead",
    "PaymentRecord",
    "PaymentStatus",
    # Season
    "SeasonCreate",
    "SeasonRead",
]
