"""
Modello SQLAlchemy per l'entità Booking
Progetto: Rental Manager (Gestionale Noleggio)

Rappresenta le prenotazioni di noleggio.
"""

import datetime
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import TimestampMixin, UUIDMixin

# Import per type hinting relazioni (evita circular import)
if TYPE_CHECKING:
    from app.models.car import Car
    from app.models.invoice import Invoice
    from app.models.payment import Payment


class Booking(Base, UUIDMixin, TimestampMixin):
    """
    Modello per le prenotazioni.

    Il totale è calcolato dal motore prezzi al momento della creazione
    o dell'ultima modifica e salvato: non viene ricalcolato in lettura.
    Lo stato della prenotazione è la fonte di verità per lo stato dell'auto.

    Attributes:
        id: UUID primary key, generato automaticamente
        car_id: UUID dell'auto prenotata
        customer_name: Nome cliente (testo libero, non normalizzato)
        start_date: Inizio noleggio (orario locale, senza fuso)
        end_date: Fine noleggio (strettamente successiva all'inizio)
        discount_per_day: Sconto giornaliero (>= 0)
        total_amount: Totale calcolato giorno per giorno
        status: pending_approval | upcoming | active | completed | cancelled

    Relationships:
        car: Auto prenotata
        invoice: Fattura (1:1)
        payments: Pagamenti registrati
    """

    __tablename__ = "bookings"

    # ------------------------------------------------------------
    # Colonne Relazione
    # ------------------------------------------------------------
    car_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("cars.id", ondelete="RESTRICT"),
        nullable=False,
        doc="UUID dell'auto prenotata",
    )

    customer_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Nome del cliente (testo libero)",
    )

    # ------------------------------------------------------------
    # Colonne Periodo e Importi
    # ------------------------------------------------------------
    start_date: Mapped[datetime.datetime] = mapped_column(
        DateTime,
        nullable=False,
        doc="Inizio noleggio",
    )

    end_date: Mapped[datetime.datetime] = mapped_column(
        DateTime,
        nullable=False,
        doc="Fine noleggio",
    )

    discount_per_day: Mapped[Decimal] = mapped_column(
        Numeric(14, 4),
        nullable=False,
        default=Decimal("0"),
        doc="Sconto giornaliero",
    )

    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 4),
        nullable=False,
        doc="Totale noleggio calcolato",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="upcoming",
        doc="Stato della prenotazione",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    car: Mapped["Car"] = relationship(
        "Car",
        back_populates="bookings",
        lazy="selectin",
        doc="Auto prenotata",
    )

    invoice: Mapped[Optional["Invoice"]] = relationship(
        "Invoice",
        back_populates="booking",
        uselist=False,
        lazy="selectin",
        doc="Fattura della prenotazione",
    )

    payments: Mapped[List["Payment"]] = relationship(
        "Payment",
        back_populates="booking",
        lazy="selectin",
        order_by="Payment.created_at",
        doc="Pagamenti della prenotazione",
    )

    # ------------------------------------------------------------
    # Indici e Vincoli
    # ------------------------------------------------------------
    __table_args__ = (
        # Ricerca sovrapposizioni per auto
        Index("ix_bookings_car_period", "car_id", "start_date", "end_date"),
        Index("ix_bookings_status", "status"),
        CheckConstraint("end_date > start_date", name="ck_bookings_period"),
        CheckConstraint("discount_per_day >= 0", name="ck_bookings_discount_positive"),
        CheckConstraint("total_amount >= 0", name="ck_bookings_total_positive"),
        CheckConstraint(
            "status IN ('pending_approval', 'upcoming', 'active', 'completed', 'cancelled')",
            name="ck_bookings_status",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, car={self.car_id}, "
            f"{self.start_date}..{self.end_date}, status={self.status})>"
        )
