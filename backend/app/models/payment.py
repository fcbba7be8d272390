"""
Modello SQLAlchemy per i Pagamenti
Progetto: Rental Manager (Gestionale Noleggio)
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from app.models.booking import Booking


class Payment(Base, UUIDMixin, TimestampMixin):
    """
    Modello per i pagamenti di una prenotazione.

    Alla creazione della prenotazione viene registrato un pagamento
    pending pari al totale, con scadenza alla data di fine noleggio.
    Per ogni prenotazione esiste al più un pagamento da incassare
    (pending o overdue): gli incassi parziali lo riducono e creano
    un pagamento paid separato.

    Attributes:
        id: UUID primary key, generato automaticamente
        booking_id: UUID della prenotazione
        amount: Importo
        due_date: Data di scadenza
        status: paid | pending | overdue
        method: Metodo di pagamento (solo per pagamenti incassati)
    """

    __tablename__ = "payments"

    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        doc="UUID della prenotazione",
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 4),
        nullable=False,
        doc="Importo del pagamento",
    )

    due_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        doc="Data di scadenza",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        doc="Stato: paid, pending, overdue",
    )

    method: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        doc="Metodo di pagamento",
    )

    booking: Mapped["Booking"] = relationship(
        "Booking",
        back_populates="payments",
        doc="Prenotazione associata",
    )

    __table_args__ = (
        Index("ix_payments_booking_status", "booking_id", "status"),
        Index("ix_payments_due_date", "due_date"),
        CheckConstraint("amount >= 0", name="ck_payments_amount_positive"),
        CheckConstraint(
            "status IN ('paid', 'pending', 'overdue')",
            name="ck_payments_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, amount={self.amount}, status={self.status}, method={self.method})>"
