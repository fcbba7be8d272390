"""
Modello SQLAlchemy per la Fatturazione
Progetto: Rental Manager (Gestionale Noleggio)

Una fattura per prenotazione, con righe salvate come lista ordinata
di {description, amount} (importi negativi = sconti).
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, JSON, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import TimestampMixin, UUIDMixin

# Import per type hinting relazioni (evita circular import)
if TYPE_CHECKING:
    from app.models.booking import Booking


class Invoice(Base, UUIDMixin, TimestampMixin):
    """
    Modello per le fatture.

    Creata una sola volta alla creazione della prenotazione e poi
    aggiornata sul posto. Il totale coincide con quello della
    prenotazione dopo ogni modifica; lo stato è void se e solo se la
    prenotazione è annullata, altrimenti deriva dai pagamenti.

    Attributes:
        id: UUID primary key, generato automaticamente
        booking_id: UUID della prenotazione (relazione 1:1)
        invoice_number: Numero fattura ({prefix}/I/{counter}/{anno})
        invoice_date: Data fattura (data di inizio noleggio)
        items: Righe fattura [{"description": str, "amount": str}]
        total: Totale fattura
        status: pending | paid | void

    Relationships:
        booking: Prenotazione associata
    """

    __tablename__ = "invoices"

    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        doc="UUID della prenotazione (relazione 1:1)",
    )

    invoice_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        doc="Numero fattura progressivo",
    )

    invoice_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        doc="Data fattura",
    )

    # Gli importi sono salvati come stringhe per preservare i Decimal in JSON
    items: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        doc="Righe fattura ordinate",
    )

    total: Mapped[Decimal] = mapped_column(
        Numeric(14, 4),
        nullable=False,
        doc="Totale fattura",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        doc="Stato: pending, paid, void",
    )

    booking: Mapped["Booking"] = relationship(
        "Booking",
        back_populates="invoice",
        doc="Prenotazione associata",
    )

    @property
    def lines(self) -> list[tuple[str, Decimal]]:
        """Righe fattura come coppie (descrizione, importo Decimal)."""
        return [(item["description"], Decimal(str(item["amount"]))) for item in self.items]

    __table_args__ = (
        Index("ix_invoices_invoice_date", "invoice_date"),
        CheckConstraint("total >= 0", name="ck_invoices_total_positive"),
        CheckConstraint(
            "status IN ('pending', 'paid', 'void')",
            name="ck_invoices_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<Invoice(id={self.id}, number={self.invoice_number}, total={self.total}, status={self.status})>"
