"""
Modello SQLAlchemy per l'entità Car
Progetto: Rental Manager (Gestionale Noleggio)

Rappresenta le auto della flotta.
"""

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import TimestampMixin, UUIDMixin, SoftDeleteMixin

# Import per type hinting relazioni (evita circular import)
if TYPE_CHECKING:
    from app.models.booking import Booking
    from app.models.user import User


class Car(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """
    Modello per le auto della flotta.

    Lo stato (available, rented, maintenance) è mantenuto coerente con
    le prenotazioni dal motore: una prenotazione attiva implica auto
    noleggiata. Un'auto con prenotazioni non concluse non può essere
    eliminata, solo cancellata logicamente (deleted_at).

    Attributes:
        id: UUID primary key, generato automaticamente
        owner_id: UUID del proprietario (opzionale, auto in conto terzi)
        plate: Targa del veicolo (obbligatoria, univoca)
        make: Marca
        model: Modello
        year: Anno di immatricolazione (opzionale)
        daily_rate: Tariffa giornaliera base
        status: available | rented | maintenance
        deleted_at: Data/ora di cancellazione logica

    Relationships:
        owner: Utente proprietario
        bookings: Prenotazioni dell'auto
    """

    __tablename__ = "cars"

    # ------------------------------------------------------------
    # Colonne Relazione Proprietario
    # ------------------------------------------------------------
    owner_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        doc="UUID dell'utente proprietario",
    )

    # ------------------------------------------------------------
    # Colonne Dati Auto
    # ------------------------------------------------------------
    plate: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        unique=True,
        doc="Targa del veicolo",
    )

    make: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Marca del veicolo",
    )

    model: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Modello del veicolo",
    )

    year: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        doc="Anno di immatricolazione",
    )

    daily_rate: Mapped[Decimal] = mapped_column(
        Numeric(14, 4),
        nullable=False,
        doc="Tariffa giornaliera base",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="available",
        doc="Stato: available, rented, maintenance",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    owner: Mapped[Optional["User"]] = relationship(
        "User",
        back_populates="cars",
        lazy="selectin",
        doc="Proprietario dell'auto",
    )

    bookings: Mapped[List["Booking"]] = relationship(
        "Booking",
        back_populates="car",
        lazy="raise",
        doc="Prenotazioni dell'auto",
    )

    # ------------------------------------------------------------
    # Indici e Vincoli
    # ------------------------------------------------------------
    __table_args__ = (
        Index("ix_cars_owner_id", "owner_id"),
        Index("ix_cars_status", "status"),
        CheckConstraint("daily_rate >= 0", name="ck_cars_daily_rate_positive"),
        CheckConstraint(
            "status IN ('available', 'rented', 'maintenance')",
            name="ck_cars_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<Car(id={self.id}, plate={self.plate}, status={self.status})>"

    @property
    def display_name(self) -> str:
        """
        Nome visualizzato dell'auto.

        Returns:
            Stringa formattata: "Marca Modello"
        """
        return f"{self.make} {self.model}"
