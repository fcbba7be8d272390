"""
Modello SQLAlchemy per l'entità User
Progetto: Rental Manager (Gestionale Noleggio)

Utenti del gestionale. L'autenticazione è esterna al motore:
qui interessano solo identità e ruolo, usati per i controlli
di proprietà sulle auto e sulle prenotazioni.
"""

from __future__ import annotations
from enum import Enum
from typing import TYPE_CHECKING, List

from sqlalchemy import Boolean, CheckConstraint, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from app.models.car import Car


class UserRole(str, Enum):
    """Ruoli utente nel sistema."""
    ADMIN = "admin"
    OWNER = "owner"


class User(Base, UUIDMixin, TimestampMixin):
    """
    Modello per gli utenti del sistema.

    Attributes:
        id: UUID primary key, generato automaticamente
        email: Email univoca dell'utente
        full_name: Nome completo dell'utente
        role: admin (privilegiato) oppure owner (proprietario di auto)
        is_active: Indica se l'utente è attivo
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        doc="Email univoca dell'utente",
    )

    full_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Nome completo dell'utente",
    )

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserRole.OWNER.value,
        doc="Ruolo dell'utente",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        doc="Indica se l'utente è attivo",
    )

    cars: Mapped[List["Car"]] = relationship(
        "Car",
        back_populates="owner",
        lazy="raise",
        doc="Auto di proprietà dell'utente",
    )

    @property
    def is_admin(self) -> bool:
        """True se l'utente ha privilegi di amministratore."""
        return self.role == UserRole.ADMIN.value

    __table_args__ = (
        Index("ix_users_role", "role"),
        CheckConstraint("role IN ('admin', 'owner')", name="ck_users_role"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
