"""
Modello SQLAlchemy per l'entità Client
Progetto: Rental Manager (Gestionale Noleggio)

Anagrafica minima dei clienti del noleggio.
"""


from __future__ import annotations
from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models import Base
from app.models.mixins import TimestampMixin, UUIDMixin


class Client(Base, UUIDMixin, TimestampMixin):
    """
    Modello per l'anagrafica clienti.

    Le prenotazioni salvano il nome del cliente come testo libero
    (Booking.customer_name): questa tabella è un indice secondario
    popolato "best effort" alla creazione/modifica delle prenotazioni,
    senza chiave esterna verso Booking.

    Attributes:
        id: UUID primary key, generato automaticamente
        name: Nome del cliente, univoco
        phone: Numero di telefono
        email: Indirizzo email
        notes: Note aggiuntive
    """

    __tablename__ = "clients"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        doc="Nome del cliente (come digitato nella prenotazione)",
    )

    phone: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        doc="Numero di telefono",
    )

    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Indirizzo email",
    )

    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Note aggiuntive sul cliente",
    )

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, name={self.name})>"
