"""
Modello SQLAlchemy per le impostazioni di sistema
Progetto: Rental Manager (Gestionale Noleggio)
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models import Base
from app.models.mixins import TimestampMixin, UUIDMixin


class SystemSettings(Base, UUIDMixin, TimestampMixin):
    """
    Record singleton con il contatore fatture e i dati aziendali.

    last_invoice_counter cresce in modo monotono di un passo fisso per
    ogni fattura emessa; va letto e aggiornato sotto lock di riga.
    """

    __tablename__ = "system_settings"

    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    company_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    company_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    company_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="KES")
    vat_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("16.00"))

    last_invoice_counter: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Ultimo valore del contatore usato per la numerazione fatture",
    )

    __table_args__ = (
        CheckConstraint("last_invoice_counter >= 0", name="ck_system_settings_counter"),
    )

    def __repr__(self) -> str:
        return f"<SystemSettings(company={self.company_name}, counter={self.last_invoice_counter})>"
