"""
Modello SQLAlchemy per l'entità Season
Progetto: Rental Manager (Gestionale Noleggio)
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models import Base
from app.models.mixins import TimestampMixin, UUIDMixin


class Season(Base, UUIDMixin, TimestampMixin):
    """
    Stagione tariffaria.

    Intervallo di date inclusivo [start_date, end_date] con un
    moltiplicatore applicato alla tariffa giornaliera (1.00 = invariata).
    Stagioni sovrapposte sono ammesse.
    """

    __tablename__ = "seasons"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    price_multiplier: Mapped[Decimal] = mapped_column(
        Numeric(6, 2),
        nullable=False,
        default=Decimal("1.00"),
        doc="Moltiplicatore della tariffa giornaliera",
    )

    __table_args__ = (
        Index("ix_seasons_range", "start_date", "end_date"),
        CheckConstraint("end_date >= start_date", name="ck_seasons_range"),
        CheckConstraint("price_multiplier > 0", name="ck_seasons_multiplier_positive"),
    )

    def contains(self, day: date) -> bool:
        """True se il giorno cade nella stagione (estremi inclusi)."""
        return self.start_date <= day <= self.end_date

    def __repr__(self) -> str:
        return f"<Season(name={self.name}, {self.start_date}..{self.end_date}, x{self.price_multiplier})>"
