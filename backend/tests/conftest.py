"""
Pytest configuration and fixtures per i test del motore prenotazioni.

I test dei service girano su un database SQLite in memoria (aiosqlite)
con le tabelle create da Base.metadata; l'ora corrente è fissata da
un FixedClock, così gli stati derivati dal tempo sono deterministici.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.clock import FixedClock
from app.models import Base, Booking, Car, Season, User
from app.models.user import UserRole
from app.services.booking_service import BookingService
from app.services.ledger_service import LedgerService
from app.services.sweeper_service import StatusSweeper

# Istante di riferimento dei test: martedì 10 marzo 2026, ore 09:00
NOW = datetime(2026, 3, 10, 9, 0)


# ============================================================
# Fixtures per il database
# ============================================================


@pytest_asyncio.fixture
async def engine():
    """Engine SQLite in memoria condiviso dalla singola connessione."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(engine) -> AsyncGenerator[AsyncSession, None]:
    """Sessione con la stessa configurazione dell'applicazione."""
    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db():
    """Crea un mock di AsyncSession."""
    db = AsyncMock(spec=AsyncSession)
    db.execute = AsyncMock()
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    return db


# ============================================================
# Fixtures per orologio e service
# ============================================================


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def booking_service(clock) -> BookingService:
    return BookingService(clock=clock)


@pytest.fixture
def ledger(clock) -> LedgerService:
    return LedgerService(clock=clock)


@pytest.fixture
def sweeper(clock) -> StatusSweeper:
    return StatusSweeper(clock=clock)


# ============================================================
# Fixtures per utenti, auto e stagioni
# ============================================================


@pytest_asyncio.fixture
async def admin(db) -> User:
    user = User(email="admin@dunat.example", full_name="Amministratore", role=UserRole.ADMIN.value)
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def owner(db) -> User:
    user = User(email="owner@dunat.example", full_name="Proprietario", role=UserRole.OWNER.value)
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def other_owner(db) -> User:
    user = User(email="other@dunat.example", full_name="Altro Proprietario", role=UserRole.OWNER.value)
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
def make_car(db):
    """Factory per creare auto con valori di default."""
    async def _make_car(
        owner: User = None,
        daily_rate: str = "5000",
        plate: str = None,
        make: str = "Toyota",
        model: str = "Prado",
        status: str = "available",
    ) -> Car:
        car = Car(
            id=uuid.uuid4(),
            owner_id=owner.id if owner else None,
            plate=plate or f"KDA{uuid.uuid4().hex[:4].upper()}",
            make=make,
            model=model,
            daily_rate=Decimal(daily_rate),
            status=status,
        )
        db.add(car)
        await db.commit()
        return car

    return _make_car


@pytest.fixture
def make_booking(db):
    """
    Factory per inserire prenotazioni direttamente nel database,
    senza fattura né pagamenti (bypassa i controlli del service).
    """
    async def _make_booking(
        car: Car,
        start: datetime,
        end: datetime,
        status: str = "upcoming",
        customer_name: str = "Cliente Diretto",
        total_amount: str = "0",
    ) -> Booking:
        booking = Booking(
            id=uuid.uuid4(),
            car_id=car.id,
            customer_name=customer_name,
            start_date=start,
            end_date=end,
            discount_per_day=Decimal("0"),
            total_amount=Decimal(total_amount),
            status=status,
        )
        db.add(booking)
        await db.commit()
        return booking

    return _make_booking


@pytest.fixture
def make_season(db):
    """Factory per creare stagioni."""
    async def _make_season(
        start: date,
        end: date,
        multiplier: str,
        name: str = "Alta stagione",
    ) -> Season:
        season = Season(
            name=name,
            start_date=start,
            end_date=end,
            price_multiplier=Decimal(multiplier),
        )
        db.add(season)
        await db.commit()
        return season

    return _make_season
