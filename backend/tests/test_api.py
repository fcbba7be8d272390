"""
Test degli endpoint HTTP.

Il database dell'applicazione viene sostituito con la sessione SQLite
dei test tramite dependency_overrides; l'utente è indicato
nell'header X-User-Id.
"""

from decimal import Decimal

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.database import get_db
from app.main import app

# Date lontane nel futuro: il controllo stati sulla lista usa l'orologio reale
START = "2030-06-01T10:00:00"
END = "2030-06-06T10:00:00"


@pytest_asyncio.fixture
async def client(db):
    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


def as_user(user) -> dict[str, str]:
    return {"X-User-Id": str(user.id)}


class TestHealth:
    """Test per /health."""

    async def test_health(self, client):
        """Test stato dell'applicazione."""
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestBookingEndpoints:
    """Test per /api/v1/bookings."""

    async def test_missing_user_header(self, client):
        """Test senza X-User-Id -> 401."""
        response = await client.get("/api/v1/bookings/")
        assert response.status_code == 401

    async def test_create_booking(self, client, admin, make_car):
        """Test creazione: 201 con esito uniforme."""
        car = await make_car()
        response = await client.post(
            "/api/v1/bookings/",
            json={"customer_name": "Mario Rossi", "car_id": str(car.id), "start_date": START, "end_date": END},
            headers=as_user(admin),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert "upcoming" in body["message"]

        listing = await client.get("/api/v1/bookings/", headers=as_user(admin))
        assert listing.status_code == 200
        items = listing.json()["items"]
        assert len(items) == 1
        assert Decimal(items[0]["total_amount"]) == Decimal("25000")

    async def test_validation_error_shape(self, client, admin, make_car):
        """Test fine precedente all'inizio: 422 con errori per campo."""
        car = await make_car()
        response = await client.post(
            "/api/v1/bookings/",
            json={"customer_name": "Mario Rossi", "car_id": str(car.id), "start_date": END, "end_date": START},
            headers=as_user(admin),
        )

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["errors"]

    async def test_conflict_returns_409(self, client, admin, make_car):
        """Test prenotazione sovrapposta: 409 con success false."""
        car = await make_car()
        payload = {"customer_name": "Mario Rossi", "car_id": str(car.id), "start_date": START, "end_date": END}
        first = await client.post("/api/v1/bookings/", json=payload, headers=as_user(admin))
        assert first.status_code == 201

        second = await client.post("/api/v1/bookings/", json=payload, headers=as_user(admin))
        assert second.status_code == 409
        assert second.json()["success"] is False

    async def test_sweep_requires_admin(self, client, owner):
        """Test il controllo stati manuale è riservato agli amministratori."""
        response = await client.post("/api/v1/bookings/sweep", headers=as_user(owner))
        assert response.status_code == 403


class TestCarEndpoints:
    """Test per /api/v1/cars."""

    async def test_quote(self, client, admin, make_car):
        """Test preventivo senza salvare nulla."""
        car = await make_car()
        response = await client.get(
            f"/api/v1/cars/{car.id}/quote",
            params={"start_date": START, "end_date": END, "discount_per_day": "1000"},
            headers=as_user(admin),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["total_days"] == 5
        assert Decimal(body["total"]) == Decimal("20000")

    async def test_quote_invalid_period(self, client, admin, make_car):
        """Test periodo non valido: 422 con errore sul campo end_date."""
        car = await make_car()
        response = await client.get(
            f"/api/v1/cars/{car.id}/quote",
            params={"start_date": END, "end_date": START},
            headers=as_user(admin),
        )

        assert response.status_code == 422
        assert "end_date" in response.json()["errors"]

    async def test_update_car_to_maintenance(self, client, owner, make_car):
        """Test PUT: il proprietario mette l'auto in manutenzione."""
        car = await make_car(owner=owner)
        response = await client.put(
            f"/api/v1/cars/{car.id}",
            json={"status": "maintenance", "daily_rate": "7000"},
            headers=as_user(owner),
        )

        assert response.status_code == 200
        assert response.json()["success"] is True

        detail = await client.get(f"/api/v1/cars/{car.id}", headers=as_user(owner))
        assert detail.json()["status"] == "maintenance"
        assert Decimal(detail.json()["daily_rate"]) == Decimal("7000")
