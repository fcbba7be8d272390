"""
API v1 Routes
Progetto: Rental Manager (Gestionale Noleggio)

Router versione 1 dell'API.
"""

from fastapi import APIRouter

from app.api.v1 import bookings, cars, invoices, payments, seasons

# Router aggregato per v1
api_v1_router = APIRouter(prefix="/api/v1")

# Includi i router dei moduli
api_v1_router.include_router(bookings.router)
api_v1_router.include_router(payments.router)
api_v1_router.include_router(invoices.router)
api_v1_router.include_router(cars.router)
api_v1_router.include_router(seasons.router)

# Esportazione
__all__ = ["api_v1_router"]
