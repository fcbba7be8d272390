"""
Reset del database: elimina e ricrea tutte le tabelle.
Progetto: Rental Manager (Gestionale Noleggio)

ATTENZIONE: cancella prenotazioni, fatture e pagamenti.
"""

import asyncio
import sys
import os

# Aggiungi backend/ alla PYTHONPATH per importare app.*
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "backend"))

from app.core.database import engine
from app.models import Base


async def reset():
    print(f"Connessione al database, eliminazione di {len(Base.metadata.tables)} tabelle...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        print("Tabelle eliminate. Creazione nuove tabelle...")
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print("Database del noleggio resettato con successo!")

if __name__ == "__main__":
    asyncio.run(reset())
