"""
Dependency Injection per l'utente corrente
Progetto: Rental Manager (Gestionale Noleggio)

L'autenticazione è gestita a monte (gateway/front-end): il motore
riceve l'identità dell'utente nell'header X-User-Id e ne verifica
solo esistenza, stato e ruolo.
"""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User


async def get_current_user(
    x_user_id: Optional[str] = Header(None, description="UUID dell'utente autenticato"),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency per ottenere l'utente corrente dall'header X-User-Id.

    Args:
        x_user_id: UUID dell'utente, impostato dallo strato di autenticazione
        db: Sessione database

    Returns:
        L'utente corrente

    Raises:
        HTTPException 401: Se l'header manca, non è valido o l'utente non è attivo
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Utente non identificato",
        )

    try:
        user_id = UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="ID utente non valido",
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Utente non trovato",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Utente disattivato",
        )

    return user


def require_role(*allowed_roles: str):
    """
    Factory function per creare una dependency che verifica il ruolo.

    Args:
        allowed_roles: Ruoli permessi per l'endpoint

    Returns:
        Dependency che verifica il ruolo dell'utente

    Example:
        @router.post("/sweep")
        async def sweep(admin: User = Depends(require_role("admin"))):
            ...
    """
    async def role_checker(
        current_user: Annotated[User, Depends(get_current_user)]
    ) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Accesso negato. Ruolo richiesto: {', '.join(allowed_roles)}",
            )
        return current_user

    return role_checker


# Type aliases per uso comune
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_role("admin"))]


# Export
__all__ = [
    "get_current_user",
    "require_role",
    "CurrentUser",
    "AdminUser",
]
