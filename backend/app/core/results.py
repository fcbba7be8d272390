"""
Esito uniforme delle operazioni
Progetto: Rental Manager (Gestionale Noleggio)

Le operazioni che modificano dati rispondono sempre con
{success, message, errors?}. Gli errori di dominio vengono recuperati
qui e non arrivano mai al chiamante come eccezioni.
"""

import logging
from typing import Any, Awaitable, Callable, Optional, Union

from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AppException

# Logger per questo modulo
logger = logging.getLogger(__name__)


class OperationResult(BaseModel):
    """
    Risultato di un'operazione di modifica.

    Attributes:
        success: True se l'operazione è stata applicata
        message: Messaggio leggibile per l'utente
        errors: Errori di validazione per campo (solo in caso di fallimento)
    """
    success: bool = Field(..., description="Esito dell'operazione")
    message: str = Field(..., description="Messaggio per l'utente")
    errors: Optional[dict[str, list[str]]] = Field(
        default=None,
        description="Errori di validazione per campo",
    )
    status_code: int = Field(
        default=200,
        exclude=True,
        description="Status HTTP della risposta (non serializzato)",
    )

    @classmethod
    def ok(cls, message: str) -> "OperationResult":
        return cls(success=True, message=message)

    @classmethod
    def from_exception(cls, exc: AppException) -> "OperationResult":
        """Converte un errore di dominio nel formato uniforme."""
        return cls(
            success=False,
            message=exc.detail,
            errors=exc.field_errors,
            status_code=exc.status_code,
        )

    @classmethod
    def from_validation_errors(cls, errors: list[dict[str, Any]]) -> "OperationResult":
        """
        Converte gli errori pydantic (lista di dict con "loc" e "msg")
        in errori per campo.
        """
        field_errors: dict[str, list[str]] = {}
        for error in errors:
            # "loc" inizia con "body"/"query" quando arriva da FastAPI
            loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
            field = ".".join(loc) or "__root__"
            field_errors.setdefault(field, []).append(error.get("msg", "Valore non valido"))
        return cls(
            success=False,
            message="Validazione dati fallita",
            errors=field_errors,
            status_code=422,
        )


SuccessMessage = Union[str, Callable[[Any], str]]


async def run_operation(
    db: AsyncSession,
    operation: Awaitable[Any],
    success_message: SuccessMessage,
    failure_message: str,
) -> OperationResult:
    """
    Esegue un'operazione del motore e ne restituisce l'esito uniforme.

    - Errori di dominio (AppException): rollback, success=False con il messaggio dell'errore
    - Errori di validazione pydantic: rollback, success=False con errori per campo
    - Errori del database (SQLAlchemyError): rollback, log con traceback,
      success=False con messaggio generico
    - Qualsiasi altra eccezione viene propagata (gestita come 500 da FastAPI)

    Args:
        db: Sessione database usata dall'operazione
        operation: Coroutine dell'operazione da eseguire
        success_message: Messaggio di successo, o funzione che lo calcola dal risultato
        failure_message: Messaggio generico in caso di errore del database

    Returns:
        OperationResult: Esito dell'operazione
    """
    try:
        result = await operation
    except AppException as exc:
        await db.rollback()
        logger.info("Operazione rifiutata (%s): %s", exc.error_code, exc.detail)
        return OperationResult.from_exception(exc)
    except PydanticValidationError as exc:
        await db.rollback()
        return OperationResult.from_validation_errors(exc.errors())
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("%s: %s", failure_message, exc)
        return OperationResult(success=False, message=failure_message, status_code=500)

    if callable(success_message):
        return OperationResult.ok(success_message(result))
    return OperationResult.ok(success_message)


def to_response(result: OperationResult, success_status: int = 200) -> JSONResponse:
    """
    Risposta HTTP per un OperationResult.

    In caso di successo usa success_status, altrimenti lo status
    associato all'errore.
    """
    status_code = success_status if result.success else result.status_code
    return JSONResponse(status_code=status_code, content=result.model_dump(exclude_none=True))
