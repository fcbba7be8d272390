"""
Eccezioni Custom per l'applicazione.
Progetto: Rental Manager (Gestionale Noleggio)

Definisce eccezioni specifiche del dominio per una gestione
centralizzata degli errori.

Ogni eccezione porta uno status_code HTTP e un error_code stabile.
Al confine delle operazioni (app.core.results.run_operation) vengono
convertite nel formato uniforme {success, message, errors}.

NOTA: BusinessValidationError è volutamente distinta da pydantic.ValidationError.
- pydantic.ValidationError: errori di formato/tipo nei dati di input (gestiti da FastAPI → 422)
- BusinessValidationError: violazioni delle regole di dominio rilevate dal motore (→ 422)
"""

from typing import Any, Dict, List, Optional

__all__ = [
    "AppException",
    "NotFoundError",
    "DuplicateError",
    "BusinessValidationError",
    "ValidationError",       # alias di BusinessValidationError
    "ConflictError",
    "InvalidStateError",
    "AuthorizationError",
]


class AppException(Exception):
    """
    Base exception per l'applicazione.

    Tutte le eccezioni custom ereditano da questa classe base.

    Attributes:
        status_code: HTTP status code da restituire al client
        error_code: Identificativo univoco dell'errore per il frontend
        detail: Messaggio di errore leggibile per l'utente
        extra: Dizionario con dati aggiuntivi per il frontend
    """

    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        detail: str,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Inizializza l'eccezione.

        Args:
            detail: Messaggio di errore dettagliato
            error_code: Identificativo univoco (default: quello di classe)
            extra: Dati aggiuntivi da passare al frontend (default: None)
        """
        self.detail = detail
        self.error_code = error_code if error_code is not None else self.error_code
        self.extra = extra
        self.status_code = self.__class__.status_code
        super().__init__(detail)

    @property
    def field_errors(self) -> Optional[Dict[str, List[str]]]:
        """Errori per campo, se presenti in extra["errors"]."""
        if self.extra and "errors" in self.extra:
            return self.extra["errors"]
        return None


class NotFoundError(AppException):
    """
    Eccezione sollevata quando una risorsa non viene trovata.

    Utilizzata quando prenotazione, auto, fattura o pagamento non esistono.
    """

    status_code: int = 404
    error_code: str = "RESOURCE_NOT_FOUND"

    def __init__(
        self,
        detail: str = "Risorsa non trovata",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class DuplicateError(AppException):
    """
    Eccezione sollevata quando si tenta di creare una risorsa duplicata.

    Utilizzata per violazioni di vincoli unique (es. numero fattura).
    """

    status_code: int = 409
    error_code: str = "DUPLICATE_RESOURCE"

    def __init__(
        self,
        detail: str = "Risorsa già esistente",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class BusinessValidationError(ValueError, AppException):
    """
    Eccezione sollevata per dati non validi rilevati dal motore.

    Eredita da ValueError per essere catturata dai validatori Pydantic.
    Gli errori per campo viaggiano in extra={"errors": {campo: [messaggi]}}.

    Esempi di utilizzo:
        - "La data di fine deve essere successiva alla data di inizio"
        - "L'importo del pagamento deve essere positivo"
    """

    status_code: int = 422
    error_code: str = "BUSINESS_VALIDATION_ERROR"

    def __init__(
        self,
        detail: str = "Validazione dati fallita",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        # Chiama AppException.__init__ direttamente per evitare ValueError
        AppException.__init__(self, detail, error_code, extra)

    @classmethod
    def for_field(cls, field: str, message: str) -> "BusinessValidationError":
        """Crea l'eccezione con un singolo errore associato a un campo."""
        return cls("Validazione dati fallita", extra={"errors": {field: [message]}})


# Alias per compatibilità
ValidationError = BusinessValidationError


class ConflictError(AppException):
    """
    Eccezione sollevata per conflitti con dati esistenti.

    Esempi di utilizzo:
        - "L'auto è già prenotata per queste date"
        - "Esiste già un'auto con questa targa"
    """

    status_code: int = 409
    error_code: str = "CONFLICT"

    def __init__(
        self,
        detail: str = "Conflitto con dati esistenti",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class InvalidStateError(AppException):
    """
    Eccezione sollevata quando lo stato corrente non permette l'operazione.

    Esempi di utilizzo:
        - "Solo le prenotazioni attive possono essere completate"
        - "La prenotazione non è in attesa di approvazione"
    """

    status_code: int = 409
    error_code: str = "CONFLICT_STATE"

    def __init__(
        self,
        detail: str = "Conflitto di stato",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class AuthorizationError(AppException):
    """
    Eccezione sollevata per accesso non autorizzato.

    Utilizzata quando un proprietario tenta di operare su auto o
    prenotazioni che non gli appartengono, o su operazioni riservate
    agli amministratori.

    Esempi di utilizzo:
        - "Puoi prenotare solo le tue auto"
        - "Solo gli amministratori possono approvare le prenotazioni"
    """

    status_code: int = 403
    error_code: str = "FORBIDDEN"

    def __init__(
        self,
        detail: str = "Accesso non autorizzato",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)
