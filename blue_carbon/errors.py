"""
BlueCarbon Registry - Custom Exceptions
=========================================
Gerarchia eccezioni per gestione errori granulare.

Last Updated: 2026-10-18
Version: 1.0.0

Tutti gli errori sono locali, sincroni e non ritentabili:
il chiamante corregge l'input e reinvia.
"""

from typing import Optional, Any


# ============================================================================
# BASE EXCEPTION
# ============================================================================

class BlueCarbonException(Exception):
    """
    Eccezione base per tutte le eccezioni del registro.

    Attributes:
        message (str): Messaggio errore
        code (str): Codice errore (es. "PROJECT_NOT_FOUND")
        details (dict): Dettagli aggiuntivi
    """

    # Status HTTP suggerito per il layer API
    http_status: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Serializza eccezione per API/logging"""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        if self.details:
            return f"[{self.code}] {self.message} | Details: {self.details}"
        return f"[{self.code}] {self.message}"


# ============================================================================
# CONFIGURATION ERRORS
# ============================================================================

class ConfigError(BlueCarbonException):
    """Errore configurazione sistema"""
    pass


# ============================================================================
# LOOKUP ERRORS
# ============================================================================

class NotFoundError(BlueCarbonException):
    """Id referenziato assente"""
    http_status = 404


# ============================================================================
# VALIDATION ERRORS
# ============================================================================

class ValidationError(BlueCarbonException):
    """Campo input mancante o malformato"""
    http_status = 400


# ============================================================================
# LIFECYCLE ERRORS
# ============================================================================

class LifecycleError(BlueCarbonException):
    """Errore regole ciclo di vita (base)"""
    http_status = 400


class InvalidStateError(LifecycleError):
    """Operazione non ammessa per lo stato corrente dell'entità"""
    pass


class InvalidTransitionError(LifecycleError):
    """Violazione esplicita della macchina a stati"""
    pass


class InvalidAmountError(LifecycleError):
    """Quantità fuori dal range ammesso"""
    pass


# ============================================================================
# STORAGE ERRORS
# ============================================================================

class StorageError(BlueCarbonException):
    """Errore storage"""
    pass


class DatabaseError(StorageError):
    """Errore database generico"""
    pass


class DatabaseConnectionError(DatabaseError):
    """Errore connessione database"""
    pass


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def format_validation_error(
    field: str,
    value: Any,
    expected: str,
    code: Optional[str] = None
) -> ValidationError:
    """
    Helper per creare ValidationError formattati.

    Args:
        field: Nome campo invalido
        value: Valore ricevuto
        expected: Valore/tipo atteso
        code: Codice errore custom

    Returns:
        ValidationError: Eccezione formattata

    Example:
        >>> raise format_validation_error("area", -5, "positive decimal")
    """
    return ValidationError(
        message=f"Invalid field '{field}': expected {expected}, got {value!r}",
        code=code or "VALIDATION_FAILED",
        details={
            "fields": [
                {"field": field, "value": value, "expected": expected}
            ]
        }
    )


def format_not_found_error(entity: str, entity_id: str) -> NotFoundError:
    """Helper per entità non trovate"""
    return NotFoundError(
        message=f"{entity} '{entity_id}' not found",
        code=f"{entity.upper()}_NOT_FOUND",
        details={"entity": entity, "id": entity_id}
    )


# ============================================================================
# EXPORT ALL
# ============================================================================

__all__ = [
    # Base
    "BlueCarbonException",

    # Config
    "ConfigError",

    # Lookup
    "NotFoundError",

    # Validation
    "ValidationError",

    # Lifecycle
    "LifecycleError",
    "InvalidStateError",
    "InvalidTransitionError",
    "InvalidAmountError",

    # Storage
    "StorageError",
    "DatabaseError",
    "DatabaseConnectionError",

    # Helpers
    "format_validation_error",
    "format_not_found_error",
]
