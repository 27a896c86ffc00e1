"""
Taxonomie d'erreurs de la plateforme.

Chaque erreur porte un code stable (renvoyé dans le JSON), un statut HTTP et
un drapeau `retryable` qui indique si l'appelant (navigateur ou Stripe) peut
réessayer. La conversion en réponse HTTP vit dans app_setup/exceptions.py.
"""
from typing import Any, Dict, Optional


class StorefrontError(Exception):
    code = "Error"
    status_code = 500
    retryable = False

    def __init__(self, message: str = "", details: Optional[Dict[str, Any]] = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.code, "detail": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(StorefrontError):
    code = "ValidationError"
    status_code = 400


class NotFound(StorefrontError):
    code = "NotFound"
    status_code = 404


class Conflict(StorefrontError):
    code = "Conflict"
    status_code = 409


class StoreNotReady(Conflict):
    code = "StoreNotReady"


class ProductUnavailable(Conflict):
    code = "ProductUnavailable"


class OutOfStock(Conflict):
    code = "OutOfStock"


class OrderNumberTaken(Conflict):
    code = "OrderNumberTaken"


class InvalidStateTransition(StorefrontError):
    code = "InvalidStateTransition"
    status_code = 400


class InvalidSignature(StorefrontError):
    code = "InvalidSignature"
    status_code = 400


class ExternalProcessorError(StorefrontError):
    code = "ExternalProcessorError"
    status_code = 502
    retryable = True


class InternalError(StorefrontError):
    code = "InternalError"
    status_code = 503
    retryable = True


class StorageError(InternalError):
    """Stockage indisponible ou réponse inattendue de PostgREST."""
