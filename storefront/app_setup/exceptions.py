"""
Gestionnaires d'exceptions utilisés par la factory.
- StorefrontError: JSON {"error": <code>, "detail": <message>} avec le statut de la classe.
- RequestValidationError (Pydantic): converti en ValidationError 400 (et non 422).
- HTTPException (auth, rate limit): JSON {"error", "detail"} avec le statut d'origine.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from storefront.errors import StorefrontError, ValidationError

logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    401: "Unauthorized",
    403: "Forbidden",
    404: "NotFound",
    429: "TooManyRequests",
}

def _storefront_response(exc: StorefrontError) -> JSONResponse:
    headers = {"Retry-After": "5"} if exc.retryable and exc.status_code == 503 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorefrontError)
    async def storefront_error(request: Request, exc: StorefrontError):
        level = logging.WARNING if exc.status_code >= 500 else logging.INFO
        logger.log(level, "http.error path=%s code=%s status=%s detail=%s", request.url.path, exc.code, exc.status_code, exc.message)
        return _storefront_response(exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
        err = ValidationError("Requête invalide", details={"fields": fields, "errors": jsonable_encoder(exc.errors())})
        return _storefront_response(err)

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        code = HTTP_ERROR_CODES.get(exc.status_code, "Error")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": code, "detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )
