import logging
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from .request_context import get_request_id

logger = logging.getLogger(__name__)


def _base_payload(request: Request, detail: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"detail": detail, "path": str(request.url)}
    request_id = get_request_id(request)
    if request_id:
        payload["request_id"] = request_id
    return payload


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore[override]
        payload = _base_payload(request, "Validation failed.")
        payload["errors"] = jsonable_encoder(exc.errors())
        return JSONResponse(status_code=422, content=payload)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore[override]
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=_base_payload(request, "Internal server error."))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:  # type: ignore[override]
        payload = _base_payload(request, jsonable_encoder(exc.detail) or "HTTP error.")
        return JSONResponse(status_code=exc.status_code, content=payload, headers=exc.headers)
