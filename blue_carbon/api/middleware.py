"""
BlueCarbon Registry - API Middleware
======================================
Middleware Starlette dell'app REST.

Ordine (esterno -> interno): CORS, RequestContext, SecurityHeaders,
UnhandledError. Gli errori del registro (BlueCarbonException) non
arrivano qui: li gestiscono gli exception handler di rest_api.
"""

import time
import uuid
from typing import Callable, Dict, List

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware

from blue_carbon.logging_setup import get_logger

logger = get_logger("api.middleware")

REQUEST_ID_HEADER = "X-Request-ID"
PROCESS_TIME_HEADER = "X-Process-Time"

SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Request id + access log.

    L'id arriva dal client (X-Request-ID) o è generato; è salvato in
    request.state.request_id e rimandato nella risposta insieme alla durata.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()

        response = await call_next(request)

        elapsed = time.perf_counter() - started
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra_data={
                "request_id": request_id,
                "status_code": response.status_code,
                "duration_ms": round(elapsed * 1000, 2),
                "client_ip": request.client.host if request.client else None,
            }
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[PROCESS_TIME_HEADER] = f"{elapsed:.6f}"
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """SECURITY_HEADERS su ogni risposta, HSTS solo su https"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Eccezioni inattese -> 500 con lo stesso body degli errori del registro"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            request_id = getattr(request.state, "request_id", None)
            logger.error(
                f"Unhandled {type(e).__name__} on {request.method} {request.url.path}",
                extra_data={"request_id": request_id},
                exc_info=True
            )
            return JSONResponse(
                status_code=500,
                content={
                    "error": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "details": {"request_id": request_id},
                }
            )


def cors_options(origins: List[str]) -> dict:
    """kwargs per app.add_middleware(CORSMiddleware, ...): niente credenziali con origine '*'"""
    return {
        "allow_origins": origins,
        "allow_credentials": "*" not in origins,
        "allow_methods": ["*"],
        "allow_headers": ["*"],
        "expose_headers": [REQUEST_ID_HEADER, PROCESS_TIME_HEADER],
    }


__all__ = [
    'RequestContextMiddleware',
    'SecurityHeadersMiddleware',
    'UnhandledErrorMiddleware',
    'CORSMiddleware',
    'cors_options',
]
