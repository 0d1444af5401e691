"""
Bank integration service - FastAPI application.
Exposes boleto registration, CNAB 240 exchange, PIX BR Codes and bank webhooks behind one uniform API.
"""
from typing import Callable, Awaitable, Dict, Any, List, Type
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import time
from uuid import uuid4

from banking.boleto.dependencies import get_registry
from banking.boleto.router import router as boleto_router
from banking.boleto.schemas import SupportedBank
from banking.cnab.router import router as cnab_router
from banking.core.config import settings
from banking.core.exceptions import (
    AuthenticationError,
    BankIntegrationError,
    BankNotImplementedError,
    BankRejection,
    EncodingOverflow,
    InvalidCredentialsError,
    NetworkError,
    UnsupportedBankError,
)
from banking.core.logger import logger
from banking.factory import BankFactory
from banking.pix.router import router as pix_router
from banking.webhooks.router import router as webhooks_router

# Most specific first
ERROR_STATUS: List[tuple[Type[BankIntegrationError], int]] = [
    (UnsupportedBankError, 404),
    (InvalidCredentialsError, 503),
    (AuthenticationError, 502),
    (NetworkError, 504),
    (BankNotImplementedError, 501),
    (EncodingOverflow, 422),
    (BankRejection, 502),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management (startup/shutdown hooks)."""
    logger.info(f"Initializing {settings.APP_NAME} v{settings.VERSION}")
    logger.info(f"Bank credentials configured for: {sorted(settings.BANK_CREDENTIALS) or 'none'}")

    yield

    logger.info("Shutting down application")
    get_registry().close()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Uniform integration layer over Brazilian bank boleto, CNAB 240 and PIX APIs.",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_correlation_id(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """
    Middleware for distributed tracing.
    Injects a unique Correlation ID into the request context and propagates it to the response headers.
    """
    correlation_id = request.headers.get("X-Correlation-ID", str(uuid4()))
    request.state.correlation_id = correlation_id

    start_time = time.time()

    logger.info(
        f"Request: {request.method} {request.url.path}",
        extra={"correlation_id": correlation_id}
    )

    response = await call_next(request)

    process_time = time.time() - start_time
    response.headers["X-Correlation-ID"] = correlation_id
    response.headers["X-Process-Time"] = str(process_time)

    logger.info(
        f"Response: {response.status_code} | {process_time:.3f}s",
        extra={"correlation_id": correlation_id}
    )

    return response


app.include_router(boleto_router, prefix="/boletos", tags=["Boleto"])
app.include_router(cnab_router, prefix="/cnab", tags=["CNAB 240"])
app.include_router(pix_router, prefix="/pix", tags=["PIX"])
app.include_router(webhooks_router, prefix="/webhooks", tags=["Webhooks"])


@app.get("/api-info", tags=["Health"])
def api_info() -> Dict[str, Any]:
    """
    Endpoint exposing API metadata and service discovery links.
    """
    return {
        "app": settings.APP_NAME,
        "version": settings.VERSION,
        "status": "online",
        "endpoints": {
            "banks": "/banks",
            "boleto_register": "/boletos/{bank_code}",
            "boleto_status": "/boletos/{bank_code}/{our_number}/status",
            "cnab_remittance": "/cnab/{bank_code}/remessa",
            "cnab_return": "/cnab/{bank_code}/retorno",
            "pix_brcode": "/pix/brcode",
            "webhooks": "/webhooks/{bank_code}",
            "docs": "/docs",
            "redoc": "/redoc"
        }
    }


@app.get("/health", tags=["Health"])
def health_check() -> Dict[str, str]:
    """
    Liveness probe endpoint for orchestration systems.
    """
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.VERSION
    }


@app.get("/banks", response_model=List[SupportedBank], tags=["Banks"])
def list_banks() -> List[SupportedBank]:
    return BankFactory.get_supported_banks()


def status_for(exc: BankIntegrationError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 502


@app.exception_handler(BankIntegrationError)
async def bank_exception_handler(request: Request, exc: BankIntegrationError):
    """
    Maps bank-layer failures to HTTP statuses.
    Upstream bodies are logged, never echoed to the caller.
    """
    correlation_id = getattr(request.state, "correlation_id", "N/A")
    status_code = status_for(exc)

    logger.warning(
        f"{type(exc).__name__}: {exc.message} | bank={exc.bank_code} -> {status_code}",
        extra={"correlation_id": correlation_id}
    )

    return JSONResponse(
        status_code=status_code,
        content={
            "detail": exc.message,
            "error": type(exc).__name__,
            "bank_code": exc.bank_code,
            "correlation_id": correlation_id
        }
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    correlation_id = getattr(request.state, "correlation_id", "N/A")

    logger.info(
        f"HTTPException: {exc.status_code}",
        extra={"correlation_id": correlation_id}
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "correlation_id": correlation_id},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception barrier.
    Captures unhandled exceptions, logs stack traces with Correlation IDs,
    and returns a sanitized 500 Internal Server Error response.
    """
    correlation_id = getattr(request.state, "correlation_id", "N/A")

    logger.error(
        f"Unhandled exception: {str(exc)}",
        exc_info=True,
        extra={"correlation_id": correlation_id}
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal Server Error",
            "correlation_id": correlation_id
        }
    )
