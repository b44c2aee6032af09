"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from havenox.api.models import VerifyRequest
from havenox.api.realtime import router as realtime_router
from havenox.api.tents import router as tents_router
from havenox.app_logging import configure_logging
from havenox.config import parse_allowed_origins
from havenox.containers import AppContainer
from havenox.domain.errors import (
    ConflictError,
    HavenoxError,
    NotFoundError,
    RpcFailure,
    SignatureInvalidError,
    ValidationError,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("HavenOx tent API starting")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_allowed_origins(container.settings.cors_allowed_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(tents_router)
    app.include_router(realtime_router)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(
        _: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, _first_error(exc))

    @app.exception_handler(ValidationError)
    async def validation_error(_: Request, exc: ValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(SignatureInvalidError)
    async def signature_invalid(_: Request, exc: SignatureInvalidError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"status": "invalid", "message": str(exc)},
        )

    @app.exception_handler(NotFoundError)
    async def not_found(_: Request, exc: NotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(ConflictError)
    async def conflict(_: Request, exc: ConflictError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(RpcFailure)
    async def chain_unavailable(request: Request, exc: RpcFailure) -> JSONResponse:
        logger.error(
            "Kaspa chain unavailable",
            extra={"path": request.url.path, "error": str(exc)},
        )
        return _error(status.HTTP_502_BAD_GATEWAY, "Kaspa chain unavailable")

    @app.exception_handler(HavenoxError)
    async def application_error(request: Request, exc: HavenoxError) -> JSONResponse:
        logger.error("Unhandled application error", extra={"path": request.url.path})
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    @app.exception_handler(Exception)
    async def unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error", extra={"path": request.url.path})
        message = str(exc) or "Internal server error"
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, message)

    @app.get("/health")
    async def health(request: Request) -> dict[str, object]:
        """Report ledger connectivity with a chain summary."""
        state_container: AppContainer = request.app.state.container
        return await state_container.health_service.check()

    @app.post("/verify")
    async def verify(body: VerifyRequest, request: Request) -> dict[str, str]:
        """Verify ownership of a Kaspa address via a signed message."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.verification_service.verify(
            address=body.address, signature=body.signature, message=body.message
        )
        return {"status": result.status, "address": result.address}

    return app


def _error(status_code: int, message: str) -> JSONResponse:
    """Return a standard error body."""
    return JSONResponse(status_code=status_code, content={"error": message})


def _first_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg', 'invalid')}"
