from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from .error import ClientError, ServerError
import logging

logger = logging.getLogger(__name__)

RETRYABLE_MESSAGES = {
    "STORE_UNAVAILABLE": "Service temporarily unavailable, please try again",
    "DELIVERY_FAILED": "Could not deliver the password reset link, please try again",
}


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_server_error(request: Request, exc: ServerError):
    code = exc.base_error.code
    error_dict = {"code": code, "message": RETRYABLE_MESSAGES.get(code, "Internal server error")}
    logger.error(f"Server error: {code}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


def create_app(ApplicationConfig) -> FastAPI:
    if not ApplicationConfig.RESET_LINK_BASE_URL:
        raise ValueError("RESET_LINK_BASE_URL must be configured")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        from recovery_service.adapter.services.bootstrap import build_recovery_services

        app.state.services = await build_recovery_services(ApplicationConfig)
        yield
        await app.state.services.aclose()

    app = FastAPI(title="PEAKMODE Recovery API", version="0.1.0", lifespan=lifespan)
    app.state.config = ApplicationConfig

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from recovery_service.api.routes import admin, auth, health_check

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(auth.router, tags=["Authentication"])
    app.include_router(admin.router, tags=["Admin"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)

    return app
