"""FastAPI server for the RezKyoo reservation concierge API."""

import logging
import random
from contextlib import asynccontextmanager
from dataclasses import dataclass

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from google.auth.exceptions import DefaultCredentialsError

from rezkyoo.api.account import router as account_router
from rezkyoo.api.mcp import router as mcp_router
from rezkyoo.api.misc import contact_router, places_router
from rezkyoo.api.payments import dropp_router, paypal_router
from rezkyoo.auth import TokenVerifier
from rezkyoo.config import Config, get_config, setup_logging
from rezkyoo.errors import ErrorKind, RezkyooError
from rezkyoo.services.firestore import FirestoreRepository, init_firebase
from rezkyoo.services.mcp_client import McpClient
from rezkyoo.services.notifications import SmsService
from rezkyoo.services.paypal import PayPalService
from rezkyoo.services.places import PlacesService
from rezkyoo.sim import SimBatchStore, SimBookingStore

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    """Long-lived collaborators shared by every request of one app."""

    sim_store: SimBatchStore
    booking_store: SimBookingStore
    mcp_client: McpClient
    token_verifier: TokenVerifier
    repository: FirestoreRepository | None
    paypal_service: PayPalService
    sms_service: SmsService
    places_service: PlacesService

    @classmethod
    def from_config(cls, config: Config) -> "AppServices":
        firebase_app = init_firebase(config)
        repository = None
        if firebase_app is not None:
            try:
                repository = FirestoreRepository.from_app(firebase_app)
            except DefaultCredentialsError as e:
                logger.error(f"Firestore unavailable: {e}")

        rng = random.Random()
        return cls(
            sim_store=SimBatchStore(rng),
            booking_store=SimBookingStore(rng),
            mcp_client=McpClient(),
            token_verifier=TokenVerifier(firebase_app),
            repository=repository,
            paypal_service=PayPalService(),
            sms_service=SmsService(),
            places_service=PlacesService(),
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    config = get_config()
    logger.info(f"Starting RezKyoo API on {config.server_host}:{config.server_port}")
    logger.info(f"Call mode: {config.rezkyoo_call_mode}")
    logger.info(f"MCP server: {config.rezkyoo_mcp_base_url or 'NOT CONFIGURED'}")
    if app.state.repository is None:
        logger.warning("Firestore not available - account routes will fail")

    yield

    logger.info(f"Shutting down RezKyoo API ({len(app.state.sim_store)} simulated batches)")


async def rezkyoo_error_handler(request: Request, exc: RezkyooError) -> JSONResponse:
    config = get_config()
    message = exc.message
    if exc.kind == ErrorKind.UPSTREAM:
        logger.error(f"Upstream failure on {request.url.path}: {exc.message}")
        if config.is_production:
            message = "Upstream service error"
    elif exc.kind == ErrorKind.INTERNAL:
        logger.error(f"Request failed on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code, content={"ok": False, "error": message}
    )


async def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = sorted(
        {str(error["loc"][-1]) for error in exc.errors() if error.get("loc")}
    )
    error = "Missing or invalid fields"
    if fields:
        error = f"{error}: {', '.join(fields)}"
    return JSONResponse(status_code=400, content={"ok": False, "error": error})


async def unhandled_error_handler(request: Request, _exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(status_code=500, content={"ok": False, "error": "Request failed"})


def create_app(services: AppServices | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        services: Collaborators to use (built from the environment if omitted)

    Returns:
        Configured FastAPI app
    """
    if services is None:
        services = AppServices.from_config(get_config())

    app = FastAPI(
        title="RezKyoo API",
        description="API for the RezKyoo restaurant reservation concierge",
        version="0.1.0",
        lifespan=lifespan,
    )

    for name, value in vars(services).items():
        setattr(app.state, name, value)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RezkyooError, rezkyoo_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(mcp_router, prefix="/api/mcp", tags=["mcp"])
    app.include_router(account_router, prefix="/api", tags=["account"])
    app.include_router(paypal_router, prefix="/api/paypal", tags=["payments"])
    app.include_router(dropp_router, prefix="/api/dropp", tags=["payments"])
    app.include_router(places_router, prefix="/api/places", tags=["places"])
    app.include_router(contact_router, prefix="/api/contact", tags=["contact"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint for monitoring."""
        return {"status": "healthy", "service": "rezkyoo-api"}

    return app


def run_server():
    """Run the FastAPI server using uvicorn.

    This is the main entry point for the server.
    """
    setup_logging()
    config = get_config()

    uvicorn.run(
        "rezkyoo.server:create_app",
        factory=True,
        host=config.server_host,
        port=config.server_port,
        log_level=config.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    run_server()
