"""FastAPI dependencies resolving per-app services from ``app.state``."""

from fastapi import Depends, Header, Request

from rezkyoo.auth import DEV_USER, TokenVerifier, User, bearer_token
from rezkyoo.config import Config, get_config
from rezkyoo.errors import RezkyooError
from rezkyoo.services.firestore import FirestoreRepository
from rezkyoo.services.mcp_client import McpClient
from rezkyoo.services.notifications import SmsService
from rezkyoo.services.paypal import PayPalService
from rezkyoo.services.places import PlacesService
from rezkyoo.sim import SimBatchStore, SimBookingStore


def get_settings() -> Config:
    return get_config()


def get_sim_store(request: Request) -> SimBatchStore:
    return request.app.state.sim_store


def get_booking_store(request: Request) -> SimBookingStore:
    return request.app.state.booking_store


def get_mcp_client(request: Request) -> McpClient:
    return request.app.state.mcp_client


def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


def get_optional_repository(request: Request) -> FirestoreRepository | None:
    return request.app.state.repository


def get_repository(
    repository: FirestoreRepository | None = Depends(get_optional_repository),
) -> FirestoreRepository:
    """Firestore repository; fails the request when Firebase is unavailable."""
    if repository is None:
        raise RezkyooError("Database not initialized")
    return repository


def get_paypal_service(request: Request) -> PayPalService:
    return request.app.state.paypal_service


def get_sms_service(request: Request) -> SmsService:
    return request.app.state.sms_service


def get_places_service(request: Request) -> PlacesService:
    return request.app.state.places_service


async def get_verified_user(
    authorization: str | None = Header(None),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> User:
    """User from a Firebase ID token; always verified."""
    return await verifier.verify(bearer_token(authorization))


async def require_user(
    authorization: str | None = Header(None),
    config: Config = Depends(get_settings),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> User:
    """Signed-in user, or the dev user when REZKYOO_DISABLE_AUTH is set."""
    if config.rezkyoo_disable_auth:
        return DEV_USER
    return await verifier.verify(bearer_token(authorization))


async def optional_user(
    authorization: str | None = Header(None),
    config: Config = Depends(get_settings),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> User | None:
    """Signed-in user if a valid token was sent; guests get None."""
    if config.rezkyoo_disable_auth:
        return DEV_USER
    if not authorization:
        return None
    try:
        return await verifier.verify(bearer_token(authorization))
    except RezkyooError:
        return None
