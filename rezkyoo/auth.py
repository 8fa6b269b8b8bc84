"""User authentication with Firebase ID tokens."""

import logging

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin.exceptions import FirebaseError
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from rezkyoo.errors import RezkyooError, UnauthorizedError

logger = logging.getLogger(__name__)

DEV_USER_ID = "dev-user"
DEV_USER_EMAIL = "dev@local"


class User(BaseModel):
    id: str
    email: str | None = None


DEV_USER = User(id=DEV_USER_ID, email=DEV_USER_EMAIL)


def bearer_token(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header.

    Raises:
        UnauthorizedError: If the header is missing or not a bearer token
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError()
    token = authorization[len("Bearer "):].strip()
    if not token:
        raise UnauthorizedError()
    return token


class TokenVerifier:
    """Verifies Firebase ID tokens against the Admin SDK app."""

    def __init__(self, app: firebase_admin.App | None) -> None:
        self.app = app

    async def verify(self, id_token: str) -> User:
        """Verify an ID token and return its user.

        Raises:
            RezkyooError: If Firebase Admin is not initialized
            UnauthorizedError: If the token is invalid, expired or revoked
        """
        if self.app is None:
            raise RezkyooError("Firebase Admin not initialized")
        try:
            decoded = await run_in_threadpool(
                firebase_auth.verify_id_token, id_token, self.app
            )
        except (ValueError, FirebaseError) as e:
            logger.warning(f"Rejected ID token: {e}")
            raise UnauthorizedError() from e
        return User(id=decoded["uid"], email=decoded.get("email"))
