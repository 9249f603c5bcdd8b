"""
Firebase Authentication Identity Provider

Talks to the Identity Toolkit REST API with email/password sign-in.

BOUNDARIES:
1. Every request has an explicit timeout
2. Errors are classified (see interface.classify_identity_error)
3. Nothing is retried automatically: the user decides whether to try again
4. The blocking HTTP call runs in a worker thread, off the event loop
"""

import asyncio
from typing import Any, Optional

import requests
import structlog

from moneytracker.config import FirebaseSettings
from moneytracker.models.finance import User
from moneytracker.services.identity.interface import (
    IdentityConfigurationError,
    IdentityError,
    IdentityNetworkError,
    IdentityProvider,
    MissingFieldsError,
    classify_identity_error,
)


logger = structlog.get_logger(__name__)


class FirebaseIdentityProvider(IdentityProvider):
    """Email/password identity backed by Firebase Authentication."""

    def __init__(
        self,
        settings: FirebaseSettings,
        session: Optional[requests.Session] = None,
    ):
        self._settings = settings
        self._session = session or requests.Session()
        self._id_token: Optional[str] = None

    @property
    def id_token(self) -> Optional[str]:
        """Token of the signed-in user, None after logout."""
        return self._id_token

    def _post(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST to an Identity Toolkit endpoint and return the JSON body."""
        if not self._settings.api_key:
            raise IdentityConfigurationError()

        url = f"{self._settings.auth_base_url}/accounts:{endpoint}"
        try:
            response = self._session.post(
                url,
                params={"key": self._settings.api_key},
                json=payload,
                timeout=self._settings.timeout_seconds,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.warning("identity_network_error", endpoint=endpoint, error=str(e))
            raise IdentityNetworkError() from e
        except requests.RequestException as e:
            raise IdentityError(str(e)) from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400:
            error = body.get("error", {}) if isinstance(body, dict) else {}
            message = error.get("message") or response.text
            reasons = " ".join(
                str(d.get("reason", "")) for d in error.get("details", []) or []
                if isinstance(d, dict)
            )
            classified = classify_identity_error(f"{message} {reasons}".strip())
            logger.info(
                "identity_request_rejected",
                endpoint=endpoint,
                status=response.status_code,
                category=classified.category,
            )
            raise classified

        return body

    async def register(
        self,
        email: str,
        password: str,
        display_name: str,
    ) -> User:
        email = (email or "").strip()
        display_name = (display_name or "").strip()
        if not email or not password or not display_name:
            raise MissingFieldsError()

        body = await asyncio.to_thread(
            self._post,
            "signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        self._id_token = body.get("idToken")

        await asyncio.to_thread(
            self._post,
            "update",
            {
                "idToken": self._id_token,
                "displayName": display_name,
                "returnSecureToken": False,
            },
        )

        return User(
            id=body["localId"],
            email=body.get("email", email),
            display_name=display_name,
        )

    async def login(self, email: str, password: str) -> User:
        email = (email or "").strip()
        if not email or not password:
            raise MissingFieldsError()

        body = await asyncio.to_thread(
            self._post,
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        self._id_token = body.get("idToken")

        return User(
            id=body["localId"],
            email=body.get("email") or email,
            display_name=body.get("displayName") or "User",
        )

    async def logout(self) -> None:
        self._id_token = None
