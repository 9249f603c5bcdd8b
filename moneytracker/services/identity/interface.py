"""
Identity Provider Interface and Error Taxonomy

Authentication is delegated to an external provider. This module
defines what we need from it and how its failures are presented.

DESIGN DECISION: Vendor error codes are mapped to a small set of
categories, each with a message that is shown verbatim to the user.
"Wrong password" and "no such user" share ONE message so the login
form never reveals which half was wrong. Nothing here is retried.
"""

from abc import ABC, abstractmethod
from typing import Optional

from moneytracker.models.finance import User


class IdentityError(Exception):
    """Base exception for identity provider failures."""

    category = "unknown"
    default_message = "Authentication failed."

    def __init__(self, message: Optional[str] = None, vendor_code: Optional[str] = None):
        self.message = message or self.default_message
        self.vendor_code = vendor_code
        super().__init__(self.message)


class MissingFieldsError(IdentityError):
    category = "validation"
    default_message = "All fields are required"


class DuplicateRegistrationError(IdentityError):
    category = "duplicate_registration"
    default_message = "This email is already registered."


class WeakCredentialError(IdentityError):
    category = "weak_credential"
    default_message = "Password should be at least 6 characters."


class InvalidCredentialError(IdentityError):
    category = "invalid_credential"
    default_message = "Invalid email or password."


class IdentityNetworkError(IdentityError):
    category = "network"
    default_message = "Network error. Please check your connection."


class IdentityConfigurationError(IdentityError):
    category = "configuration"
    default_message = "System Error: Invalid API key in configuration."


# Vendor codes as returned by the REST API and by the client SDKs
_CODE_MAP: dict[str, type[IdentityError]] = {
    "EMAIL_EXISTS": DuplicateRegistrationError,
    "auth/email-already-in-use": DuplicateRegistrationError,
    "WEAK_PASSWORD": WeakCredentialError,
    "auth/weak-password": WeakCredentialError,
    "INVALID_LOGIN_CREDENTIALS": InvalidCredentialError,
    "INVALID_PASSWORD": InvalidCredentialError,
    "EMAIL_NOT_FOUND": InvalidCredentialError,
    "INVALID_EMAIL": InvalidCredentialError,
    "auth/invalid-credential": InvalidCredentialError,
    "auth/wrong-password": InvalidCredentialError,
    "auth/user-not-found": InvalidCredentialError,
    "auth/network-request-failed": IdentityNetworkError,
    "API_KEY_INVALID": IdentityConfigurationError,
    "auth/invalid-api-key": IdentityConfigurationError,
}


def classify_identity_error(raw_message: str) -> IdentityError:
    """
    Map a vendor error message to a classified IdentityError.

    Accepts both REST style ("WEAK_PASSWORD : Password should be ...")
    and SDK style ("Firebase: Error (auth/weak-password).") messages.
    Unknown codes become a generic IdentityError carrying the cleaned
    vendor message.
    """
    raw_message = raw_message or ""
    code = raw_message.split(":", 1)[0].strip()

    if code in _CODE_MAP:
        return _CODE_MAP[code](vendor_code=code)

    for vendor_code, error_cls in _CODE_MAP.items():
        if vendor_code in raw_message:
            return error_cls(vendor_code=vendor_code)

    if "API key not valid" in raw_message:
        return IdentityConfigurationError(vendor_code="API_KEY_INVALID")

    cleaned = raw_message.replace("Firebase: ", "").replace("Error ", "").strip()
    return IdentityError(cleaned or None, vendor_code=code or None)


class IdentityProvider(ABC):
    """
    Abstract interface for the external identity provider.

    Implementations raise IdentityError subclasses only.
    """

    @abstractmethod
    async def register(
        self,
        email: str,
        password: str,
        display_name: str,
    ) -> User:
        """Create a new login and return the signed-in user."""
        pass

    @abstractmethod
    async def login(self, email: str, password: str) -> User:
        """Sign in with email and password."""
        pass

    @abstractmethod
    async def logout(self) -> None:
        """Forget the current session."""
        pass
