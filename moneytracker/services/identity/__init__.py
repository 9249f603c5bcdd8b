"""Identity provider package."""

from moneytracker.services.identity.interface import (
    DuplicateRegistrationError,
    IdentityConfigurationError,
    IdentityError,
    IdentityNetworkError,
    IdentityProvider,
    InvalidCredentialError,
    MissingFieldsError,
    WeakCredentialError,
    classify_identity_error,
)
from moneytracker.services.identity.firebase import FirebaseIdentityProvider

__all__ = [
    "DuplicateRegistrationError",
    "FirebaseIdentityProvider",
    "IdentityConfigurationError",
    "IdentityError",
    "IdentityNetworkError",
    "IdentityProvider",
    "InvalidCredentialError",
    "MissingFieldsError",
    "WeakCredentialError",
    "classify_identity_error",
]
