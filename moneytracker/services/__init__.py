"""Services package."""

from moneytracker.services.identity import (
    DuplicateRegistrationError,
    FirebaseIdentityProvider,
    IdentityConfigurationError,
    IdentityError,
    IdentityNetworkError,
    IdentityProvider,
    InvalidCredentialError,
    MissingFieldsError,
    WeakCredentialError,
)
from moneytracker.services.storage import (
    ConnectionError,
    DocumentStore,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    NotFoundError,
    StorageError,
)

__all__ = [
    # Identity
    "DuplicateRegistrationError",
    "FirebaseIdentityProvider",
    "IdentityConfigurationError",
    "IdentityError",
    "IdentityNetworkError",
    "IdentityProvider",
    "InvalidCredentialError",
    "MissingFieldsError",
    "WeakCredentialError",
    # Storage
    "ConnectionError",
    "DocumentStore",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
    "NotFoundError",
    "StorageError",
]
