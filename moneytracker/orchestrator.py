"""
Main Orchestrator for Money Tracker

This module ties together all the components:
1. Authentication (identity provider + user profile documents)
2. Ledger (accounts and transactions)
3. Portfolio (positions and price refresh)
4. Reports (dashboard, monthly report, AI summary)

DESIGN DECISION: Configuration is read ONCE, here, and handed to each
collaborator at construction time. No component reaches for global
settings on its own.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from pydantic import ValidationError

from moneytracker.agents import AdvisorAgent, QuoteAgent
from moneytracker.audit import AuditLogger
from moneytracker.config import (
    FirebaseSettings,
    GeminiSettings,
    Settings,
    get_settings,
)
from moneytracker.ledger import LedgerService
from moneytracker.models.finance import User, utc_now
from moneytracker.portfolio import PortfolioService
from moneytracker.reports import ReportService
from moneytracker.services.identity import (
    FirebaseIdentityProvider,
    IdentityError,
    IdentityNetworkError,
    IdentityProvider,
)
from moneytracker.services.storage import (
    USERS,
    DocumentStore,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
)


logger = structlog.get_logger(__name__)


class NotAuthenticatedError(Exception):
    """An operation needs a signed-in user."""
    pass


class AuthFlow:
    """
    Orchestrates sign-up, sign-in and sign-out.

    Identity errors are already classified with user-facing messages;
    they are audited and re-raised unchanged, never retried.
    """

    def __init__(
        self,
        identity: IdentityProvider,
        store: DocumentStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._identity = identity
        self._store = store
        self._audit_logger = audit_logger
        self._current_user: Optional[User] = None

    @property
    def current_user(self) -> Optional[User]:
        return self._current_user

    def require_user(self) -> User:
        if self._current_user is None:
            raise NotAuthenticatedError("Please sign in first")
        return self._current_user

    async def register(self, email: str, password: str, display_name: str) -> User:
        """Create a login, store the profile document and sign in."""
        try:
            user = await self._identity.register(email, password, display_name)
        except IdentityError as e:
            await self._audit_failure(email, e)
            raise

        try:
            await self._store.upsert(USERS, user.id, {
                "user_id": user.id,
                "email": user.email,
                "display_name": user.display_name,
                "created_at": utc_now().isoformat(),
            })
        except Exception as e:
            # The login exists at the provider but has no profile document
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="profile_write_failed",
                    error_message=str(e),
                    details={"user_id": user.id, "email": user.email},
                )
            raise
        self._current_user = user

        if self._audit_logger:
            await self._audit_logger.log_user_registered(user.id, user.email)
        return user

    async def login(self, email: str, password: str) -> User:
        try:
            user = await self._identity.login(email, password)
        except IdentityError as e:
            await self._audit_failure(email, e)
            raise

        self._current_user = user
        if self._audit_logger:
            await self._audit_logger.log_user_logged_in(user.id)
        return user

    async def logout(self) -> None:
        user_id = self._current_user.id if self._current_user else None
        await self._identity.logout()
        self._current_user = None
        if self._audit_logger:
            await self._audit_logger.log_user_logged_out(user_id)

    async def _audit_failure(self, email: str, error: IdentityError) -> None:
        if not self._audit_logger:
            return
        await self._audit_logger.log_auth_failed(
            email=email,
            category=error.category,
            message=error.message,
        )
        if isinstance(error, IdentityNetworkError):
            await self._audit_logger.log_external_service_error(
                service="identity",
                error_message=str(error.__cause__ or error.message),
            )


@dataclass
class AppComponents:
    """Everything a front end needs, wired together."""

    store: DocumentStore
    audit_logger: AuditLogger
    auth: AuthFlow
    ledger: LedgerService
    portfolio: PortfolioService
    reports: ReportService


def _gemini_settings(settings: Settings) -> GeminiSettings:
    try:
        return settings.gemini
    except ValidationError as e:
        # AI features degrade to "unavailable" without a key
        logger.warning("gemini_not_configured", error=str(e))
        return GeminiSettings(api_key="")


def _firebase_settings(settings: Settings) -> FirebaseSettings:
    try:
        return settings.firebase
    except ValidationError as e:
        # register/login then raise IdentityConfigurationError
        logger.warning("firebase_not_configured", error=str(e))
        return FirebaseSettings(api_key="")


def create_app_components(
    settings: Optional[Settings] = None,
    store: Optional[DocumentStore] = None,
    identity: Optional[IdentityProvider] = None,
    quote_agent: Optional[QuoteAgent] = None,
    advisor: Optional[AdvisorAgent] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Root settings; read from the environment when None.
        store, identity, quote_agent, advisor: Optional overrides,
            mainly for tests.
    """
    settings = settings or get_settings()
    app_settings = settings.app

    if store is None:
        if app_settings.storage_backend == "memory":
            store = InMemoryDocumentStore()
        else:
            store = GoogleSheetsDocumentStore(
                GoogleSheetsClient(settings.google_sheets)
            )

    audit_logger = AuditLogger(store)

    if identity is None:
        identity = FirebaseIdentityProvider(_firebase_settings(settings))

    if quote_agent is None or advisor is None:
        gemini = _gemini_settings(settings)
        quote_agent = quote_agent or QuoteAgent(gemini)
        advisor = advisor or AdvisorAgent(gemini)

    ledger = LedgerService(
        store,
        audit_logger=audit_logger,
        default_currency=app_settings.default_currency,
    )
    portfolio = PortfolioService(store, quote_agent, audit_logger=audit_logger)
    reports = ReportService(
        ledger,
        portfolio,
        advisor=advisor,
        timezone=app_settings.timezone,
        top_expense_count=app_settings.top_expenses_in_advice,
    )

    return AppComponents(
        store=store,
        audit_logger=audit_logger,
        auth=AuthFlow(identity, store, audit_logger=audit_logger),
        ledger=ledger,
        portfolio=portfolio,
        reports=reports,
    )
