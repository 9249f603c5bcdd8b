"""Integration tests for the composition root and the auth flow."""

import asyncio
import pytest
from decimal import Decimal

from conftest import (
    FakeAdvisor,
    FakeIdentityProvider,
    FakeQuoteAgent,
    quote,
)
from moneytracker.config import Settings
from moneytracker.models.finance import TransactionType
from moneytracker.orchestrator import (
    AuthFlow,
    NotAuthenticatedError,
    create_app_components,
)
from moneytracker.services.identity import (
    IdentityConfigurationError,
    IdentityNetworkError,
    InvalidCredentialError,
)
from moneytracker.services.storage import (
    AUDIT_LOG,
    USERS,
    InMemoryDocumentStore,
    StorageError,
)


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def components(monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    return create_app_components(
        settings=Settings(),
        identity=FakeIdentityProvider(),
        quote_agent=FakeQuoteAgent({"AAPL": quote("AAPL", "150", name="Apple Inc.")}),
        advisor=FakeAdvisor(),
    )


class TestCreateAppComponents:
    """Tests for wiring."""

    def test_memory_backend(self, components):
        assert isinstance(components.store, InMemoryDocumentStore)

    def test_end_to_end(self, components):
        user = run(components.auth.register("a@b.co", "secret1", "Ann"))

        bank = run(components.ledger.create_account(user.id, "Bank", opening_balance="1000"))
        run(components.ledger.record_transaction(
            user.id, bank.id, "200", TransactionType.EXPENSE, "Food"
        ))
        run(components.portfolio.add_position(user.id, "AAPL", "2", "100"))

        dashboard = run(components.reports.dashboard(user.id))
        assert dashboard.total_balance == Decimal("800")
        assert dashboard.total_stock_value == Decimal("300")
        assert dashboard.net_worth == Decimal("1100")
        assert run(components.reports.financial_advice(user.id)) == "You are doing fine."

    def test_missing_identity_key_fails_at_sign_in(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("FIREBASE_API_KEY", raising=False)
        monkeypatch.setenv("STORAGE_BACKEND", "memory")

        components = create_app_components(
            settings=Settings(),
            quote_agent=FakeQuoteAgent(),
            advisor=FakeAdvisor(),
        )

        with pytest.raises(IdentityConfigurationError):
            run(components.auth.login("a@b.co", "secret1"))


class TestAuthFlow:
    """Tests for sign-up, sign-in and sign-out."""

    def test_register_stores_profile(self):
        store = InMemoryDocumentStore()
        auth = AuthFlow(FakeIdentityProvider(), store)

        user = run(auth.register("a@b.co", "secret1", "Ann"))

        assert auth.current_user == user
        profile = run(store.get(USERS, user.id))
        assert profile["email"] == "a@b.co"
        assert profile["display_name"] == "Ann"
        assert "created_at" in profile

    def test_login_failure_audited_and_raised(self, audit_logger, store):
        auth = AuthFlow(
            FakeIdentityProvider(error=InvalidCredentialError()),
            store,
            audit_logger=audit_logger,
        )

        with pytest.raises(InvalidCredentialError):
            run(auth.login("a@b.co", "wrong"))

        assert auth.current_user is None
        events = list(store._collection(AUDIT_LOG).values())
        assert [e["event_type"] for e in events] == ["auth_failed"]
        assert events[0]["details"]["category"] == "invalid_credential"

    def test_logout(self):
        identity = FakeIdentityProvider()
        auth = AuthFlow(identity, InMemoryDocumentStore())
        run(auth.login("a@b.co", "secret1"))
        assert auth.require_user().id == "uid-1"

        run(auth.logout())

        assert identity.logged_out is True
        assert auth.current_user is None
        with pytest.raises(NotAuthenticatedError):
            auth.require_user()

    def test_profile_write_failure_audited_and_raised(self, audit_logger, store):
        store.fail_upsert.add(USERS)
        auth = AuthFlow(FakeIdentityProvider(), store, audit_logger=audit_logger)

        with pytest.raises(StorageError):
            run(auth.register("a@b.co", "secret1", "Ann"))

        assert auth.current_user is None
        events = list(store._collection(AUDIT_LOG).values())
        assert [e["event_type"] for e in events] == ["system_error"]
        assert events[0]["details"]["user_id"] == "uid-1"

    def test_network_failure_audited_as_service_error(self, audit_logger, store):
        auth = AuthFlow(
            FakeIdentityProvider(error=IdentityNetworkError()),
            store,
            audit_logger=audit_logger,
        )

        with pytest.raises(IdentityNetworkError):
            run(auth.login("a@b.co", "secret1"))

        event_types = {e["event_type"] for e in store._collection(AUDIT_LOG).values()}
        assert event_types == {"auth_failed", "external_service_error"}
