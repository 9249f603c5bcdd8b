"""
Ledger Service

Persists transactions and the account balances they derive.

DESIGN DECISION: Posting a transaction is two writes (the transaction,
then the adjusted balance) against a store with no multi-document
transactions. We treat the pair as ONE unit:

1. Validate everything before the first write
2. Write the transaction
3. Write the adjusted balance
4. If step 3 fails, undo step 2 (compensation) and report failure
5. If the undo also fails, persist a ReconciliationTask, log it as
   critical, and report failure

The caller never sees "success" when only one write landed.

KNOWN LIMITATION: two sessions editing the same account concurrently
are not guarded; the last balance write wins.
"""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

import structlog
from pydantic import ValidationError

from moneytracker.audit import AuditLogger
from moneytracker.ledger.rules import (
    LedgerError,
    MissingFieldError,
    post_transaction,
    reverse_transaction,
    signed_amount,
    validate_amount,
    validate_balance,
)
from moneytracker.models.audit import AuditEventType
from moneytracker.models.finance import (
    DEFAULT_CURRENCY,
    Account,
    AccountType,
    ReconciliationTask,
    Transaction,
    TransactionType,
)
from moneytracker.services.storage import (
    ACCOUNTS,
    RECONCILIATION,
    TRANSACTIONS,
    DocumentStore,
)


logger = structlog.get_logger(__name__)


class AccountNotFoundError(LedgerError):
    """Referenced account does not exist."""
    pass


class TransactionNotFoundError(LedgerError):
    """Referenced transaction does not exist."""
    pass


class OwnershipError(LedgerError):
    """Record belongs to a different user."""
    pass


class LedgerWriteError(LedgerError):
    """
    A balance-changing operation failed and was not applied.

    `reconciliation_task` is set when the store was left inconsistent
    and could not be repaired automatically.
    """

    def __init__(self, message: str, reconciliation_task: Optional[ReconciliationTask] = None):
        self.reconciliation_task = reconciliation_task
        super().__init__(message)


def _document(model) -> dict[str, Any]:
    return model.model_dump(mode="json", exclude={"id"})


def _sort_timestamp(value: datetime) -> datetime:
    # Naive timestamps are local time
    return value.astimezone(timezone.utc)


class LedgerService:
    """
    Accounts and transactions for one store.

    Every method takes the acting user's id and refuses records owned
    by anyone else.
    """

    def __init__(
        self,
        store: DocumentStore,
        audit_logger: Optional[AuditLogger] = None,
        default_currency: str = DEFAULT_CURRENCY,
    ):
        self._store = store
        self._audit_logger = audit_logger
        self._default_currency = default_currency

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def list_accounts(self, user_id: str) -> list[Account]:
        docs = await self._store.list_by_owner(ACCOUNTS, user_id)
        return sorted(
            (Account.model_validate(doc) for doc in docs),
            key=lambda a: a.name.lower(),
        )

    async def get_account(self, user_id: str, account_id: str) -> Account:
        doc = await self._store.get(ACCOUNTS, account_id)
        if doc is None:
            raise AccountNotFoundError(f"Account not found: {account_id}")
        account = Account.model_validate(doc)
        if account.user_id != user_id:
            raise OwnershipError("Account belongs to another user")
        return account

    async def create_account(
        self,
        user_id: str,
        name: str,
        account_type: AccountType = AccountType.BANK,
        opening_balance: Any = 0,
        currency: Optional[str] = None,
        bank_name: Optional[str] = None,
    ) -> Account:
        """
        Create an account with an opening balance.

        The opening balance may be zero or negative (an overdrawn
        account); it must still be a finite number.
        """
        if not name or not str(name).strip():
            raise MissingFieldError("name")
        balance = validate_balance(opening_balance)

        try:
            account = Account(
                user_id=user_id,
                name=name,
                type=account_type,
                balance=balance,
                currency=currency or self._default_currency,
                bank_name=bank_name or None,
            )
        except ValidationError as e:
            raise LedgerError(f"Invalid account: {e}") from e

        await self._store.upsert(ACCOUNTS, account.id, _document(account))

        if self._audit_logger:
            await self._audit_logger.log_account_changed(
                AuditEventType.ACCOUNT_CREATED,
                user_id=user_id,
                account_id=account.id,
                name=account.name,
                balance=str(account.balance),
            )
        return account

    async def update_account(
        self,
        user_id: str,
        account_id: str,
        name: Optional[str] = None,
        account_type: Optional[AccountType] = None,
        currency: Optional[str] = None,
        bank_name: Optional[str] = None,
    ) -> Account:
        """
        Edit descriptive fields of an account.

        The balance is NOT editable here; it only moves through
        transactions.
        """
        account = await self.get_account(user_id, account_id)

        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = name
        if account_type is not None:
            changes["type"] = account_type
        if currency is not None:
            changes["currency"] = currency
        if bank_name is not None:
            changes["bank_name"] = bank_name or None

        try:
            updated = Account.model_validate({**account.model_dump(), **changes})
        except ValidationError as e:
            raise LedgerError(f"Invalid account: {e}") from e

        fields = {
            k: v for k, v in _document(updated).items()
            if k in {"name", "type", "currency", "bank_name"}
        }
        await self._store.upsert(ACCOUNTS, account_id, fields)

        if self._audit_logger:
            await self._audit_logger.log_account_changed(
                AuditEventType.ACCOUNT_UPDATED,
                user_id=user_id,
                account_id=account_id,
                name=updated.name,
                balance=str(updated.balance),
            )
        return updated

    async def delete_account(self, user_id: str, account_id: str) -> None:
        """
        Delete an account.

        Its transactions are kept; deleting one later removes the
        record without a balance adjustment.
        """
        account = await self.get_account(user_id, account_id)
        await self._store.delete(ACCOUNTS, account_id)

        if self._audit_logger:
            await self._audit_logger.log_account_changed(
                AuditEventType.ACCOUNT_DELETED,
                user_id=user_id,
                account_id=account_id,
                name=account.name,
                balance=str(account.balance),
            )

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def list_transactions(self, user_id: str) -> list[Transaction]:
        """All of a user's transactions, newest first."""
        docs = await self._store.list_by_owner(TRANSACTIONS, user_id)
        transactions = [Transaction.model_validate(doc) for doc in docs]
        transactions.sort(key=lambda t: _sort_timestamp(t.date), reverse=True)
        return transactions

    async def record_transaction(
        self,
        user_id: str,
        account_id: str,
        amount: Any,
        transaction_type: TransactionType,
        category: str,
        date: Optional[datetime] = None,
        note: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Transaction, Account]:
        """
        Post a transaction and adjust its account balance.

        Returns:
            (transaction, account with the new balance)

        Raises:
            LedgerError subclasses for invalid input (nothing written)
            LedgerWriteError if the store rejected a write
        """
        try:
            amount = validate_amount(amount)
            if not category or not str(category).strip():
                raise MissingFieldError("category")
            signed_amount(amount, transaction_type)
        except LedgerError as e:
            if self._audit_logger:
                await self._audit_logger.log_transaction_rejected(
                    user_id=user_id,
                    reason=str(e),
                    correlation_id=correlation_id,
                )
            raise

        account = await self.get_account(user_id, account_id)

        try:
            transaction = Transaction(
                user_id=user_id,
                account_id=account_id,
                amount=amount,
                type=transaction_type,
                category=category,
                date=date or datetime.now(timezone.utc),
                note=note or None,
            )
        except ValidationError as e:
            raise LedgerError(f"Invalid transaction: {e}") from e

        updated = post_transaction(account, amount, transaction_type)

        try:
            await self._store.upsert(TRANSACTIONS, transaction.id, _document(transaction))
        except Exception as e:
            raise LedgerWriteError(f"Failed to save transaction: {e}") from e

        try:
            await self._store.upsert(ACCOUNTS, account.id, {"balance": str(updated.balance)})
        except Exception as e:
            await self._compensate(
                operation="record",
                user_id=user_id,
                transaction=transaction,
                expected_balance=updated.balance,
                error=e,
                undo=lambda: self._store.delete(TRANSACTIONS, transaction.id),
                correlation_id=correlation_id,
            )

        logger.info(
            "transaction_recorded",
            user_id=user_id,
            transaction_id=transaction.id,
            balance=str(updated.balance),
        )
        if self._audit_logger:
            await self._audit_logger.log_transaction_recorded(
                user_id=user_id,
                transaction_id=transaction.id,
                account_id=account.id,
                amount=str(amount),
                transaction_type=transaction.type.value,
                new_balance=str(updated.balance),
                correlation_id=correlation_id,
            )
        return transaction, updated

    async def delete_transaction(
        self,
        user_id: str,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[Account]:
        """
        Delete a transaction and reverse its balance adjustment.

        Returns:
            The account with the restored balance, or None when the
            account no longer exists.
        """
        doc = await self._store.get(TRANSACTIONS, transaction_id)
        if doc is None:
            raise TransactionNotFoundError(f"Transaction not found: {transaction_id}")
        transaction = Transaction.model_validate(doc)
        if transaction.user_id != user_id:
            raise OwnershipError("Transaction belongs to another user")

        account: Optional[Account] = None
        reversed_account: Optional[Account] = None
        try:
            account = await self.get_account(user_id, transaction.account_id)
        except AccountNotFoundError:
            logger.warning(
                "transaction_account_missing",
                transaction_id=transaction_id,
                account_id=transaction.account_id,
            )
        if account is not None:
            reversed_account = reverse_transaction(
                account, transaction.amount, transaction.type
            )

        try:
            await self._store.delete(TRANSACTIONS, transaction_id)
        except Exception as e:
            raise LedgerWriteError(f"Failed to delete transaction: {e}") from e

        if reversed_account is not None:
            try:
                await self._store.upsert(
                    ACCOUNTS, reversed_account.id, {"balance": str(reversed_account.balance)}
                )
            except Exception as e:
                await self._compensate(
                    operation="delete",
                    user_id=user_id,
                    transaction=transaction,
                    expected_balance=reversed_account.balance,
                    error=e,
                    undo=lambda: self._store.upsert(
                        TRANSACTIONS, transaction.id, _document(transaction)
                    ),
                    correlation_id=correlation_id,
                )

        if self._audit_logger:
            await self._audit_logger.log_transaction_deleted(
                user_id=user_id,
                transaction_id=transaction_id,
                account_id=transaction.account_id,
                amount=str(transaction.amount),
                transaction_type=transaction.type.value,
                new_balance=str(reversed_account.balance) if reversed_account else "",
                correlation_id=correlation_id,
            )
        return reversed_account

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _compensate(
        self,
        operation: str,
        user_id: str,
        transaction: Transaction,
        expected_balance,
        error: Exception,
        undo,
        correlation_id: Optional[UUID],
    ) -> None:
        """Undo the first write after the balance write failed, then raise."""
        try:
            await undo()
        except Exception as undo_error:
            task = ReconciliationTask(
                user_id=user_id,
                operation=operation,
                account_id=transaction.account_id,
                transaction_id=transaction.id,
                expected_balance=expected_balance,
                reason=f"balance write failed: {error}; undo failed: {undo_error}",
            )
            try:
                await self._store.upsert(RECONCILIATION, task.id, _document(task))
            except Exception as task_error:
                logger.critical(
                    "reconciliation_task_not_persisted",
                    task=task.model_dump(mode="json"),
                    error=str(task_error),
                )
            if self._audit_logger:
                await self._audit_logger.log_reconciliation_required(
                    user_id=user_id,
                    task_id=task.id,
                    operation=operation,
                    transaction_id=transaction.id,
                    account_id=transaction.account_id,
                    expected_balance=str(expected_balance),
                    error_message=task.reason,
                    correlation_id=correlation_id,
                )
            raise LedgerWriteError(
                "The account balance could not be updated and the change could "
                "not be undone; it has been flagged for reconciliation.",
                reconciliation_task=task,
            ) from error

        if self._audit_logger:
            await self._audit_logger.log_ledger_write_compensated(
                user_id=user_id,
                operation=operation,
                transaction_id=transaction.id,
                account_id=transaction.account_id,
                error_message=str(error),
                correlation_id=correlation_id,
            )
        raise LedgerWriteError(
            f"Failed to update account balance; the {operation} was not applied: {error}"
        ) from error
