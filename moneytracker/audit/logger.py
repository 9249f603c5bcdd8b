"""
Audit Logger

DESIGN DECISION: Every balance change, price refresh and sign-in is logged.
This provides:
1. Complete traceability of ledger writes
2. Debugging capability for partially applied operations
3. A durable trail for reconciliation

A failed audit write is logged locally and reported as False; it never
fails the operation being audited. Events from one user action (a batch
price refresh) share a correlation id.
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from moneytracker.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from moneytracker.services.storage import AUDIT_LOG, DocumentStore


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The document store's audit collection (for persistence)
    """

    def __init__(
        self,
        storage: Optional[DocumentStore] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Document store for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("moneytracker.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                await self._storage.upsert(
                    AUDIT_LOG, str(event.event_id), event.to_document()
                )
                return True
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_user_registered(self, user_id: str, email: str) -> None:
        await self.log(AuditEventBuilder.user_registered(user_id, email))

    async def log_user_logged_in(self, user_id: str) -> None:
        await self.log(AuditEventBuilder.user_logged_in(user_id))

    async def log_user_logged_out(self, user_id: Optional[str]) -> None:
        await self.log(AuditEventBuilder.user_logged_out(user_id))

    async def log_auth_failed(self, email: str, category: str, message: str) -> None:
        await self.log(AuditEventBuilder.auth_failed(email, category, message))

    async def log_account_changed(
        self,
        event_type: AuditEventType,
        user_id: str,
        account_id: str,
        name: str,
        balance: str,
    ) -> None:
        """Log account creation, update or deletion."""
        await self.log(AuditEventBuilder.account_changed(
            event_type=event_type,
            user_id=user_id,
            account_id=account_id,
            name=name,
            balance=balance,
        ))

    async def log_transaction_recorded(
        self,
        user_id: str,
        transaction_id: str,
        account_id: str,
        amount: str,
        transaction_type: str,
        new_balance: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_recorded(
            user_id=user_id,
            transaction_id=transaction_id,
            account_id=account_id,
            amount=amount,
            transaction_type=transaction_type,
            new_balance=new_balance,
            correlation_id=correlation_id,
        ))

    async def log_transaction_deleted(
        self,
        user_id: str,
        transaction_id: str,
        account_id: str,
        amount: str,
        transaction_type: str,
        new_balance: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(
            user_id=user_id,
            transaction_id=transaction_id,
            account_id=account_id,
            amount=amount,
            transaction_type=transaction_type,
            new_balance=new_balance,
            correlation_id=correlation_id,
        ))

    async def log_transaction_rejected(
        self,
        user_id: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_rejected(
            user_id=user_id,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_ledger_write_compensated(
        self,
        user_id: str,
        operation: str,
        transaction_id: str,
        account_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.ledger_write_compensated(
            user_id=user_id,
            operation=operation,
            transaction_id=transaction_id,
            account_id=account_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_reconciliation_required(
        self,
        user_id: str,
        task_id: str,
        operation: str,
        transaction_id: str,
        account_id: str,
        expected_balance: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.reconciliation_required(
            user_id=user_id,
            task_id=task_id,
            operation=operation,
            transaction_id=transaction_id,
            account_id=account_id,
            expected_balance=expected_balance,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_position_changed(
        self,
        event_type: AuditEventType,
        user_id: str,
        position_id: str,
        symbol: str,
        details: Optional[dict] = None,
    ) -> None:
        await self.log(AuditEventBuilder.position_changed(
            event_type=event_type,
            user_id=user_id,
            position_id=position_id,
            symbol=symbol,
            details=details,
        ))

    async def log_price_refreshed(
        self,
        user_id: str,
        position_id: str,
        symbol: str,
        old_price: str,
        new_price: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.price_refreshed(
            user_id=user_id,
            position_id=position_id,
            symbol=symbol,
            old_price=old_price,
            new_price=new_price,
            correlation_id=correlation_id,
        ))

    async def log_price_refresh_failed(
        self,
        user_id: str,
        position_id: str,
        symbol: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.price_refresh_failed(
            user_id=user_id,
            position_id=position_id,
            symbol=symbol,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., a batch price refresh)
    and pass it through all subsequent operations.
    """
    return uuid4()
