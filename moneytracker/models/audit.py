"""
Audit Models for Money Tracker

Every balance-changing or externally visible action is logged for audit
purposes. This provides:
1. Traceability of every balance adjustment
2. Debugging information when a two-step write goes wrong
3. The record a reconciliation starts from

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from moneytracker.models.finance import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Identity
    USER_REGISTERED = "user_registered"
    USER_LOGGED_IN = "user_logged_in"
    USER_LOGGED_OUT = "user_logged_out"
    AUTH_FAILED = "auth_failed"

    # Accounts
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_UPDATED = "account_updated"
    ACCOUNT_DELETED = "account_deleted"

    # Ledger
    TRANSACTION_RECORDED = "transaction_recorded"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTION_REJECTED = "transaction_rejected"
    LEDGER_WRITE_COMPENSATED = "ledger_write_compensated"
    RECONCILIATION_REQUIRED = "reconciliation_required"

    # Portfolio
    POSITION_ADDED = "position_added"
    POSITION_DELETED = "position_deleted"
    PRICE_REFRESHED = "price_refreshed"
    PRICE_REFRESH_FAILED = "price_refresh_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which user and which record
    user_id: Optional[str] = None
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'account', 'transaction', 'stock')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one batch refresh)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_document(self) -> dict:
        """Convert to the field mapping stored in the audit collection."""
        return self.model_dump(mode="json", exclude={"event_id"})


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_recorded(tx, new_balance)
        event = AuditEventBuilder.price_refresh_failed(user_id, id, symbol)
    """

    @staticmethod
    def user_registered(user_id: str, email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REGISTERED,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            description=f"User registered: {email}",
            is_user_action=True,
        )

    @staticmethod
    def user_logged_in(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_IN,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            description="User logged in",
            is_user_action=True,
        )

    @staticmethod
    def user_logged_out(user_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_OUT,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            description="User logged out",
            is_user_action=True,
        )

    @staticmethod
    def auth_failed(email: str, category: str, message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description=f"Authentication failed ({category})",
            details={"email": email, "category": category},
            error_message=message,
            is_user_action=True,
        )

    @staticmethod
    def account_changed(
        event_type: AuditEventType,
        user_id: str,
        account_id: str,
        name: str,
        balance: str,
    ) -> AuditEvent:
        action = event_type.value.split("_", 1)[1]
        return AuditEvent(
            event_type=event_type,
            user_id=user_id,
            entity_type="account",
            entity_id=account_id,
            description=f"Account {action}: {name}",
            details={"name": name, "balance": balance},
            is_user_action=True,
        )

    @staticmethod
    def transaction_recorded(
        user_id: str,
        transaction_id: str,
        account_id: str,
        amount: str,
        transaction_type: str,
        new_balance: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_RECORDED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"{transaction_type} of {amount} recorded",
            details={
                "account_id": account_id,
                "amount": amount,
                "type": transaction_type,
                "new_balance": new_balance,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        user_id: str,
        transaction_id: str,
        account_id: str,
        amount: str,
        transaction_type: str,
        new_balance: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"{transaction_type} of {amount} deleted and reversed",
            details={
                "account_id": account_id,
                "amount": amount,
                "type": transaction_type,
                "new_balance": new_balance,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_rejected(
        user_id: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="transaction",
            correlation_id=correlation_id,
            description="Transaction rejected before any write",
            error_message=reason,
            is_user_action=True,
        )

    @staticmethod
    def ledger_write_compensated(
        user_id: str,
        operation: str,
        transaction_id: str,
        account_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_WRITE_COMPENSATED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Balance write failed during {operation}; transaction write undone",
            details={"operation": operation, "account_id": account_id},
            error_message=error_message,
        )

    @staticmethod
    def reconciliation_required(
        user_id: str,
        task_id: str,
        operation: str,
        transaction_id: str,
        account_id: str,
        expected_balance: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECONCILIATION_REQUIRED,
            severity=AuditSeverity.CRITICAL,
            user_id=user_id,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Ledger left inconsistent during {operation}; reconciliation needed",
            details={
                "task_id": task_id,
                "operation": operation,
                "transaction_id": transaction_id,
                "expected_balance": expected_balance,
            },
            error_message=error_message,
        )

    @staticmethod
    def position_changed(
        event_type: AuditEventType,
        user_id: str,
        position_id: str,
        symbol: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        action = event_type.value.split("_", 1)[1]
        return AuditEvent(
            event_type=event_type,
            user_id=user_id,
            entity_type="stock",
            entity_id=position_id,
            description=f"Position {action}: {symbol}",
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def price_refreshed(
        user_id: str,
        position_id: str,
        symbol: str,
        old_price: str,
        new_price: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRICE_REFRESHED,
            user_id=user_id,
            entity_type="stock",
            entity_id=position_id,
            correlation_id=correlation_id,
            description=f"Price of {symbol} updated: {old_price} -> {new_price}",
            details={
                "symbol": symbol,
                "old_price": old_price,
                "new_price": new_price,
            },
        )

    @staticmethod
    def price_refresh_failed(
        user_id: str,
        position_id: str,
        symbol: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRICE_REFRESH_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="stock",
            entity_id=position_id,
            correlation_id=correlation_id,
            description=f"Could not fetch data for {symbol}",
            details={"symbol": symbol},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
