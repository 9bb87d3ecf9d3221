"""Centralized Enum Definitions"""

import enum


# Users
class UserRole(str, enum.Enum):
    """User roles for RBAC"""
    STUDENT = "student"
    PARENT = "parent"
    SCHOOL_ADMIN = "school_admin"


# Ledger
class TransactionType(str, enum.Enum):
    """Wallet ledger entry types"""
    PURCHASE = "purchase"
    DEPOSIT = "deposit"
    GIFT = "gift"
    REFUND = "refund"


class TransactionStatus(str, enum.Enum):
    """Ledger entry status"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


# Deposits
class DepositStatus(str, enum.Enum):
    """Deposit lifecycle: PENDING -> COMPLETED | FAILED | CANCELLED"""
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self != DepositStatus.PENDING


class PaymentMethodType(str, enum.Enum):
    """How a parent funds deposits"""
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"


# Alerts
class AlertType(str, enum.Enum):
    """Why a parent alert was raised"""
    HIGH_SPENDING = "high_spending"
    LIMIT_EXCEEDED = "limit_exceeded"
    SUSPICIOUS_ACTIVITY = "suspicious_activity"
    BALANCE_LOW = "balance_low"


class AlertSeverity(str, enum.Enum):
    """Alert severity"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Social
class GiftStatus(str, enum.Enum):
    """Gift lifecycle: pending -> redeemed"""
    PENDING = "pending"
    REDEEMED = "redeemed"
