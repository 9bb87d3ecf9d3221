"""Domain exceptions for wallet services.

Validation outcomes (bad deposit amount, limit exceeded) are returned as
result objects by the services; these exceptions cover the cases where an
operation cannot proceed at all.
"""

import functools
import logging

from fastapi import status
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class WalletError(Exception):
    """Base exception for wallet service errors."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "WALLET_ERROR"

    def __init__(self, message: str = "Wallet operation failed"):
        super().__init__(message)
        self.message = message


class NotFoundError(WalletError):
    """Referenced record does not exist in the caller's school."""
    status_code = status.HTTP_404_NOT_FOUND
    code = "RESOURCE_NOT_FOUND"


class PermissionDenied(WalletError):
    """Caller may not act on this record."""
    status_code = status.HTTP_403_FORBIDDEN
    code = "PERMISSION_DENIED"


class InsufficientFunds(WalletError):
    """Wallet balance is lower than the amount to debit."""
    code = "INSUFFICIENT_FUNDS"


class LimitExceeded(WalletError):
    """Purchase would break the student's daily or monthly limit."""
    code = "LIMIT_EXCEEDED"


class InvalidStateTransition(WalletError):
    """Deposit or gift is not in a state that allows this change."""
    status_code = status.HTTP_409_CONFLICT
    code = "INVALID_STATE_TRANSITION"


class StoreError(Exception):
    """The database could not be reached or rejected the statement."""

    def __init__(self, operation: str):
        super().__init__(f"Store failure during {operation}")
        self.operation = operation


def translate_store_errors(operation: str):
    """
    Log SQLAlchemy failures at the service boundary and re-raise them as
    StoreError, so callers can tell "not found" (None) from "store down".
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except SQLAlchemyError as exc:
                logger.exception("Store failure in %s", operation)
                raise StoreError(operation) from exc
        return wrapper
    return decorator
