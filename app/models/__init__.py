"""Models Package - Export all models for easy imports"""

from app.models.base import BaseModel, SchoolScopedMixin, StatusMixin
from app.models.enums import *
from app.models.school import School, OperatingUnit
from app.models.user import User, ParentStudentLink
from app.models.wallet import WalletProfile, Product, Favorite, Transaction
from app.models.limits import SpendingLimit
from app.models.deposit import Deposit, PaymentMethod
from app.models.alert import Alert, AlertConfig
from app.models.gift import Gift, ThankYouNote


__all__ = [
    # Base classes
    "BaseModel",
    "SchoolScopedMixin",
    "StatusMixin",

    # Schools
    "School",
    "OperatingUnit",

    # Users
    "User",
    "ParentStudentLink",

    # Wallet
    "WalletProfile",
    "Product",
    "Favorite",
    "Transaction",

    # Limits
    "SpendingLimit",

    # Deposits
    "Deposit",
    "PaymentMethod",

    # Alerts
    "Alert",
    "AlertConfig",

    # Social
    "Gift",
    "ThankYouNote",
]
