"""API V1 Router"""

from fastapi import APIRouter

# Import endpoint routers
from app.api.v1.endpoints import (
    wallet, limits, deposits, payment_methods,
    alerts, reports, gifts
)

# Create API v1 router
api_router = APIRouter()

# Include endpoint routers with prefixes and tags
api_router.include_router(wallet.router, prefix="/wallet", tags=["Wallet"])
api_router.include_router(limits.router, prefix="/limits", tags=["Spending Limits"])
api_router.include_router(deposits.router, prefix="/deposits", tags=["Deposits"])
api_router.include_router(payment_methods.router, prefix="/payment-methods", tags=["Payment Methods"])
api_router.include_router(alerts.router, prefix="/alerts", tags=["Parent Alerts"])
api_router.include_router(reports.router, prefix="/reports", tags=["Reports"])
api_router.include_router(gifts.router, prefix="/gifts", tags=["Gifts"])
