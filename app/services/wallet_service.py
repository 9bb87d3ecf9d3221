"""Wallet Service - balances, catalog, favorites and point-of-sale purchases"""

import logging
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, delete, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import WalletPolicy
from app.core.exceptions import (
    InsufficientFunds,
    LimitExceeded,
    NotFoundError,
    StoreError,
    translate_store_errors,
)
from app.models.enums import TransactionStatus, TransactionType, UserRole
from app.models.user import User
from app.models.wallet import Favorite, Product, Transaction, WalletProfile
from app.schemas.wallet import BalanceResponse
from app.services.alert_service import AlertService
from app.services.spending_limit_service import SpendingLimitService

logger = logging.getLogger(__name__)


class WalletService:
    """Service layer for student wallets"""

    @staticmethod
    @translate_store_errors("get_student")
    async def get_student(db: AsyncSession, student_id: UUID, school_id: UUID) -> Optional[User]:
        result = await db.execute(
            select(User).where(
                User.id == student_id,
                User.school_id == school_id,
                User.role == UserRole.STUDENT,
                User.is_active == True,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    @translate_store_errors("get_wallet")
    async def get_wallet(
        db: AsyncSession,
        student_id: UUID,
        for_update: bool = False,
    ) -> Optional[WalletProfile]:
        stmt = select(WalletProfile).where(WalletProfile.student_id == student_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_balance(db: AsyncSession, student_id: UUID) -> BalanceResponse:
        wallet = await WalletService.get_wallet(db, student_id)
        if not wallet:
            return BalanceResponse(student_id=student_id, balance=Decimal("0.00"))
        return BalanceResponse(
            student_id=student_id,
            balance=wallet.balance,
            favorites_public=wallet.favorites_public,
        )

    @staticmethod
    def debit(wallet: Optional[WalletProfile], amount: Decimal) -> None:
        """Take `amount` from the (row-locked) wallet or raise InsufficientFunds"""
        balance = Decimal(wallet.balance) if wallet else Decimal("0")
        if balance < amount:
            raise InsufficientFunds(f"Balance {balance:.2f} is lower than {amount:.2f}")
        wallet.balance = balance - amount

    @staticmethod
    async def charge(
        db: AsyncSession,
        student_id: UUID,
        school_id: UUID,
        product: Product,
        policy: WalletPolicy,
    ) -> Decimal:
        """
        Debit the product price from the student's wallet inside the caller's
        transaction, after re-checking limits and restrictions under the
        wallet row lock. Returns the price charged.

        The limit row is loaded first because creating it commits, and a
        commit would release the lock.
        """
        price = Decimal(product.price)
        limit = await SpendingLimitService.get_or_create_limit(db, student_id, school_id, policy)
        wallet = await WalletService.get_wallet(db, student_id, for_update=True)

        decision = await SpendingLimitService.check_purchase(
            db, student_id, school_id, price, policy, limit=limit, product=product
        )
        if not decision.allowed:
            raise LimitExceeded(decision.reason or "Spending limit exceeded")

        WalletService.debit(wallet, price)
        return price

    @staticmethod
    @translate_store_errors("list_products")
    async def list_products(db: AsyncSession, school_id: UUID) -> List[Product]:
        result = await db.execute(
            select(Product)
            .where(Product.school_id == school_id, Product.is_available == True)
            .order_by(Product.name)
        )
        return list(result.scalars().all())

    @staticmethod
    @translate_store_errors("get_product")
    async def get_product(db: AsyncSession, product_id: UUID, school_id: UUID) -> Optional[Product]:
        result = await db.execute(
            select(Product).where(Product.id == product_id, Product.school_id == school_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    @translate_store_errors("toggle_favorite")
    async def toggle_favorite(
        db: AsyncSession,
        student_id: UUID,
        school_id: UUID,
        product_id: UUID,
    ) -> bool:
        """Flip the favorite mark; returns True if the product is now a favorite"""
        product = await WalletService.get_product(db, product_id, school_id)
        if not product:
            raise NotFoundError("Product not found")

        existing = await db.scalar(
            select(Favorite.id).where(
                Favorite.student_id == student_id,
                Favorite.product_id == product_id,
            )
        )
        if existing:
            await db.execute(delete(Favorite).where(Favorite.id == existing))
            await db.commit()
            return False

        db.add(Favorite(student_id=student_id, product_id=product_id, school_id=school_id))
        await db.commit()
        return True

    @staticmethod
    @translate_store_errors("list_favorites")
    async def list_favorites(db: AsyncSession, student_id: UUID, school_id: UUID) -> List[Product]:
        result = await db.execute(
            select(Product)
            .join(Favorite, Favorite.product_id == Product.id)
            .where(Favorite.student_id == student_id, Favorite.school_id == school_id)
            .order_by(Product.name)
        )
        return list(result.scalars().all())

    @staticmethod
    @translate_store_errors("list_transactions")
    async def list_transactions(
        db: AsyncSession,
        student_id: UUID,
        school_id: UUID,
        limit: int = 50,
    ) -> List[Transaction]:
        result = await db.execute(
            select(Transaction)
            .where(Transaction.student_id == student_id, Transaction.school_id == school_id)
            .order_by(desc(Transaction.created_at), desc(Transaction.id))
            .limit(limit)
        )
        return list(result.scalars().all())

    @staticmethod
    @translate_store_errors("record_purchase")
    async def record_purchase(
        db: AsyncSession,
        student_id: UUID,
        school_id: UUID,
        product_id: UUID,
        operating_unit_id: Optional[UUID],
        policy: WalletPolicy,
    ) -> Transaction:
        """
        Charge a student for a product.

        Limit check, balance debit and ledger entry happen under the wallet
        row lock before a single commit; alert evaluation runs afterwards and
        cannot undo the sale.
        """
        if not await WalletService.get_student(db, student_id, school_id):
            raise NotFoundError("Student not found")
        product = await WalletService.get_product(db, product_id, school_id)
        if not product or not product.is_available:
            raise NotFoundError("Product not available")

        price = await WalletService.charge(db, student_id, school_id, product, policy)

        txn = Transaction(
            student_id=student_id,
            school_id=school_id,
            type=TransactionType.PURCHASE,
            status=TransactionStatus.COMPLETED,
            amount=price,
            product_id=product.id,
            operating_unit_id=operating_unit_id,
            description=product.name,
        )
        db.add(txn)
        await db.commit()
        await db.refresh(txn)

        await WalletService.run_alerts(db, student_id, school_id, policy)
        return txn

    @staticmethod
    async def run_alerts(db: AsyncSession, student_id: UUID, school_id: UUID, policy: WalletPolicy) -> None:
        try:
            await AlertService.evaluate_alerts_for_transaction(db, student_id, school_id, policy)
        except StoreError:
            logger.warning("Alert evaluation skipped", extra={"student_id": str(student_id)})
