"""Payment Method Service"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import translate_store_errors
from app.models.deposit import PaymentMethod
from app.schemas.deposit import PaymentMethodCreate


class PaymentMethodService:
    """Parent-owned payment methods; at most one active default each"""

    @staticmethod
    async def _clear_defaults(db: AsyncSession, parent_user_id: UUID) -> None:
        await db.execute(
            update(PaymentMethod)
            .where(
                PaymentMethod.parent_user_id == parent_user_id,
                PaymentMethod.is_default == True,
            )
            .values(is_default=False)
        )

    @staticmethod
    @translate_store_errors("add_payment_method")
    async def add_payment_method(
        db: AsyncSession,
        parent_user_id: UUID,
        school_id: UUID,
        data: PaymentMethodCreate,
    ) -> PaymentMethod:
        existing = await PaymentMethodService.list_payment_methods(db, parent_user_id)
        # The first method a parent registers becomes the default
        make_default = data.is_default or not existing
        if make_default:
            await PaymentMethodService._clear_defaults(db, parent_user_id)

        method = PaymentMethod(
            parent_user_id=parent_user_id,
            school_id=school_id,
            method_type=data.method_type,
            label=data.label,
            last_four=data.last_four,
            is_default=make_default,
            is_active=True,
        )
        db.add(method)
        await db.commit()
        await db.refresh(method)
        return method

    @staticmethod
    @translate_store_errors("list_payment_methods")
    async def list_payment_methods(db: AsyncSession, parent_user_id: UUID) -> List[PaymentMethod]:
        result = await db.execute(
            select(PaymentMethod)
            .where(
                PaymentMethod.parent_user_id == parent_user_id,
                PaymentMethod.is_active == True,
            )
            .order_by(desc(PaymentMethod.is_default), PaymentMethod.created_at)
        )
        return list(result.scalars().all())

    @staticmethod
    @translate_store_errors("get_payment_method")
    async def get_payment_method(
        db: AsyncSession,
        method_id: UUID,
        parent_user_id: UUID,
    ) -> Optional[PaymentMethod]:
        result = await db.execute(
            select(PaymentMethod).where(
                PaymentMethod.id == method_id,
                PaymentMethod.parent_user_id == parent_user_id,
                PaymentMethod.is_active == True,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    @translate_store_errors("set_default")
    async def set_default(
        db: AsyncSession,
        method_id: UUID,
        parent_user_id: UUID,
    ) -> Optional[PaymentMethod]:
        method = await PaymentMethodService.get_payment_method(db, method_id, parent_user_id)
        if not method:
            return None
        await PaymentMethodService._clear_defaults(db, parent_user_id)
        method.is_default = True
        await db.commit()
        await db.refresh(method)
        return method

    @staticmethod
    @translate_store_errors("deactivate")
    async def deactivate(db: AsyncSession, method_id: UUID, parent_user_id: UUID) -> bool:
        """Soft delete; deposits that referenced the method keep the id"""
        method = await PaymentMethodService.get_payment_method(db, method_id, parent_user_id)
        if not method:
            return False
        method.is_active = False
        method.is_default = False
        await db.commit()
        return True
