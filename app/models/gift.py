"""Peer gifts and thank-you notes"""

from sqlalchemy import Column, String, Text, DateTime, Numeric, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.models.base import BaseModel, SchoolScopedMixin, pg_enum
from app.models.enums import GiftStatus


class Gift(BaseModel, SchoolScopedMixin):
    """
    Catalog item bought by one student for another.
    Stores a snapshot of the item so later price changes do not alter it.
    """
    __tablename__ = "gifts"

    sender_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    receiver_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id", ondelete="SET NULL"), nullable=True)

    item_name = Column(String(255), nullable=False)
    item_price = Column(Numeric(10, 2), nullable=False)
    message = Column(Text, nullable=True)

    redemption_code = Column(String(16), unique=True, nullable=False, index=True)
    status = Column(pg_enum(GiftStatus, "gift_status"), default=GiftStatus.PENDING, nullable=False, index=True)
    redeemed_at = Column(DateTime, nullable=True)
    redeemed_unit_id = Column(UUID(as_uuid=True), ForeignKey("operating_units.id", ondelete="SET NULL"), nullable=True)

    notes = relationship("ThankYouNote", back_populates="gift", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Gift {self.item_name} {self.redemption_code} ({self.status})>"


class ThankYouNote(BaseModel):
    """Message from a gift receiver back to the sender"""
    __tablename__ = "thank_you_notes"

    gift_id = Column(UUID(as_uuid=True), ForeignKey("gifts.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    receiver_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    body = Column(Text, nullable=False)

    gift = relationship("Gift", back_populates="notes")
