from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from constants.statuses import ITEM_PENDING, PRIORITY_NORMAL, REQUEST_PENDING
from models.base import Base, TimestampMixin


class PurchaseRequest(TimestampMixin, Base):
    """
    Purchase request owned by a requester, scoped to the requester's sector.
    Status is driven by the lifecycle service; see apps.lifecycle.
    """
    __tablename__ = "purchase_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    requester_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    # Copied from the requester at creation time
    sector_id = Column(Integer, ForeignKey("sectors.id", ondelete="RESTRICT"), nullable=False, index=True)

    status = Column(String(20), nullable=False, default=REQUEST_PENDING, server_default=REQUEST_PENDING, index=True)
    observations = Column(Text, nullable=True)

    # Admin review
    admin_notes = Column(Text, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    # Completion
    completion_notes = Column(Text, nullable=True)
    completed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Priority
    priority = Column(String(20), nullable=False, default=PRIORITY_NORMAL, server_default=PRIORITY_NORMAL, index=True)
    priority_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    priority_at = Column(DateTime(timezone=True), nullable=True)
    priority_notes = Column(Text, nullable=True)

    requester = relationship("User", foreign_keys=[requester_id], lazy="selectin")
    sector = relationship("Sector", lazy="selectin")
    # Soft-deleted items are invisible to the collection
    items = relationship(
        "RequestItem",
        primaryjoin="and_(RequestItem.purchase_request_id == PurchaseRequest.id, RequestItem.deleted_at.is_(None))",
        back_populates="purchase_request",
        order_by="RequestItem.id",
        lazy="selectin",
    )


class RequestItem(TimestampMixin, Base):
    """
    Line item of a purchase request. Reviewed individually by an admin.
    """
    __tablename__ = "request_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="quantity_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    purchase_request_id = Column(Integer, ForeignKey("purchase_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=ITEM_PENDING, server_default=ITEM_PENDING, index=True)
    deadline = Column(DateTime(timezone=True), nullable=True)
    admin_notes = Column(Text, nullable=True)
    # Required while suspended, cleared otherwise
    suspension_reason = Column(Text, nullable=True)

    purchase_request = relationship("PurchaseRequest", back_populates="items", lazy="selectin")
    product = relationship("Product", lazy="selectin")
