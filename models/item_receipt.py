from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from constants.statuses import CONDITION_GOOD
from models.base import Base, TimestampMixin


class ItemReceipt(TimestampMixin, Base):
    """
    Delivery recorded against an approved request item. Append-only;
    only attachment_path is patched after creation.
    """
    __tablename__ = "item_receipts"
    __table_args__ = (
        CheckConstraint("quantity_received > 0", name="quantity_received_positive"),
        CheckConstraint("rejected_quantity >= 0", name="rejected_quantity_non_negative"),
        CheckConstraint("rejected_quantity <= quantity_received", name="rejected_within_received"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    request_item_id = Column(Integer, ForeignKey("request_items.id", ondelete="CASCADE"), nullable=False, index=True)

    quantity_received = Column(Integer, nullable=False)
    rejected_quantity = Column(Integer, nullable=False, default=0, server_default="0")
    received_by = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)

    # Invoice / traceability
    invoice_number = Column(String(100), nullable=False)
    invoice_date = Column(DateTime(timezone=True), nullable=True)
    lot_number = Column(String(100), nullable=True)
    expiration_date = Column(DateTime(timezone=True), nullable=True)

    # Actual deliverer, may differ from the quoted supplier
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True, index=True)

    notes = Column(Text, nullable=True)
    attachment_path = Column(String(512), nullable=True)
    receipt_condition = Column(String(50), nullable=False, default=CONDITION_GOOD, server_default=CONDITION_GOOD)

    # Quality control
    quality_checked = Column(Boolean, nullable=False, default=False, server_default="false")
    quality_notes = Column(Text, nullable=True)

    request_item = relationship("RequestItem", lazy="selectin")
    receiver = relationship("User", lazy="selectin")
    supplier = relationship("Supplier", lazy="selectin")

    @property
    def net_quantity(self) -> int:
        return (self.quantity_received or 0) - (self.rejected_quantity or 0)
