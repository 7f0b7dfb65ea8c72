from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Numeric
from sqlalchemy.orm import relationship

from models.base import Base, TimestampMixin


class ItemBudget(TimestampMixin, Base):
    """
    Supplier price quotation for a request item. Not coupled to request status.
    """
    __tablename__ = "item_budgets"
    __table_args__ = (
        CheckConstraint("unit_price > 0", name="unit_price_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    purchase_request_id = Column(Integer, ForeignKey("purchase_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    request_item_id = Column(Integer, ForeignKey("request_items.id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False, index=True)
    unit_price = Column(Numeric(12, 2), nullable=False)

    supplier = relationship("Supplier", lazy="selectin")
