from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from constants.statuses import PRODUCT_AVAILABLE
from models.base import Base, TimestampMixin


class Product(TimestampMixin, Base):
    """
    Orderable product. Requesters may only order available products of their own sector.
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    unit = Column(String(50), nullable=False)
    sector_id = Column(Integer, ForeignKey("sectors.id", ondelete="RESTRICT"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=PRODUCT_AVAILABLE, server_default=PRODUCT_AVAILABLE)

    sector = relationship("Sector", lazy="selectin")
