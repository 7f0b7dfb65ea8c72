from sqlalchemy import Column, Integer, String, Text

from models.base import Base, TimestampMixin


class Supplier(TimestampMixin, Base):
    """
    Supplier quoted in budgets and recorded as deliverer on receipts.
    """
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    cnpj = Column(String(20), nullable=True)
    contact = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    observations = Column(Text, nullable=True)
