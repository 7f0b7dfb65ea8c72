from sqlalchemy import Column, Integer, String

from models.base import Base, TimestampMixin


class Sector(TimestampMixin, Base):
    """
    Organizational unit. Scopes which products a requester may order.
    """
    __tablename__ = "sectors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True, index=True)
