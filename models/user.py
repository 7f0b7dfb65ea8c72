from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from constants.roles import REQUESTER
from models.base import Base, TimestampMixin


class User(TimestampMixin, Base):
    """
    User ORM model.
    - Unique email
    - Stores only a secure password hash (never plaintext)
    - Single role: admin or requester
    - Requests are scoped to the user's sector
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(100), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=REQUESTER, server_default=REQUESTER)
    sector_id = Column(Integer, ForeignKey("sectors.id", ondelete="RESTRICT"), nullable=False, index=True)

    sector = relationship("Sector", lazy="selectin")

    def to_public_dict(self) -> dict:
        """
        Returns a sanitized dict without sensitive fields.
        """
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "sectorId": self.sector_id,
            "sectorName": self.sector.name if self.sector else None,
        }
