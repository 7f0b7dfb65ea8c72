from sqlalchemy import BigInteger, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from models.base import Base, TimestampMixin


class RequestAttachment(TimestampMixin, Base):
    """
    Supporting document uploaded to a purchase request (quote, spec sheet, photo).
    file_path is an S3 URL or a path under UPLOAD_DIR.
    """
    __tablename__ = "request_attachments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    purchase_request_id = Column(
        Integer, ForeignKey("purchase_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)

    file_name = Column(String(255), nullable=False)
    file_path = Column(String(512), nullable=False)
    content_type = Column(String(100), nullable=True)
    size_bytes = Column(BigInteger, nullable=False, default=0)

    uploader = relationship("User", lazy="selectin")
