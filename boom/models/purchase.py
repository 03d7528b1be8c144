import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from boom.database import Base


class Purchase(Base):
    """Ledger row for a completed purchase. Amount is the price at the time of purchase."""
    __tablename__ = "purchases"
    __table_args__ = (UniqueConstraint("buyer_id", "video_id", name="uq_purchases_buyer_video"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    buyer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    video_id = Column(String(36), ForeignKey("videos.id"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    video = relationship("Video")
