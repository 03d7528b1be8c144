"""Grant for one account to watch one paid video. Written by a successful purchase, never removed."""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey
from boom.database import Base


class VideoEntitlement(Base):
    __tablename__ = "video_entitlements"

    # composite primary key: at most one grant per (video, user)
    video_id = Column(String(36), ForeignKey("videos.id"), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), primary_key=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
