"""Uploaded or linked video. Long videos with a price are paid; everything else is free to watch."""
import uuid
import enum
from datetime import datetime
from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from boom.database import Base


class VideoType(str, enum.Enum):
    SHORT = "short"
    LONG = "long"


class Video(Base):
    __tablename__ = "videos"
    __table_args__ = (CheckConstraint("price >= 0", name="ck_videos_price_non_negative"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    video_type = Column(String(10), nullable=False)
    price = Column(Integer, nullable=False, default=0)
    creator_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    video_url = Column(String(1024), nullable=True)  # external link (long videos)
    storage_path = Column(String(512), nullable=True)  # key in media storage
    view_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    creator = relationship("User")

    @property
    def is_paid(self) -> bool:
        """Only long videos carry a price; a short video's price is ignored."""
        return self.video_type == VideoType.LONG.value and (self.price or 0) > 0
