from datetime import datetime
from pydantic import BaseModel


class CreatorInfo(BaseModel):
    id: str
    username: str


class VideoResponse(BaseModel):
    """Video as seen by one viewer. video_url is null when the viewer has not bought a paid video."""
    id: str
    title: str
    description: str
    video_type: str
    price: int
    creator: CreatorInfo
    video_url: str | None
    purchased: bool
    view_count: int
    created_at: datetime


class VideoListResponse(BaseModel):
    videos: list[VideoResponse]
    page: int
    limit: int


class VideoCreatedResponse(BaseModel):
    message: str
    video: VideoResponse


class CreatorVideoItem(BaseModel):
    id: str
    title: str
    video_type: str
    price: int
    view_count: int
    created_at: datetime
