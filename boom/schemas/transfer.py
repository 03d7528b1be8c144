from datetime import datetime
from pydantic import BaseModel, Field
from boom.models.user import MAX_AMOUNT


class PurchaseResponse(BaseModel):
    message: str = "Video purchased successfully"
    new_balance: int
    video_url: str | None


class GiftRequest(BaseModel):
    # positivity is checked by the transfer engine
    amount: int = Field(le=MAX_AMOUNT)


class GiftResponse(BaseModel):
    message: str = "Gift sent successfully"
    new_balance: int


class VideoSummary(BaseModel):
    id: str
    title: str
    video_type: str | None = None


class UserSummary(BaseModel):
    id: str
    username: str


class PurchaseItem(BaseModel):
    id: str
    video: VideoSummary
    amount: int
    created_at: datetime


class GiftReceivedItem(BaseModel):
    id: str
    sender: UserSummary
    video: VideoSummary
    amount: int
    created_at: datetime


class GiftSentItem(BaseModel):
    id: str
    receiver_id: str
    video: VideoSummary
    amount: int
    created_at: datetime
