from boom.models.user import MAX_AMOUNT, User
from boom.models.video import Video, VideoType
from boom.models.video_entitlement import VideoEntitlement
from boom.models.purchase import Purchase
from boom.models.gift import Gift

__all__ = ["MAX_AMOUNT", "User", "Video", "VideoType", "VideoEntitlement", "Purchase", "Gift"]
