from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from boom.auth import get_current_user
from boom.database import get_db
from boom.models.user import User
from boom.models.video import Video
from boom.schemas.transfer import GiftReceivedItem, GiftSentItem, PurchaseItem, UserSummary, VideoSummary
from boom.schemas.video import CreatorVideoItem
from boom.services import ledger

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/videos", response_model=list[CreatorVideoItem])
def get_my_videos(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Videos created by the current user, newest first."""
    videos = db.query(Video).filter(Video.creator_id == user.id).order_by(Video.created_at.desc()).all()
    return [
        CreatorVideoItem(
            id=v.id,
            title=v.title,
            video_type=v.video_type,
            price=v.price,
            view_count=v.view_count,
            created_at=v.created_at,
        )
        for v in videos
    ]


@router.get("/purchases", response_model=list[PurchaseItem])
def get_my_purchases(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [
        PurchaseItem(
            id=p.id,
            video=VideoSummary(id=p.video.id, title=p.video.title, video_type=p.video.video_type),
            amount=p.amount,
            created_at=p.created_at,
        )
        for p in ledger.list_purchases(db, user.id)
    ]


@router.get("/gifts", response_model=list[GiftReceivedItem])
def get_gifts_received(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Gifts received by the current user as a creator."""
    return [
        GiftReceivedItem(
            id=g.id,
            sender=UserSummary(id=g.sender.id, username=g.sender.username),
            video=VideoSummary(id=g.video.id, title=g.video.title),
            amount=g.amount,
            created_at=g.created_at,
        )
        for g in ledger.list_gifts_received(db, user.id)
    ]


@router.get("/gifts/sent", response_model=list[GiftSentItem])
def get_gifts_sent(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [
        GiftSentItem(
            id=g.id,
            receiver_id=g.receiver_id,
            video=VideoSummary(id=g.video.id, title=g.video.title),
            amount=g.amount,
            created_at=g.created_at,
        )
        for g in ledger.list_gifts_sent(db, user.id)
    ]
