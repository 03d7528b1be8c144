"""
Videos: upload/link, browse, and the money endpoints (purchase, gift).
Paid long videos only expose a playable URL to their creator and to buyers.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Form, Query
from sqlalchemy.orm import Session, joinedload
from boom.auth import get_current_user
from boom.database import begin_write, get_db
from boom.models.user import MAX_AMOUNT, User
from boom.models.video import Video, VideoType
from boom.schemas.transfer import GiftRequest, GiftResponse, PurchaseResponse
from boom.schemas.video import CreatorInfo, VideoCreatedResponse, VideoListResponse, VideoResponse
from boom.services import transfer_engine
from boom.services.access_resolver import AccessResult, resolve_access
from boom.services.media_storage import MediaStorage, MediaStorageError, get_media_storage

router = APIRouter(prefix="/api/videos", tags=["videos"])
logger = logging.getLogger(__name__)


def _video_response(video: Video, access: AccessResult) -> VideoResponse:
    return VideoResponse(
        id=video.id,
        title=video.title,
        description=video.description or "",
        video_type=video.video_type,
        price=video.price,
        creator=CreatorInfo(id=video.creator.id, username=video.creator.username),
        video_url=access.access_url,
        purchased=access.entitled,
        view_count=video.view_count,
        created_at=video.created_at,
    )


# ---------- Creator: upload ----------


@router.post("", response_model=VideoCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_video(
    title: str = Form(...),
    description: str = Form(""),
    video_type: str = Form(...),
    price: int = Form(0),
    video_url: str | None = Form(None),
    video_file: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    """
    Short videos must be uploaded as a file. Long videos take a file or an external URL
    and may carry a price; the price of a short video is always 0.
    """
    if video_type not in (VideoType.SHORT.value, VideoType.LONG.value):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="video_type must be short or long")
    if not title.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title is required")
    if price < 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Price cannot be negative")
    if price > MAX_AMOUNT:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Price cannot exceed {MAX_AMOUNT}")

    has_file = video_file is not None and bool(video_file.filename)
    link = (video_url or "").strip() or None
    video = Video(
        title=title.strip(),
        description=description.strip(),
        video_type=video_type,
        creator_id=user.id,
        price=price if video_type == VideoType.LONG.value else 0,
    )
    if video_type == VideoType.SHORT.value and has_file:
        video.storage_path = storage.save_upload(video_file, "short")
    elif video_type == VideoType.LONG.value and link:
        video.video_url = link
    elif video_type == VideoType.LONG.value and has_file:
        video.storage_path = storage.save_upload(video_file, "long")
    else:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Video file or URL is required")

    begin_write(db)
    db.add(video)
    db.commit()
    db.refresh(video)
    logger.info("Video %s created by %s (type=%s price=%s)", video.id, user.id, video.video_type, video.price)
    access = resolve_access(db, user.id, video, storage)
    return VideoCreatedResponse(message="Video uploaded successfully", video=_video_response(video, access))


# ---------- Viewer: browse ----------


@router.get("", response_model=VideoListResponse)
def list_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    """Newest first. Paid videos the viewer has not bought come back with video_url null."""
    videos = (
        db.query(Video)
        .options(joinedload(Video.creator))
        .order_by(Video.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    items = []
    for video in videos:
        try:
            access = resolve_access(db, user.id, video, storage)
        except MediaStorageError as e:
            logger.warning("Signed URL failed for video %s: %s", video.id, e)
            access = AccessResult(access_url=None, entitled=True)
        items.append(_video_response(video, access))
    return VideoListResponse(videos=items, page=page, limit=limit)


@router.get("/{video_id}", response_model=VideoResponse)
def get_video(
    video_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    video = db.query(Video).options(joinedload(Video.creator)).filter(Video.id == video_id).first()
    if not video:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")
    try:
        access = resolve_access(db, user.id, video, storage)
    except MediaStorageError as e:
        logger.error("Signed URL failed for video %s: %s", video.id, e)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to generate signed URL")
    body = _video_response(video, access)

    begin_write(db)
    db.query(Video).filter(Video.id == video_id).update(
        {Video.view_count: Video.view_count + 1}, synchronize_session=False
    )
    db.commit()
    body.view_count += 1
    return body


# ---------- Transfers ----------


@router.post("/{video_id}/purchase", response_model=PurchaseResponse)
def purchase_video(
    video_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    """Buy a paid long video with wallet balance. Returns the new balance and a playable URL."""
    result = transfer_engine.purchase(db, user.id, video_id, storage)
    return PurchaseResponse(new_balance=result.new_balance, video_url=result.access_url)


@router.post("/{video_id}/gift", response_model=GiftResponse)
def gift_creator(
    video_id: str,
    body: GiftRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Send part of the wallet balance to the video's creator."""
    result = transfer_engine.gift(db, user.id, video_id, body.amount)
    return GiftResponse(new_balance=result.new_balance)
