"""
Decide what a viewer may play. Free and short videos resolve to their stored reference;
paid long videos resolve to a fresh signed URL only for the owner and purchasers.
Read-only: never touches balances or entitlements.
"""
from dataclasses import dataclass

from sqlalchemy.orm import Session

from boom.config import get_settings
from boom.models.video import Video
from boom.services import balance_store
from boom.services.media_storage import MediaStorage


@dataclass(frozen=True)
class AccessResult:
    access_url: str | None
    entitled: bool


def public_reference(video: Video, storage: MediaStorage) -> str | None:
    if video.video_url:
        return video.video_url
    if video.storage_path:
        return storage.public_url(video.storage_path)
    return None


def playable_reference(video: Video, storage: MediaStorage) -> str | None:
    """
    Reference for an entitled viewer of a paid video. Stored media gets a signed URL
    (raises MediaStorageError if it cannot be minted); linked media is returned as is.
    """
    if video.storage_path:
        return storage.create_signed_url(video.storage_path, get_settings().signed_url_expire_seconds)
    return video.video_url


def resolve_access(db: Session, user_id: str, video: Video, storage: MediaStorage) -> AccessResult:
    if not video.is_paid:
        return AccessResult(access_url=public_reference(video, storage), entitled=True)
    if not balance_store.is_entitled(db, user_id, video):
        return AccessResult(access_url=None, entitled=False)
    return AccessResult(access_url=playable_reference(video, storage), entitled=True)
