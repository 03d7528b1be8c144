"""
Media storage for uploaded videos: files on local disk, served through the media router.
Free media gets a plain public URL. Paid media is only reachable through a signed URL:
a short-lived JWT over the storage key, minted fresh on every access (no stored state).
"""
import logging
import uuid
from datetime import datetime, timedelta
from functools import lru_cache
from pathlib import Path

from fastapi import UploadFile, HTTPException, status
from jose import JWTError, jwt

from boom.config import get_settings

logger = logging.getLogger(__name__)

VIDEO_CONTENT_TYPES = {"video/mp4", "video/webm", "video/ogg", "video/quicktime"}
VIDEO_EXTENSIONS = (".mp4", ".webm", ".ogg", ".mov")
CHUNK_SIZE = 1024 * 1024  # 1 MB
TOKEN_TYPE = "media"


class MediaStorageError(Exception):
    pass


class MediaStorage:
    def __init__(
        self,
        root: Path,
        secret_key: str,
        algorithm: str = "HS256",
        url_prefix: str = "/api/media",
        max_upload_bytes: int | None = None,
    ):
        self.root = Path(root)
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.url_prefix = url_prefix.rstrip("/")
        self.max_upload_bytes = max_upload_bytes

    def save_upload(self, file: UploadFile, folder: str) -> str:
        """Write an uploaded video under root/folder. Returns the storage key (relative path)."""
        ct = (file.content_type or "").split(";")[0].strip().lower()
        if ct not in VIDEO_CONTENT_TYPES and not (file.filename or "").lower().endswith(VIDEO_EXTENSIONS):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only MP4, WebM, Ogg or QuickTime videos are allowed.",
            )
        ext = Path(file.filename or "video").suffix or ".mp4"
        if len(ext) > 10:
            ext = ".mp4"
        key = f"{folder}/{uuid.uuid4()}{ext.lower()}"
        path = self.root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        written = 0
        with path.open("wb") as f:
            while chunk := file.file.read(CHUNK_SIZE):
                written += len(chunk)
                if self.max_upload_bytes is not None and written > self.max_upload_bytes:
                    f.close()
                    path.unlink(missing_ok=True)
                    raise HTTPException(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        detail="Video file is too large.",
                    )
                f.write(chunk)
        logger.info("Stored upload %s (%d bytes)", key, written)
        return key

    def resolve_path(self, key: str) -> Path | None:
        """Absolute file path for a storage key, or None if missing or outside root (path traversal)."""
        base = self.root.resolve()
        try:
            full = (base / key).resolve()
            full.relative_to(base)
        except (ValueError, OSError):
            return None
        if not full.is_file():
            return None
        return full

    def public_url(self, key: str) -> str:
        return f"{self.url_prefix}/public/{key}"

    def create_signed_url(self, key: str, expires_in: int) -> str:
        """Signed URL for key valid for expires_in seconds."""
        if expires_in <= 0:
            raise MediaStorageError("expires_in must be positive")
        if self.resolve_path(key) is None:
            raise MediaStorageError(f"Media object not found: {key}")
        expire = datetime.utcnow() + timedelta(seconds=expires_in)
        payload = {"path": key, "exp": expire, "type": TOKEN_TYPE}
        try:
            token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        except JWTError as e:
            raise MediaStorageError(str(e)) from e
        return f"{self.url_prefix}/signed/{token}"

    def verify_signed_token(self, token: str) -> str | None:
        """Storage key from a signed token. None if invalid, expired or not a media token."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None
        if payload.get("type") != TOKEN_TYPE or not payload.get("path"):
            return None
        return payload["path"]


def default_media_dir() -> Path:
    settings = get_settings()
    if settings.media_upload_dir:
        return Path(settings.media_upload_dir)
    return Path(__file__).resolve().parent.parent.parent / "uploads" / "media"


@lru_cache
def get_media_storage() -> MediaStorage:
    settings = get_settings()
    return MediaStorage(
        root=default_media_dir(),
        secret_key=settings.secret_key,
        algorithm=settings.algorithm,
        max_upload_bytes=settings.media_max_upload_bytes,
    )
