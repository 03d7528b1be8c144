"""
Media delivery. Public links serve free media only; paid media needs a signed link,
which the video endpoints mint for the owner and buyers. Both support Range for seeking.
"""
import mimetypes
import re
from pathlib import Path
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import Response, StreamingResponse
from sqlalchemy.orm import Session
from boom.database import get_db
from boom.models.video import Video
from boom.services.media_storage import CHUNK_SIZE, MediaStorage, get_media_storage

router = APIRouter(prefix="/api/media", tags=["media"])


def _media_type(path: Path) -> str:
    return mimetypes.guess_type(path.name)[0] or "video/mp4"


def _stream_file_range(path: Path, request: Request, content_type: str):
    """Handle Range request for video streaming. Returns Response with 206 or 200."""
    file_size = path.stat().st_size
    range_header = request.headers.get("range")
    if not range_header:
        def full_stream():
            with open(path, "rb") as f:
                while chunk := f.read(CHUNK_SIZE):
                    yield chunk

        return StreamingResponse(
            full_stream(),
            status_code=200,
            media_type=content_type,
            headers={
                "Accept-Ranges": "bytes",
                "Content-Length": str(file_size),
                "Content-Disposition": "inline",
            },
        )

    # Parse Range: bytes=start-end
    m = re.match(r"bytes=(\d*)-(\d*)", range_header.strip())
    if not m:
        return Response(status_code=416, headers={"Content-Range": f"bytes */{file_size}"})
    start_s, end_s = m.groups()
    if not start_s and end_s:
        # suffix range: last N bytes
        start = max(file_size - int(end_s), 0)
        end = file_size - 1
    else:
        start = int(start_s) if start_s else 0
        end = int(end_s) if end_s else file_size - 1
    if start > end or start >= file_size:
        return Response(status_code=416, headers={"Content-Range": f"bytes */{file_size}"})
    end = min(end, file_size - 1)
    length = end - start + 1

    def range_stream():
        with open(path, "rb") as f:
            f.seek(start)
            remaining = length
            while remaining > 0:
                data = f.read(min(CHUNK_SIZE, remaining))
                if not data:
                    break
                remaining -= len(data)
                yield data

    return StreamingResponse(
        range_stream(),
        status_code=206,
        media_type=content_type,
        headers={
            "Accept-Ranges": "bytes",
            "Content-Range": f"bytes {start}-{end}/{file_size}",
            "Content-Length": str(length),
            "Content-Disposition": "inline",
        },
    )


@router.get("/public/{path:path}")
def get_public_media(
    path: str,
    request: Request,
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
):
    """Serve media of a free or short video. Paid media is reported as missing."""
    video = db.query(Video).filter(Video.storage_path == path).first()
    servable = video is not None and not video.is_paid
    # end the read transaction now; the session would otherwise stay open until the
    # last byte of the stream is sent
    db.close()
    if not servable:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Media not found")
    file_path = storage.resolve_path(path)
    if not file_path:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Media not found")
    return _stream_file_range(file_path, request, _media_type(file_path))


@router.get("/signed/{token}")
def get_signed_media(
    token: str,
    request: Request,
    storage: MediaStorage = Depends(get_media_storage),
):
    """Serve media from a signed link. Expired or tampered links get 403."""
    key = storage.verify_signed_token(token)
    if not key:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or expired media link")
    file_path = storage.resolve_path(key)
    if not file_path:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Media not found")
    return _stream_file_range(file_path, request, _media_type(file_path))
