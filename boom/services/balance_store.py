"""
Row-level access to balances and entitlements. Everything here runs inside the caller's
transaction and never commits. Reads that precede a write take a row lock
(SELECT ... FOR UPDATE; on SQLite the transaction already holds the write lock, see
boom.database.begin_write). Locked reads refresh objects already in the session so checks
see the latest committed values.
"""
from sqlalchemy.orm import Session

from boom.models.user import User
from boom.models.video import Video
from boom.models.video_entitlement import VideoEntitlement


def lock_video(db: Session, video_id: str) -> Video | None:
    """Lock the video row so entitlement grants on the same video serialize."""
    return db.query(Video).filter(Video.id == video_id).populate_existing().with_for_update().first()


def lock_account(db: Session, user_id: str) -> User | None:
    return db.query(User).filter(User.id == user_id).populate_existing().with_for_update().first()


def lock_accounts(db: Session, user_ids: list[str]) -> dict[str, User]:
    """Lock several accounts in id order (fixed order keeps two gifts from deadlocking)."""
    accounts = {}
    for user_id in sorted(set(user_ids)):
        account = lock_account(db, user_id)
        if account is not None:
            accounts[user_id] = account
    return accounts


def debit(account: User, amount: int) -> int:
    """Decrease balance. Caller has checked funds; the CHECK constraint backs it up at flush."""
    if amount < 0:
        raise ValueError("debit amount must be non-negative")
    if account.balance < amount:
        raise ValueError("debit would make balance negative")
    account.balance = account.balance - amount
    return account.balance


def credit(account: User, amount: int) -> int:
    if amount < 0:
        raise ValueError("credit amount must be non-negative")
    account.balance = account.balance + amount
    return account.balance


def is_entitled(db: Session, user_id: str, video: Video) -> bool:
    """Owner is always entitled; anyone else needs a grant row."""
    if video.creator_id == user_id:
        return True
    return (
        db.query(VideoEntitlement)
        .filter(VideoEntitlement.video_id == video.id, VideoEntitlement.user_id == user_id)
        .first()
        is not None
    )


def grant_entitlement(db: Session, user_id: str, video_id: str) -> VideoEntitlement:
    entitlement = VideoEntitlement(video_id=video_id, user_id=user_id)
    db.add(entitlement)
    return entitlement
