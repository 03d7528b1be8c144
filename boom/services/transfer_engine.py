"""
Balance transfers: video purchases and gifts to creators.

Each operation is one database transaction: preconditions are checked against locked rows,
then debit, credit/entitlement and the ledger row are committed together. Any failure rolls
everything back. Nothing is retried here; after an InfrastructureError the caller must
re-read the balance before trying again.
"""
import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from boom.database import begin_write
from boom.models.user import MAX_AMOUNT
from boom.models.video import Video
from boom.services import balance_store, ledger
from boom.services.access_resolver import playable_reference
from boom.services.media_storage import MediaStorage, MediaStorageError
from boom.services.transfer_errors import (
    ConflictError,
    InfrastructureError,
    InsufficientFundsError,
    InvalidArgumentError,
    InvalidOperationError,
    NotFoundError,
    TransferError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurchaseResult:
    new_balance: int
    access_url: str | None


@dataclass(frozen=True)
class GiftResult:
    new_balance: int
    receiver_id: str
    amount: int


def _already_owns(db: Session, buyer_id: str, video_id: str) -> bool:
    video = db.query(Video).filter(Video.id == video_id).first()
    return video is not None and balance_store.is_entitled(db, buyer_id, video)


def purchase(db: Session, buyer_id: str, video_id: str, storage: MediaStorage) -> PurchaseResult:
    """
    Buy a paid long video: debit the buyer by the price, grant the entitlement and record
    the purchase, all in one commit. The access URL is minted after commit.
    """
    try:
        begin_write(db)
        video = balance_store.lock_video(db, video_id)
        if video is None:
            raise NotFoundError("Video not found")
        if not video.is_paid:
            raise InvalidOperationError("This video is free, nothing to purchase")
        buyer = balance_store.lock_account(db, buyer_id)
        if buyer is None:
            raise NotFoundError("User not found")
        if balance_store.is_entitled(db, buyer_id, video):
            raise ConflictError("You already own this video")
        price = video.price
        if buyer.balance < price:
            raise InsufficientFundsError("Insufficient balance")

        new_balance = balance_store.debit(buyer, price)
        balance_store.grant_entitlement(db, buyer_id, video.id)
        ledger.append_purchase(db, buyer_id, video.id, price)
        db.commit()
    except TransferError as e:
        db.rollback()
        logger.info("Purchase rejected user=%s video=%s: %s", buyer_id, video_id, e.detail)
        raise
    except IntegrityError as e:
        # a concurrent purchase won the unique (buyer, video) slot
        db.rollback()
        try:
            owned = _already_owns(db, buyer_id, video_id)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Ownership check failed after conflict user=%s video=%s", buyer_id, video_id)
            raise InfrastructureError() from e
        if owned:
            logger.info("Duplicate purchase rejected user=%s video=%s", buyer_id, video_id)
            raise ConflictError("You already own this video") from e
        logger.exception("Purchase failed user=%s video=%s", buyer_id, video_id)
        raise InfrastructureError() from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Purchase failed user=%s video=%s", buyer_id, video_id)
        raise InfrastructureError() from e

    logger.info("Purchase committed user=%s video=%s amount=%s balance=%s", buyer_id, video_id, price, new_balance)

    access_url = None
    try:
        access_url = playable_reference(video, storage)
    except MediaStorageError as e:
        # entitlement is committed; the URL can be re-minted through the resolver
        logger.warning("Could not mint access URL for video %s after purchase: %s", video_id, e)
    return PurchaseResult(new_balance=new_balance, access_url=access_url)


def _validate_amount(amount) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidArgumentError("Invalid gift amount")
    if amount <= 0 or amount > MAX_AMOUNT:
        raise InvalidArgumentError("Invalid gift amount")
    return amount


def gift(db: Session, sender_id: str, video_id: str, amount: int) -> GiftResult:
    """Move amount from sender to the video's creator and record the gift, in one commit."""
    try:
        amount = _validate_amount(amount)
        begin_write(db)
        video = db.query(Video).filter(Video.id == video_id).first()
        if video is None:
            raise NotFoundError("Video not found")
        receiver_id = video.creator_id
        if receiver_id == sender_id:
            raise InvalidOperationError("You cannot gift yourself")

        accounts = balance_store.lock_accounts(db, [sender_id, receiver_id])
        sender = accounts.get(sender_id)
        if sender is None:
            raise NotFoundError("User not found")
        receiver = accounts.get(receiver_id)
        if receiver is None:
            raise NotFoundError("Creator not found")
        if sender.balance < amount:
            raise InsufficientFundsError("Insufficient balance")
        if receiver.balance > MAX_AMOUNT - amount:
            raise InvalidOperationError("Creator balance limit reached")

        new_balance = balance_store.debit(sender, amount)
        balance_store.credit(receiver, amount)
        ledger.append_gift(db, sender_id, receiver_id, video_id, amount)
        db.commit()
    except TransferError as e:
        db.rollback()
        logger.info("Gift rejected user=%s video=%s: %s", sender_id, video_id, e.detail)
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Gift failed user=%s video=%s", sender_id, video_id)
        raise InfrastructureError() from e

    logger.info("Gift committed from=%s to=%s video=%s amount=%s", sender_id, receiver_id, video_id, amount)
    return GiftResult(new_balance=new_balance, receiver_id=receiver_id, amount=amount)
