"""Append-only purchase and gift history. Rows are inserted by the transfer engine and never updated."""
from sqlalchemy import desc
from sqlalchemy.orm import Session, joinedload

from boom.models.gift import Gift
from boom.models.purchase import Purchase


def append_purchase(db: Session, buyer_id: str, video_id: str, amount: int) -> Purchase:
    """Add a purchase row inside the caller's transaction."""
    purchase = Purchase(buyer_id=buyer_id, video_id=video_id, amount=amount)
    db.add(purchase)
    return purchase


def append_gift(db: Session, sender_id: str, receiver_id: str, video_id: str, amount: int) -> Gift:
    """Add a gift row inside the caller's transaction."""
    gift = Gift(sender_id=sender_id, receiver_id=receiver_id, video_id=video_id, amount=amount)
    db.add(gift)
    return gift


def list_purchases(db: Session, buyer_id: str) -> list[Purchase]:
    """Purchases made by buyer, newest first."""
    return (
        db.query(Purchase)
        .options(joinedload(Purchase.video))
        .filter(Purchase.buyer_id == buyer_id)
        .order_by(desc(Purchase.created_at))
        .all()
    )


def list_gifts_received(db: Session, receiver_id: str) -> list[Gift]:
    """Gifts received by receiver, newest first."""
    return (
        db.query(Gift)
        .options(joinedload(Gift.sender), joinedload(Gift.video))
        .filter(Gift.receiver_id == receiver_id)
        .order_by(desc(Gift.created_at))
        .all()
    )


def list_gifts_sent(db: Session, sender_id: str) -> list[Gift]:
    return (
        db.query(Gift)
        .options(joinedload(Gift.video))
        .filter(Gift.sender_id == sender_id)
        .order_by(desc(Gift.created_at))
        .all()
    )
