import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, CheckConstraint
from boom.database import Base

# largest balance, price or transfer amount the Integer columns hold on every backend
MAX_AMOUNT = 2**31 - 1


class User(Base):
    """Account with a wallet balance. Balance is only mutated by the transfer engine."""
    __tablename__ = "users"
    __table_args__ = (CheckConstraint("balance >= 0", name="ck_users_balance_non_negative"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    balance = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
