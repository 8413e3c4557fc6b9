"""
User model with secure password storage and the credit wallet.

Key design decisions:
- `wallet` is only mutated through the wallet ledger (atomic UPDATEs)
- CHECK constraint keeps the wallet non-negative as the last safety net
- Admins carry the `resort_id` they manage; it is never taken from the client
"""

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, CheckConstraint

from app.db.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(100), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user")  # user, admin
    resort_id = Column(Integer, ForeignKey("resorts.id", ondelete="SET NULL"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    is_validated = Column(Boolean, default=False, nullable=False)
    confirmation_code_hash = Column(String(255), nullable=True)
    wallet = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("wallet >= 0", name="check_wallet_non_negative"),
        CheckConstraint("role IN ('user', 'admin')", name="check_user_role"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
