"""
Booking model representing a user's reservation of a hotel or track.

Key design decisions:
- Bookings reference services by id; capacity is computed by scanning
  approved, non-cancelled bookings of the same service
- `date_to` is exclusive for billing and inclusive for capacity membership
- Cancellation keeps the record; `cancelled_by` is set iff `is_cancelled`
- Removing a service, resort or user keeps the booking history: the
  reference is nulled, live bookings are cancelled beforehand
"""

from sqlalchemy import Column, Integer, String, Boolean, Date, ForeignKey, Index, CheckConstraint

from app.db.base import Base, TimestampMixin

CANCELLATION_REASONS = ("user", "admin", "overBooking", "expiration")


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="SET NULL"), nullable=True)
    resort_id = Column(Integer, ForeignKey("resorts.id", ondelete="SET NULL"), nullable=True, index=True)
    service_type = Column(String(20), nullable=False)  # hotel, track
    num_of_guests = Column(Integer, nullable=False, default=1)
    value = Column(Integer, nullable=False)
    date_from = Column(Date, nullable=False)
    date_to = Column(Date, nullable=False)
    is_approved = Column(Boolean, nullable=False, default=False)
    is_cancelled = Column(Boolean, nullable=False, default=False)
    cancelled_by = Column(String(20), nullable=True)

    __table_args__ = (
        CheckConstraint("num_of_guests >= 1", name="check_booking_guests_positive"),
        CheckConstraint("date_from < date_to", name="check_booking_date_order"),
        CheckConstraint(
            "(is_cancelled AND cancelled_by IS NOT NULL) OR (NOT is_cancelled AND cancelled_by IS NULL)",
            name="check_booking_cancelled_by",
        ),
        CheckConstraint(
            "cancelled_by IS NULL OR cancelled_by IN ('user', 'admin', 'overBooking', 'expiration')",
            name="check_booking_cancel_reason",
        ),
        # Overlap lookups: same service, date range
        Index("ix_bookings_service_dates", "service_id", "date_from", "date_to"),
        Index("ix_bookings_created_at", "created_at"),
    )

    @property
    def is_pending(self) -> bool:
        return not self.is_approved and not self.is_cancelled

    @property
    def status(self) -> str:
        if self.is_cancelled:
            return "cancelled"
        return "approved" if self.is_approved else "pending"

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, user={self.user_id}, service={self.service_id}, status={self.status})>"
