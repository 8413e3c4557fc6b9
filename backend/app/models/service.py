"""
Bookable services offered by a resort.

Key design decisions:
- Single-table inheritance: Hotel and Track share one reservation path,
  variant columns are nullable and only set for their own kind
- `available_days` holds English weekday names ("Monday", ...) as a JSON list
- `version` column enables optimistic locking so capacity check and booking
  insert are serialized per service
"""

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, JSON, Index, CheckConstraint

from app.db.base import Base, TimestampMixin


class BookableService(Base, TimestampMixin):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String(20), nullable=False)
    name = Column(String(255), nullable=False)
    resort_id = Column(Integer, ForeignKey("resorts.id", ondelete="CASCADE"), nullable=False, index=True)
    price = Column(Integer, nullable=False)
    num_of_guests = Column(Integer, nullable=False)
    available_days = Column(JSON, nullable=False, default=list)
    auto_accept = Column(Boolean, nullable=False, default=False)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {
        "polymorphic_on": kind,
        "polymorphic_identity": "service",
    }

    __table_args__ = (
        CheckConstraint("price >= 0", name="check_service_price_non_negative"),
        CheckConstraint("num_of_guests > 0", name="check_service_guests_positive"),
        Index("ix_services_kind_price", "kind", "price"),
        Index("ix_services_kind_name", "kind", "name"),
    )

    def accepts(self, weekday: str) -> bool:
        return weekday in (self.available_days or [])

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.id}, name={self.name}, guests={self.num_of_guests})>"


class Hotel(BookableService):
    address = Column(String(255), nullable=True)
    num_of_stars = Column(Integer, nullable=True)

    __mapper_args__ = {"polymorphic_identity": "hotel"}


class Track(BookableService):
    length = Column(Integer, nullable=True)
    rating = Column(String(20), nullable=True)  # green, blue, red, black

    __mapper_args__ = {"polymorphic_identity": "track"}


SERVICE_MODELS: dict[str, type[BookableService]] = {
    "hotel": Hotel,
    "track": Track,
}
