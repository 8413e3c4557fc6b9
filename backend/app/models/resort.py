"""
Resort (ski center): the tenant boundary owning hotels, tracks and admins.
"""

from sqlalchemy import Column, Integer, String

from app.db.base import Base, TimestampMixin


class Resort(Base, TimestampMixin):
    __tablename__ = "resorts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    location = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)

    def __repr__(self) -> str:
        return f"<Resort(id={self.id}, name={self.name})>"
