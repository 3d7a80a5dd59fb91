from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, DateTime, Integer, String, event
from app.db import Base


def _utcnow() -> datetime:
    # naive UTC, matching the DATETIME columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Product(Base):
    __tablename__ = "products"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    name = Column(String, nullable=True)
    price = Column(Integer, nullable=True)  # no currency unit or scale
    image = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<Product id={self.id} name={self.name}>"


@event.listens_for(Product, "before_insert")
def _set_timestamps_on_insert(mapper, connection, target):
    now = _utcnow()
    if target.created_at is None:
        target.created_at = now
    if target.updated_at is None:
        target.updated_at = now


@event.listens_for(Product, "before_update")
def _touch_updated_at(mapper, connection, target):
    target.updated_at = _utcnow()
