from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text

from wholesale_cart.data.database import Base


class KeyValueEntryModel(Base):
    __tablename__ = "kv_entries"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
