"""
Tracked event model.

site_id is deliberately not a foreign key: ingestion may store events for
site ids that were never registered (see Settings.VALIDATE_SITE_ID).
session_hash is a daily pseudonym, never the client IP.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from privalytics.core.database import Base

PAGEVIEW = "pageview"


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    site_id: Mapped[str] = mapped_column(String(36), nullable=False)
    session_hash: Mapped[str] = mapped_column(String(16), nullable=False)
    event_type: Mapped[str] = mapped_column(Text, nullable=False, default=PAGEVIEW)
    path: Mapped[str] = mapped_column(Text, nullable=False, default="/")
    referrer_domain: Mapped[str | None] = mapped_column(String(255), nullable=True)
    country: Mapped[str | None] = mapped_column(String(2), nullable=True)
    browser: Mapped[str | None] = mapped_column(String(50), nullable=True)
    device_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    screen_bucket: Mapped[str | None] = mapped_column(String(20), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    # Every aggregate filters on site_id first
    __table_args__ = (
        Index("ix_events_site_type", "site_id", "event_type"),
        Index("ix_events_site_timestamp", "site_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<Event id={self.id} type={self.event_type} site={self.site_id}>"
