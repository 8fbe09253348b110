import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eventhub.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class EventState(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"


class Event(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "events"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    location: Mapped[str | None] = mapped_column(String(300), nullable=True)

    # Set once at creation; never reassigned.
    organizer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    organizer = relationship("User", lazy="joined")
    rsvps = relationship("Rsvp", back_populates="event", passive_deletes=True)

    @property
    def state(self) -> EventState:
        return EventState.APPROVED if self.approved else EventState.PENDING
