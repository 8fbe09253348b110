from eventhub.models.base import Base
from eventhub.models.event import Event
from eventhub.models.rsvp import Rsvp
from eventhub.models.user import User

__all__ = ["Base", "User", "Event", "Rsvp"]
