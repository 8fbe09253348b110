from eventhub.realtime.broadcaster import Broadcaster, MessageType, Subscription, make_message

__all__ = ["Broadcaster", "MessageType", "Subscription", "make_message"]
