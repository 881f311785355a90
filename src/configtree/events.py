"""
Configuration Events

Synchronous change notification for configurations. Every configuration is an
event source; listeners are registered per source and are called in
registration order whenever the configuration is modified.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of configuration events."""
    ADD_PROPERTY = "add_property"
    SET_PROPERTY = "set_property"
    CLEAR_PROPERTY = "clear_property"
    CLEAR = "clear"
    CLEAR_TREE = "clear_tree"
    RELOAD = "reload"
    COMBINED_INVALIDATE = "combined_invalidate"


@dataclass
class ConfigurationEvent:
    """Notification about a change of a configuration."""
    source: Any
    event_type: EventType
    property_name: Optional[str] = None
    property_value: Any = None
    before_update: bool = False
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for logging/serialization."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "source": type(self.source).__name__,
            "property_name": self.property_name,
            "property_value": self.property_value,
            "before_update": self.before_update,
            "timestamp": self.timestamp.isoformat()
        }


EventListener = Callable[[ConfigurationEvent], None]


@dataclass
class EventSubscription:
    """A registered listener, optionally restricted to some event types."""
    subscription_id: str
    listener: EventListener
    event_types: Optional[Set[EventType]] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def matches(self, event: ConfigurationEvent) -> bool:
        return self.event_types is None or event.event_type in self.event_types


class EventSource:
    """
    Mixin managing event listeners.

    Listener errors are logged and do not stop the notification of the
    remaining listeners, nor the operation that triggered the event.
    """

    def __init__(self):
        self._subscriptions: Dict[str, EventSubscription] = {}
        self._details_enabled = True

    def add_event_listener(
        self,
        listener: EventListener,
        event_types: Optional[List[EventType]] = None
    ) -> str:
        """
        Register a listener.

        Args:
            listener: Callable receiving ``ConfigurationEvent`` objects
            event_types: Optional list of event types the listener is interested in

        Returns:
            str: Subscription ID that can also be used for removal
        """
        if listener is None:
            raise ValueError("Listener must not be None")
        subscription_id = str(uuid.uuid4())
        self._subscriptions[subscription_id] = EventSubscription(
            subscription_id=subscription_id,
            listener=listener,
            event_types=set(event_types) if event_types else None
        )
        logger.debug(f"Registered listener {subscription_id} on {type(self).__name__}")
        return subscription_id

    def remove_event_listener(self, listener_or_id: Any) -> bool:
        """Remove a listener by subscription ID or by the listener itself."""
        if isinstance(listener_or_id, str) and listener_or_id in self._subscriptions:
            del self._subscriptions[listener_or_id]
            return True
        for subscription_id, subscription in list(self._subscriptions.items()):
            if subscription.listener == listener_or_id:
                del self._subscriptions[subscription_id]
                return True
        return False

    def get_event_listeners(self) -> List[EventListener]:
        return [subscription.listener for subscription in self._subscriptions.values()]

    def clear_event_listeners(self) -> None:
        self._subscriptions.clear()

    @property
    def details_enabled(self) -> bool:
        """Whether before-update notifications are fired for mutations."""
        return self._details_enabled

    @details_enabled.setter
    def details_enabled(self, enabled: bool) -> None:
        self._details_enabled = enabled

    def fire_event(
        self,
        event_type: EventType,
        property_name: Optional[str] = None,
        property_value: Any = None,
        before_update: bool = False
    ) -> Optional[ConfigurationEvent]:
        """Create an event and pass it to all matching listeners."""
        if before_update and not self._details_enabled:
            return None
        if not self._subscriptions:
            return None

        event = ConfigurationEvent(
            source=self,
            event_type=event_type,
            property_name=property_name,
            property_value=property_value,
            before_update=before_update
        )
        for subscription in list(self._subscriptions.values()):
            if not subscription.matches(event):
                continue
            try:
                subscription.listener(event)
            except Exception as e:
                logger.error(f"Listener {subscription.subscription_id} failed to process event {event.event_id}: {e}")
        return event
