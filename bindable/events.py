"""
Event base class and the meta events a BindableObserver emits about itself.

Every event instance carries a process-unique id. Observers remember the ids
they have already dispatched, which is what keeps bound observers from
relaying the same event back and forth forever.

Every event class carries two names:
    unique_name: Identifies the event type within an observer. Two event
        types registered on the same observer may not share it unless one
        of them is registered with force_unique=True. Defaults to
        "<module>.<qualname>" of the class.
    name: Human-readable label. Informational only, may collide. Defaults
        to the class name.

Event types are declared as dataclasses (or plain subclasses):

    >>> @dataclass(eq=False)
    ... class FileOpened(Event):
    ...     path: str
    ...     name = "File Opened"
"""

import uuid
from dataclasses import dataclass
from dataclasses import field
from typing import TYPE_CHECKING
from typing import Any
from typing import Callable
from typing import ClassVar
from typing import Optional
from typing import Union

if TYPE_CHECKING:
    from bindable.observer import BindableObserver
    from bindable.relay import RelayFlags


@dataclass(eq=False)
class Event(object):
    """Something that happened, to be dispatched by a BindableObserver."""

    id: uuid.UUID = field(default_factory=uuid.uuid4, init=False)
    """Identity of this event instance. Used for deduplication."""

    name: ClassVar[str] = "Event"
    unique_name: ClassVar[str] = "bindable.Event"

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        # Names are per class, never inherited, or every subclass would
        # collide with its parent.
        if "unique_name" not in cls.__dict__:
            cls.unique_name = f"{cls.__module__}.{cls.__qualname__}"
        if "name" not in cls.__dict__:
            cls.name = cls.__name__


EVENT_TYPE = Union[Event, type[Event]]
"""
An event class or an event instance. Wherever an observer function takes an
event type, passing an instance behaves the same as passing its class.
"""


def event_type_of(event: EVENT_TYPE) -> type[Event]:
    """
    Returns the event class for an event class or event instance.

    Raises:
        TypeError: If event is neither an Event subclass nor an Event instance.
    """
    if isinstance(event, type):
        if issubclass(event, Event):
            return event
    elif isinstance(event, Event):
        return type(event)

    raise TypeError(f"Expected an Event subclass or instance, got {event!r}")


# -----Meta Events-------------------------------------------------------------


@dataclass(eq=False)
class EmitEvent(Event):
    """
    Published whenever an observer emits an event, carrying the original event.
    Relays between bound observers listen for this event.
    """

    emitted: Event

    name = "Event Invoked"
    unique_name = "bindable.EmitEvent"


@dataclass(eq=False)
class ListenerBoundEvent(Event):
    """Emitted whenever a listener is bound through any binding function."""

    observer: "BindableObserver"
    listener: Callable[[Any], Any]
    event: type[Event]
    once: bool
    """True if the listener was bound with one of the once functions."""

    name = "Listener Bound"
    unique_name = "bindable.ListenerBoundEvent"


@dataclass(eq=False)
class ListenerRemovedEvent(Event):
    """Emitted whenever a listener is removed from an event."""

    observer: "BindableObserver"
    listener: Callable[[Any], Any]
    event: type[Event]

    name = "Listener Removed"
    unique_name = "bindable.ListenerRemovedEvent"


@dataclass(eq=False)
class ObserverBoundEvent(Event):
    """
    Emitted whenever an observer is bound to another observer with bind(), or
    when the relay flags of a bound observer change.
    """

    binding_observer: "BindableObserver"
    """Observer whose bind() was called."""

    bound_observer: "BindableObserver"
    """Observer being bound to binding_observer."""

    flags: "RelayFlags"

    name = "Observer Bound"
    unique_name = "bindable.ObserverBoundEvent"


@dataclass(eq=False)
class ObserverUnboundEvent(Event):
    """Emitted whenever a bound observer is removed with unbind()."""

    binding_observer: "BindableObserver"
    bound_observer: "BindableObserver"

    name = "Observer Unbound"
    unique_name = "bindable.ObserverUnboundEvent"


@dataclass(eq=False)
class CacheLimitChangedEvent(Event):
    """Emitted when an observer's cache limit changes."""

    observer: "BindableObserver"
    former_limit: int
    new_limit: int

    name = "Cache Limit Changed"
    unique_name = "bindable.CacheLimitChangedEvent"


@dataclass(eq=False)
class EmitterChangedEvent(Event):
    """
    Emitted when an observer's emitter is replaced.

    This is only emitted on the emitter being replaced, not on the new one.
    """

    observer: "BindableObserver"
    former_emitter: Any
    new_emitter: Optional[Any]

    name = "Emitter Changed"
    unique_name = "bindable.EmitterChangedEvent"
