"""
# Bindable

Observers that dispatch typed events through a pluggable emitter and can be
bound to one another so events flow between them without looping.

    >>> from bindable import BindableObserver, EventEmitter, Event
    >>> class Ping(Event): ...
    >>> first = BindableObserver(EventEmitter)
    >>> second = BindableObserver(EventEmitter)
    >>> first.bind(second)
    >>> second.on(Ping, print)
    >>> first.emit(Ping())

Each observer keeps its own event registry, id cache and relay table; nothing
is shared between instances.
"""

from bindable import handlers
from bindable.config import ObserverConfig
from bindable.emitter import Emitter
from bindable.emitter import EventEmitter
from bindable.errors import NonUniqueNameRegisteredError
from bindable.errors import UndefinedEmitterError
from bindable.events import CacheLimitChangedEvent
from bindable.events import EmitEvent
from bindable.events import EmitterChangedEvent
from bindable.events import Event
from bindable.events import ListenerBoundEvent
from bindable.events import ListenerRemovedEvent
from bindable.events import ObserverBoundEvent
from bindable.events import ObserverUnboundEvent
from bindable.observer import BindableObserver
from bindable.registry import DispatchKey
from bindable.relay import RelayFlags


version_major = 1
version_minor = 0
version_patch = 0
__version__ = f"{version_major}.{version_minor}.{version_patch}"

__all__ = [
    "BindableObserver",
    "CacheLimitChangedEvent",
    "DispatchKey",
    "EmitEvent",
    "Emitter",
    "EmitterChangedEvent",
    "Event",
    "EventEmitter",
    "ListenerBoundEvent",
    "ListenerRemovedEvent",
    "NonUniqueNameRegisteredError",
    "ObserverBoundEvent",
    "ObserverConfig",
    "ObserverUnboundEvent",
    "RelayFlags",
    "UndefinedEmitterError",
    "handlers",
]
