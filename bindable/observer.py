"""
# Bindable Observer

Herein is the observer itself: the object users bind listeners to, emit
events through, and bind to other observers.

A BindableObserver is not an emitter. It takes Event objects wherever an
emitter would take a string key, because it needs each event's id: when two
or more observers are bound to one another, the id is what stops an event
from being relayed between them forever.

Delivery is delegated to an emitter backend (see bindable.emitter). The
observer decides which key each event type uses, drops events it has already
dispatched, and publishes an EmitEvent after every emit so bound observers
can relay it.

Everything is synchronous. emit() calls listeners, and relayed observers'
listeners, before it returns. A long chain of bound observers that are not
in a cycle recurses once per observer and is limited only by the interpreter
recursion limit.

None of the state kept here is thread-safe. Callers sharing an observer
between threads must serialize bind(), emit() and listener registration
themselves.
"""

import json
import logging
from typing import Any
from typing import Callable
from typing import Optional
from typing import Union

from bindable import events
from bindable import handlers
from bindable import listener
from bindable.cache import DedupCache
from bindable.config import ObserverConfig
from bindable.emitter import Emitter
from bindable.errors import NonUniqueNameRegisteredError
from bindable.errors import UndefinedEmitterError
from bindable.registry import EventRegistry
from bindable.relay import Forwarder
from bindable.relay import RelayFlags
from bindable.relay import RelayTable


logger = logging.getLogger(__name__)


DEFAULT_CACHE_LIMIT = 100


class BindableObserver(object):
    """
    Observer bindable to other BindableObservers.

    To manage listeners use
    on(), once(), prepend_listener(), prepend_once_listener(),
    remove_listener() and remove_all_listeners(), or decorate with
    @observer.subscribe.

    To relay events between observers use bind(), check_binding() and
    unbind().

    Args:
        emitter: An emitter instance, an emitter class to instantiate with
            *args and **kwargs, or None to set one later with set_emitter().
        config (ObserverConfig): Notification and naming toggles. A new
            default config is used if omitted.
        cache_limit (int): Maximum number of event ids remembered for
            deduplication. 0 or less means unbounded.
    """

    # ---Exceptions---
    UndefinedEmitterError = UndefinedEmitterError
    NonUniqueNameRegisteredError = NonUniqueNameRegisteredError

    def __init__(
        self,
        emitter: Union[Emitter, type, None] = None,
        *args: Any,
        config: Optional[ObserverConfig] = None,
        cache_limit: int = DEFAULT_CACHE_LIMIT,
        **kwargs: Any,
    ) -> None:
        self.config = config if config is not None else ObserverConfig()

        self._emitter: Optional[Emitter] = None
        self._registry = EventRegistry(self.config)
        self._cache = DedupCache(cache_limit)
        self._relays = RelayTable(self)

        self._registry.register(events.EmitEvent)

        if emitter is not None:
            self.set_emitter(emitter, *args, **kwargs)

    def set_flag_states(self, **flags: bool) -> None:
        """
        Set the named config flags on or off, leaving the others untouched.
        The observer can be configured through any of the following:

        Args:
            emit_events:                 if True, publish an EmitEvent after every emit();
            listener_bound_events:       if True, get notified whenever a listener is bound;
            listener_removed_events:     if True, get notified whenever a listener is removed;
            observer_bound_events:       if True, get notified whenever bind() binds or rebinds;
            observer_unbound_events:     if True, get notified whenever unbind() unbinds;
            cache_limit_changed_events:  if True, get notified whenever the cache limit changes;
            emitter_changed_events:      if True, get notified on the old emitter when it is replaced;
            strict_unique_names:         if True, raise on unique name collisions.
        Raises:
            TypeError: If a flag name is unknown.
        """
        self.config.update(**flags)

    # -----Emitter Handling----------------------------------------------------

    @property
    def emitter(self) -> Optional[Emitter]:
        """The emitter events are delivered through, or None."""
        return self._emitter

    def get_emitter(self) -> Optional[Emitter]:
        return self._emitter

    def set_emitter(self, emitter: Union[Emitter, type, None], *args: Any, **kwargs: Any) -> None:
        """
        Set the emitter the observer delivers events through.

        Listeners bound through the old emitter are not moved. Listeners bound
        directly on an emitter instance are left alone by the observer.

        Args:
            emitter: An emitter instance, an emitter class to instantiate with
                *args and **kwargs, or None to detach the current emitter.
        Notes:
            Emits an EmitterChangedEvent through the former emitter, before it
            is replaced.
        """
        if isinstance(emitter, type):
            new_emitter = emitter(*args, **kwargs)
        elif emitter is self._emitter:
            return
        else:
            new_emitter = emitter

        if new_emitter is not None and not isinstance(new_emitter, Emitter):
            raise TypeError(
                f"{type(new_emitter).__qualname__} does not implement the Emitter protocol"
            )

        if self.config.emitter_changed_events and self._emitter is not None:
            self.emit(events.EmitterChangedEvent(self, self._emitter, new_emitter))

        logger.debug(
            f"Emitter of {self!r} changed to {type(new_emitter).__qualname__}"
        )
        self._emitter = new_emitter

    def _require_emitter(self) -> Emitter:
        if self._emitter is None:
            raise UndefinedEmitterError()
        return self._emitter

    def emit(self, event: events.Event) -> bool:
        """
        Emit an event.

        The event's id is first compared with the cache of dispatched ids. If
        it is found, emit returns False without calling anything. Otherwise the
        id is cached and every listener bound to the event's type is called.

        Afterwards an EmitEvent carrying the event is published. Its own id is
        not cached.

        The id is cached before the event type is registered and before any
        listener runs. An event instance whose emit() raised, whether from a
        unique name collision or from a listener, counts as dispatched and is
        dropped if emitted again while its id is cached; emit a new instance,
        or call clear_cache(), to retry.

        Args:
            event (Event): Event to emit.
        Returns:
            bool: True if any listeners were called for the event.
        Raises:
            UndefinedEmitterError: If no emitter is set.
            NonUniqueNameRegisteredError: If the event type has to be
                registered, its unique name is taken and the config is strict.
        """
        emitter = self._require_emitter()
        if not isinstance(event, events.Event):
            raise TypeError(f"Only Event instances can be emitted, got {event!r}")

        if self._cache.seen(event.id):
            logger.debug(f"Dropped already dispatched {type(event).__qualname__} {event.id}")
            return False

        self._cache.record(event.id)

        key = self._registry.resolve_or_register(event)
        if key is None:
            return False

        ret = emitter.publish(key, event)

        if self.config.emit_events:
            emit_key = self._registry.resolve_or_register(events.EmitEvent)
            if emit_key is not None:
                emitter.publish(emit_key, events.EmitEvent(event))

        return ret

    # -----Listener Management-------------------------------------------------

    def _bind_listener(
        self,
        event: events.EVENT_TYPE,
        callback: listener.LISTENER,
        once: bool,
        first: bool,
    ) -> "BindableObserver":
        emitter = self._require_emitter()
        event_type = events.event_type_of(event)

        key = self._registry.resolve_or_register(event_type)
        if key is None:
            return self

        if first:
            subscribe = emitter.subscribe_first_once if once else emitter.subscribe_first
        else:
            subscribe = emitter.subscribe_once if once else emitter.subscribe
        subscribe(key, callback)

        if self.config.listener_bound_events:
            self.emit(events.ListenerBoundEvent(self, callback, event_type, once))

        return self

    def on(self, event: events.EVENT_TYPE, callback: listener.LISTENER) -> "BindableObserver":
        """
        Bind a listener to an event.

        Listeners are called with a single argument: the event instance that
        triggered them.

        Args:
            event (EVENT_TYPE): The type of event to bind to, as a class or an
                instance. Binding to an instance still calls the listener for
                ANY instance of that event type.
            callback (LISTENER): Callable to run when the event type is emitted.
        Returns:
            BindableObserver: self.
        Notes:
            Emits a ListenerBoundEvent.
        """
        return self._bind_listener(event, callback, once=False, first=False)

    add_listener = on

    def once(self, event: events.EVENT_TYPE, callback: listener.LISTENER) -> "BindableObserver":
        """Same as on(), but the listener is unbound once it is called."""
        return self._bind_listener(event, callback, once=True, first=False)

    def prepend_listener(
        self, event: events.EVENT_TYPE, callback: listener.LISTENER
    ) -> "BindableObserver":
        """
        Same as on(), but the listener is put in front of the listeners already
        bound, so it runs first.
        """
        return self._bind_listener(event, callback, once=False, first=True)

    def prepend_once_listener(
        self, event: events.EVENT_TYPE, callback: listener.LISTENER
    ) -> "BindableObserver":
        """Same as once(), but the listener runs before those already bound."""
        return self._bind_listener(event, callback, once=True, first=True)

    def subscribe(
        self, event: events.EVENT_TYPE, once: bool = False, prepend: bool = False
    ) -> Callable[[listener.LISTENER], listener.LISTENER]:
        """
        Decorator to bind a function as a listener.

        Args:
            event (EVENT_TYPE): The type of event to bind to.
            once (bool): Unbind the listener after its first call.
            prepend (bool): Run the listener before those already bound.
        """

        def decorator(func: listener.LISTENER) -> listener.LISTENER:
            self._bind_listener(event, func, once=once, first=prepend)
            return func

        return decorator

    def remove_listener(
        self, event: events.EVENT_TYPE, callback: listener.LISTENER
    ) -> "BindableObserver":
        """
        Unbind a listener from an event. Unbinding a listener that is not bound
        does nothing.

        Notes:
            Emits a ListenerRemovedEvent if the listener was bound.
        """
        emitter = self._require_emitter()
        event_type = events.event_type_of(event)

        key = self._registry.resolve(event_type)
        if key is None:
            return self

        if emitter.unsubscribe(key, callback) and self.config.listener_removed_events:
            self.emit(events.ListenerRemovedEvent(self, callback, event_type))

        return self

    off = remove_listener

    def remove_all_listeners(
        self, event: Optional[events.EVENT_TYPE] = None
    ) -> "BindableObserver":
        """
        Remove all listeners bound to a type of event. If event is omitted,
        all listeners are removed from every event type known to the observer.

        Relay forwarders on the EmitEvent channel are kept; use unbind() to
        remove those. Listeners bound directly on the emitter, under keys the
        observer did not create, are kept as well.

        Notes:
            Emits a ListenerRemovedEvent for each removed listener.
        """
        emitter = self._require_emitter()

        if event is None:
            for key in list(emitter.all_keys()):
                event_type = self._registry.event_type_for(key)
                if event_type is not None:
                    self.remove_all_listeners(event_type)
            return self

        event_type = events.event_type_of(event)
        key = self._registry.resolve(event_type)
        if key is None:
            return self

        if key is self._registry.resolve(events.EmitEvent):
            removed = [
                callback
                for callback in emitter.listeners_of(key)
                if not isinstance(callback, Forwarder)
            ]
            for callback in removed:
                emitter.unsubscribe(key, callback)
        else:
            removed = list(emitter.listeners_of(key))
            emitter.unsubscribe_all(key)

        if self.config.listener_removed_events:
            for callback in removed:
                self.emit(events.ListenerRemovedEvent(self, callback, event_type))

        return self

    def has_listener(self, event: events.EVENT_TYPE, callback: listener.LISTENER) -> bool:
        """
        Check if a listener is bound to an event type.

        Returns:
            bool: True if callback is bound to the event type.
        """
        emitter = self._require_emitter()

        key = self._registry.resolve(event)
        if key is None:
            return False

        return callback in emitter.listeners_of(key)

    # -----Event Registration--------------------------------------------------

    def register_event(self, event: events.EVENT_TYPE, force_unique: bool = False) -> bool:
        """
        Register an event type with the observer.

        Event types are registered automatically the first time they are used,
        so this is only needed to register ahead of time, or to register with
        force_unique.

        Args:
            event (EVENT_TYPE): Event class or instance.
            force_unique (bool): Give the type its own key without claiming
                its unique name, so it cannot collide with another type.
                Calling again with the other value moves the type between
                modes and keeps its key.
        Returns:
            bool: False if the unique name is taken and the config is not
                strict.
        Raises:
            NonUniqueNameRegisteredError: If the unique name is taken and the
                config is strict.
        """
        return self._registry.register(event, force_unique)

    def unregister_event(self, event: events.EVENT_TYPE) -> bool:
        """
        Forget an event type. Listeners already bound to it stay on the
        emitter but are no longer reachable through the observer; remove them
        first if they should go too.

        Returns:
            bool: False if the event type was not registered.
        """
        return self._registry.unregister(event)

    # -----Relays--------------------------------------------------------------

    def bind(self, relay: "BindableObserver", flags: RelayFlags = RelayFlags.ALL) -> None:
        """
        Bind a BindableObserver to this observer.

        Bound observers emit their events on the other observer as defined by
        the flags supplied:

        - RelayFlags.NONE means neither observer sends its events to the other.
        - RelayFlags.FROM means relay emits its events on this observer.
        - RelayFlags.TO means this observer emits its events on relay.
        - RelayFlags.ALL means both observers emit their events on one another.

        Binding an observer that is already bound changes its direction.

        Notes:
            Emits an ObserverBoundEvent when the binding is created or its
            direction changes.
        """
        self._require_emitter()

        if not self._relays.bind(relay, flags):
            return

        if self.config.observer_bound_events:
            self.emit(
                events.ObserverBoundEvent(self, relay, self._relays.check_binding(relay))
            )

    def check_binding(self, relay: "BindableObserver") -> Optional[RelayFlags]:
        """
        Check how a BindableObserver is bound to this observer.

        Returns:
            Optional[RelayFlags]: Direction events are passed between the two
                observers, or None if relay is not bound to this observer.
        """
        return self._relays.check_binding(relay)

    def unbind(self, relay: "BindableObserver") -> None:
        """
        Unbind a BindableObserver from this observer. Does nothing if relay is
        not bound.

        Notes:
            Emits an ObserverUnboundEvent if relay was bound.
        """
        if not self._relays.unbind(relay):
            return

        if self.config.observer_unbound_events and self._emitter is not None:
            self.emit(events.ObserverUnboundEvent(self, relay))

    def bound_observers(self) -> list["BindableObserver"]:
        """Observers bound with bind(), in binding order."""
        return self._relays.peers()

    # -----Id Cache------------------------------------------------------------

    @property
    def cache_limit(self) -> int:
        """Maximum number of ids kept in the cache. 0 means unbounded."""
        return self._cache.limit

    @cache_limit.setter
    def cache_limit(self, limit: int) -> None:
        """
        Set the limit of how many ids are kept in the cache.

        If the cache is shrunk below its current size, the oldest ids are
        purged. Setting the limit to <= 0 removes the limit.

        Notes:
            Emits a CacheLimitChangedEvent if the limit changed.
        """
        limit = max(int(limit), 0)
        if limit == self._cache.limit:
            return

        former_limit = self._cache.limit
        self._cache.set_limit(limit)

        if self.config.cache_limit_changed_events and self._emitter is not None:
            self.emit(events.CacheLimitChangedEvent(self, former_limit, limit))

    @property
    def cache_size(self) -> int:
        """Number of ids currently in the cache."""
        return len(self._cache)

    def clear_cache(self) -> None:
        """Remove all ids from the cache."""
        self._cache.clear()

    # -----Introspection API---------------------------------------------------

    def listeners(self, event: events.EVENT_TYPE) -> list[listener.LISTENER]:
        """Listeners bound to an event type, in delivery order."""
        emitter = self._require_emitter()

        key = self._registry.resolve(event)
        if key is None:
            return []

        return list(emitter.listeners_of(key))

    def listener_count(self, event: events.EVENT_TYPE) -> int:
        return len(self.listeners(event))

    def event_types(self) -> list[type[events.Event]]:
        """Every event type registered with the observer."""
        return self._registry.event_types()

    @staticmethod
    def _get_callback_info(callback: Callable) -> str:
        """Returns metadata on a callable as a string."""
        if isinstance(callback, Forwarder):
            info = f"<relay to {type(callback.target).__name__} at {id(callback.target):#x}>"

        elif hasattr(callback, "__self__"):
            obj = callback.__self__
            info = f"{obj.__class__.__name__}.{callback.__name__}"

        elif hasattr(callback, "__qualname__"):
            # Regular function, static method, or class method
            module = getattr(callback, "__module__", "<unknown>")
            info = f"{module}.{callback.__qualname__}"

        else:
            info = handlers.get_callable_name(callback)

        return info

    def to_dict(self) -> dict:
        """Convert the observer's event types and listeners to a dictionary."""
        data = {}
        for entry in self._registry:
            listeners = []
            if self._emitter is not None:
                listeners = [
                    self._get_callback_info(callback)
                    for callback in self._emitter.listeners_of(entry.key)
                ]

            event_type = entry.event_type
            data[f"{event_type.__module__}.{event_type.__qualname__}"] = {
                "name": event_type.name,
                "unique_name": event_type.unique_name,
                "mode": entry.mode.value,
                "listeners": listeners,
            }

        return data

    def to_string(self) -> str:
        """Returns a string representation of the observer."""
        return json.dumps(self.to_dict(), indent=4)
