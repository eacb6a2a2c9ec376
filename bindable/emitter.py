"""
Emitter backend contract and the default in-process emitter.

A BindableObserver does not deliver events itself. It decides which key an
event goes to and when, then hands the event to an emitter. Any object
implementing the Emitter protocol can be used; EventEmitter is the one
shipped with the package.
"""

import logging
from typing import Any
from typing import Optional
from typing import Protocol
from typing import runtime_checkable

from bindable import handlers
from bindable import listener


logger = logging.getLogger(__name__)


@runtime_checkable
class Emitter(Protocol):
    """Publish/subscribe backend used by a BindableObserver."""

    def subscribe(self, key: Any, callback: listener.LISTENER) -> None: ...

    def subscribe_once(self, key: Any, callback: listener.LISTENER) -> None: ...

    def subscribe_first(self, key: Any, callback: listener.LISTENER) -> None: ...

    def subscribe_first_once(self, key: Any, callback: listener.LISTENER) -> None: ...

    def unsubscribe(self, key: Any, callback: listener.LISTENER) -> bool: ...

    def unsubscribe_all(self, key: Any = None) -> None: ...

    def publish(self, key: Any, payload: Any) -> bool: ...

    def listeners_of(self, key: Any) -> list[listener.LISTENER]: ...

    def all_keys(self) -> list[Any]: ...


class EventEmitter(object):
    """
    Synchronous in-process emitter.

    Listeners are kept per key in registration order; subscribe_first* puts a
    listener at the front instead. publish() calls every listener bound to the
    key with the payload as the only argument.

    Listener exceptions propagate to the caller of publish() unless an
    exception handler is set with set_listener_exception_handler().
    """

    def __init__(
        self,
        exception_handler: Optional[handlers.LISTENER_EXCEPTION_HANDLER] = None,
    ) -> None:
        self._listeners: dict[Any, list[listener.Listener]] = {}
        self._exception_handler = exception_handler

    def set_listener_exception_handler(
        self, handler: Optional[handlers.LISTENER_EXCEPTION_HANDLER]
    ) -> None:
        """
        Set the exception handler for listener errors.
        The handler is called when a listener raises an exception during
        publish().

        Args:
            Optional[handlers.LISTENER_EXCEPTION_HANDLER]:
                Callable with signature (Listener, Exception) -> bool, given
                the failed listener record. Returns True to stop delivery,
                False to continue. A handlers.ListenerExceptionCollector
                instance can be passed directly.
                Pass None to restore default behavior (re-raise exceptions).
        """
        self._exception_handler = handler

    # -----Listener Management-------------------------------------------------

    def _add(self, key: Any, callback: listener.LISTENER, once: bool, first: bool) -> None:
        if not callable(callback):
            raise TypeError(f"Listener must be callable, got {callback!r}")

        entry = listener.Listener(callback=callback, key=key, once=once)
        listeners = self._listeners.setdefault(key, [])
        if first:
            listeners.insert(0, entry)
        else:
            listeners.append(entry)

    def subscribe(self, key: Any, callback: listener.LISTENER) -> None:
        self._add(key, callback, once=False, first=False)

    def subscribe_once(self, key: Any, callback: listener.LISTENER) -> None:
        self._add(key, callback, once=True, first=False)

    def subscribe_first(self, key: Any, callback: listener.LISTENER) -> None:
        self._add(key, callback, once=False, first=True)

    def subscribe_first_once(self, key: Any, callback: listener.LISTENER) -> None:
        self._add(key, callback, once=True, first=True)

    def unsubscribe(self, key: Any, callback: listener.LISTENER) -> bool:
        """
        Remove the first registration of callback under key.

        Returns:
            bool: False if callback was not bound to key.
        """
        listeners = self._listeners.get(key)
        if not listeners:
            return False

        for index, entry in enumerate(listeners):
            if entry.callback == callback:
                del listeners[index]
                break
        else:
            return False

        if not listeners:
            del self._listeners[key]

        return True

    def unsubscribe_all(self, key: Any = None) -> None:
        """Remove every listener bound to key, or every listener if key is None."""
        if key is None:
            self._listeners.clear()
        else:
            self._listeners.pop(key, None)

    # -----Publishing----------------------------------------------------------

    def publish(self, key: Any, payload: Any) -> bool:
        """
        Call every listener bound to key with payload.

        Listeners bound or removed while publishing do not affect the current
        delivery. Once-listeners are removed before they are called.

        Returns:
            bool: True if at least one listener was called.
        """
        listeners = list(self._listeners.get(key, []))
        if not listeners:
            return False

        for entry in listeners:
            if entry.once:
                self._discard(key, entry)

            try:
                entry.callback(payload)
            except Exception as e:
                if self._exception_handler is None:
                    raise

                stop = self._exception_handler(entry, e)
                if stop:
                    break

        return True

    def _discard(self, key: Any, entry: listener.Listener) -> None:
        listeners = self._listeners.get(key)
        if not listeners:
            return

        for index, existing in enumerate(listeners):
            if existing is entry:
                del listeners[index]
                break

        if not listeners:
            del self._listeners[key]

    # -----Introspection-------------------------------------------------------

    def listeners_of(self, key: Any) -> list[listener.LISTENER]:
        """Callbacks bound to key, in delivery order."""
        return [entry.callback for entry in self._listeners.get(key, [])]

    def all_keys(self) -> list[Any]:
        """Every key with at least one listener."""
        return list(self._listeners.keys())

    def listener_count(self, key: Any = None) -> int:
        """Number of listeners on key, or on every key if key is None."""
        if key is None:
            return sum(len(listeners) for listeners in self._listeners.values())
        return len(self._listeners.get(key, []))
