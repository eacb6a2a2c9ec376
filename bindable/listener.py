"""
Listener data structures and type definitions for the event emitter.

Defines the Listener dataclass which wraps a callback with the metadata the
emitter needs to deliver to it: the key it listens to and whether it should
be dropped after its first call. Also defines the LISTENER type alias used
throughout the package for type hints.
"""

from dataclasses import dataclass
from typing import Any
from typing import Callable

LISTENER = Callable[[Any], Any]
"""
The callback end point an event is forwarded to. Listeners are called with a
single argument: the event instance that triggered them.

Return values are ignored. If you want data back, emit an event going the
opposite direction.
"""


@dataclass(frozen=True)
class Listener(object):
    """A callback bound to an emitter key."""

    callback: LISTENER
    """
    The end point that data is forwarded to. i.e. what gets ran.
    Held strongly: relay forwarders are created by the observer and would
    otherwise be collected as soon as bind() returns.
    """

    key: Any
    """The key the listener is bound to."""

    once: bool = False
    """If True the listener is removed before its first call."""
