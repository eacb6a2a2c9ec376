"""
Relays between bound observers.

Binding two observers installs Forwarder listeners on EmitEvent channels.
When an observer emits, it also publishes an EmitEvent carrying the original
event; a Forwarder listening to that EmitEvent calls emit() on its target
with the original event instance. Since emit() drops any event whose id it
has already seen, an event travels around a cycle of bound observers at most
once.

The relay table of an observer tracks, per bound peer, the forwarders it
installed so they can be detached again:
    from_handler: Installed on the peer, forwards the peer's events to the
        owner.
    to_handler: Installed on the owner, forwards the owner's events to the
        peer.
"""

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING
from typing import Optional

from bindable import events

if TYPE_CHECKING:
    from bindable.observer import BindableObserver


logger = logging.getLogger(__name__)


class RelayFlags(enum.IntFlag):
    """
    Direction events are relayed between two bound observers.

    - FROM sends the bound observer's events to the binding observer.
    - TO sends the binding observer's events to the bound observer.
    - ALL sends all events from either observer to the other.
    - NONE sends no events between the observers.
    """

    NONE = 0
    TO = 1 << 0
    FROM = 1 << 1
    ALL = TO | FROM


class Forwarder(object):
    """EmitEvent listener that re-emits the carried event on target."""

    __slots__ = ("target",)

    def __init__(self, target: "BindableObserver") -> None:
        self.target = target

    def __call__(self, event: events.EmitEvent) -> None:
        self.target.emit(event.emitted)

    def __repr__(self) -> str:
        return f"Forwarder(target={self.target!r})"


@dataclass
class RelayBinding(object):
    """A bound peer and the forwarders installed for it."""

    peer: "BindableObserver"
    from_handler: Optional[Forwarder] = None
    to_handler: Optional[Forwarder] = None

    @property
    def flags(self) -> RelayFlags:
        flags = RelayFlags.NONE
        if self.from_handler is not None:
            flags |= RelayFlags.FROM
        if self.to_handler is not None:
            flags |= RelayFlags.TO
        return flags


def _detach(observer: "BindableObserver", handler: Forwarder) -> None:
    """Remove handler from observer's EmitEvent channel if it is still there."""
    if observer.emitter is None:
        return

    if observer.has_listener(events.EmitEvent, handler):
        observer.remove_listener(events.EmitEvent, handler)


class RelayTable(object):
    """Bindings from one observer (the owner) to its peers."""

    def __init__(self, owner: "BindableObserver") -> None:
        self.owner = owner
        # Keyed by peer identity; observers do not define __eq__.
        self._bindings: dict[int, RelayBinding] = {}

    def __len__(self) -> int:
        return len(self._bindings)

    def __contains__(self, peer: "BindableObserver") -> bool:
        return id(peer) in self._bindings

    def peers(self) -> list["BindableObserver"]:
        return [binding.peer for binding in self._bindings.values()]

    def _install(
        self,
        observer: "BindableObserver",
        binding: RelayBinding,
        attr: str,
        handler: Forwarder,
    ) -> None:
        """
        Subscribe handler to observer's EmitEvent channel and record it on
        binding. on() can raise after subscribing (a ListenerBoundEvent
        listener failing), so the record is kept whenever the handler made it
        onto the channel, leaving it reachable by unbind().
        """
        setattr(binding, attr, handler)
        try:
            observer.on(events.EmitEvent, handler)
        except Exception:
            if observer.emitter is None or not observer.has_listener(
                events.EmitEvent, handler
            ):
                setattr(binding, attr, None)
            raise

    def bind(self, peer: "BindableObserver", flags: RelayFlags = RelayFlags.ALL) -> bool:
        """
        Bind peer to the owner, or change the direction of an existing binding.

        Forwarders are only created when a direction is added, and only the
        forwarders of removed directions are detached. If installing a
        forwarder raises, the binding still lists every forwarder that was
        installed, and a new binding left without any is dropped.

        Returns:
            bool: True if the binding was created or its direction changed.
        """
        flags = RelayFlags(flags)
        binding = self._bindings.get(id(peer))
        created = binding is None
        if created:
            binding = RelayBinding(peer=peer)
            self._bindings[id(peer)] = binding

        former_flags = binding.flags

        try:
            if flags & RelayFlags.FROM:
                if binding.from_handler is None:
                    self._install(peer, binding, "from_handler", Forwarder(self.owner))
            elif binding.from_handler is not None:
                handler, binding.from_handler = binding.from_handler, None
                _detach(peer, handler)

            if flags & RelayFlags.TO:
                if binding.to_handler is None:
                    self._install(self.owner, binding, "to_handler", Forwarder(peer))
            elif binding.to_handler is not None:
                handler, binding.to_handler = binding.to_handler, None
                _detach(self.owner, handler)
        except Exception:
            if created and binding.flags == RelayFlags.NONE:
                del self._bindings[id(peer)]
            raise

        changed = created or binding.flags != former_flags
        if changed:
            logger.debug(
                f"Relay {self.owner!r} -> {peer!r} set to {binding.flags!r}"
            )
        return changed

    def check_binding(self, peer: "BindableObserver") -> Optional[RelayFlags]:
        """Returns how peer is bound to the owner, or None if it is not bound."""
        binding = self._bindings.get(id(peer))
        return binding.flags if binding is not None else None

    def unbind(self, peer: "BindableObserver") -> bool:
        """
        Detach every forwarder installed for peer and forget the binding.

        Returns:
            bool: False if peer was not bound.
        """
        binding = self._bindings.pop(id(peer), None)
        if binding is None:
            return False

        # Both sides are detached even if a ListenerRemovedEvent listener
        # raises on the first.
        try:
            if binding.from_handler is not None:
                _detach(peer, binding.from_handler)
        finally:
            if binding.to_handler is not None:
                _detach(self.owner, binding.to_handler)

        logger.debug(f"Relay {self.owner!r} -> {peer!r} removed")
        return True
