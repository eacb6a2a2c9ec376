"""
Observer configuration.

Collects every toggle a BindableObserver consults into a single dataclass.
Notification toggles decide which meta events the observer emits about its
own activity; strict_unique_names decides whether a unique name collision
raises or quietly fails the offending call.

The config is read live, so changing a field on an observer's config takes
effect on the next call.
"""

from dataclasses import dataclass
from dataclasses import fields


@dataclass
class ObserverConfig(object):
    """Notification and naming toggles for a BindableObserver."""

    emit_events: bool = True
    """Publish an EmitEvent after every successful emit()."""

    listener_bound_events: bool = True
    """Emit a ListenerBoundEvent whenever a listener is bound."""

    listener_removed_events: bool = True
    """Emit a ListenerRemovedEvent whenever a listener is removed."""

    observer_bound_events: bool = True
    """Emit an ObserverBoundEvent whenever bind() creates or changes a relay."""

    observer_unbound_events: bool = True
    """Emit an ObserverUnboundEvent whenever unbind() removes a relay."""

    cache_limit_changed_events: bool = True
    """Emit a CacheLimitChangedEvent whenever the cache limit changes."""

    emitter_changed_events: bool = True
    """Emit an EmitterChangedEvent on the former emitter when it is replaced."""

    strict_unique_names: bool = True
    """
    If True, registering an event whose unique name is already taken raises
    NonUniqueNameRegisteredError. If False, the registration returns False
    and any call that needed it becomes a no-op.
    """

    def update(self, **flags: bool) -> None:
        """
        Set the named flags, leaving the others untouched.

        Raises:
            TypeError: If a name is not a field of ObserverConfig.
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(flags) - known)
        if unknown:
            raise TypeError(f"Unknown observer flag(s): {', '.join(unknown)}")

        for name, value in flags.items():
            setattr(self, name, bool(value))

    def disable_notifications(self) -> None:
        """Turn every meta event off. strict_unique_names is left as is."""
        self.update(
            **{f.name: False for f in fields(self) if f.name != "strict_unique_names"}
        )
