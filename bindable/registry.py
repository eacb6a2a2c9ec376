"""
Event type registry.

Relates each event class to the DispatchKey an observer uses to address its
emitter. Keys are opaque tokens created by the registry; they are never
derived from an event's human-readable name, so two event types can only
share an emitter channel by sharing a key object.

Entries are registered in one of two modes:
    SHARED: the entry's unique_name is indexed and must not collide with
        any other shared entry on the same registry.
    FORCED_UNIQUE: the entry is kept out of the unique name index, so it
        never conflicts with anything.

Switching an event type between modes moves its existing key, so listeners
already bound under that key stay valid.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Iterator
from typing import Optional

from bindable import events
from bindable.config import ObserverConfig
from bindable.errors import NonUniqueNameRegisteredError


logger = logging.getLogger(__name__)


class DispatchKey(object):
    """Opaque emitter channel for one event type. Compares by identity."""

    __slots__ = ("unique_name",)

    def __init__(self, unique_name: str) -> None:
        self.unique_name = unique_name

    def __repr__(self) -> str:
        return f"DispatchKey({self.unique_name!r})"


class RegistryMode(enum.Enum):
    SHARED = "shared"
    FORCED_UNIQUE = "forced_unique"


@dataclass
class RegistryEntry(object):
    """A registered event type and the key its listeners are bound under."""

    event_type: type[events.Event]
    key: DispatchKey
    mode: RegistryMode


class EventRegistry(object):
    """
    Maps event types to dispatch keys for a single observer.

    Args:
        config (ObserverConfig): Read at each registration for the
            strict_unique_names flag.
    """

    def __init__(self, config: Optional[ObserverConfig] = None) -> None:
        self.config = config if config is not None else ObserverConfig()

        self._entries: dict[type[events.Event], RegistryEntry] = {}
        self._unique_names: dict[str, type[events.Event]] = {}
        self._types_by_key: dict[DispatchKey, type[events.Event]] = {}

    def __contains__(self, event: events.EVENT_TYPE) -> bool:
        return events.event_type_of(event) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RegistryEntry]:
        return iter(list(self._entries.values()))

    def register(self, event: events.EVENT_TYPE, force_unique: bool = False) -> bool:
        """
        Register an event type.

        Args:
            event (EVENT_TYPE): The event class, or an instance of it.
            force_unique (bool): Register outside of the unique name index so
                the type cannot conflict with other types' unique names.
        Returns:
            bool: True if the type is registered in the requested mode, False
                if its unique name is taken and the config is not strict.
        Raises:
            NonUniqueNameRegisteredError: If the unique name is taken and
                the config is strict.
        """
        event_type = events.event_type_of(event)
        unique_name = event_type.unique_name
        requested = (
            RegistryMode.FORCED_UNIQUE if force_unique else RegistryMode.SHARED
        )

        entry = self._entries.get(event_type)
        if entry is not None and entry.mode is requested:
            return True

        if requested is RegistryMode.SHARED:
            registered = self._unique_names.get(unique_name)
            if registered is not None:
                if self.config.strict_unique_names:
                    raise NonUniqueNameRegisteredError(
                        unique_name, registered, event_type
                    )

                logger.debug(
                    f"Refused to register {event_type.__qualname__}: unique name "
                    f"'{unique_name}' is held by {registered.__qualname__}"
                )
                return False

        if entry is not None:
            self._migrate(entry, requested)
            return True

        key = DispatchKey(unique_name)
        self._entries[event_type] = RegistryEntry(event_type, key, requested)
        self._types_by_key[key] = event_type
        if requested is RegistryMode.SHARED:
            self._unique_names[unique_name] = event_type

        logger.debug(f"Registered {event_type.__qualname__} as {requested.value}")
        return True

    def _migrate(self, entry: RegistryEntry, mode: RegistryMode) -> None:
        """Move an entry to another mode, keeping its key."""
        unique_name = entry.event_type.unique_name
        if mode is RegistryMode.SHARED:
            self._unique_names[unique_name] = entry.event_type
        else:
            self._unique_names.pop(unique_name, None)

        logger.debug(
            f"Moved {entry.event_type.__qualname__} from {entry.mode.value} "
            f"to {mode.value}"
        )
        entry.mode = mode

    def unregister(self, event: events.EVENT_TYPE) -> bool:
        """
        Remove an event type from the registry.

        Listeners bound under the type's key are left on the emitter; remove
        them first if they should go too.

        Returns:
            bool: False if the type was not registered.
        """
        event_type = events.event_type_of(event)
        entry = self._entries.pop(event_type, None)
        if entry is None:
            return False

        self._types_by_key.pop(entry.key, None)
        if entry.mode is RegistryMode.SHARED:
            self._unique_names.pop(event_type.unique_name, None)

        return True

    def resolve(self, event: events.EVENT_TYPE) -> Optional[DispatchKey]:
        """Returns the key for a registered event type, or None."""
        entry = self._entries.get(events.event_type_of(event))
        return entry.key if entry is not None else None

    def resolve_or_register(self, event: events.EVENT_TYPE) -> Optional[DispatchKey]:
        """
        Returns the key for an event type, registering it on first use.
        Returns None if registration failed with a non-strict config.
        """
        key = self.resolve(event)
        if key is not None:
            return key

        if not self.register(event):
            return None

        return self.resolve(event)

    def get_entry(self, event: events.EVENT_TYPE) -> Optional[RegistryEntry]:
        return self._entries.get(events.event_type_of(event))

    def event_type_for(self, key: object) -> Optional[type[events.Event]]:
        """Returns the event type registered under key, or None."""
        if not isinstance(key, DispatchKey):
            return None
        return self._types_by_key.get(key)

    def event_types(self) -> list[type[events.Event]]:
        """All registered event types, in registration order."""
        return list(self._entries.keys())
