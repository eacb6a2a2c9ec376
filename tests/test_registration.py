"""
Unit tests for event type registration.

Tests verify that event types map to stable dispatch keys, that unique names
are enforced strictly or leniently depending on the observer config, that
force_unique registrations sidestep the unique name index, and that moving a
type between modes keeps its key and therefore its listeners.
"""

import pytest

from bindable import BindableObserver
from bindable import Event
from bindable import EventEmitter
from bindable import NonUniqueNameRegisteredError
from bindable import ObserverConfig
from bindable.events import event_type_of
from bindable.registry import DispatchKey
from bindable.registry import EventRegistry
from bindable.registry import RegistryMode


class EventOne(Event):
    unique_name = "bindable-tests.EventOne"


class EventTwo(Event):
    unique_name = "bindable-tests.EventTwo"


class NonUniqueEvent(Event):
    name = "NonUniqueEvent"
    unique_name = "bindable-tests.EventOne"


def _quiet_observer(**flags: bool) -> BindableObserver:
    config = ObserverConfig()
    config.disable_notifications()
    config.update(**flags)
    return BindableObserver(EventEmitter, config=config)


def test_register_creates_dispatch_key() -> None:
    """Test that registering an event type creates a key for it."""
    registry = EventRegistry()

    assert registry.resolve(EventOne) is None
    assert registry.register(EventOne) is True

    key = registry.resolve(EventOne)
    assert isinstance(key, DispatchKey)
    assert EventOne in registry
    assert len(registry) == 1


def test_register_is_idempotent() -> None:
    """Test that registering the same type twice keeps the first key."""
    registry = EventRegistry()
    registry.register(EventOne)
    key = registry.resolve(EventOne)

    assert registry.register(EventOne) is True
    assert registry.resolve(EventOne) is key
    assert len(registry) == 1


def test_keys_are_distinct_per_type() -> None:
    """Test that different event types never share a key."""
    registry = EventRegistry()

    key1 = registry.resolve_or_register(EventOne)
    key2 = registry.resolve_or_register(EventTwo)

    assert key1 is not None
    assert key2 is not None
    assert key1 is not key2
    assert key1 != key2


def test_instance_resolves_to_class_key() -> None:
    """Test that an event instance stands for its class."""
    registry = EventRegistry()
    registry.register(EventOne())

    assert registry.resolve(EventOne) is registry.resolve(EventOne())


def test_resolve_has_no_side_effects() -> None:
    """Test that resolve() never registers anything."""
    registry = EventRegistry()

    assert registry.resolve(EventOne) is None
    assert EventOne not in registry
    assert len(registry) == 0


def test_strict_duplicate_unique_name_raises() -> None:
    """Test that a unique name collision raises in strict mode."""
    registry = EventRegistry(ObserverConfig(strict_unique_names=True))
    registry.register(EventOne)

    with pytest.raises(NonUniqueNameRegisteredError, match="Duplicate unique name") as info:
        registry.register(NonUniqueEvent)

    assert info.value.unique_name == "bindable-tests.EventOne"
    assert info.value.registered_event is EventOne
    assert info.value.duplicate_event is NonUniqueEvent
    assert NonUniqueEvent not in registry


def test_lenient_duplicate_unique_name_returns_false() -> None:
    """Test that a unique name collision returns False in lenient mode."""
    registry = EventRegistry(ObserverConfig(strict_unique_names=False))
    registry.register(EventOne)
    key = registry.resolve(EventOne)

    assert registry.register(NonUniqueEvent) is False
    assert registry.resolve_or_register(NonUniqueEvent) is None
    assert registry.resolve(EventOne) is key
    assert NonUniqueEvent not in registry


def test_strictness_is_read_live_from_config() -> None:
    """Test that toggling the config flag affects the next registration."""
    config = ObserverConfig(strict_unique_names=False)
    registry = EventRegistry(config)
    registry.register(EventOne)

    assert registry.register(NonUniqueEvent) is False

    config.strict_unique_names = True

    with pytest.raises(NonUniqueNameRegisteredError):
        registry.register(NonUniqueEvent)


def test_force_unique_skips_name_check() -> None:
    """Test that force_unique registrations may share a unique name."""
    registry = EventRegistry()
    registry.register(EventOne)

    assert registry.register(NonUniqueEvent, force_unique=True) is True
    assert registry.resolve(NonUniqueEvent) is not registry.resolve(EventOne)
    assert registry.get_entry(NonUniqueEvent).mode is RegistryMode.FORCED_UNIQUE


def test_migrating_to_force_unique_keeps_key() -> None:
    """Test that moving a shared entry to force_unique keeps its key."""
    registry = EventRegistry()
    registry.register(EventOne)
    key = registry.resolve(EventOne)

    assert registry.register(EventOne, force_unique=True) is True
    assert registry.resolve(EventOne) is key
    assert registry.get_entry(EventOne).mode is RegistryMode.FORCED_UNIQUE

    assert registry.register(EventOne) is True
    assert registry.resolve(EventOne) is key
    assert registry.get_entry(EventOne).mode is RegistryMode.SHARED


def test_migrating_to_force_unique_releases_unique_name() -> None:
    """Test that a force_unique entry no longer holds its unique name."""
    registry = EventRegistry()
    registry.register(EventOne)
    registry.register(EventOne, force_unique=True)

    assert registry.register(NonUniqueEvent) is True


def test_migrating_back_to_shared_checks_unique_name() -> None:
    """Test that moving back to shared mode fails if the name was taken."""
    registry = EventRegistry(ObserverConfig(strict_unique_names=False))
    registry.register(EventOne, force_unique=True)
    registry.register(NonUniqueEvent)
    key = registry.resolve(EventOne)

    assert registry.register(EventOne) is False
    assert registry.resolve(EventOne) is key
    assert registry.get_entry(EventOne).mode is RegistryMode.FORCED_UNIQUE


def test_unregister() -> None:
    """Test that unregister() removes the type from every index."""
    registry = EventRegistry()

    assert registry.unregister(EventOne) is False

    registry.register(EventOne)
    key = registry.resolve(EventOne)

    assert registry.unregister(EventOne) is True
    assert registry.resolve(EventOne) is None
    assert registry.event_type_for(key) is None
    # The unique name is free again
    assert registry.register(NonUniqueEvent) is True


def test_unregister_force_unique_entry() -> None:
    """Test that force_unique entries can be unregistered."""
    registry = EventRegistry()
    registry.register(EventOne, force_unique=True)

    assert registry.unregister(EventOne) is True
    assert EventOne not in registry


def test_event_type_for_inverts_resolve() -> None:
    """Test that keys map back to their event types."""
    registry = EventRegistry()
    key = registry.resolve_or_register(EventTwo)

    assert registry.event_type_for(key) is EventTwo
    assert registry.event_type_for("bindable-tests.EventTwo") is None
    assert registry.event_types() == [EventTwo]


def test_default_names() -> None:
    """Test the names an event class gets when it does not declare them."""

    class Plain(Event):
        pass

    class Child(Plain):
        pass

    assert Plain.name == "Plain"
    assert Plain.unique_name == f"{Plain.__module__}.{Plain.__qualname__}"
    assert Child.name == "Child"
    assert Child.unique_name != Plain.unique_name


def test_event_type_of_rejects_non_events() -> None:
    """Test that only Event classes and instances are accepted."""
    assert event_type_of(EventOne) is EventOne
    assert event_type_of(EventOne()) is EventOne

    with pytest.raises(TypeError):
        event_type_of("EventOne")

    with pytest.raises(TypeError):
        event_type_of(int)


# -----Through the observer----------------------------------------------------


def test_observer_strict_duplicate_raises_on_bind() -> None:
    """Test that binding a listener to a colliding type raises when strict."""
    obs = _quiet_observer()
    obs.on(EventOne, lambda e: None)

    with pytest.raises(BindableObserver.NonUniqueNameRegisteredError):
        obs.on(NonUniqueEvent, lambda e: None)


def test_observer_strict_duplicate_on_emit_caches_the_instance() -> None:
    """Test that an instance whose emit() raised a name collision stays cached."""
    obs = _quiet_observer()
    obs.on(EventOne, lambda e: None)
    event = NonUniqueEvent()

    with pytest.raises(NonUniqueNameRegisteredError):
        obs.emit(event)

    assert obs.emit(event) is False

    obs.clear_cache()

    with pytest.raises(NonUniqueNameRegisteredError):
        obs.emit(event)


def test_observer_lenient_duplicate_is_no_op() -> None:
    """Test that a colliding type degrades every call to a no-op when lenient."""
    obs = _quiet_observer(strict_unique_names=False)
    calls: list[str] = []

    def first(e: Event) -> None:
        calls.append("first")

    def duplicate(e: Event) -> None:
        calls.append("duplicate")

    obs.on(EventOne, first)
    obs.on(NonUniqueEvent, duplicate)

    assert obs.has_listener(NonUniqueEvent, duplicate) is False
    assert obs.emit(NonUniqueEvent()) is False
    assert obs.emit(EventOne()) is True
    assert calls == ["first"]


def test_observer_register_event_force_unique() -> None:
    """Test that force_unique registration lets two types share a name."""
    obs = _quiet_observer()
    count = {"unique": 0, "shared": 0}

    obs.register_event(NonUniqueEvent, force_unique=True)
    obs.on(EventOne, lambda e: count.__setitem__("shared", count["shared"] + 1))
    obs.on(NonUniqueEvent, lambda e: count.__setitem__("unique", count["unique"] + 1))

    obs.emit(EventOne())
    obs.emit(NonUniqueEvent())
    obs.emit(NonUniqueEvent())

    assert count == {"unique": 2, "shared": 1}


def test_observer_mode_switch_keeps_listeners() -> None:
    """Test that listeners survive moving their type between modes."""
    obs = _quiet_observer()
    calls: list[int] = []

    obs.on(EventOne, lambda e: calls.append(1))
    obs.register_event(EventOne, force_unique=True)
    obs.emit(EventOne())
    obs.register_event(EventOne)
    obs.emit(EventOne())

    assert calls == [1, 1]


def test_observer_unregister_event_leaves_listeners_on_emitter() -> None:
    """Test that unregistering a type does not remove its listeners."""
    emitter = EventEmitter()
    obs = BindableObserver(emitter, config=ObserverConfig(listener_bound_events=False))

    def listener(e: Event) -> None:
        pass

    obs.on(EventOne, listener)
    before = emitter.listener_count()

    assert obs.unregister_event(EventOne) is True
    assert obs.unregister_event(EventOne) is False
    assert obs.has_listener(EventOne, listener) is False
    assert emitter.listener_count() == before
