"""Exceptions raised by bindable observers."""


class UndefinedEmitterError(Exception):
    """
    Raised when an event-using function is called on a BindableObserver with
    no emitter set.
    """

    def __init__(self) -> None:
        super().__init__(
            "Cannot call any event-using function on a BindableObserver with no "
            "emitter. Ensure an emitter is set with BindableObserver.set_emitter()."
        )


class NonUniqueNameRegisteredError(Exception):
    """
    Raised when an event type is registered with a unique name that another
    registered event type already holds.
    """

    def __init__(
        self, unique_name: str, registered_event: type, duplicate_event: type
    ) -> None:
        self.unique_name = unique_name
        self.registered_event = registered_event
        self.duplicate_event = duplicate_event
        super().__init__(
            f"Duplicate unique name found when registering new event.\n"
            f"  Non-unique name: {unique_name}\n"
            f"  Existing event:  {registered_event.__qualname__}\n"
            f"  Duplicate event: {duplicate_event.__qualname__}"
        )
