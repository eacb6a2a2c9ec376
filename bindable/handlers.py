"""
Policies for listeners that raise inside EventEmitter.publish().

An exception handler is given the Listener record that failed (callback, key
and whether it was a once-listener) along with the exception, and decides
whether the emitter goes on to the remaining listeners of that key (CONTINUE)
or stops delivery of the current payload (STOP).

With no handler set, listener exceptions propagate to whoever called emit().

    >>> collector = ListenerExceptionCollector(maxlen=50)
    >>> observer = BindableObserver(EventEmitter, collector)
    >>> ...
    >>> for failure in collector.drain():
    ...     print(failure.describe())
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any
from typing import Callable
from typing import Iterator
from typing import Optional

from bindable import listener


logger = logging.getLogger(__name__)


LISTENER_EXCEPTION_HANDLER = Callable[[listener.Listener, Exception], bool]
"""(failed Listener record, exception) -> STOP or CONTINUE."""

STOP = True
CONTINUE = False


def get_callable_name(callable_: Callable) -> str:
    """
    Returns the name of the callable, using class name for items with __self__,
    __name__ for anything with __name__, or str(callback) if neither are found.
    """
    if hasattr(callable_, "__self__"):
        return f"{callable_.__self__.__class__.__name__}.{callable_.__name__}"
    elif hasattr(callable_, "__name__"):
        return callable_.__name__
    else:
        return str(callable_)


def describe_listener(record: listener.Listener) -> str:
    kind = "once-listener" if record.once else "listener"
    return f"{kind} {get_callable_name(record.callback)} on {record.key!r}"


def stop_and_log_listener_exception(
    record: listener.Listener, exception: Exception
) -> bool:
    """Log the failure with its traceback and stop delivering the payload."""
    logger.error(
        f"Delivery stopped by {describe_listener(record)}: "
        f"{exception.__class__.__name__}: {exception}",
        exc_info=exception,
    )
    return STOP


def log_and_continue_listener_exception(
    record: listener.Listener, exception: Exception
) -> bool:
    """Log the failure and go on to the next listener."""
    logger.warning(
        f"Ignored failure in {describe_listener(record)}: "
        f"{exception.__class__.__name__}: {exception}"
    )
    return CONTINUE


def silent_listener_exception(_: listener.Listener, __: Exception) -> bool:
    return CONTINUE


@dataclass(frozen=True)
class CaughtListenerException(object):
    """A listener failure kept by a ListenerExceptionCollector."""

    record: listener.Listener
    exception: Exception

    @property
    def callback(self) -> listener.LISTENER:
        return self.record.callback

    @property
    def key(self) -> Any:
        return self.record.key

    def describe(self) -> str:
        return (
            f"{describe_listener(self.record)}: "
            f"{self.exception.__class__.__name__}: {self.exception}"
        )


class ListenerExceptionCollector(object):
    """
    Exception handler that keeps failures for later inspection and lets
    delivery continue.

    Each collector owns its failures, so emitters given different collectors
    never see each other's exceptions. The exception objects keep their
    __traceback__.

    Args:
        maxlen (Optional[int]): Keep at most this many failures, dropping the
            oldest first. None keeps everything until drain() or clear().
        stop (bool): Return STOP instead of CONTINUE after recording.
    """

    def __init__(self, maxlen: Optional[int] = None, stop: bool = False) -> None:
        self._caught: deque[CaughtListenerException] = deque(maxlen=maxlen)
        self._result = STOP if stop else CONTINUE

    def __call__(self, record: listener.Listener, exception: Exception) -> bool:
        self._caught.append(CaughtListenerException(record, exception))
        return self._result

    def __len__(self) -> int:
        return len(self._caught)

    def __iter__(self) -> Iterator[CaughtListenerException]:
        return iter(list(self._caught))

    @property
    def exceptions(self) -> list[Exception]:
        return [caught.exception for caught in self._caught]

    def drain(self) -> list[CaughtListenerException]:
        """Returns every kept failure, oldest first, and forgets them."""
        caught = list(self._caught)
        self._caught.clear()
        return caught

    def clear(self) -> None:
        self._caught.clear()
