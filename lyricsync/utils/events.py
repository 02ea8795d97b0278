"""
Typed publish/subscribe signals

A Signal holds an ordered list of callbacks. `connect()` returns a callable
that removes the subscription again, and `fire()` calls every subscriber
synchronously in subscription order. A subscriber that raises is logged and
does not prevent the remaining subscribers from running.
"""

from typing import Any, Callable, Generic, List, TypeVar

from .logger import get_logger

T = TypeVar('T', bound=Callable[..., Any])

logger = get_logger(__name__)


class Signal(Generic[T]):
    """Synchronous fan-out event"""

    def __init__(self, name: str = "signal"):
        self.name = name
        self._subscribers: List[T] = []

    def connect(self, callback: T) -> Callable[[], None]:
        """
        Subscribe a callback

        Args:
            callback: Called with the arguments passed to fire()

        Returns:
            Unsubscribe function; calling it more than once is harmless
        """
        self._subscribers.append(callback)

        def disconnect() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass

        return disconnect

    def fire(self, *args: Any) -> None:
        # Snapshot so subscribers may disconnect while being notified
        for callback in list(self._subscribers):
            try:
                callback(*args)
            except Exception:
                logger.exception(f"Subscriber of '{self.name}' raised")

    def clear(self) -> None:
        self._subscribers.clear()

    def __len__(self) -> int:
        return len(self._subscribers)
