"""Lock-guarded value cell used as the capture on/off switch"""

import threading
from typing import Any, Callable, Optional


class AtomicFlag:
    """
    A value protected by its own mutex.

    Every read and write goes through the lock, so a reader never observes
    a half-applied transform from another thread.
    """

    def __init__(self, initial: Any = False):
        self._value = initial
        self._lock = threading.Lock()

    def get(self) -> Any:
        """Atomically read the current value"""
        with self._lock:
            return self._value

    def set(self, value: Any) -> Any:
        """Atomically replace the value and return it"""
        with self._lock:
            self._value = value
            return self._value

    def get_set(self, value: Optional[Any] = None, transform: Optional[Callable[[Any], Any]] = None) -> Any:
        """
        Atomic get-and-set.

        With ``transform``, the current value is passed to it and its return
        value becomes the new state. Without it, a ``None`` value only reads
        the state; anything else replaces it.

        Args:
            value: New value, or None to leave the state untouched
            transform: Callable mapping the old value to the new one

        Returns:
            The value held once the call completes
        """
        with self._lock:
            if transform is not None:
                self._value = transform(self._value)
            elif value is not None:
                self._value = value
            return self._value

    def swap(self, value: Any) -> Any:
        """Atomically replace the value, returning the previous one"""
        with self._lock:
            previous = self._value
            self._value = value
            return previous

    def __bool__(self) -> bool:
        return bool(self.get())

    def __repr__(self) -> str:
        return f"AtomicFlag({self.get()!r})"
