"""Interceptor modes and the switch holding the current one."""

from __future__ import annotations

import threading
from enum import Enum


class Mode(Enum):
    """Controls how intercepted requests are answered."""

    DISABLED = "disabled"
    ENABLED = "enabled"
    MIXED = "mixed"
    RECORD = "record"

    @classmethod
    def parse(cls, value: "Mode | str") -> "Mode":
        if isinstance(value, Mode):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(mode.value for mode in cls)
            raise ValueError(f"Unknown mode {value!r} (expected one of: {choices})") from None


class ModeSwitch:
    """Process-wide holder for the current mode.

    Reads and writes go through a lock so a dispatching request always sees
    a whole value. A request already in flight keeps the mode it read; the
    new value is visible to the next one.
    """

    def __init__(self, mode: Mode = Mode.DISABLED) -> None:
        self._lock = threading.Lock()
        self._mode = mode

    def get(self) -> Mode:
        with self._lock:
            return self._mode

    def set(self, mode: Mode) -> Mode:
        """Store ``mode`` and return the previous value."""

        with self._lock:
            previous, self._mode = self._mode, mode
        return previous
