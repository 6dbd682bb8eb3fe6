"""Simulated network delay for mock responses."""

from __future__ import annotations

import random
import time
from typing import Any, Optional


def resolve_delay(delay: Any, request: object) -> int:
    """Milliseconds to hold back a mock response to ``request``.

    The global delay set on the builder is either a fixed number of ms, a
    ``(shortest, longest)`` pair from which each response draws its own
    delay, or a function of the outgoing request. ``None`` means respond
    immediately. Negative results are treated as no delay.
    """

    if delay is None:
        return 0
    if callable(delay):
        millis = delay(request)
    elif isinstance(delay, (list, tuple)):
        if len(delay) != 2:
            raise ValueError(f"Delay range needs exactly two bounds, got {delay!r}")
        shortest, longest = sorted(int(bound) for bound in delay)
        millis = random.randint(shortest, longest)
    else:
        millis = delay
    return max(0, int(millis))


def response_delay(override: Optional[int], delay: Any, request: object) -> int:
    """Delay for one mock response: the rule's override wins over the global value."""

    if override is not None:
        return max(0, int(override))
    return resolve_delay(delay, request)


def pause(delay_ms: int) -> None:
    # Sleeps the calling thread only.
    if delay_ms > 0:
        time.sleep(delay_ms / 1000.0)
