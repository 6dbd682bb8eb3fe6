"""Dataclasses describing the scenario format."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Header:
    """One header line. A name may appear several times in a list."""

    name: str
    value: str


@dataclass(frozen=True)
class RequestDescriptor:
    """Criteria a request must satisfy for a rule to apply.

    Every criterion is optional; an empty descriptor matches any request.
    ``params`` maps a query parameter to its value, or to ``None`` for a
    parameter sent without ``=value``. ``body`` is a regular expression that
    must match the whole request body.
    """

    exact_match: bool = False
    protocol: Optional[str] = None
    method: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    path: Optional[str] = None
    params: Dict[str, Optional[str]] = field(default_factory=dict)
    headers: Tuple[Header, ...] = ()
    body: Optional[str] = None


@dataclass(frozen=True)
class ResponseDescriptor:
    """Response served when a rule matches.

    ``delay`` is in milliseconds and overrides the interceptor's simulated
    delay when set. ``body_file`` names a file next to the scenario holding
    the body; once loaded its bytes are kept in ``content``, which takes
    precedence over ``body``.
    """

    code: int = 200
    media_type: str = "text/plain"
    headers: Tuple[Header, ...] = ()
    body: str = ""
    body_file: Optional[str] = None
    delay: Optional[int] = None
    content: Optional[bytes] = None

    def payload(self) -> bytes:
        if self.content is not None:
            return self.content
        return self.body.encode("utf-8")

    def header_values(self, name: str) -> List[str]:
        wanted = name.lower()
        return [header.value for header in self.headers if header.name.lower() == wanted]


@dataclass(frozen=True)
class Matcher:
    """One rule of a scenario: criteria plus the response they select."""

    request: RequestDescriptor = field(default_factory=RequestDescriptor)
    response: ResponseDescriptor = field(default_factory=ResponseDescriptor)


@dataclass
class Scenario:
    """Decoded scenario file: rules in file order."""

    rules: List[Matcher] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rules)
