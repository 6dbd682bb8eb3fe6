"""Request matching for scenario rules."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import unquote_plus, urlsplit

from .model import Header, Matcher, RequestDescriptor

_DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass
class RequestContext:
    """Parsed view of an outgoing request used for matching."""

    method: str
    scheme: str
    host: str
    port: Optional[int]
    path: str
    params: List[Tuple[str, Optional[str]]]
    headers: List[Header]
    body: bytes

    @property
    def body_text(self) -> str:
        return self.body.decode("utf-8", "replace")

    def param_values(self, name: str) -> List[Optional[str]]:
        return [value for key, value in self.params if key == name]

    def header_values(self, name: str) -> List[str]:
        wanted = name.lower()
        return [header.value for header in self.headers if header.name.lower() == wanted]


def parse_query(query: str) -> List[Tuple[str, Optional[str]]]:
    """Split a query string, keeping bare flags (``?debug``) as ``None``."""

    params: List[Tuple[str, Optional[str]]] = []
    for part in query.split("&"):
        if not part:
            continue
        if "=" in part:
            key, _, value = part.partition("=")
            params.append((unquote_plus(key), unquote_plus(value)))
        else:
            params.append((unquote_plus(part), None))
    return params


def request_body(request: Any) -> bytes:
    """Return the body of a prepared request as bytes.

    Streaming bodies (generators, file objects) are not read so the live
    transport can still consume them; they count as empty.
    """

    body = getattr(request, "body", None)
    if body is None:
        return b""
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    return b""


def request_context(request: Any) -> RequestContext:
    """Build a :class:`RequestContext` from a ``requests.PreparedRequest``."""

    parts = urlsplit(request.url or "")
    scheme = (parts.scheme or "http").lower()
    headers = [Header(str(name), str(value)) for name, value in (request.headers or {}).items()]
    return RequestContext(
        method=(request.method or "GET").upper(),
        scheme=scheme,
        host=(parts.hostname or "").lower(),
        port=parts.port or _DEFAULT_PORTS.get(scheme),
        path=parts.path or "/",
        params=parse_query(parts.query),
        headers=headers,
        body=request_body(request),
    )


def _params_match(expected: Dict[str, Optional[str]], ctx: RequestContext, exact: bool) -> bool:
    for name, value in expected.items():
        if value not in ctx.param_values(name):
            return False
    if exact:
        return {key for key, _ in ctx.params} == set(expected)
    return True


def _headers_match(expected: Tuple[Header, ...], ctx: RequestContext, exact: bool) -> bool:
    for header in expected:
        if header.value not in ctx.header_values(header.name):
            return False
    if exact:
        declared = {header.name.lower() for header in expected}
        return {header.name.lower() for header in ctx.headers} == declared
    return True


def _body_matches(pattern: str, ctx: RequestContext) -> bool:
    return re.fullmatch(pattern, ctx.body_text, re.DOTALL) is not None


def request_matches(criteria: RequestDescriptor, ctx: RequestContext) -> bool:
    """Return True when every criterion declared in ``criteria`` holds."""

    if criteria.protocol is not None and criteria.protocol.lower() != ctx.scheme:
        return False
    if criteria.method is not None and criteria.method.upper() != ctx.method:
        return False
    if criteria.host is not None and criteria.host.lower() != ctx.host:
        return False
    if criteria.port is not None and criteria.port != ctx.port:
        return False
    if criteria.path is not None and criteria.path != ctx.path:
        return False
    if not _params_match(criteria.params, ctx, criteria.exact_match):
        return False
    if not _headers_match(criteria.headers, ctx, criteria.exact_match):
        return False
    if criteria.body is not None and not _body_matches(criteria.body, ctx):
        return False
    return True


def first_match(rules: List[Matcher], ctx: RequestContext) -> Optional[Matcher]:
    """First rule in file order whose criteria match, or None."""

    for rule in rules:
        if request_matches(rule.request, ctx):
            return rule
    return None
