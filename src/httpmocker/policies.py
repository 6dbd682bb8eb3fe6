"""Filing policies: naming conventions mapping a request to a scenario file."""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from typing import Any, Callable, Protocol
from urllib.parse import urlsplit

_BODY_FILE_RE = re.compile(r"_body_\d+\.[A-Za-z0-9]+$")


class FilingPolicy(Protocol):
    """Pure, deterministic mapping from a request to a file identifier."""

    def get_path(self, request: Any) -> str:
        ...


def _url_path(request: Any) -> str:
    return urlsplit(request.url or "").path or "/"


@dataclass(frozen=True)
class MirrorPathPolicy:
    """Mirror the URL path: ``/users/list`` maps to ``users/list.json``.

    A path ending with ``/`` maps to an ``index`` file inside that folder.
    """

    file_type: str = "json"

    def get_path(self, request: Any) -> str:
        path = _url_path(request)
        if path.endswith("/"):
            path += "index"
        return f"{path.lstrip('/')}.{self.file_type}"


@dataclass(frozen=True)
class SingleFolderPolicy:
    """Keep every scenario in one folder, path segments joined by ``_``."""

    folder: str
    file_type: str = "json"

    def get_path(self, request: Any) -> str:
        segments = [segment for segment in _url_path(request).split("/") if segment]
        name = "_".join(segments) or "index"
        folder = self.folder.strip("/")
        prefix = f"{folder}/" if folder else ""
        return f"{prefix}{name}.{self.file_type}"


@dataclass(frozen=True)
class SingleFilePolicy:
    """Every request maps to the same scenario file."""

    path: str

    def get_path(self, request: Any) -> str:
        return self.path


@dataclass(frozen=True)
class CallablePolicy:
    """Adapt a plain function to the policy interface."""

    func: Callable[[Any], str]

    def get_path(self, request: Any) -> str:
        return str(self.func(request))


def as_policy(policy: Any) -> FilingPolicy:
    if hasattr(policy, "get_path"):
        return policy
    if callable(policy):
        return CallablePolicy(policy)
    raise TypeError(f"Not a filing policy: {policy!r}")


def is_body_file(name: str) -> bool:
    """True for body files written next to recorded scenarios.

    Such names are reserved: they never resolve to, or get recorded as, a
    scenario file.
    """

    return _BODY_FILE_RE.search(posixpath.basename(name)) is not None
