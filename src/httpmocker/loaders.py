"""Byte loaders used by static providers to fetch scenario files.

A loader is any callable ``(identifier) -> bytes`` raising
:class:`~httpmocker.exceptions.LoadError` when nothing exists under that
identifier.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Mapping, Optional, Union

from .exceptions import LoadError

LoadFile = Callable[[str], bytes]


class FileLoader:
    """Load scenarios from a directory on disk."""

    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)

    def __call__(self, identifier: str) -> bytes:
        path = self.root / identifier
        try:
            return path.read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
            raise LoadError(f"No scenario file at {path}") from exc

    def __repr__(self) -> str:
        return f"FileLoader({str(self.root)!r})"


class ResourceLoader:
    """Load scenarios bundled as package data (e.g. ``tests.scenarios``)."""

    def __init__(self, package: str, prefix: str = "") -> None:
        self.package = package
        self.prefix = prefix.strip("/")

    def __call__(self, identifier: str) -> bytes:
        from importlib import resources

        name = f"{self.prefix}/{identifier}" if self.prefix else identifier
        resource = resources.files(self.package)
        for part in name.split("/"):
            if part:
                resource = resource.joinpath(part)
        try:
            return resource.read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
            raise LoadError(f"No scenario resource {name!r} in {self.package}") from exc


class InMemoryLoader:
    """Serve scenario bytes from a mapping; handy in tests."""

    def __init__(self, files: Optional[Mapping[str, Union[str, bytes]]] = None) -> None:
        self.files: Dict[str, bytes] = {}
        for identifier, content in (files or {}).items():
            self.put(identifier, content)

    def put(self, identifier: str, content: Union[str, bytes]) -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.files[identifier] = content

    def __call__(self, identifier: str) -> bytes:
        try:
            return self.files[identifier]
        except KeyError:
            raise LoadError(f"No in-memory scenario {identifier!r}") from None
