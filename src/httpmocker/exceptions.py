"""Exceptions raised by the interception pipeline."""

from __future__ import annotations


class HttpMockerError(RuntimeError):
    """Base error for mocking related failures."""


class NoMatchError(HttpMockerError):
    """Raised in ENABLED mode when no scenario matched the request."""

    def __init__(self, method: str, url: str) -> None:
        self.method = method
        self.url = url
        super().__init__(f"No scenario matched {method} {url}")


class LoadError(HttpMockerError):
    """Raised by loaders when a scenario identifier resolves to nothing."""


class DecodeError(HttpMockerError):
    """Raised when scenario bytes cannot be decoded into rules."""


class RecordingWriteError(HttpMockerError):
    """Raised when a live exchange could not be persisted."""


class ConfigurationError(HttpMockerError):
    """Invalid interceptor configuration"""


NO_ROOT_FOLDER_ERROR = "Network calls can not be recorded without a root folder for scenarios"
