"""Persist live exchanges as replayable scenarios."""

from __future__ import annotations

import logging
import os
import re
import threading
from pathlib import Path
from typing import Any, Optional, Tuple, Union

import portalocker

from .exceptions import NO_ROOT_FOLDER_ERROR, ConfigurationError, RecordingWriteError
from .mappers import Mapper
from .matchers import request_context
from .model import Header, Matcher, RequestDescriptor, ResponseDescriptor, Scenario
from .policies import FilingPolicy, is_body_file

logger = logging.getLogger(__name__)

# The stored body is already decoded, so these no longer describe it.
_DROPPED_HEADERS = {"content-encoding", "transfer-encoding", "content-length"}

_EXTENSIONS = {
    "application/json": ".json",
    "application/xml": ".xml",
    "text/xml": ".xml",
    "text/html": ".html",
    "text/csv": ".csv",
    "text/plain": ".txt",
    "application/pdf": ".pdf",
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
}

_LOCK_NAME = ".httpmocker.lock"


def body_extension(media_type: Optional[str]) -> str:
    """File extension for a body file of the given content type."""

    base = (media_type or "").split(";", 1)[0].strip().lower()
    if base in _EXTENSIONS:
        return _EXTENSIONS[base]
    if base.endswith("+json"):
        return ".json"
    if base.endswith("+xml"):
        return ".xml"
    if base.startswith("text/"):
        return ".txt"
    return ".bin"


def _response_headers(response: Any) -> Tuple[Header, ...]:
    raw_headers = getattr(getattr(response, "raw", None), "headers", None)
    if hasattr(raw_headers, "getlist"):
        pairs = [(name, value) for name in raw_headers.keys() for value in raw_headers.getlist(name)]
    else:
        pairs = list(response.headers.items())
    return tuple(
        Header(str(name), str(value)) for name, value in pairs if str(name).lower() not in _DROPPED_HEADERS
    )


class RequestWriter:
    """Append live exchanges to scenario files below ``root``.

    Each exchange becomes a new rule at the end of the scenario file chosen by
    ``policy``; a non-empty response body goes to a sibling body file. Writes
    are serialised by a lock file in ``root`` and land through a temporary
    file and ``os.replace``, so readers never see a half written scenario.
    """

    def __init__(
        self,
        mapper: Mapper,
        policy: FilingPolicy,
        root: Optional[Union[str, Path]],
        fail_on_error: bool = False,
        lock_timeout: float = 5,
    ) -> None:
        self.mapper = mapper
        self.policy = policy
        self.root = Path(root) if root is not None else None
        self.fail_on_error = fail_on_error
        self.lock_timeout = lock_timeout
        self._thread_lock = threading.Lock()

    @property
    def is_ready(self) -> bool:
        return self.root is not None

    def record(self, request: Any, response: Any) -> Optional[Path]:
        """Save one exchange; return the scenario path, or None if saving failed quietly."""

        if self.root is None:
            raise ConfigurationError(NO_ROOT_FOLDER_ERROR)
        try:
            return self._save(request, response)
        except Exception as exc:
            # Includes failures raised by user supplied mappers and policies.
            if self.fail_on_error:
                if isinstance(exc, RecordingWriteError):
                    raise
                raise RecordingWriteError(f"Failed to record {request.method} {request.url}: {exc}") from exc
            logger.warning(f"Failed to record {request.method} {request.url}: {exc}")
            return None

    # ---------------------------------------------------------------- writing
    def _save(self, request: Any, response: Any) -> Path:
        path = self.root / self.policy.get_path(request)
        if is_body_file(path.name):
            raise ValueError(f"{path.name} is reserved for recorded bodies")
        path.parent.mkdir(parents=True, exist_ok=True)
        body = response.content or b""
        with self._thread_lock, portalocker.Lock(
            str(self.root / _LOCK_NAME), "a", timeout=self.lock_timeout
        ):
            scenario = self._read_existing(path)
            body_file = None
            if body:
                body_file = (
                    f"{path.stem}_body_{len(scenario.rules)}"
                    f"{body_extension(response.headers.get('Content-Type'))}"
                )
                self._write_bytes(path.parent / body_file, body)
            scenario.rules.append(
                Matcher(
                    request=self._describe_request(request),
                    response=self._describe_response(response, body_file),
                )
            )
            self._write_bytes(path, self.mapper.encode(scenario))
        logger.info(f"Recorded {request.method} {request.url} to {path}")
        return path

    def _read_existing(self, path: Path) -> Scenario:
        if not path.exists():
            return Scenario()
        return self.mapper.decode(path.read_bytes())

    def _write_bytes(self, path: Path, data: bytes) -> None:
        tmp = path.with_name(path.name + ".tmp")
        with portalocker.Lock(str(tmp), "wb", timeout=self.lock_timeout) as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp, path)

    # ---------------------------------------------------------------- describing
    def _describe_request(self, request: Any) -> RequestDescriptor:
        ctx = request_context(request)
        return RequestDescriptor(
            method=ctx.method,
            host=ctx.host,
            port=ctx.port,
            path=ctx.path,
            params=dict(ctx.params),
            body=re.escape(ctx.body_text) if ctx.body else None,
        )

    def _describe_response(self, response: Any, body_file: Optional[str]) -> ResponseDescriptor:
        return ResponseDescriptor(
            code=response.status_code,
            media_type=response.headers.get("Content-Type", "text/plain"),
            headers=_response_headers(response),
            body_file=body_file,
        )
