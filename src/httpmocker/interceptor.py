"""The interceptor: a ``requests`` transport adapter serving mock responses."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from http.client import responses as _REASONS
from typing import Any, Optional, Tuple

import requests
from requests.adapters import BaseAdapter, HTTPAdapter
from urllib3 import HTTPResponse

from .exceptions import NO_ROOT_FOLDER_ERROR, ConfigurationError, NoMatchError
from .latency import pause, response_delay
from .model import ResponseDescriptor
from .modes import Mode, ModeSwitch
from .providers import ScenarioProvider, resolve_first
from .record import RequestWriter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InterceptorConfig:
    """Validated construction parameters for :class:`MockResponseInterceptor`."""

    providers: Tuple[ScenarioProvider, ...] = ()
    writer: Optional[RequestWriter] = None
    delay: Any = 0
    mode: Mode = Mode.DISABLED
    record_live_fallbacks: bool = False
    live_adapter: Optional[BaseAdapter] = None


class MockResponseInterceptor(HTTPAdapter):
    """Answer requests from scenario providers according to the current mode.

    Mount it on a session (see :meth:`install`). Live traffic goes through
    ``config.live_adapter`` when one is given, otherwise through the regular
    ``HTTPAdapter`` machinery this class inherits.

    Example:
        interceptor = (
            InterceptorBuilder()
            .parse_scenarios_with(JsonMapper())
            .load_file_with(FileLoader("tests/scenarios"))
            .set_interceptor_status(Mode.ENABLED)
            .build()
        )
        session = interceptor.install(requests.Session())
    """

    def __init__(self, config: InterceptorConfig) -> None:
        super().__init__()
        self.config = config
        self.providers = config.providers
        self.writer = config.writer
        self.delay = config.delay
        self._mode = ModeSwitch()
        self.mode = config.mode

    # ---------------------------------------------------------------- mode
    @property
    def mode(self) -> Mode:
        return self._mode.get()

    @mode.setter
    def mode(self, value: Mode) -> None:
        value = Mode.parse(value)
        if value is Mode.RECORD and not self._can_record():
            raise ConfigurationError(NO_ROOT_FOLDER_ERROR)
        previous = self._mode.set(value)
        if previous is not value:
            logger.debug(f"Interceptor mode changed from {previous.value} to {value.value}")

    def _can_record(self) -> bool:
        return self.writer is not None and self.writer.is_ready

    # ---------------------------------------------------------------- dispatch
    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        mode = self.mode
        options = dict(stream=stream, timeout=timeout, verify=verify, cert=cert, proxies=proxies)

        if mode is Mode.DISABLED:
            return self._send_live(request, options)

        if mode is Mode.RECORD:
            response = self._send_live(request, options)
            self.writer.record(request, response)
            return response

        descriptor = resolve_first(self.providers, request)
        if descriptor is not None:
            logger.debug(f"Serving mock {descriptor.code} for {request.method} {request.url}")
            pause(response_delay(descriptor.delay, self.delay, request))
            return self.mock_response(request, descriptor)

        if mode is Mode.ENABLED:
            raise NoMatchError(request.method, request.url)

        logger.debug(f"No scenario for {request.method} {request.url}, falling back to network")
        response = self._send_live(request, options)
        if self.config.record_live_fallbacks and self._can_record():
            self.writer.record(request, response)
        return response

    def _send_live(self, request, options) -> requests.Response:
        if self.config.live_adapter is not None:
            return self.config.live_adapter.send(request, **options)
        return super().send(request, **options)

    def mock_response(self, request, descriptor: ResponseDescriptor) -> requests.Response:
        """Turn a response descriptor into a ``requests.Response``."""

        headers = [(header.name, header.value) for header in descriptor.headers]
        if descriptor.media_type and not descriptor.header_values("Content-Type"):
            headers.append(("Content-Type", descriptor.media_type))
        raw = HTTPResponse(
            body=io.BytesIO(descriptor.payload()),
            headers=headers,
            status=descriptor.code,
            reason=_REASONS.get(descriptor.code, ""),
            preload_content=False,
            decode_content=False,
            enforce_content_length=False,
            request_method=request.method,
        )
        return self.build_response(request, raw)

    # ---------------------------------------------------------------- helpers
    def install(self, session: requests.Session) -> requests.Session:
        """Mount this interceptor for every HTTP(S) URL of ``session``."""

        session.mount("http://", self)
        session.mount("https://", self)
        return session

    def close(self) -> None:
        super().close()
        if self.config.live_adapter is not None:
            self.config.live_adapter.close()
