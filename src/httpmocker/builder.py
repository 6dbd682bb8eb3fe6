"""Fluent assembly of a :class:`~httpmocker.interceptor.MockResponseInterceptor`."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional, Union

from requests.adapters import BaseAdapter

from .exceptions import NO_ROOT_FOLDER_ERROR, ConfigurationError
from .interceptor import InterceptorConfig, MockResponseInterceptor
from .loaders import FileLoader, LoadFile
from .mappers import Mapper, mapper_for
from .modes import Mode
from .policies import FilingPolicy, MirrorPathPolicy, as_policy
from .providers import DynamicMockProvider, RequestCallback, ScenarioProvider, StaticMockProvider
from .record import RequestWriter


class InterceptorBuilder:
    """Collect interceptor settings, then :meth:`build` it.

    Every setter returns the builder so calls can be chained.
    """

    def __init__(self) -> None:
        self._policies: List[FilingPolicy] = []
        self._load_file: Optional[LoadFile] = None
        self._mapper: Optional[Mapper] = None
        self._delay: Any = 0
        self._mode = Mode.DISABLED
        self._callbacks: List[RequestCallback] = []
        self._fail_on_recording_error = False
        self._record_live_fallbacks = False
        self._record_root: Optional[Path] = None
        self._record_policy: Optional[FilingPolicy] = None
        self._live_adapter: Optional[BaseAdapter] = None

    # ---------------------------------------------------------------- static mocks
    def decode_scenario_path_with(self, policy) -> "InterceptorBuilder":
        """Add a naming policy (object with ``get_path`` or a plain callable).

        One static provider is built per policy, consulted in the order the
        policies were added.
        """
        self._policies.append(as_policy(policy))
        return self

    def load_file_with(self, loader: LoadFile) -> "InterceptorBuilder":
        self._load_file = loader
        return self

    def parse_scenarios_with(self, mapper: Mapper) -> "InterceptorBuilder":
        self._mapper = mapper
        return self

    # ---------------------------------------------------------------- dynamic mocks
    def use_dynamic_mocks(self, callback: RequestCallback) -> "InterceptorBuilder":
        """Add a callback returning a ResponseDescriptor, or None to pass."""
        self._callbacks.append(callback)
        return self

    # ---------------------------------------------------------------- recording
    def save_scenarios(self, folder: Union[str, Path], policy=None) -> "InterceptorBuilder":
        """Record into ``folder``, naming files with ``policy`` when given."""
        self._record_root = Path(folder)
        self._record_policy = as_policy(policy) if policy is not None else None
        return self

    def fail_on_recording_error(self, fail_on_error: bool) -> "InterceptorBuilder":
        self._fail_on_recording_error = bool(fail_on_error)
        return self

    def record_live_fallbacks(self, enabled: bool) -> "InterceptorBuilder":
        """Also record live responses served in MIXED mode."""
        self._record_live_fallbacks = bool(enabled)
        return self

    # ---------------------------------------------------------------- behaviour
    def add_fake_network_delay(self, delay) -> "InterceptorBuilder":
        """Default delay in ms for mock responses; a rule's own delay wins.

        Accepts a number, a ``(low, high)`` range or a callable of the request.
        """
        self._delay = delay
        return self

    def set_interceptor_status(self, mode: Union[Mode, str]) -> "InterceptorBuilder":
        self._mode = Mode.parse(mode)
        return self

    def use_live_adapter(self, adapter: BaseAdapter) -> "InterceptorBuilder":
        self._live_adapter = adapter
        return self

    # ---------------------------------------------------------------- settings
    @classmethod
    def from_settings(cls, settings: dict) -> "InterceptorBuilder":
        """Start a builder from a settings mapping (see :mod:`httpmocker.config`)."""

        builder = cls()
        builder.parse_scenarios_with(mapper_for(settings.get("format", "json")))
        if settings.get("scenarios_path"):
            builder.load_file_with(FileLoader(settings["scenarios_path"]))
        if settings.get("record_path"):
            builder.save_scenarios(settings["record_path"])
        builder.add_fake_network_delay(settings.get("delay", 0))
        builder.fail_on_recording_error(settings.get("fail_on_recording_error", False))
        builder.record_live_fallbacks(settings.get("record_live_fallbacks", False))
        builder.set_interceptor_status(settings.get("mode", Mode.DISABLED))
        return builder

    # ---------------------------------------------------------------- build
    def build_config(self) -> InterceptorConfig:
        writer = self._build_writer()
        wants_recording = self._mode is Mode.RECORD or self._record_live_fallbacks
        if wants_recording and (writer is None or not writer.is_ready):
            raise ConfigurationError(NO_ROOT_FOLDER_ERROR)
        return InterceptorConfig(
            providers=tuple(self._build_providers()),
            writer=writer,
            delay=self._delay,
            mode=self._mode,
            record_live_fallbacks=self._record_live_fallbacks,
            live_adapter=self._live_adapter,
        )

    def build(self) -> MockResponseInterceptor:
        return MockResponseInterceptor(self.build_config())

    def _build_providers(self) -> List[ScenarioProvider]:
        providers: List[ScenarioProvider] = []
        if self._callbacks:
            providers.append(DynamicMockProvider(self._callbacks))
        if self._mapper is not None and self._load_file is not None:
            policies = self._policies or [MirrorPathPolicy(self._mapper.supported_format)]
            providers.extend(StaticMockProvider(policy, self._load_file, self._mapper) for policy in policies)
        return providers

    def _build_writer(self) -> Optional[RequestWriter]:
        if self._mapper is None:
            if self._record_root is not None:
                raise ConfigurationError("Recording scenarios requires a mapper to encode them")
            return None
        policy = (
            self._record_policy
            or (self._policies[0] if self._policies else None)
            or MirrorPathPolicy(self._mapper.supported_format)
        )
        return RequestWriter(
            self._mapper,
            policy,
            self._record_root,
            fail_on_error=self._fail_on_recording_error,
        )
