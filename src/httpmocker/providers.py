"""Scenario providers: sources able to answer a request with a mock response."""

from __future__ import annotations

import dataclasses
import logging
import posixpath
from typing import Any, Callable, Iterable, List, Optional, Protocol

from .exceptions import LoadError
from .loaders import LoadFile
from .mappers import Mapper
from .matchers import first_match, request_context
from .model import ResponseDescriptor
from .policies import FilingPolicy, is_body_file

logger = logging.getLogger(__name__)

RequestCallback = Callable[[Any], Optional[ResponseDescriptor]]


class ScenarioProvider(Protocol):
    """Anything that can resolve a request to a response, or to None."""

    def resolve(self, request: Any) -> Optional[ResponseDescriptor]:
        ...


class DynamicMockProvider:
    """Ask callbacks in registration order; the first non-None answer wins."""

    def __init__(self, callbacks: Iterable[RequestCallback]) -> None:
        self.callbacks: List[RequestCallback] = list(callbacks)

    def resolve(self, request: Any) -> Optional[ResponseDescriptor]:
        for callback in self.callbacks:
            response = callback(request)
            if response is not None:
                return response
        return None

    def __repr__(self) -> str:
        return f"DynamicMockProvider(callbacks={len(self.callbacks)})"


class StaticMockProvider:
    """Answer requests from scenario files.

    The scenario is loaded and decoded on every call, so edits to a file are
    picked up by the next request. A missing file means "no match"; a file
    that cannot be decoded raises :class:`~httpmocker.exceptions.DecodeError`.
    """

    def __init__(self, policy: FilingPolicy, load_file: LoadFile, mapper: Mapper) -> None:
        self.policy = policy
        self.load_file = load_file
        self.mapper = mapper

    def resolve(self, request: Any) -> Optional[ResponseDescriptor]:
        identifier = self.policy.get_path(request)
        if is_body_file(identifier):
            logger.debug(f"{identifier} is a recorded body file, not a scenario")
            return None
        try:
            data = self.load_file(identifier)
        except (LoadError, FileNotFoundError):
            logger.debug(f"No scenario {identifier} for {request.method} {request.url}")
            return None
        scenario = self.mapper.decode(data)
        rule = first_match(scenario.rules, request_context(request))
        if rule is None:
            logger.debug(f"Scenario {identifier} has no rule for {request.method} {request.url}")
            return None
        return self._load_body(identifier, rule.response)

    def _load_body(self, identifier: str, response: ResponseDescriptor) -> ResponseDescriptor:
        if response.body_file is None:
            return response
        path = posixpath.join(posixpath.dirname(identifier), response.body_file)
        # A missing body file propagates as LoadError.
        return dataclasses.replace(response, content=self.load_file(path))

    def __repr__(self) -> str:
        return f"StaticMockProvider(policy={self.policy!r}, mapper={self.mapper!r})"


def resolve_first(providers: Iterable[ScenarioProvider], request: Any) -> Optional[ResponseDescriptor]:
    """Consult providers left to right and stop at the first response."""

    for provider in providers:
        response = provider.resolve(request)
        if response is not None:
            return response
    return None
