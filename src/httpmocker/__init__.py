"""
httpmocker: serve scripted or recorded HTTP responses to ``requests``
"""

from .builder import InterceptorBuilder
from .interceptor import InterceptorConfig, MockResponseInterceptor
from .modes import Mode, ModeSwitch

from .model import (
    Header,
    Matcher,
    RequestDescriptor,
    ResponseDescriptor,
    Scenario,
)

from .policies import (
    FilingPolicy,
    MirrorPathPolicy,
    SingleFilePolicy,
    SingleFolderPolicy,
)

from .providers import (
    DynamicMockProvider,
    StaticMockProvider,
    ScenarioProvider,
)

from .loaders import FileLoader, InMemoryLoader, ResourceLoader
from .mappers import JsonMapper, Json5Mapper, Mapper
from .record import RequestWriter

from .exceptions import (
    HttpMockerError,
    NoMatchError,
    LoadError,
    DecodeError,
    RecordingWriteError,
    ConfigurationError,
)

__version__ = "0.1.0"
__all__ = [
    "InterceptorBuilder",
    "InterceptorConfig",
    "MockResponseInterceptor",
    "Mode",
    "ModeSwitch",
    "Header",
    "Matcher",
    "RequestDescriptor",
    "ResponseDescriptor",
    "Scenario",
    "FilingPolicy",
    "MirrorPathPolicy",
    "SingleFilePolicy",
    "SingleFolderPolicy",
    "DynamicMockProvider",
    "StaticMockProvider",
    "ScenarioProvider",
    "FileLoader",
    "InMemoryLoader",
    "ResourceLoader",
    "JsonMapper",
    "Json5Mapper",
    "Mapper",
    "RequestWriter",
    "HttpMockerError",
    "NoMatchError",
    "LoadError",
    "DecodeError",
    "RecordingWriteError",
    "ConfigurationError",
]
