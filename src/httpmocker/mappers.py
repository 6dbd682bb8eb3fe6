"""Scenario codecs.

A mapper turns scenario file bytes into a :class:`~httpmocker.model.Scenario`
and back. The interceptor only relies on :meth:`Mapper.decode`,
:meth:`Mapper.encode` and :attr:`Mapper.supported_format`, so any object with
that shape can be injected.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional, Tuple

import fastjsonschema
import pyjson5

from .exceptions import DecodeError
from .model import Header, Matcher, RequestDescriptor, ResponseDescriptor, Scenario


_HEADERS_SCHEMA = {
    "type": "object",
    "additionalProperties": {
        "type": ["string", "array"],
        "items": {"type": "string"},
    },
}

_SCENARIO_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "request": {
                "type": "object",
                "properties": {
                    "exactMatch": {"type": "boolean"},
                    "protocol": {"type": ["string", "null"]},
                    "method": {"type": ["string", "null"]},
                    "host": {"type": ["string", "null"]},
                    "port": {"type": ["integer", "null"]},
                    "path": {"type": ["string", "null"]},
                    "params": {
                        "type": "object",
                        "additionalProperties": {"type": ["string", "null"]},
                    },
                    "headers": _HEADERS_SCHEMA,
                    "body": {"type": ["string", "null"]},
                },
                "additionalProperties": False,
            },
            "response": {
                "type": "object",
                "properties": {
                    "delay": {"type": ["integer", "null"], "minimum": 0},
                    "code": {"type": "integer", "minimum": 100, "maximum": 599},
                    "mediaType": {"type": "string"},
                    "headers": _HEADERS_SCHEMA,
                    "body": {"type": "string"},
                    "bodyFile": {"type": ["string", "null"]},
                },
                "additionalProperties": False,
            },
        },
        "additionalProperties": False,
    },
}

_VALIDATE = fastjsonschema.compile(_SCENARIO_SCHEMA)


def _decode_headers(data: Dict[str, Any]) -> Tuple[Header, ...]:
    headers: List[Header] = []
    for name, value in data.items():
        values = value if isinstance(value, list) else [value]
        headers.extend(Header(name, str(item)) for item in values)
    return tuple(headers)


def _encode_headers(headers: Tuple[Header, ...]) -> Dict[str, Any]:
    grouped: Dict[str, List[str]] = {}
    for header in headers:
        grouped.setdefault(header.name, []).append(header.value)
    return {name: values[0] if len(values) == 1 else values for name, values in grouped.items()}


def scenario_from_payload(payload: List[Dict[str, Any]]) -> Scenario:
    """Build a scenario from validated, already parsed data."""

    rules: List[Matcher] = []
    for index, entry in enumerate(payload):
        req = entry.get("request", {})
        resp = entry.get("response", {})
        body_pattern = req.get("body")
        if body_pattern is not None:
            try:
                re.compile(body_pattern)
            except re.error as exc:
                raise DecodeError(f"Rule {index}: invalid body pattern {body_pattern!r}: {exc}") from exc
        request = RequestDescriptor(
            exact_match=bool(req.get("exactMatch", False)),
            protocol=req.get("protocol"),
            method=req.get("method"),
            host=req.get("host"),
            port=req.get("port"),
            path=req.get("path"),
            params=dict(req.get("params", {})),
            headers=_decode_headers(req.get("headers", {})),
            body=body_pattern,
        )
        response = ResponseDescriptor(
            code=int(resp.get("code", 200)),
            media_type=resp.get("mediaType", "text/plain"),
            headers=_decode_headers(resp.get("headers", {})),
            body=resp.get("body", ""),
            body_file=resp.get("bodyFile"),
            delay=resp.get("delay"),
        )
        rules.append(Matcher(request=request, response=response))
    return Scenario(rules=rules)


def _drop_empty(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value not in (None, {}, [])}


def scenario_to_payload(scenario: Scenario) -> List[Dict[str, Any]]:
    payload: List[Dict[str, Any]] = []
    for rule in scenario.rules:
        req = rule.request
        resp = rule.response
        request = _drop_empty(
            {
                "protocol": req.protocol,
                "method": req.method,
                "host": req.host,
                "port": req.port,
                "path": req.path,
                "params": dict(req.params),
                "headers": _encode_headers(req.headers),
                "body": req.body,
            }
        )
        if req.exact_match:
            request["exactMatch"] = True
        response = _drop_empty(
            {
                "delay": resp.delay,
                "code": resp.code,
                "mediaType": resp.media_type,
                "headers": _encode_headers(resp.headers),
                "bodyFile": resp.body_file,
            }
        )
        if resp.body or resp.body_file is None:
            response["body"] = resp.body
        payload.append({"request": request, "response": response})
    return payload


class Mapper:
    """Base codec: subclasses provide ``_loads``/``_dumps`` for one format."""

    supported_format = ""

    def _loads(self, data: bytes) -> Any:
        raise NotImplementedError

    def _dumps(self, payload: Any) -> bytes:
        raise NotImplementedError

    def decode(self, data: bytes) -> Scenario:
        try:
            payload = self._loads(data)
        except (ValueError, pyjson5.Json5Exception) as exc:
            raise DecodeError(f"Cannot parse {self.supported_format} scenario: {exc}") from exc
        try:
            _VALIDATE(payload)
        except fastjsonschema.JsonSchemaException as exc:
            raise DecodeError(f"Invalid scenario: {exc.message}") from exc
        return scenario_from_payload(payload)

    def encode(self, scenario: Scenario) -> bytes:
        return self._dumps(scenario_to_payload(scenario))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(format={self.supported_format!r})"


class JsonMapper(Mapper):
    """Plain JSON scenarios (``.json``)."""

    supported_format = "json"

    def __init__(self, indent: Optional[int] = 2) -> None:
        self.indent = indent

    def _loads(self, data: bytes) -> Any:
        return json.loads(data.decode("utf-8"))

    def _dumps(self, payload: Any) -> bytes:
        return (json.dumps(payload, indent=self.indent, ensure_ascii=False) + "\n").encode("utf-8")


class Json5Mapper(Mapper):
    """JSON5 scenarios (``.json5``): comments, trailing commas, unquoted keys."""

    supported_format = "json5"

    def _loads(self, data: bytes) -> Any:
        return pyjson5.decode(data.decode("utf-8"))

    def _dumps(self, payload: Any) -> bytes:
        return (pyjson5.encode(payload) + "\n").encode("utf-8")


_MAPPERS = {
    JsonMapper.supported_format: JsonMapper,
    Json5Mapper.supported_format: Json5Mapper,
}


def mapper_for(format_name: str) -> Mapper:
    """Instantiate the bundled mapper registered for ``format_name``."""

    try:
        return _MAPPERS[format_name.lower()]()
    except KeyError:
        choices = ", ".join(sorted(_MAPPERS))
        raise ValueError(f"Unsupported scenario format {format_name!r} (expected one of: {choices})") from None
