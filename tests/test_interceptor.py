import json
import threading

import pytest
import requests

from httpmocker import latency
from httpmocker.builder import InterceptorBuilder
from httpmocker.exceptions import ConfigurationError, DecodeError, NoMatchError, RecordingWriteError
from httpmocker.loaders import FileLoader, InMemoryLoader
from httpmocker.mappers import JsonMapper
from httpmocker.model import Header, ResponseDescriptor
from httpmocker.modes import Mode
from httpmocker.policies import SingleFilePolicy


USERS = json.dumps(
    [
        {
            "request": {"method": "GET", "path": "/users"},
            "response": {
                "code": 200,
                "mediaType": "application/json",
                "headers": {"X-Source": "scenario"},
                "body": '[{"id": 1}]',
            },
        },
        {"request": {"path": "/users", "method": "POST"}, "response": {"code": 201, "delay": 250}},
    ]
)


class EncoderBroke(Exception):
    pass


class BrokenEncoder(JsonMapper):
    """Decodes fine, fails on every write"""

    def encode(self, scenario):
        raise EncoderBroke("encoder broke")


@pytest.fixture
def sleeps(monkeypatch):
    calls = []
    monkeypatch.setattr(latency.time, "sleep", calls.append)
    return calls


def _session(interceptor):
    return interceptor.install(requests.Session())


def _builder(live, mode, files=None):
    return (
        InterceptorBuilder()
        .parse_scenarios_with(JsonMapper())
        .load_file_with(InMemoryLoader(files if files is not None else {"users.json": USERS}))
        .use_live_adapter(live)
        .set_interceptor_status(mode)
    )


class TestDisabled:
    def test_live_response_is_returned_verbatim(self, live):
        consulted = []
        interceptor = (
            _builder(live, Mode.DISABLED)
            .use_dynamic_mocks(lambda request: consulted.append(request))
            .build()
        )
        response = _session(interceptor).get("http://api.example.com/users")

        assert response is live.responses[0]
        assert response.text == "live body"
        assert consulted == []


class TestEnabled:
    def test_scenario_response_is_served(self, live, sleeps):
        response = _session(_builder(live, Mode.ENABLED).build()).get("http://api.example.com/users")

        assert response.status_code == 200
        assert response.json() == [{"id": 1}]
        assert response.headers["Content-Type"] == "application/json"
        assert response.headers["X-Source"] == "scenario"
        assert response.url == "http://api.example.com/users"
        assert live.calls == []

    def test_no_match_raises_without_live_call(self, live):
        session = _session(_builder(live, Mode.ENABLED).build())

        with pytest.raises(NoMatchError) as exc_info:
            session.get("http://api.example.com/orders")
        assert "GET http://api.example.com/orders" in str(exc_info.value)
        assert live.calls == []

    def test_dynamic_mocks_come_before_scenarios(self, live, sleeps):
        interceptor = (
            _builder(live, Mode.ENABLED)
            .use_dynamic_mocks(lambda request: ResponseDescriptor(code=299, body="dynamic"))
            .build()
        )
        response = _session(interceptor).get("http://api.example.com/users")
        assert response.status_code == 299
        assert response.text == "dynamic"

    def test_second_policy_is_tried_after_first_misses(self, live, sleeps):
        files = {
            "a.json": json.dumps([{"request": {"method": "DELETE"}}]),
            "b.json": json.dumps([{"response": {"body": "from b"}}]),
        }
        interceptor = (
            _builder(live, Mode.ENABLED, files)
            .decode_scenario_path_with(SingleFilePolicy("a.json"))
            .decode_scenario_path_with(SingleFilePolicy("b.json"))
            .build()
        )
        assert _session(interceptor).get("http://host/anything").text == "from b"

    def test_malformed_scenario_surfaces(self, live):
        session = _session(_builder(live, Mode.ENABLED, {"users.json": "[{"}).build())
        with pytest.raises(DecodeError):
            session.get("http://api.example.com/users")

    def test_binary_content_from_callback(self, live, sleeps):
        interceptor = (
            _builder(live, Mode.ENABLED)
            .use_dynamic_mocks(
                lambda request: ResponseDescriptor(
                    media_type="image/png",
                    headers=(Header("Set-Cookie", "a=1"), Header("Set-Cookie", "b=2")),
                    content=b"\x89PNG",
                )
            )
            .build()
        )
        response = _session(interceptor).get("http://host/logo.png")
        assert response.content == b"\x89PNG"
        assert response.headers["Content-Type"] == "image/png"
        assert response.headers["Set-Cookie"] == "a=1, b=2"

    def test_declared_content_type_beats_media_type(self, live, sleeps):
        interceptor = (
            _builder(live, Mode.ENABLED)
            .use_dynamic_mocks(
                lambda request: ResponseDescriptor(headers=(Header("content-type", "text/csv"),), body="a,b")
            )
            .build()
        )
        response = _session(interceptor).get("http://host/export")
        assert response.headers["Content-Type"] == "text/csv"


class TestMixed:
    def test_match_is_served_from_scenario(self, live, sleeps):
        response = _session(_builder(live, Mode.MIXED).build()).get("http://api.example.com/users")
        assert response.headers["X-Source"] == "scenario"
        assert live.calls == []

    def test_no_match_falls_back_to_one_live_call(self, live, temp_dir):
        interceptor = _builder(live, Mode.MIXED).save_scenarios(temp_dir).build()
        response = _session(interceptor).get("http://api.example.com/orders")

        assert len(live.calls) == 1
        assert response is live.responses[0]
        assert not (temp_dir / "orders.json").exists()

    def test_fallbacks_recorded_when_enabled(self, live, temp_dir):
        interceptor = _builder(live, Mode.MIXED).save_scenarios(temp_dir).record_live_fallbacks(True).build()
        _session(interceptor).get("http://api.example.com/orders")

        assert (temp_dir / "orders.json").exists()

    def test_malformed_scenario_is_not_masked_by_fallback(self, live):
        session = _session(_builder(live, Mode.MIXED, {"users.json": "nope"}).build())
        with pytest.raises(DecodeError):
            session.get("http://api.example.com/users")
        assert live.calls == []


class TestRecord:
    def test_live_exchange_is_written(self, live, temp_dir):
        interceptor = _builder(live, Mode.RECORD).save_scenarios(temp_dir).build()
        response = _session(interceptor).get("http://api.example.com/users")

        assert response is live.responses[0]
        rules = json.loads((temp_dir / "users.json").read_text())
        assert rules[0]["request"]["path"] == "/users"

    def test_recorded_exchange_replays(self, live, temp_dir, sleeps):
        live.headers = {"Content-Type": "application/json", "ETag": "abc"}
        live.body = b'{"ok": true}'
        live.status = 202
        recorder = (
            InterceptorBuilder()
            .parse_scenarios_with(JsonMapper())
            .save_scenarios(temp_dir)
            .use_live_adapter(live)
            .set_interceptor_status(Mode.RECORD)
            .build()
        )
        original = _session(recorder).post("http://api.example.com/items?x=1", data="payload")

        player = (
            InterceptorBuilder()
            .parse_scenarios_with(JsonMapper())
            .load_file_with(FileLoader(temp_dir))
            .use_live_adapter(live)
            .set_interceptor_status(Mode.ENABLED)
            .build()
        )
        replayed = _session(player).post("http://api.example.com/items?x=1", data="payload")

        assert len(live.calls) == 1
        assert replayed.status_code == original.status_code == 202
        assert replayed.content == original.content
        assert replayed.headers["ETag"] == "abc"
        assert replayed.headers["Content-Type"] == "application/json"
        with pytest.raises(NoMatchError):
            _session(player).post("http://api.example.com/items?x=1", data="other")

    def test_mapper_failure_still_returns_live_response(self, live, temp_dir):
        interceptor = (
            InterceptorBuilder()
            .parse_scenarios_with(BrokenEncoder())
            .save_scenarios(temp_dir)
            .use_live_adapter(live)
            .set_interceptor_status(Mode.RECORD)
            .build()
        )
        response = _session(interceptor).get("http://api.example.com/users")

        assert response is live.responses[0]
        assert not (temp_dir / "users.json").exists()

    def test_policy_failure_still_returns_live_response(self, live, temp_dir):
        interceptor = (
            _builder(live, Mode.RECORD)
            .save_scenarios(temp_dir, lambda request: {}["missing"])
            .build()
        )
        response = _session(interceptor).get("http://api.example.com/users")
        assert response is live.responses[0]

    def test_mapper_failure_surfaces_when_strict(self, live, temp_dir):
        interceptor = (
            InterceptorBuilder()
            .parse_scenarios_with(BrokenEncoder())
            .save_scenarios(temp_dir)
            .fail_on_recording_error(True)
            .use_live_adapter(live)
            .set_interceptor_status(Mode.RECORD)
            .build()
        )
        with pytest.raises(RecordingWriteError) as exc_info:
            _session(interceptor).get("http://api.example.com/users")
        assert isinstance(exc_info.value.__cause__, EncoderBroke)

    def test_write_failure_still_returns_live_response(self, live, temp_dir):
        (temp_dir / "blocked").write_text("file")
        interceptor = (
            _builder(live, Mode.RECORD)
            .save_scenarios(temp_dir, SingleFilePolicy("blocked/users.json"))
            .build()
        )
        response = _session(interceptor).get("http://api.example.com/users")
        assert response is live.responses[0]

    def test_write_failure_surfaces_when_strict(self, live, temp_dir):
        (temp_dir / "blocked").write_text("file")
        interceptor = (
            _builder(live, Mode.RECORD)
            .save_scenarios(temp_dir, SingleFilePolicy("blocked/users.json"))
            .fail_on_recording_error(True)
            .build()
        )
        with pytest.raises(RecordingWriteError):
            _session(interceptor).get("http://api.example.com/users")


class TestDelay:
    def test_global_delay_applies_without_override(self, live, sleeps):
        interceptor = _builder(live, Mode.ENABLED).add_fake_network_delay(120).build()
        _session(interceptor).get("http://api.example.com/users")
        assert sleeps == [0.12]

    def test_rule_delay_overrides_global(self, live, sleeps):
        interceptor = _builder(live, Mode.ENABLED).add_fake_network_delay(120).build()
        _session(interceptor).post("http://api.example.com/users")
        assert sleeps == [0.25]

    def test_delay_range(self, live, sleeps):
        interceptor = _builder(live, Mode.ENABLED).add_fake_network_delay((10, 20)).build()
        _session(interceptor).get("http://api.example.com/users")
        assert 0.01 <= sleeps[0] <= 0.02

    def test_no_delay_for_live_responses(self, live, sleeps):
        interceptor = _builder(live, Mode.MIXED).add_fake_network_delay(120).build()
        _session(interceptor).get("http://api.example.com/orders")
        assert sleeps == []


class TestModeSwitching:
    def test_mode_can_change_between_requests(self, live, sleeps):
        interceptor = _builder(live, Mode.DISABLED).build()
        session = _session(interceptor)

        assert session.get("http://api.example.com/users").text == "live body"
        interceptor.mode = Mode.ENABLED
        assert session.get("http://api.example.com/users").headers["X-Source"] == "scenario"

    def test_switching_to_record_needs_a_root(self, live, temp_dir):
        interceptor = _builder(live, Mode.ENABLED).build()
        with pytest.raises(ConfigurationError):
            interceptor.mode = Mode.RECORD
        assert interceptor.mode is Mode.ENABLED

        recording = _builder(live, Mode.ENABLED).save_scenarios(temp_dir).build()
        recording.mode = "record"
        assert recording.mode is Mode.RECORD


def test_concurrent_requests_each_get_their_answer(live, sleeps):
    files = {
        f"item{n}.json": json.dumps([{"response": {"body": f"item {n}"}}]) for n in range(10)
    }
    interceptor = _builder(live, Mode.ENABLED, files).build()
    session = _session(interceptor)
    results = {}

    def fetch(n):
        results[n] = session.get(f"http://host/item{n}").text

    threads = [threading.Thread(target=fetch, args=(n,)) for n in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results == {n: f"item {n}" for n in range(10)}


def test_close_closes_live_adapter(live):
    interceptor = _builder(live, Mode.DISABLED).build()
    interceptor.close()
    assert live.closed
