"""
LogService facade unit tests.

Record shape, meta merging, callback notification and runtime reconfiguration.
"""

from __future__ import annotations

import json
import logging

import pytest

from log_service import LoggerConfiguration, LogService
from log_service.logging import BaseSink, LogstashSink, StdioSink


class ExplodingSink(BaseSink):
    def emit(self, event_dict, rendered: str) -> None:
        raise OSError("disk full")

    def close(self) -> None:
        pass


class Unprintable:
    def __str__(self) -> str:
        raise RuntimeError("str broken")

    __repr__ = __str__


class TestRecordShape:
    """Fields and rendering of emitted records"""

    def test_warn_scenario(self, service, memory_sink) -> None:
        """warn() with meta renders the standard fields followed by the meta"""
        service.warn("low balance", {"account": 42})

        assert len(memory_sink.records) == 1
        rendered = memory_sink.rendered[0]
        assert rendered.startswith('{"timestamp":"')
        assert rendered.endswith('"level":"WARN","message":"low balance","serviceName":"billing","account":42}')

        record = json.loads(rendered)
        assert list(record) == ["timestamp", "level", "message", "serviceName", "account"]
        assert record["timestamp"].endswith("Z")
        assert "stack" not in record

    @pytest.mark.parametrize(
        ("method", "label"),
        [("info", "INFO"), ("error", "ERROR"), ("warn", "WARN"), ("debug", "DEBUG")],
    )
    def test_convenience_methods_use_fixed_level(self, config, memory_sink, method, label) -> None:
        service = LogService(config.model_copy(update={"level": "debug"}), sinks=[memory_sink])
        getattr(service, method)("hello")
        assert memory_sink.records[0]["level"] == label
        assert memory_sink.records[0]["message"] == "hello"

    def test_meta_keys_are_merged(self, service, memory_sink) -> None:
        service.info("paid", {"account": 7, "amount": 12.5, "tags": ["a", "b"]})
        record = memory_sink.records[0]
        assert record["account"] == 7
        assert record["amount"] == 12.5
        assert record["tags"] == ["a", "b"]
        assert record["serviceName"] == "billing"

    def test_service_name_not_overridable(self, service, memory_sink) -> None:
        service.info("x", {"serviceName": "impostor"})
        assert memory_sink.records[0]["serviceName"] == "billing"

    def test_reserved_meta_keys_cannot_shadow_standard_fields(self, service, memory_sink) -> None:
        service.info("real", {"message": "fake", "level": "FAKE", "event": "e", "timestamp": "then"})
        record = memory_sink.records[0]
        assert record["message"] == "real"
        assert record["level"] == "INFO"
        assert record["timestamp"] != "then"
        assert "event" not in record

    def test_exception_message_carries_stack(self, service, memory_sink) -> None:
        try:
            raise ValueError("bad input")
        except ValueError as exc:
            service.error(exc)

        record = memory_sink.records[0]
        assert record["message"] == "bad input"
        assert "Traceback" in record["stack"]
        assert "ValueError: bad input" in record["stack"]
        assert list(record)[:5] == ["timestamp", "level", "message", "serviceName", "stack"]

    def test_unserializable_meta_is_stringified(self, service, memory_sink) -> None:
        service.info("x", {"obj": object(), "huge": 2**80})
        record = json.loads(memory_sink.rendered[0])
        assert record["obj"].startswith("<object object")
        assert record["huge"] == str(2**80)

    def test_unknown_level_keeps_its_label(self, service, memory_sink) -> None:
        service.log("audit", "user deleted")
        assert memory_sink.records[0]["level"] == "AUDIT"


class TestCallback:
    """Notification callback level normalization"""

    @pytest.fixture
    def calls(self) -> list:
        return []

    @pytest.fixture
    def notified(self, config, memory_sink, calls) -> LogService:
        cfg = config.model_copy(update={"callback": lambda level, message: calls.append((level, message))})
        return LogService(cfg, sinks=[memory_sink])

    @pytest.mark.parametrize(
        ("method", "expected"),
        [("info", "log"), ("error", "error"), ("warn", "warn"), ("debug", "debug")],
    )
    def test_levels(self, notified, calls, method, expected) -> None:
        getattr(notified, method)("x")
        assert calls == [(expected, "x")]

    def test_unknown_level_reported_as_log(self, notified, calls) -> None:
        notified.log("audit", "x")
        assert calls == [("log", "x")]

    def test_called_even_when_record_is_filtered(self, notified, calls, memory_sink) -> None:
        notified.debug("below threshold")
        assert calls == [("debug", "below threshold")]
        assert memory_sink.records == []

    def test_context_logging_notifies(self, notified, calls) -> None:
        notified.log_with_context("req-1", "error", "x")
        assert calls == [("error", "x")]

    def test_raising_callback_does_not_propagate(self, config, memory_sink, caplog) -> None:
        def broken(level, message):
            raise RuntimeError("callback down")

        service = LogService(config.model_copy(update={"callback": broken}), sinks=[memory_sink])
        with caplog.at_level(logging.WARNING, logger="log_service.service"):
            service.info("still logged")

        assert memory_sink.records[0]["message"] == "still logged"
        assert "Log callback raised" in caplog.text


class TestReconfiguration:
    """set_level / set_silent / set_stringify_logs"""

    def test_default_level_filters_debug(self, service, memory_sink) -> None:
        service.debug("hidden")
        service.info("shown")
        assert [r["message"] for r in memory_sink.records] == ["shown"]

    def test_set_level_applies_to_next_record(self, service, memory_sink) -> None:
        service.set_level("error")
        service.warn("hidden")
        service.error("shown")
        service.set_level("debug")
        service.debug("also shown")
        assert [r["message"] for r in memory_sink.records] == ["shown", "also shown"]
        assert service.config.level == "debug"

    def test_unknown_level_disables_filtering(self, service, memory_sink) -> None:
        service.set_level("verbose")
        service.debug("shown")
        assert len(memory_sink.records) == 1

    def test_silent_drops_everything(self, service, memory_sink) -> None:
        service.set_silent(True)
        service.error("a")
        service.log_with_context("ctx", "info", "b")
        service.log_stack_trace(ValueError("c"))
        assert memory_sink.records == []

        service.set_silent(False)
        service.error("d")
        assert [r["message"] for r in memory_sink.records] == ["d"]

    def test_silent_from_configuration(self, config, memory_sink) -> None:
        service = LogService(config.model_copy(update={"silent": True}), sinks=[memory_sink])
        service.error("x")
        assert memory_sink.records == []

    def test_stringify_logs_toggles_indentation(self, service, memory_sink) -> None:
        service.set_stringify_logs(True)
        service.info("pretty")
        service.set_stringify_logs(False)
        service.info("compact")

        pretty, compact = memory_sink.rendered
        assert pretty.startswith('{\n  "timestamp": ')
        assert '\n  "level": "INFO",\n' in pretty
        assert "\n" not in compact
        assert json.loads(pretty).keys() == json.loads(compact).keys()

    def test_set_stringify_logs_defaults_to_compact(self, config, memory_sink) -> None:
        service = LogService(config.model_copy(update={"pretty_print": True}), sinks=[memory_sink])
        service.set_stringify_logs()
        service.info("x")
        assert "\n" not in memory_sink.rendered[0]

    def test_reconfiguration_keeps_other_settings(self, service, memory_sink) -> None:
        service.set_level("debug")
        service.set_stringify_logs(True)
        assert service.config.level == "debug"
        assert service.config.pretty_print is True
        assert service.config.service_name == "billing"


class TestContextAndHelpers:
    """log_with_context, log_stack_trace, log_nested_object"""

    def test_log_with_context(self, service, memory_sink) -> None:
        service.log_with_context("ctx-A", "warn", "m", {"step": 2})
        record = memory_sink.records[0]
        assert record["context"] == "ctx-A"
        assert record["level"] == "WARN"
        assert record["message"] == "m"
        assert record["serviceName"] == "billing"
        assert record["step"] == 2

    def test_context_is_not_shared(self, service, memory_sink) -> None:
        service.log_with_context("ctx-A", "info", "first")
        service.info("second")
        assert "context" not in memory_sink.records[1]

    def test_log_stack_trace(self, service, memory_sink) -> None:
        try:
            raise KeyError("missing")
        except KeyError as exc:
            service.log_stack_trace(exc)

        record = memory_sink.records[0]
        assert record["level"] == "ERROR"
        assert record["message"].startswith("Traceback (most recent call last):")
        assert record["message"].endswith("KeyError: 'missing'")
        assert set(record) == {"timestamp", "level", "message", "serviceName"}

    @pytest.mark.parametrize(
        ("max_depth", "expected"),
        [
            (0, "{'a': {...}}"),
            (1, "{'a': {'b': {...}}}"),
            (None, "{'a': {'b': {'c': 1}}}"),
        ],
    )
    def test_log_nested_object_depth(self, service, memory_sink, max_depth, expected) -> None:
        service.log_nested_object({"a": {"b": {"c": 1}}}, max_depth=max_depth)
        record = memory_sink.records[0]
        assert record["level"] == "INFO"
        assert record["message"] == expected

    def test_log_nested_object_default_depth(self, service, memory_sink) -> None:
        service.log_nested_object({"a": [{"b": 1}]})
        assert memory_sink.records[0]["message"] == "{'a': [{...}]}"

    def test_log_nested_object_unrepresentable(self, service, memory_sink) -> None:
        service.log_nested_object({"a": Unprintable()})
        record = memory_sink.records[0]
        assert record["level"] == "INFO"
        assert record["message"] == "<unrepresentable dict>"


class TestUnrepresentableValues:
    """Values whose __str__ and __repr__ raise never reach the caller"""

    def test_meta_value(self, service, memory_sink) -> None:
        service.info("x", {"obj": Unprintable(), "n": 1})
        record = json.loads(memory_sink.rendered[0])
        assert record["message"] == "x"
        assert record["obj"] == "<unrepresentable Unprintable>"
        assert record["n"] == 1

    def test_message(self, service, memory_sink) -> None:
        service.warn(Unprintable())
        record = json.loads(memory_sink.rendered[0])
        assert record["level"] == "WARN"
        assert record["message"] == "<unrepresentable Unprintable>"

    def test_meta_key(self, service, memory_sink) -> None:
        service.info("x", {Unprintable(): 1})
        record = json.loads(memory_sink.rendered[0])
        assert record["<unrepresentable Unprintable>"] == 1

    def test_console_echo_value(self, config, capsys) -> None:
        service = LogService(config, sinks=[StdioSink(fmt="console", stream=None)])
        service.info("x", {"obj": Unprintable()})
        assert "obj=<unrepresentable Unprintable>" in capsys.readouterr().err

    def test_pipeline_failure_is_reported_not_raised(self, service, memory_sink, monkeypatch, caplog) -> None:
        class BrokenLogger:
            def log(self, *args, **kwargs):
                raise RuntimeError("pipeline broken")

        monkeypatch.setattr(service, "_logger", BrokenLogger())
        with caplog.at_level(logging.WARNING, logger="log_service.service"):
            service.info("dropped")

        assert memory_sink.records == []
        assert "Dropped info record" in caplog.text


class TestSinks:
    """Sink wiring, failure isolation and cleanup"""

    def test_failing_sink_does_not_break_caller(self, config, memory_sink) -> None:
        service = LogService(config, sinks=[ExplodingSink(), memory_sink])
        service.info("survives")
        assert memory_sink.records[0]["message"] == "survives"

    def test_flush_and_close(self, service, memory_sink) -> None:
        service.flush()
        service.close()
        assert memory_sink.flush_count == 1
        assert memory_sink.closed is True

    def test_default_sinks(self, config, fake_transport) -> None:
        service = LogService(config)
        assert service.remote_enabled is True
        assert [type(s) for s in service.sinks] == [LogstashSink]
        assert fake_transport[0].host == "localhost"
        assert fake_transport[0].port == 5959

        service.warn("shipped", {"account": 42})
        assert fake_transport[0].messages[0].endswith('"message":"shipped","serviceName":"billing","account":42}')
        assert fake_transport[0].levels == [logging.WARNING]

    def test_console_echo(self, config, fake_transport, capsys) -> None:
        service = LogService(config.model_copy(update={"enable_console": True}))
        assert [type(s) for s in service.sinks] == [LogstashSink, StdioSink]

        service.info("echoed")
        out = capsys.readouterr().out
        assert json.loads(out)["message"] == "echoed"
        assert len(fake_transport[0].messages) == 1

    def test_sink_construction_failure_falls_back_to_stderr(self, config, capsys, caplog) -> None:
        broken = config.model_copy(update={"logstash_port": 0})
        with caplog.at_level(logging.ERROR, logger="log_service.service"):
            service = LogService(broken)

        assert service.remote_enabled is False
        assert "Cannot establish connection to logstash" in caplog.text

        service.error("still visible")
        err = capsys.readouterr().err
        assert json.loads(err.strip().splitlines()[-1])["message"] == "still visible"

    def test_fallback_reuses_console_when_enabled(self, config, capsys) -> None:
        broken = config.model_copy(update={"logstash_host": "", "enable_console": True})
        service = LogService(broken)
        assert len(service.sinks) == 1
        assert isinstance(service.sinks[0], StdioSink)

        service.info("to stdout")
        assert json.loads(capsys.readouterr().out)["message"] == "to stdout"


def test_configuration_is_immutable(config) -> None:
    from pydantic import ValidationError

    with pytest.raises(ValidationError):
        config.service_name = "other"
    with pytest.raises(ValidationError):
        LoggerConfiguration(service_name="a", logstash_host="h", logstash_port=1, unknown=True)
