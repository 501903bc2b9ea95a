"""Tests for observability: logger, metrics hook and the upload event stream."""
import io
import json
import logging
import sys

from tweetify.models import (
    Failed,
    Initiated,
    SegmentAppendStarting,
    UploadEventKind,
    UploadStatusEvent,
)


class TestStructuredFormatter:
    def _get_record(self, msg, level=logging.INFO, exc_info=None, extra_fields=None):
        record = logging.LogRecord(
            name="test",
            level=level,
            pathname="",
            lineno=0,
            msg=msg,
            args=(),
            exc_info=exc_info,
        )
        if extra_fields is not None:
            record.extra_fields = extra_fields
        return record

    def test_basic_format(self):
        from tweetify.observability.logger import StructuredFormatter

        result = json.loads(StructuredFormatter().format(self._get_record("hello world")))
        assert result["message"] == "hello world"
        assert result["level"] == "INFO"
        assert result["logger"] == "test"
        assert "ts" in result

    def test_extra_fields_merged(self):
        from tweetify.observability.logger import StructuredFormatter

        record = self._get_record("msg", extra_fields={"media_id": "abc", "segment_index": 5})
        result = json.loads(StructuredFormatter().format(record))
        assert result["media_id"] == "abc"
        assert result["segment_index"] == 5

    def test_exception_info_included(self):
        from tweetify.observability.logger import StructuredFormatter

        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()
        result = json.loads(StructuredFormatter().format(self._get_record("err", exc_info=exc_info)))
        assert "ValueError" in result["exception"]

    def test_non_json_values_stringified(self):
        from tweetify.observability.logger import StructuredFormatter

        record = self._get_record("msg", extra_fields={"raw": b"\x00\x01"})
        result = json.loads(StructuredFormatter().format(record))
        assert isinstance(result["raw"], str)

    def test_extra_fields_redacted(self):
        from tweetify.observability.logger import StructuredFormatter

        record = self._get_record(
            "msg",
            extra_fields={"media": "aGVsbG8=", "authorization": "Bearer tok-9876", "op": "append"},
        )
        line = StructuredFormatter().format(record)
        result = json.loads(line)
        assert result["media"] == "<base64:5_bytes>"
        assert result["authorization"] == "Bearer <redacted>"
        assert result["op"] == "append"
        assert "tok-9876" not in line

    def test_error_code_for_tweetify_errors(self):
        from tweetify.errors import TweetifyNetworkError
        from tweetify.observability.logger import StructuredFormatter

        try:
            raise TweetifyNetworkError("down")
        except TweetifyNetworkError:
            exc_info = sys.exc_info()
        result = json.loads(StructuredFormatter().format(self._get_record("err", exc_info=exc_info)))
        assert result["error_code"] == "NETWORK_ERROR"

    def test_error_code_falls_back_to_class_name(self):
        from tweetify.observability.logger import StructuredFormatter

        try:
            raise KeyError("x")
        except KeyError:
            exc_info = sys.exc_info()
        result = json.loads(StructuredFormatter().format(self._get_record("err", exc_info=exc_info)))
        assert result["error_code"] == "KeyError"


class TestGetLogger:
    def test_default_name(self):
        from tweetify.observability.logger import get_logger

        assert get_logger().name == "tweetify"

    def test_string_level(self):
        from tweetify.observability.logger import get_logger

        logger = get_logger("test.tweetify.observability.level", level="WARNING")
        assert logger.level == logging.WARNING

    def test_idempotent_no_duplicate_handlers(self):
        from tweetify.observability.logger import get_logger

        name = "test.tweetify.observability.idempotent"
        count = len(get_logger(name).handlers)
        assert len(get_logger(name).handlers) == count

    def test_custom_stream_receives_json(self):
        from tweetify.observability.logger import get_logger

        stream = io.StringIO()
        logger = get_logger("test.tweetify.observability.stream", stream=stream)
        logger.info("segment sent", extra={"extra_fields": {"op": "append"}})
        line = json.loads(stream.getvalue().strip())
        assert line["op"] == "append"
        assert line["message"] == "segment sent"

    def test_children_share_package_handler(self):
        from tweetify.observability.logger import StructuredFormatter, get_logger

        child = get_logger("tweetify.test_child")
        package = logging.getLogger("tweetify")
        assert child.handlers == []
        assert child.propagate
        assert len(package.handlers) == 1
        assert isinstance(package.handlers[0].formatter, StructuredFormatter)
        assert package.propagate is False


class TestNoopMetricsHook:
    def test_all_methods_return_none(self):
        from tweetify.observability.metrics import NoopMetricsHook

        hook = NoopMetricsHook()
        assert hook.increment("tweetify.requests_total") is None
        assert hook.timing("tweetify.request_duration_ms", 12.5) is None
        assert hook.gauge("tweetify.upload_pending_segments", 1.0, tags={"env": "test"}) is None

    def test_satisfies_protocol(self):
        from tweetify.observability.metrics import MetricsHook, NoopMetricsHook

        assert isinstance(NoopMetricsHook(), MetricsHook)


class TestEventStream:
    def test_emit_without_observer_is_noop(self):
        from tweetify.observability import emit

        emit(None, Initiated(media_id="1"))

    def test_recorder_keeps_order(self):
        from tweetify.observability import EventRecorder, emit

        recorder = EventRecorder()
        emit(recorder, Initiated(media_id="1"))
        emit(recorder, SegmentAppendStarting(index=0, remaining=1))
        assert recorder.kinds() == ["initiated", "segment_append_starting"]

    def test_observer_exception_is_logged_and_dropped(self, caplog):
        from tweetify.observability import emit

        def broken(event):
            raise RuntimeError("observer bug")

        logger = logging.getLogger("tweetify.events")
        logger.addHandler(caplog.handler)
        try:
            emit(broken, Initiated(media_id="1"))
        finally:
            logger.removeHandler(caplog.handler)
        assert any("observer raised" in r.getMessage() for r in caplog.records)

    def test_emit_failure(self):
        from tweetify.observability import EventRecorder, emit_failure

        recorder = EventRecorder()
        emit_failure(recorder, None, "Could not read media file: x")
        assert recorder.events == [Failed(media_id=None, message="Could not read media file: x")]

    def test_every_event_kind_has_a_class(self):
        kinds = {cls.kind for cls in UploadStatusEvent.__subclasses__()}
        assert kinds == set(UploadEventKind)
