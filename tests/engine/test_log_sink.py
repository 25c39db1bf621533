"""
Log Sink tests: capacity, eviction order, bundle/limit queries.
"""

import logging

from jetstream.engine import LogLevel, LogSink, LogType, MAX_LOGS


def append_n(sink: LogSink, count: int, bundle: str = "com.example.app", start: int = 0):
    for i in range(start, start + count):
        sink.append(LogLevel.INFO, LogType.SEND_ATTEMPT, f"entry {i}", job_id="job-1", bundle=bundle)


class TestAppend:
    def test_entry_is_stamped(self, clock):
        sink = LogSink(clock=clock)

        entry = sink.append(
            LogLevel.ERROR,
            LogType.SEND_ERROR,
            "boom",
            job_id="job-1",
            bundle="com.example.app",
            meta={"status": 500},
        )

        assert entry.ts == clock().isoformat()
        assert entry.to_dict() == {
            "ts": clock().isoformat(),
            "level": "error",
            "type": "send_error",
            "job_id": "job-1",
            "bundle": "com.example.app",
            "message": "boom",
            "meta": {"status": 500},
        }

    def test_entry_mirrored_to_logging(self, clock, caplog):
        sink = LogSink(clock=clock)
        sink_logger = logging.getLogger("jetstream.engine.log_sink")
        # The package logger may have propagation disabled by setup_logging()
        sink_logger.addHandler(caplog.handler)

        try:
            with caplog.at_level(logging.INFO, logger="jetstream.engine.log_sink"):
                sink.append(LogLevel.INFO, LogType.JOB_START, "started", bundle="com.example.app")
        finally:
            sink_logger.removeHandler(caplog.handler)

        assert "[job_start] bundle=com.example.app - started" in caplog.text


class TestCapacity:
    def test_default_capacity(self):
        assert LogSink().max_logs == MAX_LOGS == 5000

    def test_never_exceeds_capacity(self, clock):
        sink = LogSink(max_logs=10, clock=clock)

        append_n(sink, 25)

        assert len(sink) == 10

    def test_oldest_evicted_first_and_order_kept(self, clock):
        sink = LogSink(max_logs=100, clock=clock)

        append_n(sink, 100 + 7)

        messages = [entry.message for entry in sink.query()]
        assert messages[0] == "entry 7"
        assert messages[-1] == "entry 106"
        assert messages == [f"entry {i}" for i in range(7, 107)]


class TestQuery:
    def test_bundle_filter_is_exact(self, clock):
        sink = LogSink(clock=clock)
        append_n(sink, 3, bundle="com.a")
        append_n(sink, 2, bundle="com.a.pro")
        append_n(sink, 1, bundle="com.b")

        result = sink.query(bundle="com.a")

        assert len(result) == 3
        assert all(entry.bundle == "com.a" for entry in result)

    def test_limit_returns_most_recent_in_order(self, clock):
        sink = LogSink(clock=clock)
        append_n(sink, 10)

        result = sink.query(limit=3)

        assert [entry.message for entry in result] == ["entry 7", "entry 8", "entry 9"]

    def test_bundle_then_limit(self, clock):
        sink = LogSink(clock=clock)
        append_n(sink, 5, bundle="com.a")
        append_n(sink, 5, bundle="com.b", start=5)

        result = sink.query(bundle="com.a", limit=2)

        assert [entry.message for entry in result] == ["entry 3", "entry 4"]

    def test_no_limit_returns_everything(self, clock):
        sink = LogSink(clock=clock)
        append_n(sink, 4)

        assert len(sink.query()) == 4
        assert len(sink.query(limit=0)) == 4

    def test_unknown_bundle_returns_empty(self, clock):
        sink = LogSink(clock=clock)
        append_n(sink, 4)

        assert sink.query(bundle="missing") == []
