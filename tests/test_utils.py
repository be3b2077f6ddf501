"""Tests for helpers in roomsync/utils.py"""

from unittest.mock import patch

from roomsync.utils import CallbackMultiplexer, CommandEvaluator, getExceptionContext


class Consumer:

    def __init__(self, name, log):
        self.m_name = name
        self.m_log = log

    def ping(self, value):
        self.m_log.append((self.m_name, value))


class TestCallbackMultiplexer:

    def test_forwards_to_all_consumers(self):
        log = []
        mux = CallbackMultiplexer()
        mux.addConsumer(Consumer("a", log))
        mux.addConsumer(Consumer("b", log))

        mux.ping(1)

        assert log == [("a", 1), ("b", 1)]

    def test_del_consumer(self):
        log = []
        consumer = Consumer("a", log)
        mux = CallbackMultiplexer()
        mux.addConsumer(consumer)

        mux.delConsumer(consumer)
        mux.ping(1)

        assert log == []

    def test_consumer_may_unregister_itself(self):
        log = []
        mux = CallbackMultiplexer()

        class Once(Consumer):
            def ping(self, value):
                super().ping(value)
                mux.delConsumer(self)

        mux.addConsumer(Once("a", log))
        mux.addConsumer(Consumer("b", log))
        mux.ping(1)
        mux.ping(2)

        assert log == [("a", 1), ("b", 1), ("b", 2)]


class TestExceptionContext:

    def test_location_is_included(self):
        try:
            raise ValueError("broken")
        except ValueError as e:
            context = getExceptionContext(e)

        assert context.endswith(": broken")
        assert "test_utils.py" in context


class TestCommandEvaluator:

    @patch('subprocess.check_output')
    def test_result_is_stripped(self, mock_output):
        mock_output.return_value = b"syt_token\n"

        assert CommandEvaluator("pass show matrix").getResult() == "syt_token"
        args, kwargs = mock_output.call_args
        assert args[0] == ["pass", "show", "matrix"]
        assert kwargs["shell"] is False
