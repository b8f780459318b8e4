"""
tests/test_stream_consumer.py

Unit tests for the progressive stream consumer.
"""

import pytest

from refiner.client.stream_consumer import StreamConsumer


class ClosableSource:
    def __init__(self, fragments):
        self._iter = iter(fragments)
        self.closed = False

    def __iter__(self):
        return self

    def __next__(self):
        return next(self._iter)

    def close(self):
        self.closed = True


async def agen(fragments):
    for fragment in fragments:
        yield fragment


class TestConsume:
    def test_updates_in_order(self):
        updates = []
        consumer = StreamConsumer(on_update=lambda fragment, text: updates.append((fragment, text)))

        result = consumer.consume(["Hel", "lo, ", "world"])

        assert result == "Hello, world"
        assert updates == [("Hel", "Hel"), ("lo, ", "Hello, "), ("world", "Hello, world")]
        assert consumer.chunks == 3

    def test_on_complete_called_once(self):
        completed = []
        consumer = StreamConsumer(on_complete=completed.append)

        consumer.consume(["a", "b"])
        consumer.finish()

        assert completed == ["ab"]
        assert consumer.is_complete

    def test_empty_fragments_skipped(self):
        updates = []
        consumer = StreamConsumer(on_update=lambda fragment, text: updates.append(fragment))
        assert consumer.consume(["a", "", "b"]) == "ab"
        assert updates == ["a", "b"]

    def test_empty_source_completes(self):
        consumer = StreamConsumer()
        assert consumer.consume([]) == ""
        assert consumer.is_complete

    def test_feed_after_finish_rejected(self):
        consumer = StreamConsumer()
        consumer.consume(["a"])
        with pytest.raises(RuntimeError):
            consumer.feed("b")

    def test_failure_keeps_partial_text(self):
        def source():
            yield "partial "
            raise ConnectionError("dropped")

        consumer = StreamConsumer()
        with pytest.raises(ConnectionError):
            consumer.consume(source())

        assert consumer.text == "partial "
        assert not consumer.is_complete


class TestCancel:
    def test_cancel_during_update_closes_source(self):
        source = ClosableSource(["a", "b", "c"])
        consumer = StreamConsumer()
        consumer.on_update = lambda fragment, text: consumer.cancel() if text == "ab" else None

        result = consumer.consume(source)

        assert result == "ab"
        assert consumer.cancelled
        assert not consumer.is_complete
        assert source.closed

    def test_cancel_before_start(self):
        completed = []
        consumer = StreamConsumer(on_complete=completed.append)
        consumer.cancel()

        assert consumer.consume(["a"]) == ""
        assert completed == []


class TestAsyncConsume:
    @pytest.mark.asyncio
    async def test_aconsume(self):
        updates = []
        consumer = StreamConsumer(on_update=lambda fragment, text: updates.append(text))

        result = await consumer.aconsume(agen(["x", "y", "z"]))

        assert result == "xyz"
        assert updates == ["x", "xy", "xyz"]
        assert consumer.is_complete

    @pytest.mark.asyncio
    async def test_acancel_closes_async_generator(self):
        consumer = StreamConsumer()
        consumer.on_update = lambda fragment, text: consumer.cancel()
        source = agen(["x", "y"])

        assert await consumer.aconsume(source) == "x"
        with pytest.raises(StopAsyncIteration):
            await source.__anext__()
