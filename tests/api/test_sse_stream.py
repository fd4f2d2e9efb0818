"""
Tests for the SSE frame stream of one subscriber.
"""

import asyncio
import json

import pytest

from planwatch.api.endpoints.live import KEEPALIVE_FRAME, sse_event_stream, sse_frame
from planwatch.api.services import BroadcastHub


def decode(frame):
    assert frame.startswith("data: ") and frame.endswith("\n\n")
    return json.loads(frame[len("data: "):-2])


class TestSseEventStream:
    """Frames yielded for one connected client."""

    def test_frame_encoding(self):
        assert sse_frame({"type": "plan"}) == 'data: {"type": "plan"}\n\n'

    @pytest.mark.asyncio
    async def test_connected_frame_then_broadcasts_in_order(self):
        hub = BroadcastHub(keepalive_seconds=60)
        stream = sse_event_stream(hub)

        first = decode(await stream.__anext__())
        assert first["type"] == "connected"
        assert hub.subscriber_count == 1

        hub.broadcast({"type": "plan", "timestamp": "t1"})
        hub.broadcast({"type": "hook", "event": "Stop"})

        assert decode(await stream.__anext__()) == {"type": "plan", "timestamp": "t1"}
        assert decode(await stream.__anext__())["event"] == "Stop"

        await stream.aclose()
        assert hub.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_keepalive_comment(self):
        hub = BroadcastHub(keepalive_seconds=0.01)
        stream = sse_event_stream(hub)
        await stream.__anext__()

        frame = await asyncio.wait_for(stream.__anext__(), timeout=1.0)

        assert frame == KEEPALIVE_FRAME
        await stream.aclose()
        assert hub.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_hub_close_ends_the_stream(self):
        hub = BroadcastHub(keepalive_seconds=60)
        stream = sse_event_stream(hub)
        await stream.__anext__()

        hub.close()
        hub.broadcast({"type": "plan"})

        with pytest.raises(StopAsyncIteration):
            await asyncio.wait_for(stream.__anext__(), timeout=1.0)
        assert hub.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_failed_delivery_ends_the_stream(self):
        hub = BroadcastHub(keepalive_seconds=60)
        stream = sse_event_stream(hub)
        await stream.__anext__()
        circular = {"type": "plan"}
        circular["self"] = circular

        hub.broadcast(circular)

        with pytest.raises(StopAsyncIteration):
            await asyncio.wait_for(stream.__anext__(), timeout=1.0)
