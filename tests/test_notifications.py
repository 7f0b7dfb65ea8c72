import asyncio

from apps.notifications.broker import NotificationBroker
from apps.notifications.router import event_stream, format_sse


class FakeRequest:
    """
    Stands in for a starlette Request; reports a disconnect after N checks.
    """

    def __init__(self, checks_before_disconnect: int):
        self.remaining = checks_before_disconnect

    async def is_disconnected(self) -> bool:
        if self.remaining <= 0:
            return True
        self.remaining -= 1
        return False


class TestBroker:

    async def test_publish_reaches_every_subscriber(self):
        broker = NotificationBroker(queue_size=5)
        first = broker.subscribe(1, "admin")
        second = broker.subscribe(2, "requester")

        assert broker.publish("review-item:3:approved") == 2
        assert first.queue.get_nowait() == "review-item:3:approved"
        assert second.queue.get_nowait() == "review-item:3:approved"

    async def test_publish_can_target_users(self):
        broker = NotificationBroker(queue_size=5)
        admin = broker.subscribe(1, "admin")
        requester = broker.subscribe(2, "requester")

        assert broker.publish("complete-request:7", target_user_ids=[2]) == 1
        assert admin.queue.empty()
        assert requester.queue.get_nowait() == "complete-request:7"

    async def test_full_queue_drops_instead_of_blocking(self):
        broker = NotificationBroker(queue_size=1)
        subscriber = broker.subscribe(1, "admin")

        assert broker.publish("new-request:1") == 1
        assert broker.publish("new-request:2") == 0
        assert subscriber.queue.qsize() == 1
        assert subscriber.queue.get_nowait() == "new-request:1"

    async def test_publish_without_subscribers(self):
        assert NotificationBroker().publish("new-request:1") == 0

    async def test_unsubscribe_is_idempotent(self):
        broker = NotificationBroker()
        subscriber = broker.subscribe(1, "admin")
        assert broker.subscriber_count == 1
        broker.unsubscribe(subscriber)
        broker.unsubscribe(subscriber)
        assert broker.subscriber_count == 0
        assert broker.publish("new-request:1") == 0


class TestEventStream:

    def test_format_sse(self):
        assert format_sse("priority-urgent:4") == "event: message\ndata: priority-urgent:4\n\n"
        assert format_sse("ping", event="ping") == "event: ping\ndata: ping\n\n"

    async def test_stream_yields_connected_then_messages_and_cleans_up(self):
        broker = NotificationBroker()
        subscriber = broker.subscribe(5, "requester")
        broker.publish("item-received:9")

        chunks = [
            chunk
            async for chunk in event_stream(FakeRequest(checks_before_disconnect=1), broker, subscriber, 1.0)
        ]

        assert chunks[0].startswith("event: connected\n")
        assert chunks[1] == format_sse("item-received:9")
        assert len(chunks) == 2
        assert broker.subscriber_count == 0

    async def test_stream_sends_ping_when_idle(self):
        broker = NotificationBroker()
        subscriber = broker.subscribe(5, "requester")

        stream = event_stream(FakeRequest(checks_before_disconnect=5), broker, subscriber, 0.01)
        assert (await stream.__anext__()).startswith("event: connected")
        assert await asyncio.wait_for(stream.__anext__(), timeout=1) == format_sse("ping", event="ping")
        await stream.aclose()
        assert broker.subscriber_count == 0
