"""Tests for UpdateFeed in roomsync/feed.py"""

import pytest

from roomsync.feed import UpdateFeed


class TestUpdateFeed:

    def test_publish_in_subscription_order(self):
        feed = UpdateFeed("test")
        received = []

        feed.subscribe(lambda item: received.append(("first", item)))
        feed.subscribe(lambda item: received.append(("second", item)))
        feed.publish(1)
        feed.publish(2)

        assert received == [("first", 1), ("second", 1), ("first", 2), ("second", 2)]

    def test_subscription_ids(self):
        feed = UpdateFeed("test")

        first = feed.subscribe(print)
        second = feed.subscribe(print)

        assert first.getSubID() == "1"
        assert second.getSubID() == "2"
        assert first.getFeedName() == "test"
        assert first != second

    def test_unsubscribe(self):
        feed = UpdateFeed("test")
        received = []
        sub = feed.subscribe(received.append)

        feed.unsubscribe(sub)
        feed.publish(1)

        assert received == []
        assert feed.getSubscriberCount() == 0

    def test_unsubscribe_unknown(self):
        feed = UpdateFeed("test")
        sub = UpdateFeed("other").subscribe(print)

        with pytest.raises(ValueError):
            feed.unsubscribe(sub)

    def test_failing_subscriber_is_logged(self, caplog):
        feed = UpdateFeed("test")
        received = []

        def broken(item):
            raise RuntimeError("boom")

        feed.subscribe(broken)
        feed.subscribe(received.append)
        feed.publish(1)

        assert received == [1]
        assert "boom" in caplog.text

    def test_unsubscribe_during_publish(self):
        feed = UpdateFeed("test")
        received = []

        def once(item):
            received.append(item)
            feed.unsubscribe(sub)

        sub = feed.subscribe(once)
        feed.publish(1)
        feed.publish(2)

        assert received == [1]
