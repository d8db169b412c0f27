"""
Unit tests for the in-process change feed.
"""

import threading

from services.change_feed import ChangeFeed, clinic_topic


class TestChangeFeed:
    def test_clinic_topic(self):
        assert clinic_topic("abc") == "clinic:abc"

    def test_publish_reaches_topic_subscribers_only(self):
        feed = ChangeFeed()
        mine, theirs = [], []
        feed.subscribe("clinic:1", mine.append)
        feed.subscribe("clinic:2", theirs.append)

        delivered = feed.publish("clinic:1", {"type": "staff.joined"})

        assert delivered == 1
        assert mine == [{"type": "staff.joined"}]
        assert theirs == []

    def test_publish_without_subscribers(self):
        assert ChangeFeed().publish("clinic:1", {"type": "x"}) == 0

    def test_unsubscribe_stops_delivery_and_is_idempotent(self):
        feed = ChangeFeed()
        events = []
        subscription = feed.subscribe("clinic:1", events.append)

        subscription.unsubscribe()
        subscription.unsubscribe()
        feed.publish("clinic:1", {"type": "x"})

        assert events == []
        assert not subscription.active
        assert feed.subscriber_count("clinic:1") == 0

    def test_listen_unsubscribes_on_exit(self):
        feed = ChangeFeed()
        events = []
        with feed.listen("clinic:1", events.append) as subscription:
            assert feed.subscriber_count("clinic:1") == 1
            feed.publish("clinic:1", {"n": 1})
        feed.publish("clinic:1", {"n": 2})

        assert events == [{"n": 1}]
        assert not subscription.active

    def test_listen_unsubscribes_when_block_raises(self):
        feed = ChangeFeed()
        try:
            with feed.listen("clinic:1", lambda event: None):
                raise RuntimeError("client went away")
        except RuntimeError:
            pass
        assert feed.subscriber_count("clinic:1") == 0

    def test_failing_listener_does_not_block_others(self, caplog):
        feed = ChangeFeed()
        events = []

        def broken(event):
            raise ValueError("listener bug")

        feed.subscribe("clinic:1", broken)
        feed.subscribe("clinic:1", events.append)

        delivered = feed.publish("clinic:1", {"type": "x"})

        assert delivered == 1
        assert events == [{"type": "x"}]
        assert "listener failed" in caplog.text

    def test_listener_may_unsubscribe_during_publish(self):
        feed = ChangeFeed()
        events = []
        holder = {}

        def once(event):
            events.append(event)
            holder["subscription"].unsubscribe()

        holder["subscription"] = feed.subscribe("clinic:1", once)
        feed.publish("clinic:1", {"n": 1})
        feed.publish("clinic:1", {"n": 2})

        assert events == [{"n": 1}]

    def test_concurrent_subscribers(self):
        feed = ChangeFeed()
        received = []
        lock = threading.Lock()

        def listener(event):
            with lock:
                received.append(event)

        subscriptions = []

        def subscribe():
            subscriptions.append(feed.subscribe("clinic:1", listener))

        threads = [threading.Thread(target=subscribe) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert feed.publish("clinic:1", {"type": "x"}) == 20
        assert len(received) == 20
