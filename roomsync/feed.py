# vim: ts=4 et sw=4 sts=4 :

import logging
import threading
import traceback


class FeedSubscription:
    """The state kept for a consumer that subscribed to an UpdateFeed."""

    def __init__(self, sub_id, feed_name, callback):
        self.m_sub_id = sub_id
        self.m_feed_name = feed_name
        self.m_callback = callback

    def getSubID(self):
        """Returns the subscription ID, unique within its feed."""
        return self.m_sub_id

    def getFeedName(self):
        return self.m_feed_name

    def getCallback(self):
        """The callback to be invoked for each published item."""
        return self.m_callback

    def __eq__(self, other):
        if not isinstance(other, FeedSubscription):
            return NotImplemented
        return (self.getFeedName(), self.getSubID()) == (other.getFeedName(), other.getSubID())

    def __ne__(self, other):
        ret = self.__eq__(other)
        return ret if ret is NotImplemented else not ret

    def __hash__(self):
        return hash((self.m_feed_name, self.m_sub_id))


class UpdateFeed:
    """An unbounded stream of update items that consumers can subscribe to.

    Published items are handed to each subscriber synchronously, in
    subscription order, from the context of the publishing thread.
    """

    def __init__(self, name):
        self.m_name = name
        self.m_logger = logging.getLogger("feed")
        self.m_next_sub_id = 1
        self.m_subscriptions = []
        # protects the subscription list, not the callback invocation
        self.m_lock = threading.Lock()

    def getName(self):
        return self.m_name

    def _getNewSubID(self):
        ret = self.m_next_sub_id
        self.m_next_sub_id += 1
        return str(ret)

    def subscribe(self, callback):
        """Subscribe for items published on this feed.

        :param callback: A function receiving the published item as its only
                         parameter.
        :return FeedSubscription: A reference to the new subscription that
                                  needs to be passed to unsubscribe() again.
        """
        with self.m_lock:
            sub = FeedSubscription(self._getNewSubID(), self.m_name, callback)
            self.m_subscriptions.append(sub)

        self.m_logger.debug("{}: new subscription {}".format(self.m_name, sub.getSubID()))
        return sub

    def unsubscribe(self, sub):
        """Removes a subscription previously returned from subscribe().

        :raises ValueError: if the subscription isn't active on this feed.
        """
        with self.m_lock:
            self.m_subscriptions.remove(sub)

        self.m_logger.debug("{}: removed subscription {}".format(self.m_name, sub.getSubID()))

    def getSubscriberCount(self):
        with self.m_lock:
            return len(self.m_subscriptions)

    def publish(self, item):
        """Hands the given item to all current subscribers.

        A failing subscriber doesn't prevent the item from reaching the
        remaining subscribers. The error is logged instead.
        """
        with self.m_lock:
            subs = list(self.m_subscriptions)

        for sub in subs:
            cb = sub.getCallback()
            try:
                cb(item)
            except Exception as e:
                et = traceback.format_exc()
                self.m_logger.error("{}: subscriber callback failed for {}: {}\n{}\n".format(
                    self.m_name, item, str(e), et)
                )
