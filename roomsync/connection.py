# vim: ts=4 et sw=4 sts=4 :

import logging

from roomsync.feed import UpdateFeed
from roomsync.types import EventUpdate, Membership, RoomSummary, RoomUpdate


class SyncParser:
    """Translates Matrix /sync response payloads into RoomUpdate and
    EventUpdate objects."""

    MEMBERSHIP_SECTIONS = (
        ("join", Membership.Join),
        ("invite", Membership.Invite),
        ("leave", Membership.Leave),
        ("knock", Membership.Knock)
    )

    # maps room body sections to the EventUpdate kind their events are
    # reported as, in the order they're emitted
    EVENT_SECTIONS = (
        ("state", EventUpdate.STATE),
        ("timeline", EventUpdate.TIMELINE),
        ("account_data", EventUpdate.ACCOUNT_DATA),
        ("ephemeral", EventUpdate.EPHEMERAL),
        ("invite_state", EventUpdate.INVITE_STATE),
        ("knock_state", EventUpdate.KNOCK_STATE)
    )

    def parse(self, payload):
        """Returns a tuple of (room_updates, event_updates) lists for the
        given decoded /sync response."""
        room_updates = []
        event_updates = []

        rooms = payload.get("rooms", None)
        if not isinstance(rooms, dict):
            return room_updates, event_updates

        for section, membership in self.MEMBERSHIP_SECTIONS:
            entries = rooms.get(section, None)
            if not isinstance(entries, dict):
                continue

            for room_id, body in entries.items():
                if not isinstance(body, dict):
                    continue

                room_updates.append(self._getRoomUpdate(room_id, membership, body))
                event_updates.extend(self._getEventUpdates(room_id, body))

        return room_updates, event_updates

    def _getRoomUpdate(self, room_id, membership, body):
        timeline = body.get("timeline", {})
        if not isinstance(timeline, dict):
            timeline = {}
        counts = body.get("unread_notifications", {})
        if not isinstance(counts, dict):
            counts = {}
        summary = body.get("summary", None)

        return RoomUpdate(
            room_id,
            membership,
            prev_batch=timeline.get("prev_batch", None),
            highlight_count=counts.get("highlight_count", 0),
            notification_count=counts.get("notification_count", 0),
            summary=RoomSummary.fromJson(summary) if isinstance(summary, dict) else None
        )

    def _getEventUpdates(self, room_id, body):
        for section, kind in self.EVENT_SECTIONS:
            container = body.get(section, None)
            if not isinstance(container, dict):
                continue

            events = container.get("events", None)
            if not isinstance(events, list):
                continue

            for event in events:
                if isinstance(event, dict):
                    yield EventUpdate(kind, room_id, event)


class Connection:
    """The source of room list updates.

    Holds two feeds: `onRoomUpdate` publishing RoomUpdate objects and
    `onEvent` publishing EventUpdate objects. Sync responses handed to
    handleSync() are split up and published on them.
    """

    def __init__(self):
        self.onRoomUpdate = UpdateFeed("room-updates")
        self.onEvent = UpdateFeed("events")
        self.m_parser = SyncParser()
        self.m_logger = logging.getLogger("connection")

    def handleSync(self, payload):
        """Publishes the contents of a decoded /sync response.

        Room updates are published before the event updates of the same
        response, so rooms new to a consumer exist when their events arrive.

        :return str: the `next_batch` token of the response, if any.
        """
        room_updates, event_updates = self.m_parser.parse(payload)

        self.m_logger.debug("sync: {} room updates, {} event updates".format(
            len(room_updates), len(event_updates))
        )

        for update in room_updates:
            self.onRoomUpdate.publish(update)

        for update in event_updates:
            self.onEvent.publish(update)

        return payload.get("next_batch", None)
