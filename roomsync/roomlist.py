# vim: ts=4 et sw=4 sts=4 :

import logging
import threading

from roomsync.types import Membership, Room, RoomListConfig, StateRecord
from roomsync.utils import CallbackMultiplexer


class RoomListCallbacks:
    """Interface for consumers of RoomList change notifications.

    Derive from this and override the callbacks you're interested in, then
    register the instance via RoomList.addCallbackHandler().
    """

    def roomListChanged(self):
        """Called after every processed update, once the list is sorted."""
        pass

    def roomInserted(self, index):
        """Called when a new room has been inserted at the given index."""
        pass

    def roomRemoved(self, index):
        """Called when the room at the given index has been removed."""
        pass


class RoomList:
    """An ordered list of rooms that keeps itself up to date.

    The RoomList subscribes to the room update and event feeds of the given
    connection and maintains a list of Room objects from them. Which rooms
    are contained depends on the RoomListConfig: by default all rooms the
    user did not leave are listed, with `only_left` set exclusively the left
    ones.

    After each processed update the list is sorted by the rooms' last
    activity, newest first, and registered RoomListCallbacks are informed.
    Processing of a single update is serialized via a lock, so the feeds may
    be served from different threads.
    """

    def __init__(self, connection, rooms=None, config=None):
        """
        :param connection: provides the `onRoomUpdate` and `onEvent`
                           UpdateFeed instances to subscribe to.
        :param list rooms: optional initial Room objects, e.g. from a store.
        :param RoomListConfig config: the filter settings for this list.
        """
        self.m_connection = connection
        self.m_config = config if config else RoomListConfig()
        self.m_rooms = list(rooms) if rooms else []
        self.m_callbacks = CallbackMultiplexer()
        self.m_logger = logging.getLogger("roomlist")
        self.m_lock = threading.RLock()

        if self.m_config.onlyDirect() or self.m_config.onlyGroups():
            self.m_logger.warning(
                "only_direct/only_groups filtering is not supported, listing rooms unfiltered"
            )

        self.m_room_sub = connection.onRoomUpdate.subscribe(self.handleRoomUpdate)
        self.m_event_sub = connection.onEvent.subscribe(self.handleEventUpdate)

        self.sort()

    def getConfig(self):
        return self.m_config

    def addCallbackHandler(self, callback):
        """Adds a RoomListCallbacks consumer. Multiple consumers can be
        registered in parallel."""
        self.m_callbacks.addConsumer(callback)

    def delCallbackHandler(self, callback):
        self.m_callbacks.delConsumer(callback)

    def isClosed(self):
        return self.m_room_sub is None

    def close(self):
        """Unsubscribes from both update feeds. After this call the list is
        no longer updated and no more callbacks occur."""

        with self.m_lock:
            if self.isClosed():
                raise Exception("RoomList is already closed")

            self.m_connection.onRoomUpdate.unsubscribe(self.m_room_sub)
            self.m_connection.onEvent.unsubscribe(self.m_event_sub)
            self.m_room_sub = None
            self.m_event_sub = None

        self.m_logger.debug("closed room list")

    def getRooms(self):
        """Returns a snapshot of the current room order as a tuple."""
        with self.m_lock:
            return tuple(self.m_rooms)

    def __len__(self):
        with self.m_lock:
            return len(self.m_rooms)

    def findByAlias(self, alias):
        """Returns the first Room whose canonical alias matches, or None."""
        with self.m_lock:
            for room in self.m_rooms:
                if room.getCanonicalAlias() == alias:
                    return room

        return None

    def findById(self, room_id):
        """Returns the Room with the given ID, or None."""
        with self.m_lock:
            index = self._findIndex(room_id)
            return self.m_rooms[index] if index is not None else None

    def _findIndex(self, room_id):
        for index, room in enumerate(self.m_rooms):
            if room.getID() == room_id:
                return index

        return None

    def _wantsMembership(self, membership):
        is_left_room = membership == Membership.Leave
        return is_left_room == self.m_config.onlyLeft()

    def handleRoomUpdate(self, update):
        """Processes a coarse RoomUpdate.

        Depending on the membership the room is added to or removed from the
        list, or its counters and summary are updated.
        """
        with self.m_lock:
            # a feed may still be delivering an item it fetched before
            # close() unsubscribed us
            if self.isClosed():
                return

            index = self._findIndex(update.getID())
            wanted = self._wantsMembership(update.getMembership())

            try:
                if index is None and wanted:
                    self._insertRoom(update)
                elif index is not None and not wanted:
                    self._removeRoom(index)
                elif index is not None:
                    self._updateRoom(self.m_rooms[index], update)
            except Exception:
                # a failing consumer must not leave the list unsorted
                self.sort()
                raise

            self.sortAndUpdate()

    def _insertRoom(self, update):
        # invites are placed in front of everything else, the rest is
        # appended
        if update.getMembership() == Membership.Invite:
            position = 0
        else:
            position = len(self.m_rooms)

        room = Room.fromUpdate(update)
        self.m_rooms.insert(position, room)
        self.m_logger.debug("inserted room {} at {}".format(room.getID(), position))
        self.m_callbacks.roomInserted(position)

    def _removeRoom(self, index):
        room = self.m_rooms.pop(index)
        self.m_logger.debug("removed room {} from {}".format(room.getID(), index))
        self.m_callbacks.roomRemoved(index)

    def _updateRoom(self, room, update):
        notification_count = update.getNotificationCount()
        highlight_count = update.getHighlightCount()

        # the summary is only considered along with counter changes
        if room.getNotificationCount() == notification_count and \
                room.getHighlightCount() == highlight_count:
            return

        room.setNotificationCount(notification_count)
        room.setHighlightCount(highlight_count)

        summary = update.getSummary()

        if summary:
            if summary.getHeroes() is not None:
                room.setHeroes(summary.getHeroes())
            if summary.getJoinedMemberCount() is not None:
                room.setJoinedMemberCount(summary.getJoinedMemberCount())
            if summary.getInvitedMemberCount() is not None:
                room.setInvitedMemberCount(summary.getInvitedMemberCount())

        room.notifyUpdate()

    def handleEventUpdate(self, update):
        """Processes a fine grained EventUpdate.

        Only timeline and state events are considered. Events for rooms not
        in this list are dropped.

        :raises InvalidStateEvent: if the event content is malformed. The
                                   update is not applied in this case.
        """
        if not update.isTimelineOrState():
            return

        with self.m_lock:
            if self.isClosed():
                return

            index = self._findIndex(update.getRoomID())
            if index is None:
                return

            room = self.m_rooms[index]
            record = StateRecord.fromEvent(update.getContent())
            existing = room.getStates().get(record.getKey(), None)

            if existing is not None and existing.getTime() > record.getTime():
                self.m_logger.debug("dropping outdated {} in {}".format(record.getKey(), room.getID()))
            else:
                room.setState(record)
                try:
                    room.notifyUpdate()
                except Exception:
                    self.sort()
                    raise

            # a dropped outdated event still counts as a processed update
            self.sortAndUpdate()

    def sort(self):
        with self.m_lock:
            # list.sort() is stable, rooms with equal activity keep their
            # relative order
            self.m_rooms.sort(key=lambda room: room.getLastActivity(), reverse=True)

    def sortAndUpdate(self):
        with self.m_lock:
            self.sort()
            self.m_callbacks.roomListChanged()
