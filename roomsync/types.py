# vim: ts=4 et sw=4 sts=4 :

# a collection of various simple data structures and types used across
# roomsync. Most of these are modelled around Matrix client-server API JSON
# data structures as found in /sync responses.

from enum import Enum


class Membership(Enum):

    Join = "join"
    Invite = "invite"
    Leave = "leave"
    Ban = "ban"
    Knock = "knock"


class InvalidStateEvent(Exception):
    """Raised when raw event content cannot be turned into a StateRecord."""

    def __init__(self, event, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.m_event = event

    def getEvent(self):
        return self.m_event


class HTTPError(Exception):

    def __init__(self, code, *args, **kwargs):

        self.m_code = code
        super().__init__(*args, **kwargs)

    def getCode(self):
        return self.m_code


class MatrixError(HTTPError):
    """An error reply of the Matrix client-server API. These carry a JSON body
    like {"errcode": "M_UNKNOWN_TOKEN", "error": "..."}."""

    def __init__(self, code, details, *args, **kwargs):

        super().__init__(code, *args, **kwargs)
        self.m_details = details if isinstance(details, dict) else {}

    def getErrorCode(self):
        return self.m_details.get("errcode", None)

    def getErrorReason(self):
        return self.m_details.get("error", None)


class TooManyRequests(MatrixError):

    def __init__(self, code, details, *args, **kwargs):
        super().__init__(code, details, *args, **kwargs)

    def getRetryAfterMs(self):
        """Returns the number of milliseconds the server asked us to wait
        before retrying, or None if it didn't say."""
        return self.m_details.get("retry_after_ms", None)


class RoomListConfig:
    """Construction time settings of a RoomList.

    Only the `only_left` setting influences which rooms end up in a list.
    `only_direct` and `only_groups` are carried along but no filtering is
    implemented for them yet.
    """

    def __init__(self, only_left=False, only_direct=False, only_groups=False):
        self.m_only_left = bool(only_left)
        self.m_only_direct = bool(only_direct)
        self.m_only_groups = bool(only_groups)

    def onlyLeft(self):
        return self.m_only_left

    def onlyDirect(self):
        return self.m_only_direct

    def onlyGroups(self):
        return self.m_only_groups

    def __eq__(self, other):
        if not isinstance(other, RoomListConfig):
            return False
        return (self.m_only_left, self.m_only_direct, self.m_only_groups) == \
            (other.m_only_left, other.m_only_direct, other.m_only_groups)

    def __repr__(self):
        return "RoomListConfig(only_left={}, only_direct={}, only_groups={})".format(
            self.m_only_left, self.m_only_direct, self.m_only_groups
        )


class StateRecord:
    """A piece of keyed, timestamped room data derived from a Matrix event.

    For state events the key is made up of the event type and state key, for
    all other events the event type alone is used. This means only the newest
    event of each type/state key combination is retained per room.
    """

    def __init__(self, key, time, content, event=None):
        self.m_key = key
        self.m_time = time
        self.m_content = content
        self.m_event = event

    @classmethod
    def fromEvent(cls, event):
        """Creates a new StateRecord from a raw Matrix event dictionary.

        :param dict event: needs at least 'type' and 'origin_server_ts'.
        :raises InvalidStateEvent: if required fields are missing or of the
                                   wrong type.
        """
        if not isinstance(event, dict):
            raise InvalidStateEvent(event, "event is not a dictionary")

        _type = event.get("type")
        if not isinstance(_type, str) or not _type:
            raise InvalidStateEvent(event, "event has no type")

        time = event.get("origin_server_ts")
        # bool is an int subclass, don't accept it as a timestamp
        if not isinstance(time, int) or isinstance(time, bool):
            raise InvalidStateEvent(event, "event {} has no valid origin_server_ts".format(_type))

        content = event.get("content", {})
        if not isinstance(content, dict):
            raise InvalidStateEvent(event, "event {} has non-dict content".format(_type))

        return cls(cls.buildKey(_type, event.get("state_key")), time, content, event)

    @classmethod
    def buildKey(cls, _type, state_key=None):
        if not state_key:
            return _type
        return "{}|{}".format(_type, state_key)

    def getKey(self):
        return self.m_key

    def getTime(self):
        """The origin server timestamp in milliseconds."""
        return self.m_time

    def getContent(self):
        return self.m_content

    def getRaw(self):
        return self.m_event

    def __repr__(self):
        return "StateRecord({!r}, {})".format(self.m_key, self.m_time)


class RoomSummary:
    """The optional summary part of a coarse room update.

    Each field may be None, which means "unchanged" rather than "cleared".
    """

    def __init__(self, heroes=None, joined_member_count=None, invited_member_count=None):
        self.m_heroes = list(heroes) if heroes is not None else None
        self.m_joined_member_count = joined_member_count
        self.m_invited_member_count = invited_member_count

    @classmethod
    def fromJson(cls, data):
        return cls(
            heroes=data.get("m.heroes", None),
            joined_member_count=data.get("m.joined_member_count", None),
            invited_member_count=data.get("m.invited_member_count", None)
        )

    def getHeroes(self):
        return self.m_heroes

    def getJoinedMemberCount(self):
        return self.m_joined_member_count

    def getInvitedMemberCount(self):
        return self.m_invited_member_count


class RoomUpdate:
    """A coarse, room level update: membership, counters and summary."""

    def __init__(self, room_id, membership, prev_batch=None,
                 highlight_count=0, notification_count=0, summary=None):
        self.m_id = room_id
        self.m_membership = Membership(membership)
        self.m_prev_batch = prev_batch
        self.m_highlight_count = highlight_count
        self.m_notification_count = notification_count
        self.m_summary = summary

    def getID(self):
        return self.m_id

    def getMembership(self):
        return self.m_membership

    def getPrevBatch(self):
        return self.m_prev_batch

    def getHighlightCount(self):
        return self.m_highlight_count

    def getNotificationCount(self):
        return self.m_notification_count

    def getSummary(self):
        return self.m_summary

    def __repr__(self):
        return "RoomUpdate({!r}, {})".format(self.m_id, self.m_membership.value)


class EventUpdate:
    """A fine grained update carrying a single room scoped event."""

    TIMELINE = "timeline"
    STATE = "state"
    ACCOUNT_DATA = "account_data"
    EPHEMERAL = "ephemeral"
    INVITE_STATE = "invite_state"
    KNOCK_STATE = "knock_state"

    def __init__(self, kind, room_id, content):
        self.m_kind = kind
        self.m_room_id = room_id
        self.m_content = content

    def getKind(self):
        return self.m_kind

    def getRoomID(self):
        return self.m_room_id

    def getContent(self):
        return self.m_content

    def isTimelineOrState(self):
        return self.m_kind in (self.TIMELINE, self.STATE)

    def __repr__(self):
        return "EventUpdate({!r}, {!r})".format(self.m_kind, self.m_room_id)


class Room:
    """A single entry of a RoomList.

    Holds the membership and counter information received via RoomUpdates
    and the latest StateRecord for each key received via EventUpdates.
    """

    CANONICAL_ALIAS_KEY = "m.room.canonical_alias"

    def __init__(self, room_id, membership, prev_batch=None,
                 highlight_count=0, notification_count=0, heroes=None,
                 joined_member_count=None, invited_member_count=None,
                 states=None):
        self.m_id = room_id
        self.m_membership = Membership(membership)
        self.m_prev_batch = prev_batch
        self.m_highlight_count = highlight_count
        self.m_notification_count = notification_count
        self.m_heroes = heroes
        self.m_joined_member_count = joined_member_count
        self.m_invited_member_count = invited_member_count
        # maps StateRecord keys to StateRecord instances
        self.m_states = states if states is not None else {}
        self.m_update_handlers = []

    @classmethod
    def fromUpdate(cls, update):
        """Creates a fresh Room from a RoomUpdate. Summary fields not present
        in the update remain unset."""
        summary = update.getSummary()

        return cls(
            update.getID(),
            update.getMembership(),
            prev_batch=update.getPrevBatch(),
            highlight_count=update.getHighlightCount(),
            notification_count=update.getNotificationCount(),
            heroes=summary.getHeroes() if summary else None,
            joined_member_count=summary.getJoinedMemberCount() if summary else None,
            invited_member_count=summary.getInvitedMemberCount() if summary else None
        )

    def getID(self):
        return self.m_id

    def getMembership(self):
        return self.m_membership

    def getPrevBatch(self):
        return self.m_prev_batch

    def getHighlightCount(self):
        return self.m_highlight_count

    def setHighlightCount(self, count):
        self.m_highlight_count = count

    def getNotificationCount(self):
        return self.m_notification_count

    def setNotificationCount(self, count):
        self.m_notification_count = count

    def getHeroes(self):
        return self.m_heroes

    def setHeroes(self, heroes):
        self.m_heroes = list(heroes)

    def getJoinedMemberCount(self):
        return self.m_joined_member_count

    def setJoinedMemberCount(self, count):
        self.m_joined_member_count = count

    def getInvitedMemberCount(self):
        return self.m_invited_member_count

    def setInvitedMemberCount(self, count):
        self.m_invited_member_count = count

    def getStates(self):
        return self.m_states

    def getState(self, _type, state_key=None):
        return self.m_states.get(StateRecord.buildKey(_type, state_key), None)

    def setState(self, record):
        self.m_states[record.getKey()] = record

    def getCanonicalAlias(self):
        record = self.m_states.get(self.CANONICAL_ALIAS_KEY, None)
        if not record:
            return None
        return record.getContent().get("alias", None)

    def getLastActivity(self):
        """Returns the millisecond timestamp of the newest StateRecord this
        room holds, or zero if there is none."""
        return max((state.getTime() for state in self.m_states.values()), default=0)

    def addUpdateHandler(self, callback):
        """Registers a callable without parameters that is invoked whenever
        the RoomList changes this room's data."""
        self.m_update_handlers.append(callback)

    def delUpdateHandler(self, callback):
        self.m_update_handlers.remove(callback)

    def notifyUpdate(self):
        for handler in list(self.m_update_handlers):
            handler()

    def __eq__(self, other):
        if other is None:
            return False
        elif isinstance(other, str):
            return self.getID() == other
        elif not isinstance(other, Room):
            return NotImplemented
        else:
            return self.getID() == other.getID()

    def __ne__(self, other):
        ret = self.__eq__(other)
        return ret if ret is NotImplemented else not ret

    def __hash__(self):
        return hash(self.m_id)

    def __repr__(self):
        return "Room({!r}, {})".format(self.m_id, self.m_membership.value)
