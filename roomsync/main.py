# vim: ts=4 et sw=4 sts=4 :

import argparse
import json
import logging
import os
import sys
import threading

import roomsync.config
import roomsync.logmanager
from roomsync.connection import Connection
from roomsync.roomlist import RoomList, RoomListCallbacks
from roomsync.sync import SyncSession
from roomsync.types import RoomListConfig


def printe(*args, **kwargs):
    """Shortcut function to print to stderr."""
    kwargs["file"] = sys.stderr
    print(*args, **kwargs)


def formatRoom(room):
    alias = room.getCanonicalAlias()
    return "{} ({}) notifications={} highlights={}{}".format(
        room.getID(),
        room.getMembership().value,
        room.getNotificationCount(),
        room.getHighlightCount(),
        " alias={}".format(alias) if alias else ""
    )


class RoomListPrinter(RoomListCallbacks):
    """Prints RoomList changes to a stream."""

    def __init__(self, room_list, out=None, print_changes=False):
        """
        :param bool print_changes: if set then the complete list is printed
                                   each time the room order changed.
        """
        self.m_room_list = room_list
        self.m_out = out if out else sys.stdout
        self.m_print_changes = print_changes
        self.m_last_order = None

    def roomInserted(self, index):
        room = self.m_room_list.getRooms()[index]
        print("+ [{}] {}".format(index, room.getID()), file=self.m_out)

    def roomRemoved(self, index):
        print("- [{}]".format(index), file=self.m_out)

    def roomListChanged(self):
        if not self.m_print_changes:
            return

        order = [room.getID() for room in self.m_room_list.getRooms()]
        if order == self.m_last_order:
            return

        self.m_last_order = order
        self.printList()

    def printList(self):
        rooms = self.m_room_list.getRooms()
        print("{} rooms:".format(len(rooms)), file=self.m_out)
        for index, room in enumerate(rooms):
            print("  {:3d}: {}".format(index, formatRoom(room)), file=self.m_out)
        self.m_out.flush()


class RoomSync:
    """Main application class that sets up the objects and runs either a
    replay of recorded sync responses or a live sync."""

    def __init__(self):
        self.m_log_manager = roomsync.logmanager.LogManager()
        self.m_logger = logging.getLogger("main")
        self.setupArgparse()

    def setupArgparse(self):
        self.m_parser = argparse.ArgumentParser(
            description="Maintains a Matrix room list from sync updates and prints it"
        )
        self.m_parser.add_argument(
            "--logfile", type=str,
            help="Output logging messages into the given file. See --loglevel for the default loglevel setting",
            default=None
        )
        self.m_parser.add_argument(
            "--loglevel", type=str,
            help="Sets the default loglevel for the --logfile option",
            choices=("debug", "info", "warning", "error", "critical"),
            default="warning"
        )
        self.m_parser.add_argument(
            "--loglevel-set",
            type=str,
            help="Sets per-logger loglevels. Expects a comma separated string like 'roomlist=debug,sync=warning'. "
                 "Can also be set through the environment variable LOGLEVEL_SET which takes precedence over this "
                 "command line switch.",
            default=""
        )
        self.m_parser.add_argument(
            "--config",
            type=str,
            help="Provides an alternate path to the configuration file to use.",
            default=None
        )
        self.m_parser.add_argument(
            "--replay",
            type=str,
            metavar="FILE",
            help="Don't connect to a server but feed the recorded sync responses from the given JSON file "
                 "through the room list. No configuration file is needed in this mode.",
            default=None
        )
        self.m_parser.add_argument(
            "--only-left",
            action='store_true',
            help="List only rooms that have been left instead of the current ones.",
        )

    def parseArgs(self, argv=None):
        self.m_args = self.m_parser.parse_args(argv)

        loglevel_set = os.environ.get("LOGLEVEL_SET", None)
        if not loglevel_set:
            loglevel_set = self.m_args.loglevel_set

        try:
            self.m_log_manager.setup(
                logfile=self.m_args.logfile,
                default_level=self.m_args.loglevel,
                level_settings=loglevel_set
            )
        except ValueError as e:
            printe("Bad LOGLEVEL_SET or --loglevel-set setting(s):\n{}".format(str(e)))

    def loadReplayPayloads(self, path):
        with open(path, 'r') as replay_file:
            data = json.load(replay_file)

        if isinstance(data, dict):
            return [data]
        elif isinstance(data, list):
            return data

        raise ValueError("{}: expected a sync response object or a list of them".format(path))

    def runReplay(self):
        payloads = self.loadReplayPayloads(self.m_args.replay)

        connection = Connection()
        room_list = RoomList(connection, config=RoomListConfig(only_left=self.m_args.only_left))
        printer = RoomListPrinter(room_list)
        room_list.addCallbackHandler(printer)

        try:
            for payload in payloads:
                connection.handleSync(payload)
        finally:
            room_list.close()

        printer.printList()
        return 0

    def runLive(self):
        rconfig = roomsync.config.RoomSyncConfig(self.m_args.config)
        config = rconfig.getConfig()
        list_config = rconfig.getRoomListConfig()

        if self.m_args.only_left:
            list_config = RoomListConfig(
                only_left=True,
                only_direct=list_config.onlyDirect(),
                only_groups=list_config.onlyGroups()
            )

        connection = Connection()
        room_list = RoomList(connection, config=list_config)
        room_list.addCallbackHandler(RoomListPrinter(room_list, print_changes=True))

        session = SyncSession(
            rconfig.getServerURI(),
            rconfig.getAccessToken(),
            connection,
            timeout_ms=config["sync_timeout"],
            sync_filter=config["sync_filter"]
        )

        failed = threading.Event()
        session.setErrorCallback(failed.set)

        print("Syncing with {}, press Ctrl-C to stop".format(rconfig.getServerURI()))
        session.start()

        try:
            while not failed.wait(1):
                pass
            printe("Sync with the server failed, see the log for details")
            return 1
        except KeyboardInterrupt:
            return 0
        finally:
            session.stop()
            room_list.close()

    def run(self, argv=None):

        self.parseArgs(argv)

        try:
            if self.m_args.replay:
                return self.runReplay()
            else:
                return self.runLive()
        except roomsync.config.ConfigError as e:
            printe(str(e))
            return 2
