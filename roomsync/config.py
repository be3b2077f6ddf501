# vim: ts=4 et sw=4 sts=4 :

import configparser
import os
import stat
from enum import Enum

import roomsync.types
import roomsync.utils


class ConfigError(Exception):

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)


class AuthType(Enum):

    Token = "token"
    External = "external"


class RoomSyncConfig:

    DEFAULT_BASENAME = "roomsync.ini"
    DEFAULT_SYNC_TIMEOUT = 30000

    def __init__(self, path=None):

        self.m_config = dict()
        self.m_path = path if path else self._getDefaultPath()

    def _getDefaultPath(self):

        return os.path.expanduser("~/.config/{}".format(self.DEFAULT_BASENAME))

    def getPath(self):
        return self.m_path

    def _checkConfig(self):
        try:
            info = os.stat(self.m_path)
        except FileNotFoundError:
            raise ConfigError("No configuration exists in {}".format(self.m_path))
        except Exception as e:
            raise ConfigError("Opening configuration {} failed: {}".format(self.m_path, str(e)))

        self._checkSafeMode(info)

    def _checkSafeMode(self, info):

        problems = []

        if os.getuid() != info.st_uid:
            problems.append("The file is not owned by your user")
        if (info.st_mode & (stat.S_IROTH | stat.S_IWOTH)) != 0:
            problems.append("The file is world readable/writeable")

        if not problems:
            return

        # the file contains an access token and should only be accessible by
        # the user
        raise ConfigError("The configuration file in {} has no safe permissions: {}".format(
            self.m_path, "; ".join(problems))
        )

    def _parseConfig(self):

        self.m_parser = configparser.RawConfigParser()
        self.m_config = dict()
        self.m_parser.read(self.m_path)

        self._parseConnectionDetails()
        self._parseRoomList()
        self._parseSync()

    def _raiseMissingItemError(self, section, setting=None):
        if not setting:
            text = "{}: missing [{}] section".format(self.m_path, section)
        else:
            text = "{}: missing [{}]->{} setting".format(self.m_path, section, setting)

        raise ConfigError(text)

    def _parseConnectionDetails(self):
        conn_section = 'connection'

        if conn_section not in self.m_parser.sections():
            self._raiseMissingItemError(conn_section)

        connection = self.m_parser[conn_section]

        auth_type = connection.get("auth_type", AuthType.Token.value)

        AUTH_SETTINGS = {
            AuthType.Token: "access_token",
            AuthType.External: "access_token_eval"
        }

        try:
            auth_type = AuthType(auth_type)
            self.m_config["auth_type"] = auth_type
        except ValueError:
            raise ConfigError("Invalid auth_type setting {}. Choose one of {}".format(
                auth_type, ', '.join([e.value for e in AuthType]))
            )

        for setting in ("server", AUTH_SETTINGS[auth_type]):
            value = connection.get(setting, None)
            if not value:
                self._raiseMissingItemError(conn_section, setting)
            self.m_config[setting] = value

        protocol = connection.get("protocol", "https://")
        if not protocol.endswith("://"):
            raise ConfigError(
                "Invalid protocol setting 'protocol={}'. Should end with '://' like 'https://'".format(
                    protocol
                )
            )

        self.m_config["protocol"] = protocol

    def _parseRoomList(self):
        section = 'roomlist'

        for setting in ("only_left", "only_direct", "only_groups"):
            value = self.m_parser.get(section, setting, fallback="false")
            self.m_config[setting] = self._parseBoolean(setting, value)

    def _parseSync(self):
        section = 'sync'

        timeout = self.m_parser.get(section, "timeout", fallback=str(self.DEFAULT_SYNC_TIMEOUT))

        try:
            timeout = int(timeout)
            if timeout <= 0:
                raise ValueError("not positive")
        except ValueError:
            raise ConfigError(f"Invalid timeout setting '{timeout}'. Expected positive milliseconds value")

        self.m_config["sync_timeout"] = timeout
        self.m_config["sync_filter"] = self.m_parser.get(section, "filter", fallback=None)

    def _parseBoolean(self, setting, value):
        value = value.lower().strip()

        if value in ("true", "yes", "1", "on"):
            return True
        elif value in ("false", "no", "0", "off"):
            return False

        raise ConfigError(f"Invalid setting {setting}={value}. Expected boolean string like true/false")

    def getConfig(self):

        if self.m_config:
            return self.m_config

        self._checkConfig()
        self._parseConfig()
        return self.m_config

    def getServerURI(self):
        config = self.getConfig()
        return config["protocol"] + config["server"]

    def getAccessToken(self):
        """Returns the access token, running the configured external command
        if necessary."""
        config = self.getConfig()

        if config["auth_type"] == AuthType.Token:
            return config["access_token"]

        evaluator = roomsync.utils.CommandEvaluator(config["access_token_eval"])
        try:
            return evaluator.getResult()
        except Exception as e:
            raise ConfigError("Failed to produce access token from external command: {}".format(str(e)))

    def getRoomListConfig(self):
        config = self.getConfig()

        return roomsync.types.RoomListConfig(
            only_left=config["only_left"],
            only_direct=config["only_direct"],
            only_groups=config["only_groups"]
        )
