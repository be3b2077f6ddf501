# vim: ts=4 et sw=4 sts=4 :
import logging


class LogManager:
    """Configures logging for the named roomsync loggers.

    Every module logs through one of the LOGGERS below. By default nothing
    is output, since stdout carries the printed room list. With a log file
    the messages go there, and the level of each logger can be tuned
    separately, e.g. to debug the sync traffic while keeping the room list
    quiet.
    """

    LOGGERS = ("roomlist", "feed", "connection", "sync", "main")
    LOG_FORMAT = '%(asctime)s %(name)10s %(levelname)10s: %(message)s'

    def setup(self, logfile=None, default_level="warning", level_settings=""):
        """Performs the complete logging setup for a program run.

        :param str logfile: path to append log messages to. If unset then
                            logging output is discarded.
        :param str level_settings: per logger levels, see parseLogLevels().
        :raises ValueError: for bad levels or logger names. Logging is
                            set up nonetheless, without these settings.
        """
        if logfile:
            self.addLogfile(logfile)
            self.setDefaultLogLevel(default_level)
        else:
            self.disableConsoleLogging()

        self.applyLogLevels(level_settings)

    def setDefaultLogLevel(self, level):
        logging.root.setLevel(self.getLogLevel(level))

    def addLogfile(self, path):
        handler = logging.FileHandler(path)
        handler.setFormatter(logging.Formatter(self.LOG_FORMAT))
        logging.root.addHandler(handler)
        return handler

    def disableConsoleLogging(self):
        # without any handler the logging module falls back to printing
        # warnings on stderr, in between the room list output
        logging.getLogger().addHandler(logging.NullHandler())

    def parseLogLevels(self, settings):
        """Parses a comma separated loglevel setting string like
        "roomlist=debug,sync=warning".

        The special name "all" addresses every roomsync logger.

        :return dict: logger name -> numerical level, in setting order.
        :raises ValueError: listing all bad entries.
        """

        levels = {}
        errors = []

        for setting in settings.split(','):
            setting = setting.strip()
            if not setting:
                continue
            parts = setting.split('=')
            if len(parts) != 2:
                errors.append("Bad loglevel setting: '{}'".format(setting))
                continue

            name, level = (part.strip() for part in parts)

            if name != "all" and name not in self.LOGGERS:
                errors.append("Unknown logger '{}'. Known loggers: {}".format(
                    name, ', '.join(("all",) + self.LOGGERS))
                )
                continue

            try:
                level = self.getLogLevel(level)
            except ValueError as e:
                errors.append(str(e))
                continue

            for logger in (self.LOGGERS if name == "all" else (name,)):
                levels[logger] = level

        if errors:
            raise ValueError('\n'.join(errors))

        return levels

    def applyLogLevels(self, settings):
        """Sets the per logger levels from the given setting string.
        Nothing is changed if any entry is bad."""
        for name, level in self.parseLogLevels(settings).items():
            logging.getLogger(name).setLevel(level)

    @classmethod
    def getLogLevel(cls, string):
        """Translates a loglevel name like "debug" into the numerical
        loglevel required by the logging module."""
        if not isinstance(string, str):
            return string

        level = logging.getLevelName(string.upper())
        if not isinstance(level, int):
            raise ValueError("Invalid loglevel: '{}'".format(string))
        return level
