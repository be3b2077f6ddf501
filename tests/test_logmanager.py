"""Tests for roomsync/logmanager.py"""

import logging

import pytest

from roomsync.logmanager import LogManager


@pytest.fixture
def restore_logging():
    saved = {name: logging.getLogger(name).level for name in LogManager.LOGGERS}
    root_level = logging.root.level
    root_handlers = list(logging.root.handlers)
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)
    logging.root.setLevel(root_level)
    for handler in list(logging.root.handlers):
        if handler not in root_handlers:
            logging.root.removeHandler(handler)
            handler.close()


class TestLogLevels:

    def test_apply_log_levels(self, restore_logging):
        LogManager().applyLogLevels("roomlist=debug, sync=ERROR")

        assert logging.getLogger("roomlist").level == logging.DEBUG
        assert logging.getLogger("sync").level == logging.ERROR

    def test_all_loggers(self, restore_logging):
        levels = LogManager().parseLogLevels("all=info,feed=debug")

        assert set(levels) == set(LogManager.LOGGERS)
        assert levels["feed"] == logging.DEBUG
        assert levels["connection"] == logging.INFO

    def test_empty_setting(self):
        assert LogManager().parseLogLevels("") == {}

    @pytest.mark.parametrize("settings", ["roomlist", "roomlist=loud", "a=b=c", "rtsocket=debug"])
    def test_bad_settings(self, settings):
        with pytest.raises(ValueError):
            LogManager().parseLogLevels(settings)

    def test_unknown_logger_lists_known_ones(self):
        with pytest.raises(ValueError) as excinfo:
            LogManager().parseLogLevels("screen=debug")

        assert "roomlist" in str(excinfo.value)

    def test_bad_entry_changes_nothing(self, restore_logging):
        logging.getLogger("roomlist").setLevel(logging.WARNING)

        with pytest.raises(ValueError):
            LogManager().applyLogLevels("roomlist=debug,nonsense")

        assert logging.getLogger("roomlist").level == logging.WARNING


class TestSetup:

    def test_logfile(self, tmp_path, restore_logging):
        path = tmp_path / "roomsync.log"

        LogManager().setup(logfile=str(path), default_level="info", level_settings="sync=error")
        logging.getLogger("roomlist").info("room list ready")
        logging.getLogger("sync").warning("suppressed")
        for handler in logging.root.handlers:
            handler.flush()

        text = path.read_text()
        assert logging.root.level == logging.INFO
        assert "room list ready" in text
        assert "suppressed" not in text

    def test_without_logfile(self, restore_logging):
        LogManager().setup()

        assert any(isinstance(h, logging.NullHandler) for h in logging.root.handlers)

    def test_bad_levels_still_set_up(self, tmp_path, restore_logging):
        path = tmp_path / "roomsync.log"

        with pytest.raises(ValueError):
            LogManager().setup(logfile=str(path), level_settings="bogus=debug")

        assert any(isinstance(h, logging.FileHandler) for h in logging.root.handlers)
