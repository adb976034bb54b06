"""Diagnostics for promptmap commands.

Everything the commands report (skipped blocks, config problems, unreadable
input) goes through the root logger to stderr, so stdout carries only the
converted Markdown or JSON.
"""

import logging
import sys
from logging import Formatter, LogRecord, StreamHandler
from typing import Dict, NoReturn, Optional, TextIO


class ColorFormatter(Formatter):

    """Formats records as "promptmap: LEVEL: message".

    LEVEL is colored when the output is a TTY.
    """

    COLORS = {
        logging.FATAL: 31,  # red
        logging.ERROR: 31,  # red
        logging.WARNING: 33,  # yellow
        logging.INFO: 36,  # cyan
        logging.DEBUG: 35,  # magenta
    }

    FORMAT = "%(message)s"

    def __init__(self, use_color: bool):  # pylint: disable=super-init-not-called
        self.plain = Formatter(f"promptmap: %(levelname)s: {self.FORMAT}")
        self.colored: Dict[int, Formatter] = {}
        if use_color:
            for level, code in self.COLORS.items():
                fmt = f"promptmap: \x1b[{code};1m%(levelname)s:\x1b[0m {self.FORMAT}"
                self.colored[level] = Formatter(fmt)

    def format(self, record: LogRecord) -> str:
        return self.colored.get(record.levelno, self.plain).format(record)


class ExitStreamHandler(StreamHandler):

    """Stderr handler that ends the command after a severe record.

    With -k the exit level is FATAL, so an error such as unreadable input is
    reported and the command keeps going. Otherwise the first error ends it
    with status 1 once the record is printed.
    """

    def __init__(self, stream: Optional[TextIO] = None, exit_level: int = logging.FATAL):
        super().__init__(stream)
        self.exit_level = exit_level

    def emit(self, record: LogRecord):
        super().emit(record)
        if record.levelno >= self.exit_level:
            sys.exit(1)


def setup_logging(stream: TextIO, log_level: int, exit_level: int):
    """Route promptmap diagnostics to stream for one command run.

    Calling it again replaces the previous handler, so repeated runs in one
    process (as in the tests) do not print records twice.
    """
    assert log_level <= exit_level <= logging.FATAL
    logger = logging.getLogger()
    logger.setLevel(log_level)
    for handler in list(logger.handlers):
        if isinstance(handler, ExitStreamHandler):
            logger.removeHandler(handler)
    handler = ExitStreamHandler(stream, exit_level)
    handler.setFormatter(ColorFormatter(use_color=stream.isatty()))
    logger.addHandler(handler)
    logging.addLevelName(logging.FATAL, "FATAL")


def fatal(msg: str, *args, **kwargs) -> NoReturn:
    """Report a problem the command cannot continue past, and exit."""
    logging.fatal(msg, *args, **kwargs)
    assert False  # unreachable: the handler exits
