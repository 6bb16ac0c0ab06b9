"""Logging setup shared by every FluentTab module.

All loggers live below the ``FluentTab`` namespace. Modules fetch theirs at import time with
``LoggerUtils.get_logger(__name__)``; the entry script attaches the console and file handlers
once the configuration is known, and every module inherits them.
"""

from __future__ import annotations

import logging
import sys
import warnings
from logging import Formatter, StreamHandler
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING, ClassVar, Final, TextIO

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

__all__: list[str] = ["LoggerUtils"]

LOG_FILE_SIZE: Final[int] = 2 * 1024 * 1024  # 2MB
LOG_BACKUP_COUNT: Final[int] = 2

CONSOLE_FORMAT: Final[str] = "%(levelname)s: %(message)s"
FILE_FORMAT: Final[str] = "%(asctime)s %(levelname)-8s %(name)-40s %(funcName)s:%(lineno)d\t%(message)s"


class LoggerUtils:
    """Configures the FluentTab logger tree.

    Attributes:
        NAMESPACE (str): Name of the root logger every module logger hangs off.
    """

    NAMESPACE: ClassVar[str] = "FluentTab"
    _handlers: ClassVar[list[logging.Handler]] = []
    _original_showwarning: ClassVar[Callable[..., None] | None] = None

    @classmethod
    def is_configured(cls) -> bool:
        return bool(cls._handlers)

    @classmethod
    def setup(cls, log_file: str | Path | None = None, *, debug: bool = False) -> logging.Logger:
        """Attach the console and file handlers and set the level.

        The console only shows warnings and errors, the rotating UTF-8 file records everything
        the level lets through. Calling it again only changes the level.

        Args:
            log_file (str | Path | None): Log file path. Empty or None disables file logging.
            debug (bool): Log DEBUG records instead of INFO and above.

        Returns:
            logging.Logger: The namespace root logger.
        """
        root: logging.Logger = logging.getLogger(cls.NAMESPACE)
        root.setLevel(logging.DEBUG if debug else logging.INFO)
        if cls.is_configured():
            return root

        console: StreamHandler[TextIO] = StreamHandler(sys.stderr)
        console.setLevel(logging.WARNING)
        console.setFormatter(Formatter(CONSOLE_FORMAT))
        cls._add_handler(root, console)

        if log_file and str(log_file).strip():
            try:
                file_handler = RotatingFileHandler(
                    filename=log_file,
                    maxBytes=LOG_FILE_SIZE,
                    backupCount=LOG_BACKUP_COUNT,
                    encoding="utf-8",
                )
            except OSError as err:
                root.error("Cannot open log file '%s': %s", log_file, err)
            else:
                file_handler.setLevel(logging.DEBUG)
                file_handler.setFormatter(Formatter(FILE_FORMAT))
                cls._add_handler(root, file_handler)

        cls._original_showwarning = warnings.showwarning
        warnings.showwarning = cls._warning_to_log
        return root

    @classmethod
    def shutdown(cls) -> None:
        """Detach and close the handlers added by ``setup``."""
        root: logging.Logger = logging.getLogger(cls.NAMESPACE)
        for handler in cls._handlers:
            root.removeHandler(handler)
            handler.close()
        cls._handlers = []
        if cls._original_showwarning is not None:
            warnings.showwarning = cls._original_showwarning
            cls._original_showwarning = None

    @classmethod
    def _add_handler(cls, root: logging.Logger, handler: logging.Handler) -> None:
        root.addHandler(handler)
        cls._handlers.append(handler)

    @classmethod
    def _warning_to_log(
        cls,
        message: Warning | str,
        category: type[Warning],
        filename: str,
        lineno: int,
        file: TextIO | None = None,
        line: str | None = None,
    ) -> None:
        _ = file, line
        cls.get_logger("warnings").warning("%s:%d: %s: %s", filename, lineno, category.__name__, message)

    @staticmethod
    def get_logger(name: str | None = None) -> logging.Logger:
        """Return a logger below the FluentTab namespace.

        Args:
            name (str | None): Module name. None returns the namespace root logger.

        Returns:
            logging.Logger: The logger instance.
        """
        if not name:
            return logging.getLogger(LoggerUtils.NAMESPACE)
        return logging.getLogger(f"{LoggerUtils.NAMESPACE}.{name}")
