"""Diagnostic abstractions shared across the build pipeline."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable


logger = logging.getLogger(__name__)


@runtime_checkable
class LogWrapper(Protocol):
    """Interface used to surface errors, warnings, progress and debug output.

    Logging at error or warning level never aborts a build by itself; aborts
    are driven by exceptions only.
    """

    def error(self, message: str, exc: BaseException | None = None) -> None: ...

    def warning(self, message: str, exc: BaseException | None = None) -> None: ...

    def info(self, message: str) -> None: ...

    def debug(self, message: str) -> None: ...


class NullEmitter:
    """Emitter that ignores every diagnostic."""

    def error(self, message: str, exc: BaseException | None = None) -> None:
        return

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        return

    def info(self, message: str) -> None:
        return

    def debug(self, message: str) -> None:
        return


class LoggingEmitter:
    """Emitter that forwards diagnostics to the standard logging module."""

    def __init__(self, *, logger_obj: logging.Logger | None = None) -> None:
        self._logger = logger_obj or logger

    def error(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.error(message, exc_info=exc)
        else:
            self._logger.error(message)

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.warning(message, exc_info=exc)
        else:
            self._logger.warning(message)

    def info(self, message: str) -> None:
        self._logger.info(message)

    def debug(self, message: str) -> None:
        self._logger.debug(message)


__all__ = [
    "LogWrapper",
    "LoggingEmitter",
    "NullEmitter",
]
