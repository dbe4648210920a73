"""Custom exception hierarchy for the LaTeX build pipeline."""

from __future__ import annotations


class TexforgeError(RuntimeError):
    """Base exception for build pipeline failures."""


class BuildFailureError(TexforgeError):
    """Raised when a build step cannot proceed at all.

    Only conditions that leave nothing sensible to continue with end up here:
    an external tool that cannot be spawned, a missing working directory or an
    output location that cannot be written. Everything a tool reports in its
    own log is advisory and only logged.
    """


class ConfigurationError(TexforgeError, ValueError):
    """Raised when settings cannot be loaded or fail validation."""


class UnknownTargetError(ConfigurationError):
    """Raised when a requested output target is not supported."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


__all__ = [
    "BuildFailureError",
    "ConfigurationError",
    "TexforgeError",
    "UnknownTargetError",
    "exception_messages",
]
