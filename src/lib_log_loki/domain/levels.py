"""Severity abstraction shared by the filter, formatter, and logging bridge.

Purpose
-------
Give the shipping pipeline one representation of log severities that converts
cleanly from stdlib ``logging`` integers and configuration strings.

Contents
--------
* :class:`LogLevel` enum with conversion helpers.

System Role
-----------
Used by the severity filter to decide which records reach Loki and by the entry
formatter to render the ``level`` attribute of every log line.
"""

from __future__ import annotations

import logging
from enum import Enum


class LogLevel(Enum):
    """Enumerated logging levels used throughout the system."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50

    @property
    def severity(self) -> str:
        """Return the lowercase severity name used in log lines."""

        return self.name.lower()

    def to_python_level(self) -> int:
        """Return the :mod:`logging` constant matching this level."""

        return getattr(logging, self.name)

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        normalized = name.strip().upper()
        if normalized == "WARN":
            normalized = "WARNING"
        try:
            return cls[normalized]
        except KeyError as exc:
            raise ValueError(f"Unknown log level: {name!r}") from exc

    @classmethod
    def from_python_level(cls, level: int) -> "LogLevel":
        """Translate a stdlib logging level integer into :class:`LogLevel`."""
        return cls.from_numeric(level)

    @classmethod
    def from_numeric(cls, level: int) -> "LogLevel":
        """Return the :class:`LogLevel` corresponding to ``level``."""
        try:
            return cls(level)
        except ValueError as exc:
            raise ValueError(f"Unsupported log level numeric: {level}") from exc

    @classmethod
    def nearest(cls, level: int) -> "LogLevel":
        """Return the highest level not above ``level``, clamped to the enum range.

        Custom stdlib levels (``logging.addLevelName(25, "NOTICE")``) map onto
        the closest standard level below them.

        Examples
        --------
        >>> LogLevel.nearest(25)
        <LogLevel.INFO: 20>
        >>> LogLevel.nearest(5)
        <LogLevel.DEBUG: 10>
        >>> LogLevel.nearest(70)
        <LogLevel.CRITICAL: 50>
        """
        candidate = cls.DEBUG
        for member in cls:
            if member.value <= level:
                candidate = member
        return candidate

    @classmethod
    def coerce(cls, value: "LogLevel | str | int") -> "LogLevel":
        """Accept a member, a level name, or a stdlib integer."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls.from_name(value)
        if isinstance(value, int) and not isinstance(value, bool):
            return cls.from_numeric(value)
        raise ValueError(f"Unsupported log level value: {value!r}")


__all__ = ["LogLevel"]
