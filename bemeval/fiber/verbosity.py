from __future__ import annotations

import logging
from enum import IntEnum
from typing import Any

import numpy as np

from bemeval.errors import InvalidArgument


class VerbosityLevel(IntEnum):
    """Amount of information reported by the evaluation pipeline.

    Levels are totally ordered (LOW < DEFAULT < HIGH); DEFAULT is the
    documented default.
    """

    LOW = -5
    DEFAULT = 0
    HIGH = 5

    @classmethod
    def coerce(cls, value: Any) -> "VerbosityLevel":
        """Accept a member, its name (any case) or its integer value."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise InvalidArgument(f"Invalid VerbosityLevel: {value!r}") from None
        if isinstance(value, np.integer):
            value = int(value)
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                raise InvalidArgument(f"Invalid VerbosityLevel: {value!r}") from None
        raise InvalidArgument(f"Invalid VerbosityLevel: {value!r}")

    @property
    def logging_level(self) -> int:
        return _LOGGING_LEVELS[self]


_LOGGING_LEVELS = {
    VerbosityLevel.LOW: logging.WARNING,
    VerbosityLevel.DEFAULT: logging.INFO,
    VerbosityLevel.HIGH: logging.DEBUG,
}


__all__ = ["VerbosityLevel"]
