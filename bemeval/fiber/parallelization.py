from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

import numpy as np

from bemeval.errors import InvalidArgument

# Legacy integer encoding of "let the runtime pick the thread count".
# Only the integer-facing API understands it; internally the policy is
# always one of the two dataclasses below.
AUTO: int = -1


@dataclass(frozen=True)
class AutomaticThreads:
    """Defer the thread count to the evaluation runtime."""

    @property
    def is_automatic(self) -> bool:
        return True

    @property
    def max_thread_count(self) -> int:
        return AUTO


@dataclass(frozen=True)
class FixedThreads:
    """Use at most ``count`` threads during evaluation."""

    count: int

    def __post_init__(self) -> None:
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise InvalidArgument(
                f"thread count must be an int; got {self.count!r}"
            )
        if self.count <= 0:
            raise InvalidArgument(
                f"thread count must be positive or AUTO ({AUTO}); got {self.count}"
            )

    @property
    def is_automatic(self) -> bool:
        return False

    @property
    def max_thread_count(self) -> int:
        return self.count


ParallelizationOptions = Union[AutomaticThreads, FixedThreads]


def parallelization_from_count(value: Any) -> ParallelizationOptions:
    """
    Build a parallelization policy from its integer (or parameter-file) form.

    Accepted inputs:
      - an existing AutomaticThreads / FixedThreads value (returned as-is),
      - AUTO (-1) or the string "auto" -> AutomaticThreads(),
      - a strictly positive int (numpy integers included) -> FixedThreads(n).

    Everything else raises InvalidArgument; values are never clamped.
    """
    if isinstance(value, (AutomaticThreads, FixedThreads)):
        return value
    if isinstance(value, str):
        if value.strip().lower() == "auto":
            return AutomaticThreads()
        raise InvalidArgument(f"unrecognized thread count {value!r}")
    if isinstance(value, np.integer):
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(
            f"thread count must be an int or AUTO; got {type(value).__name__}"
        )
    if value == AUTO:
        return AutomaticThreads()
    return FixedThreads(value)


__all__ = [
    "AUTO",
    "AutomaticThreads",
    "FixedThreads",
    "ParallelizationOptions",
    "parallelization_from_count",
]
