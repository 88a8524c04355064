from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Literal, Mapping, Optional

import numpy as np

from bemeval.errors import InvalidArgument

# Prefix under which HMatConfig fields live in a ParameterList.
HMAT_PARAMETER_PREFIX = "hmat."

CompressionKind = Literal["aca", "svd"]
_COMPRESSIONS = ("aca", "svd")


@dataclass(frozen=True)
class HMatConfig:
    """Configuration of the hierarchical-matrix backend.

    Parameters
    ----------
    eps:
        Relative compression tolerance for admissible (far-field) blocks.
        Must lie in (0, 1).
    eta:
        Admissibility parameter. A block cluster pair (s, t) is compressed
        when ``min(diam(s), diam(t)) <= eta * dist(s, t)``. Must be positive.
    min_block_size:
        Clusters with fewer points are not subdivided further.
    max_block_size:
        Upper bound on the size of any dense or low-rank block. Must be at
        least ``min_block_size``.
    max_rank:
        Optional hard cap on the rank of low-rank blocks. ``None`` lets
        ``eps`` alone decide.
    compression:
        Low-rank approximation scheme: adaptive cross approximation
        (``"aca"``) or truncated SVD (``"svd"``).
    """

    eps: float = 1e-3
    eta: float = 1.2
    min_block_size: int = 21
    max_block_size: int = 1_000_000
    max_rank: Optional[int] = None
    compression: CompressionKind = "aca"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if not (0.0 < _as_float("hmat eps", self.eps) < 1.0):
            raise InvalidArgument(f"hmat eps must lie in (0, 1); got {self.eps!r}")
        if not _as_float("hmat eta", self.eta) > 0.0:
            raise InvalidArgument(f"hmat eta must be positive; got {self.eta!r}")
        if _bad_int(self.min_block_size) or self.min_block_size < 1:
            raise InvalidArgument(
                f"hmat min_block_size must be a positive int; got {self.min_block_size!r}"
            )
        if _bad_int(self.max_block_size) or self.max_block_size < self.min_block_size:
            raise InvalidArgument(
                "hmat max_block_size must be an int >= min_block_size; "
                f"got {self.max_block_size!r} (min_block_size={self.min_block_size})"
            )
        if self.max_rank is not None and (_bad_int(self.max_rank) or self.max_rank < 1):
            raise InvalidArgument(
                f"hmat max_rank must be None or a positive int; got {self.max_rank!r}"
            )
        if self.compression not in _COMPRESSIONS:
            raise InvalidArgument(
                f"hmat compression must be one of {_COMPRESSIONS}; got {self.compression!r}"
            )

    def to_parameters(self) -> Dict[str, Any]:
        """Flat ``"hmat.<field>"`` entries; ``max_rank=None`` is omitted."""
        return {
            f"{HMAT_PARAMETER_PREFIX}{k}": v
            for k, v in asdict(self).items()
            if v is not None
        }

    @classmethod
    def from_parameters(cls, params: Mapping[str, Any]) -> "HMatConfig":
        """Build from the ``"hmat.*"`` entries of ``params``; other keys are ignored."""
        fields: Dict[str, Any] = {}
        for key, value in params.items():
            if not key.startswith(HMAT_PARAMETER_PREFIX):
                continue
            name = key[len(HMAT_PARAMETER_PREFIX):]
            if name in ("eps", "eta"):
                fields[name] = _as_float(key, value)
            elif name == "max_rank" and value is None:
                fields[name] = None
            elif name in ("min_block_size", "max_block_size", "max_rank"):
                fields[name] = _as_int(key, value)
            elif name == "compression":
                if not isinstance(value, str):
                    raise InvalidArgument(f"{key} must be a string; got {value!r}")
                fields[name] = value.lower()
            # Unknown hmat.* keys belong to the backend and stay in the list.
        return cls(**fields)


def _bad_int(value: Any) -> bool:
    return isinstance(value, bool) or not isinstance(value, (int, np.integer))


def _as_float(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise InvalidArgument(f"{key} must be a number; got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{key} must be a number; got {value!r}") from None


def _as_int(key: str, value: Any) -> int:
    if _bad_int(value):
        raise InvalidArgument(f"{key} must be an int; got {value!r}")
    return int(value)


__all__ = ["HMAT_PARAMETER_PREFIX", "CompressionKind", "HMatConfig"]
