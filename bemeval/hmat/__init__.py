"""Hierarchical-matrix (HMAT) subsystem boundary for bemeval.

This package owns the H-matrix configuration type and the factory through
which the evaluation pipeline obtains a compression backend. No backend is
shipped here; concrete implementations register themselves with
:func:`register_hmat_backend`.
"""

from __future__ import annotations

from .backend import (
    HMatBackend,
    HMatBackendUnavailable,
    HMatOperator,
    available_hmat_backends,
    create_hmat_backend,
    register_hmat_backend,
    unregister_hmat_backend,
)
from .config import HMAT_PARAMETER_PREFIX, HMatConfig

__all__ = [
    "HMAT_PARAMETER_PREFIX",
    "HMatConfig",
    "HMatBackend",
    "HMatBackendUnavailable",
    "HMatOperator",
    "available_hmat_backends",
    "create_hmat_backend",
    "register_hmat_backend",
    "unregister_hmat_backend",
]
