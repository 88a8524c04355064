"""Execution-policy types shared by the evaluation stack."""

from __future__ import annotations

from .parallelization import (
    AUTO,
    AutomaticThreads,
    FixedThreads,
    ParallelizationOptions,
    parallelization_from_count,
)
from .verbosity import VerbosityLevel

__all__ = [
    "AUTO",
    "AutomaticThreads",
    "FixedThreads",
    "ParallelizationOptions",
    "parallelization_from_count",
    "VerbosityLevel",
]
