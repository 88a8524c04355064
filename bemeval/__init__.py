"""bemeval: evaluation-strategy selection for boundary-element potentials."""

from __future__ import annotations

from .assembly import EvaluationMode, EvaluationOptions, PotentialEvaluator, plan_evaluation
from .errors import InvalidArgument
from .fiber import AUTO, AutomaticThreads, FixedThreads, ParallelizationOptions, VerbosityLevel
from .hmat import HMatConfig
from .utils.parameters import ParameterList

__version__ = "0.1.0"

__all__ = [
    "AUTO",
    "AutomaticThreads",
    "EvaluationMode",
    "EvaluationOptions",
    "FixedThreads",
    "HMatConfig",
    "InvalidArgument",
    "ParallelizationOptions",
    "ParameterList",
    "PotentialEvaluator",
    "VerbosityLevel",
    "plan_evaluation",
]
