"""Evaluation options and the dense/H-matrix dispatch built on them."""

from __future__ import annotations

from .evaluation_options import (
    MAX_THREAD_COUNT_KEY,
    MODE_KEY,
    VERBOSITY_KEY,
    EvaluationMode,
    EvaluationOptions,
)
from .potential_evaluator import (
    AssembledPotentialOperator,
    EvaluationPlan,
    PotentialEvaluator,
    laplace_single_layer,
    plan_evaluation,
)

__all__ = [
    "MAX_THREAD_COUNT_KEY",
    "MODE_KEY",
    "VERBOSITY_KEY",
    "EvaluationMode",
    "EvaluationOptions",
    "AssembledPotentialOperator",
    "EvaluationPlan",
    "PotentialEvaluator",
    "laplace_single_layer",
    "plan_evaluation",
]
