"""
Options controlling evaluation of potentials.

An :class:`EvaluationOptions` object picks the evaluation algorithm
(dense quadrature/dense matrix vs. hierarchical matrix), the thread-count
policy and the verbosity of the evaluation pipeline. It is configured once
by its owner and then read by the pipeline at the start of each run.

Every typed setting is mirrored into a canonical :class:`ParameterList`
under the keys below; keys this module does not recognise are carried along
untouched for components further down the pipeline.
"""

from __future__ import annotations

import warnings
from enum import Enum
from typing import Any, Mapping, Optional, Union

from bemeval.errors import InvalidArgument
from bemeval.fiber.parallelization import (
    AUTO,
    ParallelizationOptions,
    parallelization_from_count,
)
from bemeval.fiber.verbosity import VerbosityLevel
from bemeval.hmat.config import HMAT_PARAMETER_PREFIX, HMatConfig
from bemeval.utils.parameters import ParameterList

MODE_KEY = "evaluationMode"
MAX_THREAD_COUNT_KEY = "maxThreadCount"
VERBOSITY_KEY = "verbosityLevel"

_HMAT_FIELD_KEYS = tuple(
    f"{HMAT_PARAMETER_PREFIX}{name}" for name in HMatConfig.__dataclass_fields__
)


class EvaluationMode(str, Enum):
    """Possible evaluation modes."""

    DENSE = "dense"
    HMAT = "hmat"

    @classmethod
    def coerce(cls, value: Any) -> "EvaluationMode":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            tag = value.strip().lower()
            for member in cls:
                if tag == member.value:
                    return member
        raise InvalidArgument(f"Invalid EvaluationMode: {value!r}")


class EvaluationOptions:
    """Options controlling evaluation of potentials.

    Parameters
    ----------
    parameters:
        Optional :class:`ParameterList` (or any string-keyed mapping) to read
        the initial settings from. Recognised keys are ``"evaluationMode"``,
        ``"maxThreadCount"``, ``"verbosityLevel"`` and, in HMAT mode, the
        ``"hmat.*"`` fields of :class:`HMatConfig`. Invalid values for
        recognised keys raise :class:`InvalidArgument`. The mapping is copied;
        the caller's object is never modified.
    """

    AUTO = AUTO

    def __init__(self, parameters: Optional[Mapping[str, Any]] = None) -> None:
        if parameters is None:
            params = ParameterList()
        else:
            params = ParameterList.from_mapping(parameters)

        # Validate everything before committing any state.
        mode = EvaluationMode.coerce(params.get(MODE_KEY, EvaluationMode.DENSE))
        parallelization = parallelization_from_count(params.get(MAX_THREAD_COUNT_KEY, AUTO))
        verbosity = VerbosityLevel.coerce(params.get(VERBOSITY_KEY, VerbosityLevel.DEFAULT))
        hmat_config = HMatConfig.from_parameters(params) if mode is EvaluationMode.HMAT else None

        self._mode = mode
        self._parallelization: ParallelizationOptions = parallelization
        self._verbosity = verbosity
        self._hmat_config: Optional[HMatConfig] = hmat_config
        self._parameters = params
        self._sync_mode()
        self._sync_parallelization()
        self._sync_verbosity()

    # ------------------------------------------------------------------
    # Evaluation mode
    # ------------------------------------------------------------------

    def switch_to_dense_mode(self) -> None:
        """Use dense representations of potential operators.

        This is the default mode. A potential evaluated for a single charge
        distribution is approximated by a quadrature sum over the source
        points, with kernel values computed once per (target, quadrature
        point) pair and then discarded. When many charge distributions are
        evaluated at a fixed set of points, the same values can instead be
        assembled into a dense matrix whose product with the expansion
        coefficients yields the potential.
        """
        self._mode = EvaluationMode.DENSE
        self._hmat_config = None
        self._sync_mode()

    def switch_to_hmat_mode(self, config: Optional[HMatConfig] = None) -> None:
        """Use hierarchical-matrix representations of potential operators.

        ``config`` is the H-matrix subsystem's own configuration. When it is
        omitted, it is built from any ``"hmat.*"`` entries already present in
        the parameter list, with defaults for the rest.
        """
        if config is None:
            config = HMatConfig.from_parameters(self._parameters)
        elif not isinstance(config, HMatConfig):
            raise InvalidArgument(
                f"expected an HMatConfig; got {type(config).__name__}"
            )
        self._mode = EvaluationMode.HMAT
        self._hmat_config = config
        self._sync_mode()

    @property
    def evaluation_mode(self) -> EvaluationMode:
        return self._mode

    @property
    def hmat_config(self) -> Optional[HMatConfig]:
        """H-matrix configuration; ``None`` unless the mode is HMAT."""
        return self._hmat_config

    # ------------------------------------------------------------------
    # Parallelization
    # ------------------------------------------------------------------

    def set_max_thread_count(self, max_thread_count: Union[int, ParallelizationOptions]) -> None:
        """Set the maximum number of threads used during evaluation.

        ``max_thread_count`` must be a positive int or ``AUTO``; in the
        latter case the thread count is decided by the evaluation runtime.
        Zero and other negative values raise :class:`InvalidArgument`.
        """
        self._parallelization = parallelization_from_count(max_thread_count)
        self._sync_parallelization()

    def switch_to_tbb(self, max_thread_count: int = AUTO) -> None:
        """Deprecated alias of :meth:`set_max_thread_count`."""
        warnings.warn(
            "EvaluationOptions.switch_to_tbb() is deprecated; "
            "use set_max_thread_count() instead.",
            DeprecationWarning,
            stacklevel=2,
        )
        self.set_max_thread_count(max_thread_count)

    @property
    def parallelization_options(self) -> ParallelizationOptions:
        return self._parallelization

    # ------------------------------------------------------------------
    # Verbosity
    # ------------------------------------------------------------------

    def set_verbosity_level(self, level: VerbosityLevel) -> None:
        """Set how much the evaluation pipeline reports while it runs."""
        self._verbosity = VerbosityLevel.coerce(level)
        self._sync_verbosity()

    @property
    def verbosity_level(self) -> VerbosityLevel:
        return self._verbosity

    # ------------------------------------------------------------------
    # Parameter list
    # ------------------------------------------------------------------

    @property
    def parameters(self) -> ParameterList:
        """Snapshot of the canonical parameter list (a copy)."""
        return self._parameters.copy()

    def _sync_mode(self) -> None:
        self._parameters[MODE_KEY] = self._mode
        if self._hmat_config is not None:
            for key in _HMAT_FIELD_KEYS:
                self._parameters.pop(key, None)
            self._parameters.update(self._hmat_config.to_parameters())

    def _sync_parallelization(self) -> None:
        self._parameters[MAX_THREAD_COUNT_KEY] = self._parallelization.max_thread_count

    def _sync_verbosity(self) -> None:
        self._parameters[VERBOSITY_KEY] = self._verbosity

    # ------------------------------------------------------------------

    def copy(self) -> "EvaluationOptions":
        clone = EvaluationOptions.__new__(EvaluationOptions)
        clone._mode = self._mode
        clone._parallelization = self._parallelization
        clone._verbosity = self._verbosity
        clone._hmat_config = self._hmat_config
        clone._parameters = self._parameters.copy()
        return clone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EvaluationOptions):
            return NotImplemented
        return (
            self._mode is other._mode
            and self._parallelization == other._parallelization
            and self._verbosity is other._verbosity
            and self._hmat_config == other._hmat_config
            and self._parameters == other._parameters
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"EvaluationOptions(mode={self._mode.name}, "
            f"parallelization={self._parallelization!r}, "
            f"verbosity={self._verbosity.name}, hmat={self._hmat_config!r})"
        )


__all__ = [
    "MODE_KEY",
    "MAX_THREAD_COUNT_KEY",
    "VERBOSITY_KEY",
    "EvaluationMode",
    "EvaluationOptions",
]
