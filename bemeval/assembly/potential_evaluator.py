"""
Evaluation-pipeline side of the EvaluationOptions contract.

The evaluator reads the finalized options once (see :func:`plan_evaluation`)
and dispatches to one of two paths:

  - DENSE: the potential

        k(x) = ∫_Γ K(x, y) ψ(y) dΓ(y) ≈ Σ_j w_j K(x, y_j) ψ(y_j)

    is evaluated as a quadrature sum. :meth:`PotentialEvaluator.evaluate_at_points`
    processes targets in chunks and discards each kernel block after use;
    :meth:`PotentialEvaluator.assemble` keeps the weighted kernel values as a
    dense matrix so that later evaluations reduce to a matrix product.

  - HMAT: both operations are delegated to the registered H-matrix backend
    (:mod:`bemeval.hmat`).

Quadrature points/weights and the kernel are supplied by the caller.
"""

from __future__ import annotations

import math
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Union

import torch
from torch import Tensor

from bemeval.fiber.verbosity import VerbosityLevel
from bemeval.hmat.backend import HMatBackend, HMatOperator, Kernel, create_hmat_backend
from bemeval.hmat.config import HMatConfig
from bemeval.utils.logging import JsonlLogger, get_logger

from .evaluation_options import EvaluationMode, EvaluationOptions

__all__ = [
    "EvaluationPlan",
    "plan_evaluation",
    "laplace_single_layer",
    "AssembledPotentialOperator",
    "PotentialEvaluator",
]

_FOUR_PI = 4.0 * math.pi


@dataclass(frozen=True)
class EvaluationPlan:
    """Options resolved for a single evaluation run."""

    mode: EvaluationMode
    thread_count: int
    verbosity: VerbosityLevel
    hmat_config: Optional[HMatConfig] = None


def plan_evaluation(options: EvaluationOptions) -> EvaluationPlan:
    """
    Read ``options`` once and resolve it into an :class:`EvaluationPlan`.

    An automatic thread policy is resolved here, against the hardware
    concurrency reported by the OS.
    """
    mode = options.evaluation_mode
    parallelization = options.parallelization_options
    verbosity = options.verbosity_level
    hmat_config = options.hmat_config if mode is EvaluationMode.HMAT else None

    if parallelization.is_automatic:
        thread_count = os.cpu_count() or 1
    else:
        thread_count = parallelization.max_thread_count
    return EvaluationPlan(
        mode=mode,
        thread_count=int(thread_count),
        verbosity=verbosity,
        hmat_config=hmat_config,
    )


def laplace_single_layer(targets: Tensor, sources: Tensor) -> Tensor:
    """
    Free-space Laplace kernel 1 / (4π |x - y|) as an (M, N) block.

    Coincident target/source pairs contribute zero; singular self terms are
    the quadrature layer's job.
    """
    r = torch.cdist(targets, sources)
    out = torch.zeros_like(r)
    mask = r > 0
    out[mask] = 1.0 / (_FOUR_PI * r[mask])
    return out


@contextmanager
def _torch_threads(n: int) -> Iterator[None]:
    prev = torch.get_num_threads()
    if n != prev:
        torch.set_num_threads(n)
    try:
        yield
    finally:
        if n != prev:
            torch.set_num_threads(prev)


class AssembledPotentialOperator:
    """Dense matrix representation of a potential operator.

    Row ``c * M + i`` holds component ``c`` of the potential at target ``i``
    produced by a unit value at source column ``j`` (quadrature weight
    included).
    """

    def __init__(self, matrix: Tensor, n_targets: int, components: int = 1):
        if matrix.dim() != 2 or matrix.shape[0] != n_targets * components:
            raise ValueError(
                f"matrix shape {tuple(matrix.shape)} does not match "
                f"{n_targets} targets x {components} components"
            )
        self.matrix = matrix
        self.n_targets = n_targets
        self.components = components

    @property
    def shape(self):
        return tuple(self.matrix.shape)

    def apply(self, coefficients: Tensor) -> Tensor:
        """Potential generated by ``coefficients`` ((N,) or (N, K))."""
        coefficients = coefficients.to(dtype=self.matrix.dtype, device=self.matrix.device)
        if coefficients.shape[0] != self.matrix.shape[1]:
            raise ValueError(
                f"expected {self.matrix.shape[1]} coefficients, got {coefficients.shape[0]}"
            )
        return self.matrix @ coefficients


class PotentialEvaluator:
    """Evaluate a potential operator according to an :class:`EvaluationOptions`.

    Parameters
    ----------
    sources:
        (N, 3) quadrature points on the boundary.
    weights:
        (N,) quadrature weights.
    options:
        Finalized evaluation options; read once, at construction.
    kernel:
        Callable mapping (M, 3) targets and (N, 3) sources to an (M, N)
        kernel block. Defaults to :func:`laplace_single_layer`.
    logger:
        Optional structured logger receiving phase events.
    chunk_size:
        Number of targets per kernel block on the dense path.
    """

    def __init__(
        self,
        sources: Tensor,
        weights: Tensor,
        options: EvaluationOptions,
        kernel: Kernel = laplace_single_layer,
        logger: Optional[JsonlLogger] = None,
        chunk_size: int = 4096,
        hmat_backend_name: Optional[str] = None,
    ):
        if sources.dim() != 2 or sources.shape[1] != 3:
            raise ValueError(f"sources must have shape (N, 3), got {tuple(sources.shape)}")
        if weights.shape != (sources.shape[0],):
            raise ValueError(
                f"weights must have shape ({sources.shape[0]},), got {tuple(weights.shape)}"
            )
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

        self.sources = sources
        self.weights = weights.to(dtype=sources.dtype, device=sources.device)
        self.kernel = kernel
        self.chunk_size = int(chunk_size)
        self.plan = plan_evaluation(options)
        self.jsonl = logger
        self.log = get_logger("evaluation")
        self._hmat_backend_name = hmat_backend_name
        self._hmat: Optional[HMatBackend] = None

    # ------------------------------------------------------------------

    def _event(self, level: VerbosityLevel, msg: str, **fields: Any) -> None:
        if self.plan.verbosity < level:
            return
        self.log.log(level.logging_level, "%s %s", msg, fields)
        if self.jsonl is not None:
            if level is VerbosityLevel.HIGH:
                self.jsonl.debug(msg, **fields)
            else:
                self.jsonl.info(msg, **fields)

    def _backend(self) -> HMatBackend:
        if self._hmat is None:
            self._hmat = create_hmat_backend(
                self.plan.hmat_config,
                self.kernel,
                logger=self.jsonl,
                name=self._hmat_backend_name,
            )
        return self._hmat

    def _check_targets(self, targets: Tensor) -> Tensor:
        if targets.dim() != 2 or targets.shape[1] != 3:
            raise ValueError(f"targets must have shape (M, 3), got {tuple(targets.shape)}")
        return targets.to(dtype=self.sources.dtype, device=self.sources.device)

    # ------------------------------------------------------------------

    def evaluate_at_points(self, targets: Tensor, values: Tensor) -> Tensor:
        """
        Potential at ``targets`` due to density ``values`` sampled at the
        source quadrature points.

        ``values`` is (N,) for a scalar density or (N, C) for C components;
        the result is (M,) or (M, C) accordingly.
        """
        targets = self._check_targets(targets)
        values = values.to(dtype=self.sources.dtype, device=self.sources.device)
        if values.shape[0] != self.sources.shape[0]:
            raise ValueError(
                f"values must have {self.sources.shape[0]} rows, got {values.shape[0]}"
            )

        self._event(
            VerbosityLevel.DEFAULT,
            "evaluate_at_points_start",
            mode=self.plan.mode.value,
            n_targets=int(targets.shape[0]),
            n_sources=int(self.sources.shape[0]),
            threads=self.plan.thread_count,
        )
        with _torch_threads(self.plan.thread_count):
            if self.plan.mode is EvaluationMode.HMAT:
                out = self._backend().evaluate(targets, self.sources, self.weights, values)
            else:
                out = self._evaluate_dense(targets, values)
        self._event(VerbosityLevel.DEFAULT, "evaluate_at_points_end", mode=self.plan.mode.value)
        return out

    def _evaluate_dense(self, targets: Tensor, values: Tensor) -> Tensor:
        weighted = values * (self.weights if values.dim() == 1 else self.weights[:, None])
        M = int(targets.shape[0])
        out = torch.empty((M,) + tuple(values.shape[1:]), dtype=values.dtype, device=values.device)
        for start in range(0, M, self.chunk_size):
            stop = min(start + self.chunk_size, M)
            block = self.kernel(targets[start:stop], self.sources)
            out[start:stop] = block @ weighted
            del block
            self._event(VerbosityLevel.HIGH, "dense_chunk", start=start, stop=stop)
        return out

    def assemble(
        self, targets: Tensor, components: int = 1
    ) -> Union[AssembledPotentialOperator, HMatOperator]:
        """
        Assemble the operator mapping source values to potentials at ``targets``.

        DENSE mode returns an :class:`AssembledPotentialOperator`; HMAT mode
        returns whatever operator the registered backend produces; backends
        assemble scalar operators only, so ``components`` must be 1 there.
        Kernels with C > 1 components must return (C, M, N) blocks.
        """
        targets = self._check_targets(targets)
        if self.plan.mode is EvaluationMode.HMAT and components != 1:
            raise ValueError(
                f"HMAT assembly supports a single component only; got components={components!r}"
            )
        self._event(
            VerbosityLevel.DEFAULT,
            "assemble_start",
            mode=self.plan.mode.value,
            n_targets=int(targets.shape[0]),
            n_sources=int(self.sources.shape[0]),
        )
        with _torch_threads(self.plan.thread_count):
            if self.plan.mode is EvaluationMode.HMAT:
                op: Union[AssembledPotentialOperator, HMatOperator]
                op = self._backend().assemble(targets, self.sources, self.weights)
            else:
                op = self._assemble_dense(targets, components)
        self._event(VerbosityLevel.DEFAULT, "assemble_end", mode=self.plan.mode.value)
        return op

    def _assemble_dense(self, targets: Tensor, components: int) -> AssembledPotentialOperator:
        M = int(targets.shape[0])
        N = int(self.sources.shape[0])
        matrix = torch.empty((components * M, N), dtype=self.sources.dtype, device=self.sources.device)
        for start in range(0, M, self.chunk_size):
            stop = min(start + self.chunk_size, M)
            block = self.kernel(targets[start:stop], self.sources)
            if components == 1:
                block = block.reshape(1, stop - start, N)
            if block.shape != (components, stop - start, N):
                raise ValueError(
                    f"kernel returned shape {tuple(block.shape)}; expected "
                    f"({components}, {stop - start}, {N})"
                )
            for c in range(components):
                matrix[c * M + start:c * M + stop] = block[c] * self.weights
        return AssembledPotentialOperator(matrix, n_targets=M, components=components)
