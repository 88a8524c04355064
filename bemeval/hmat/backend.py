from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Protocol

from torch import Tensor

from .config import HMatConfig

Kernel = Callable[[Tensor, Tensor], Tensor]


class HMatOperator(Protocol):
    """Assembled hierarchical-matrix representation of a potential operator."""

    def apply(self, coefficients: Tensor) -> Tensor:
        ...


class HMatBackend(Protocol):
    """Interface the evaluation pipeline expects from an H-matrix backend.

    ``targets`` is (M, 3), ``sources`` is (N, 3), ``weights`` and ``values``
    are (N,) or (N, C). The compression itself (cluster trees, admissibility,
    ACA/SVD) is the backend's business.
    """

    cfg: HMatConfig

    def evaluate(self, targets: Tensor, sources: Tensor, weights: Tensor, values: Tensor) -> Tensor:
        ...

    def assemble(self, targets: Tensor, sources: Tensor, weights: Tensor) -> HMatOperator:
        ...


BackendFactory = Callable[..., HMatBackend]


class HMatBackendUnavailable(RuntimeError):
    """Raised when HMAT evaluation is requested but no backend is registered."""


_REGISTRY: Dict[str, BackendFactory] = {}
_DEFAULT_NAME: Optional[str] = None


def register_hmat_backend(name: str, factory: BackendFactory, *, default: bool = True) -> None:
    """Register ``factory(cfg, kernel, logger=None)`` under ``name``.

    The most recently registered backend with ``default=True`` is used when
    :func:`create_hmat_backend` is called without a name.
    """
    global _DEFAULT_NAME
    _REGISTRY[name] = factory
    if default or _DEFAULT_NAME is None:
        _DEFAULT_NAME = name


def unregister_hmat_backend(name: str) -> None:
    global _DEFAULT_NAME
    _REGISTRY.pop(name, None)
    if _DEFAULT_NAME == name:
        _DEFAULT_NAME = next(iter(_REGISTRY), None)


def available_hmat_backends() -> List[str]:
    return sorted(_REGISTRY)


def create_hmat_backend(
    cfg: Optional[HMatConfig],
    kernel: Kernel,
    logger: Optional[Any] = None,
    name: Optional[str] = None,
) -> HMatBackend:
    """Factory used by the evaluation pipeline to get an H-matrix backend."""
    if cfg is None:
        cfg = HMatConfig()
    key = name if name is not None else _DEFAULT_NAME
    if key is None or key not in _REGISTRY:
        raise HMatBackendUnavailable(
            f"no H-matrix backend registered under {key!r}; "
            f"available: {available_hmat_backends()}"
        )
    return _REGISTRY[key](cfg, kernel, logger=logger)


__all__ = [
    "Kernel",
    "HMatOperator",
    "HMatBackend",
    "HMatBackendUnavailable",
    "register_hmat_backend",
    "unregister_hmat_backend",
    "available_hmat_backends",
    "create_hmat_backend",
]
