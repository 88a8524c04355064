"""Validation and parameter-list mapping of the H-matrix configuration."""

from __future__ import annotations

import pytest

from bemeval.errors import InvalidArgument
from bemeval.hmat import HMatConfig


def test_defaults_are_valid() -> None:
    cfg = HMatConfig()
    assert 0.0 < cfg.eps < 1.0
    assert cfg.min_block_size <= cfg.max_block_size
    assert cfg.max_rank is None
    assert cfg.compression == "aca"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"eps": 0.0},
        {"eps": 1.5},
        {"eta": 0.0},
        {"min_block_size": 0},
        {"min_block_size": 2.5},
        {"min_block_size": 50, "max_block_size": 10},
        {"max_rank": 0},
        {"max_rank": True},
        {"compression": "lanczos"},
        {"eps": "x"},
        {"eps": None},
        {"eta": None},
        {"eta": [1.0]},
    ],
)
def test_invalid_values_rejected(kwargs) -> None:
    with pytest.raises(InvalidArgument):
        HMatConfig(**kwargs)


def test_to_parameters_uses_prefix_and_omits_unset_rank() -> None:
    params = HMatConfig(eps=1e-4).to_parameters()
    assert params["hmat.eps"] == 1e-4
    assert "hmat.max_rank" not in params
    assert all(k.startswith("hmat.") for k in params)


def test_from_parameters_parses_strings_and_ignores_foreign_keys() -> None:
    cfg = HMatConfig.from_parameters(
        {
            "hmat.eps": "1e-4",
            "hmat.eta": 2,
            "hmat.max_rank": 40,
            "hmat.compression": "SVD",
            "hmat.clusterHint": "pca",
            "maxThreadCount": 4,
        }
    )
    assert cfg == HMatConfig(eps=1e-4, eta=2.0, max_rank=40, compression="svd")


@pytest.mark.parametrize(
    "params",
    [
        {"hmat.eps": "tiny"},
        {"hmat.eta": True},
        {"hmat.min_block_size": "8"},
        {"hmat.eps": None},
        {"hmat.compression": ["aca"]},
    ],
)
def test_from_parameters_rejects_bad_kinds(params) -> None:
    with pytest.raises(InvalidArgument):
        HMatConfig.from_parameters(params)


def test_config_roundtrips_through_parameters() -> None:
    cfg = HMatConfig(eps=1e-6, eta=0.5, min_block_size=8, max_block_size=512, max_rank=12)
    assert HMatConfig.from_parameters(cfg.to_parameters()) == cfg


def test_from_parameters_accepts_null_rank() -> None:
    cfg = HMatConfig.from_parameters({"hmat.max_rank": None, "hmat.eps": 1e-5})
    assert cfg == HMatConfig(eps=1e-5)
