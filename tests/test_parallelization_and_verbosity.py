import logging

import numpy as np
import pytest

from bemeval.errors import InvalidArgument
from bemeval.fiber import (
    AUTO,
    AutomaticThreads,
    FixedThreads,
    VerbosityLevel,
    parallelization_from_count,
)


def test_parallelization_from_count() -> None:
    assert parallelization_from_count(AUTO) == AutomaticThreads()
    assert parallelization_from_count("Auto") == AutomaticThreads()
    assert parallelization_from_count(3) == FixedThreads(3)
    assert parallelization_from_count(np.int64(12)) == FixedThreads(12)
    policy = FixedThreads(2)
    assert parallelization_from_count(policy) is policy


@pytest.mark.parametrize("bad", [0, -2, -100, "two", 1.0, False])
def test_parallelization_from_count_rejects(bad) -> None:
    with pytest.raises(InvalidArgument):
        parallelization_from_count(bad)


def test_fixed_threads_validates_directly() -> None:
    with pytest.raises(InvalidArgument):
        FixedThreads(0)
    with pytest.raises(InvalidArgument):
        FixedThreads(AUTO)


def test_policies_are_values() -> None:
    assert FixedThreads(4) == FixedThreads(4)
    assert FixedThreads(4) != FixedThreads(5)
    assert AutomaticThreads() != FixedThreads(1)
    assert len({FixedThreads(4), FixedThreads(4), AutomaticThreads()}) == 2
    assert AutomaticThreads().max_thread_count == AUTO
    assert not FixedThreads(4).is_automatic


def test_verbosity_levels_are_ordered() -> None:
    assert VerbosityLevel.LOW < VerbosityLevel.DEFAULT < VerbosityLevel.HIGH
    assert sorted(VerbosityLevel) == [
        VerbosityLevel.LOW,
        VerbosityLevel.DEFAULT,
        VerbosityLevel.HIGH,
    ]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("high", VerbosityLevel.HIGH),
        (" LOW ", VerbosityLevel.LOW),
        (0, VerbosityLevel.DEFAULT),
        (np.int32(5), VerbosityLevel.HIGH),
        (VerbosityLevel.LOW, VerbosityLevel.LOW),
    ],
)
def test_verbosity_coerce(raw, expected: VerbosityLevel) -> None:
    assert VerbosityLevel.coerce(raw) is expected


@pytest.mark.parametrize("bad", ["verbose", 1, 2.0, None, True])
def test_verbosity_coerce_rejects(bad) -> None:
    with pytest.raises(InvalidArgument):
        VerbosityLevel.coerce(bad)


def test_verbosity_logging_levels() -> None:
    assert VerbosityLevel.LOW.logging_level == logging.WARNING
    assert VerbosityLevel.DEFAULT.logging_level == logging.INFO
    assert VerbosityLevel.HIGH.logging_level == logging.DEBUG
