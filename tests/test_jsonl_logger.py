import json
import logging

import torch

from bemeval.fiber import VerbosityLevel
from bemeval.utils.logging import JsonlLogger, get_logger


def test_jsonl_logger_sanitizes_values(tmp_path) -> None:
    with JsonlLogger(tmp_path) as logger:
        logger.info(
            "event",
            nan=float("nan"),
            inf=float("inf"),
            small=torch.tensor([1.0, 2.0]),
            big=torch.zeros(2048),
            verbosity=VerbosityLevel.HIGH,
        )
        logger.phase_start("assemble", n=3)

    lines = (tmp_path / "events.jsonl").read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    rec = json.loads(lines[0])
    assert rec["level"] == "INFO"
    assert rec["msg"] == "event"
    assert rec["nan"] == "NaN"
    assert rec["inf"] == "Infinity"
    assert rec["small"] == [1.0, 2.0]
    assert rec["big"]["_type"] == "tensor_summary"
    assert rec["big"]["shape"] == [2048]
    assert rec["verbosity"] == "HIGH"
    assert json.loads(lines[1])["phase"] == "assemble"


def test_jsonl_logger_reopens_after_close(tmp_path) -> None:
    logger = JsonlLogger(tmp_path)
    logger.close()
    logger.warning("late")
    logger.close()
    rec = json.loads((tmp_path / "events.jsonl").read_text(encoding="utf-8"))
    assert rec["level"] == "WARN"


def test_get_logger_namespaces_without_touching_level() -> None:
    log = get_logger("test_b")
    assert log.name == "bemeval.test_b"
    assert get_logger("bemeval.test_b") is log
    log.setLevel(logging.ERROR)
    try:
        assert get_logger("test_b").level == logging.ERROR
    finally:
        log.setLevel(logging.NOTSET)
