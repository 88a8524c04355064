from __future__ import annotations

import datetime as _dt
import io
import json
import logging
import math
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import torch


# --------------------------------------------
# JSON utilities (NaN/Inf safe + compact)
# --------------------------------------------


def _json_sanitize(v: Any) -> Any:
    """
    Convert values into JSON-safe primitives.

    Rules:
    - NaN / ±Inf floats are stringified ("NaN", "Infinity", "-Infinity").
    - torch.Tensors with <= 1024 elements are emitted via .tolist(); larger
      ones are summarized with shape/dtype/min/max.
    - Enum members are emitted by name.
    - Containers are handled recursively; anything else json.dumps cannot
      handle is stringified.
    """
    if isinstance(v, Enum):
        return str(v.name)

    if isinstance(v, float):
        if math.isfinite(v):
            return v
        if math.isnan(v):
            return "NaN"
        return "Infinity" if v > 0 else "-Infinity"

    if isinstance(v, torch.Tensor):
        t = v.detach().cpu()
        if t.numel() <= 1024:
            return _json_sanitize(t.tolist())
        return {
            "_type": "tensor_summary",
            "shape": list(t.shape),
            "dtype": str(t.dtype),
            "min": _json_sanitize(float(t.min().item())),
            "max": _json_sanitize(float(t.max().item())),
        }

    if isinstance(v, dict):
        return {str(k): _json_sanitize(val) for k, val in v.items()}
    if isinstance(v, (list, tuple)):
        return [_json_sanitize(x) for x in v]

    try:
        json.dumps(v)
        return v
    except (TypeError, ValueError):
        return str(v)


def _json_dump_line(obj: Dict[str, Any]) -> str:
    return json.dumps(_json_sanitize(obj), separators=(",", ":"), ensure_ascii=False)


# --------------------------------------------
# JSONL Logger (append-only, thread-safe)
# --------------------------------------------


class JsonlLogger:
    """
    Minimal JSONL event logger.

    - Safe for NaN/Inf and torch tensors; values are sanitized.
    - Never raises to callers (best-effort, IO failures are dropped).
    - .info/.debug/.warning/.error each write one JSON object per line with
      "ts", "level", "msg" plus any structured k/v pairs.
    """

    def __init__(self, out_dir: Path | str):
        self.dir = Path(out_dir)
        self.dir.mkdir(parents=True, exist_ok=True)
        self.path = self.dir / "events.jsonl"
        self._lock = threading.Lock()
        self._stream: Optional[io.TextIOBase] = None
        self._open()

    def __enter__(self) -> "JsonlLogger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _open(self) -> None:
        try:
            self._stream = self.path.open("a", encoding="utf-8")
        except OSError:
            self._stream = None

    def close(self) -> None:
        with self._lock:
            if self._stream is not None:
                try:
                    self._stream.flush()
                    self._stream.close()
                except OSError:
                    pass
            self._stream = None

    def _emit(self, level: str, msg: str, **fields: Any) -> None:
        rec: Dict[str, Any] = {
            "ts": _dt.datetime.now(_dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "level": level,
            "msg": msg,
        }
        if fields:
            rec.update(fields)
        line = _json_dump_line(rec)

        with self._lock:
            try:
                if self._stream is None:
                    self._open()
                if self._stream is not None:
                    self._stream.write(line + "\n")
                    self._stream.flush()
            except OSError:
                # logging must never break the caller
                return

    def info(self, msg: str, **fields: Any) -> None:
        self._emit("INFO", msg, **fields)

    def debug(self, msg: str, **fields: Any) -> None:
        self._emit("DEBUG", msg, **fields)

    def warning(self, msg: str, **fields: Any) -> None:
        self._emit("WARN", msg, **fields)

    def error(self, msg: str, **fields: Any) -> None:
        self._emit("ERROR", msg, **fields)

    def phase_start(self, name: str, **fields: Any) -> None:
        self._emit("INFO", "Phase start", phase=name, **fields)

    def phase_end(self, name: str, **fields: Any) -> None:
        self._emit("INFO", "Phase end", phase=name, **fields)


def get_logger(name: str) -> logging.Logger:
    """
    Return a stdlib logger under the ``bemeval.`` namespace.

    The logger level is left to the application; each evaluator filters its
    own records by its verbosity before they reach the logger.
    """
    if not name.startswith("bemeval"):
        name = f"bemeval.{name}"
    return logging.getLogger(name)


__all__ = ["JsonlLogger", "get_logger"]
