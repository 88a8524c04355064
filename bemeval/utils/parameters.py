"""
Generic name -> value option bag used for bulk configuration import.

Values stored under keys nobody here recognises are opaque: they are kept
exactly as supplied (``None``, lists and nested mappings included) for
components further down the pipeline. Only the recognised options are
checked against the closed set of kinds (bool, int, float, str and Enum
members), and that check belongs to whoever reads them.

numpy scalars are normalised to the matching Python scalar on insertion.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Mapping, MutableMapping, Tuple, Union

import numpy as np

try:  # YAML is optional; JSON files keep working without it.
    import yaml  # type: ignore
except Exception:  # pragma: no cover
    yaml = None  # type: ignore

from bemeval.errors import InvalidArgument

# Kinds a recognised option may take.
ParameterValue = Union[bool, int, float, str, Enum]


def _normalize_value(value: Any) -> Any:
    if isinstance(value, np.bool_):
        return bool(value)
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    return value


def _flatten(mapping: Mapping[str, Any], prefix: str) -> Iterator[Tuple[str, Any]]:
    for k, v in mapping.items():
        name = f"{prefix}{k}"
        if isinstance(v, Mapping):
            yield from _flatten(v, prefix=f"{name}.")
        else:
            yield name, v


class ParameterList(MutableMapping[str, Any]):
    """String-keyed mapping of heterogeneous option values."""

    def __init__(self, items: Union[Mapping[str, Any], None] = None, **kwargs: Any):
        self._data: Dict[str, Any] = {}
        if items is not None:
            self.update(items)
        if kwargs:
            self.update(kwargs)

    # ----- MutableMapping protocol -----
    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if not isinstance(key, str) or not key:
            raise InvalidArgument(f"parameter names must be non-empty strings; got {key!r}")
        self._data[key] = _normalize_value(value)

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"ParameterList({self._data!r})"

    # ----- convenience -----
    def put(self, key: str, value: Any) -> None:
        self[key] = value

    def copy(self) -> "ParameterList":
        clone = ParameterList()
        clone._data = dict(self._data)
        return clone

    def to_dict(self) -> Dict[str, Any]:
        """Plain-dict snapshot; enum members are rendered as their values."""
        out: Dict[str, Any] = {}
        for k, v in self._data.items():
            if isinstance(v, Enum):
                v = v.name.lower() if isinstance(v.value, int) else v.value
            out[k] = v
        return out

    # ----- constructors -----
    @classmethod
    def from_mapping(
        cls, mapping: Mapping[str, Any], sections: Iterable[str] = ("hmat",)
    ) -> "ParameterList":
        """
        Copy ``mapping`` into a new parameter list.

        A nested mapping stored under one of ``sections`` is expanded into
        dotted keys (``{"hmat": {"eps": 1e-4}}`` becomes ``"hmat.eps"``).
        Every other value is kept verbatim, nested mappings included.
        """
        sections = frozenset(sections)
        out = cls()
        for key, value in mapping.items():
            if key in sections and isinstance(value, Mapping):
                out.update(_flatten(value, prefix=f"{key}."))
            else:
                out[key] = value
        return out

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ParameterList":
        """
        Load a parameter list from .json / .yaml / .yml.

        Unknown suffixes are tried as JSON first, then YAML.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Parameter file does not exist: {path}")
        text = path.read_text(encoding="utf-8")
        suffix = path.suffix.lower()
        if suffix == ".json":
            raw = json.loads(text)
        elif suffix in (".yaml", ".yml"):
            if yaml is None:
                raise RuntimeError(
                    "YAML parameter file requested but PyYAML is not installed. "
                    "Install 'pyyaml' or use JSON."
                )
            raw = yaml.safe_load(text)
        else:
            try:
                raw = json.loads(text)
            except json.JSONDecodeError:
                if yaml is None:
                    raise RuntimeError(f"Unrecognized parameter file format: {path}")
                raw = yaml.safe_load(text)
        if not isinstance(raw, Mapping):
            raise InvalidArgument(
                f"parameter file {path} must contain a mapping at top level"
            )
        return cls.from_mapping(raw)


__all__ = ["ParameterList", "ParameterValue"]
