from __future__ import annotations

from enum import Enum
from typing import Any

import numpy as np
from numpy.typing import NDArray

from .types import ScalarTestParams

INVERTED_INDEX = "inverted_index"
FLAT = "flat"
MARISA = "marisa"

_RAND_MAX = 2**31 - 1
# Arithmetic samples stay below int8 max so every kind can hold them.
_MAX_I8 = int(np.iinfo(np.int8).max) - 1


class ValueFamily(Enum):
    ARITHMETIC = "arithmetic"
    BOOLEAN = "boolean"
    STRING = "string"


class ValueKind(Enum):
    BOOL = ("bool", ValueFamily.BOOLEAN, np.bool_)
    INT8 = ("int8", ValueFamily.ARITHMETIC, np.int8)
    INT16 = ("int16", ValueFamily.ARITHMETIC, np.int16)
    INT32 = ("int32", ValueFamily.ARITHMETIC, np.int32)
    INT64 = ("int64", ValueFamily.ARITHMETIC, np.int64)
    FLOAT = ("float", ValueFamily.ARITHMETIC, np.float32)
    DOUBLE = ("double", ValueFamily.ARITHMETIC, np.float64)
    STRING = ("string", ValueFamily.STRING, np.str_)

    def __init__(self, label: str, family: ValueFamily, dtype: Any):
        self.label = label
        self.family = family
        self.dtype = dtype

    @classmethod
    def parse(cls, value: "ValueKind | str") -> "ValueKind":
        if isinstance(value, ValueKind):
            return value
        normalized = str(value).strip().lower()
        for kind in cls:
            if kind.label == normalized:
                return kind
        raise ValueError(f"unsupported scalar value kind: {value!r}")


def _index_params(index_type: str) -> ScalarTestParams:
    return ScalarTestParams(type_params={}, index_params={"index_type": index_type})


def gen_bool_params() -> list[ScalarTestParams]:
    return [_index_params(INVERTED_INDEX), _index_params(FLAT)]


def gen_string_params() -> list[ScalarTestParams]:
    return [_index_params(MARISA)]


def gen_params(kind: ValueKind | str) -> list[ScalarTestParams]:
    kind = ValueKind.parse(kind)
    if kind.family is ValueFamily.STRING:
        return gen_string_params()
    # Booleans and the remaining arithmetic kinds share one variant set.
    return gen_bool_params()


def get_index_types(kind: ValueKind | str) -> list[str]:
    kind = ValueKind.parse(kind)
    if kind.family is ValueFamily.STRING:
        return [MARISA]
    return [INVERTED_INDEX]


def gen_str_arr(n: int, rng: np.random.Generator | None = None) -> list[str]:
    rng = rng or np.random.default_rng()
    return sorted(str(int(v)) for v in rng.integers(0, _RAND_MAX, size=n))


def gen_arr(kind: ValueKind | str, n: int, rng: np.random.Generator | None = None) -> NDArray[Any] | list[str]:
    """Sample a sorted column of ``n`` values of the given kind."""
    if n < 0:
        raise ValueError("n must be non-negative")
    kind = ValueKind.parse(kind)
    rng = rng or np.random.default_rng()
    if kind.family is ValueFamily.STRING:
        return gen_str_arr(n, rng)
    raw = rng.integers(0, _RAND_MAX, size=n) % _MAX_I8
    return np.sort(raw.astype(kind.dtype))


def format_map_params(params: ScalarTestParams) -> str:
    lines = [f"k: {k}, v: {v}" for k, v in params.type_params.items()]
    lines.extend(f"k: {k}, v: {v}" for k, v in params.index_params.items())
    return "\n".join(lines)


def print_map_params(params_list: list[ScalarTestParams]) -> None:
    for params in params_list:
        text = format_map_params(params)
        if text:
            print(text)


__all__ = [
    "FLAT",
    "INVERTED_INDEX",
    "MARISA",
    "ValueFamily",
    "ValueKind",
    "format_map_params",
    "gen_arr",
    "gen_bool_params",
    "gen_params",
    "gen_str_arr",
    "get_index_types",
    "print_map_params",
]
