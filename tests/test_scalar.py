import numpy as np
import pytest

from annverify.scalar import (
    ValueKind,
    format_map_params,
    gen_arr,
    gen_params,
    get_index_types,
    print_map_params,
)


def test_bool_params_are_inverted_then_flat():
    params = gen_params(ValueKind.BOOL)
    assert [p.index_type for p in params] == ["inverted_index", "flat"]
    assert all(p.type_params == {} for p in params)


def test_string_params_are_marisa_only():
    params = gen_params(ValueKind.STRING)
    assert len(params) == 1
    assert params[0].index_type == "marisa"


@pytest.mark.parametrize(
    "kind",
    [ValueKind.INT8, ValueKind.INT16, ValueKind.INT32, ValueKind.INT64, ValueKind.FLOAT, ValueKind.DOUBLE],
)
def test_arithmetic_params_match_bool(kind):
    assert gen_params(kind) == gen_params(ValueKind.BOOL)


def test_index_types_per_kind():
    assert get_index_types(ValueKind.STRING) == ["marisa"]
    assert get_index_types(ValueKind.INT64) == ["inverted_index"]
    assert get_index_types("bool") == ["inverted_index"]


def test_sequences_are_restartable():
    first = gen_params(ValueKind.BOOL)
    first.clear()
    assert len(gen_params(ValueKind.BOOL)) == 2


def test_parse_kind_by_label():
    assert ValueKind.parse("Double") is ValueKind.DOUBLE
    with pytest.raises(ValueError):
        ValueKind.parse("complex")


def test_gen_arr_arithmetic_is_sorted_and_small():
    rng = np.random.default_rng(5)
    arr = gen_arr(ValueKind.INT16, 200, rng)
    assert arr.dtype == np.int16
    assert arr.shape == (200,)
    assert np.all(np.diff(arr) >= 0)
    assert arr.min() >= 0
    assert arr.max() < 126


def test_gen_arr_strings_are_sorted_decimal_digits():
    arr = gen_arr("string", 50, np.random.default_rng(6))
    assert len(arr) == 50
    assert all(s.isdigit() for s in arr)
    assert arr == sorted(arr)


def test_format_map_params():
    text = format_map_params(gen_params(ValueKind.STRING)[0])
    assert text == "k: index_type, v: marisa"


def test_print_map_params(capsys):
    print_map_params(gen_params(ValueKind.BOOL))
    out = capsys.readouterr().out
    assert out.splitlines() == ["k: index_type, v: inverted_index", "k: index_type, v: flat"]
