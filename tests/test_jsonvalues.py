from lifeofsounds.jsonvalues import (
    get_float_value_from_json,
    get_int_value_from_json,
    get_string_value_from_json,
)


def test_float_value():
    assert get_float_value_from_json("duration", '{"duration": 1.5}') == 1.5


def test_int_value_from_integer():
    assert get_int_value_from_json("size", '{"size": 42}') == 42


def test_int_value_truncates_fraction():
    assert get_int_value_from_json("size", '{"size": 3.9}') == 3


def test_int_value_saturates():
    assert get_int_value_from_json("size", '{"size": 1e20}') == 2**31 - 1


def test_string_value():
    assert get_string_value_from_json("name", '{"name": "take"}') == "take"


def test_string_lookup_ignores_case():
    assert get_string_value_from_json("userid", '{"UserId": "u1"}') == "u1"


def test_missing_key_gives_none():
    assert get_string_value_from_json("name", '{"other": "x"}') is None


def test_wrong_type_gives_none():
    assert get_string_value_from_json("size", '{"size": 4}') is None
    assert get_int_value_from_json("name", '{"name": "x"}') is None


def test_boolean_is_not_a_number():
    assert get_int_value_from_json("flag", '{"flag": true}') is None


def test_invalid_json_gives_none():
    assert get_string_value_from_json("name", "{not json") is None


def test_none_input_gives_none():
    assert get_float_value_from_json("x", None) is None


def test_trailing_text_after_document_is_ignored():
    assert get_string_value_from_json("a", '{"a": "b"} trailing') == "b"


def test_non_object_document_gives_none():
    assert get_string_value_from_json("a", '["a", "b"]') is None