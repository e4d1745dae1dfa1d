import pytest

from pathpatch.error import IndexOutOfBoundsError, InvalidKeyPathError
from pathpatch.keypath import Index, Key, parse
from pathpatch.reconcile import apply, sanitize


def _apply(value, document, key_path):
    return apply(value, document, parse(key_path), key_path)


# ----- key -----


def test_key_replace():
    assert _apply("b", {"a": "a", "c": 1}, "a") == {"a": "b", "c": 1}


def test_key_add():
    assert _apply(2, {"a": 1}, "b") == {"a": 1, "b": 2}


def test_key_nested_replace():
    document = {"a": {"b": "c", "d": "e"}}
    assert _apply("f", document, "a.b") == {"a": {"b": "f", "d": "e"}}


def test_key_creates_missing_objects():
    assert _apply(1, {}, "a.b.c") == {"a": {"b": {"c": 1}}}


def test_key_none_is_empty_object():
    assert _apply(1, {"a": None}, "a.b") == {"a": {"b": 1}}


def test_key_into_scalar():
    with pytest.raises(InvalidKeyPathError) as exc_info:
        _apply(35, {"profile": {"age": 34}}, "profile.age.years")
    assert exc_info.value.path == "profile.age.years"


def test_key_into_array():
    with pytest.raises(InvalidKeyPathError):
        _apply(1, {"a": [1, 2]}, "a.b")


def test_key_replaces_object():
    assert _apply({"x": 1}, {"a": {"b": 2}}, "a") == {"a": {"x": 1}}


def test_key_stores_none():
    assert _apply(None, {"a": {"b": 2}}, "a") == {"a": None}


# ----- index -----


def test_index_replace():
    assert _apply("platforms", {"tags": ["python", "ios"]}, "tags[1]") == {
        "tags": ["python", "platforms"]
    }


def test_index_append():
    assert _apply("server", {"tags": ["python", "ios"]}, "tags[2]") == {
        "tags": ["python", "ios", "server"]
    }


def test_index_out_of_bounds():
    with pytest.raises(IndexOutOfBoundsError) as exc_info:
        _apply("backend", {"tags": ["python", "ios"]}, "tags[5]")
    assert exc_info.value.path == "tags[5]"
    assert exc_info.value.index == 5


def test_index_creates_missing_array():
    assert _apply("x", {}, "tags[0]") == {"tags": ["x"]}


def test_index_none_is_empty_array():
    assert _apply("x", {"tags": None}, "tags[0]") == {"tags": ["x"]}


def test_index_missing_array_out_of_bounds():
    with pytest.raises(IndexOutOfBoundsError) as exc_info:
        _apply("x", {}, "tags[1]")
    assert exc_info.value.index == 1


def test_index_into_object():
    with pytest.raises(InvalidKeyPathError):
        _apply(1, {"a": {"b": 1}}, "a[0]")


def test_index_into_string():
    with pytest.raises(InvalidKeyPathError):
        _apply(1, {"a": "text"}, "a[0]")


def test_index_negative():
    with pytest.raises(InvalidKeyPathError) as exc_info:
        apply(1, {"a": [1]}, (Key("a"), Index(-1)), "a[-1]")
    assert exc_info.value.path == "a[-1]"


def test_index_nested_arrays():
    assert _apply(9, {"m": [[1], [2]]}, "m[0][1]") == {"m": [[1, 9], [2]]}


def test_index_then_key():
    document = {"items": [{"name": "a", "qty": 1}]}
    assert _apply("b", document, "items[0]name") == {"items": [{"name": "b", "qty": 1}]}


def test_index_append_creates_object():
    assert _apply("b", {"items": []}, "items[0]name") == {"items": [{"name": "b"}]}


# ----- copy on write -----


def test_original_object_unmodified():
    document = {"a": {"b": 1}, "c": {"d": 2}}
    result = _apply(3, document, "a.e")
    assert document == {"a": {"b": 1}, "c": {"d": 2}}
    assert result == {"a": {"b": 1, "e": 3}, "c": {"d": 2}}
    assert result["a"] is not document["a"]


def test_original_array_unmodified():
    document = {"tags": ["a", "b"]}
    _apply("c", document, "tags[2]")
    _apply("z", document, "tags[0]")
    assert document == {"tags": ["a", "b"]}


def test_sequential_edits_compose():
    document = {"profile": {"age": 34, "address": {"street": "1 Loop", "city": "Cupertino"}}}
    document = _apply("San Francisco", document, "profile.address.city")
    document = _apply("Market Street", document, "profile.address.street")
    assert document == {
        "profile": {"age": 34, "address": {"street": "Market Street", "city": "San Francisco"}}
    }


def test_failed_edit_leaves_document_unmodified():
    document = {"a": {"b": [1]}}
    with pytest.raises(IndexOutOfBoundsError):
        _apply(1, document, "a.b[3]")
    assert document == {"a": {"b": [1]}}


# ----- sanitize -----


def test_sanitize_int_over_string():
    assert sanitize(35, "thirty") == "35"


def test_sanitize_float_over_string():
    assert sanitize(1.5, "x") == "1.5"


def test_sanitize_bool_over_string():
    assert sanitize(True, "x") == "true"


def test_sanitize_array_over_string():
    assert sanitize([1, "a"], "x") == '[1, "a"]'


def test_sanitize_object_over_string():
    assert sanitize({"a": 1}, "x") == '{"a": 1}'


def test_sanitize_none_over_string():
    assert sanitize(None, "x") is None


def test_sanitize_string_over_string():
    assert sanitize("y", "x") == "y"


def test_sanitize_over_number():
    assert sanitize("y", 1) == "y"
    assert sanitize(2, 1) == 2


def test_sanitize_over_absent():
    assert sanitize(35, None) == 35


def test_sanitize_through_path():
    assert _apply(123, {"website": "https://example.com"}, "website") == {"website": "123"}
