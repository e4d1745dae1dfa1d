import pytest

from pathpatch.error import InvalidKeyPathError
from pathpatch.keypath import Index, Key, parse


def _invalid(key_path):
    with pytest.raises(InvalidKeyPathError) as exc_info:
        parse(key_path)
    assert exc_info.value.path == key_path


# ----- valid -----


def test_single_key():
    assert parse("name") == (Key("name"),)


def test_nested_keys():
    assert parse("profile.address.city") == (Key("profile"), Key("address"), Key("city"))


def test_index():
    assert parse("tags[1]") == (Key("tags"), Index(1))


def test_multiple_indexes():
    assert parse("matrix[0][2]") == (Key("matrix"), Index(0), Index(2))


def test_key_after_index():
    assert parse("items[0]name") == (Key("items"), Index(0), Key("name"))


def test_index_after_dot():
    assert parse("a.[0]") == (Key("a"), Index(0))


def test_index_after_dot_then_key():
    assert parse("a.[0]b") == (Key("a"), Index(0), Key("b"))


def test_index_in_middle():
    assert parse("a.b[3]c[4]") == (Key("a"), Key("b"), Index(3), Key("c"), Index(4))


def test_multidigit_index():
    assert parse("tags[123]") == (Key("tags"), Index(123))


def test_leading_zero_index():
    assert parse("tags[007]") == (Key("tags"), Index(7))


def test_key_with_special_characters():
    assert parse("first name.e-mail") == (Key("first name"), Key("e-mail"))


def test_components_are_immutable():
    key = parse("name")[0]
    with pytest.raises(AttributeError):
        key.name = "other"


# ----- invalid -----


def test_empty():
    _invalid("")


def test_leading_dot():
    _invalid(".name")


def test_trailing_dot():
    _invalid("name.")


def test_trailing_dot_after_index():
    _invalid("tags[0].")


def test_double_dot():
    _invalid("a..b")


def test_leading_index():
    _invalid("[0]")


def test_leading_index_then_key():
    _invalid("[0].name")


def test_dot_after_index():
    _invalid("items[0].name")


def test_empty_index():
    _invalid("tags[]")


def test_negative_index():
    _invalid("tags[-1]")


def test_non_digit_index():
    _invalid("tags[a]")


def test_non_ascii_digit_index():
    _invalid("tags[٣]")


def test_unterminated_index():
    _invalid("tags[1")


def test_nested_bracket():
    _invalid("tags[[1]]")


def test_dot_in_index():
    _invalid("tags[1.2]")


def test_unopened_bracket():
    _invalid("tags]")


def test_dot_after_index_in_middle():
    _invalid("a.b[3].c")


def test_not_a_string():
    with pytest.raises(InvalidKeyPathError):
        parse(None)
