import pytest

from util.sanitization import purge, standard, strip_ansi, to_json_string


def test_strip_ansi_removes_colors_and_carriage_returns():
    assert strip_ansi("\x1b[1;31mFAIL\x1b[0m\r\n\x1b(Bdone") == "FAIL\ndone"


def test_strip_ansi_empty():
    assert strip_ansi("") == ""
    assert strip_ansi(None) == ""


def test_to_json_string():
    assert to_json_string("{'a': 'b'}") == '{"a": "b"}'
    assert to_json_string("") == ""


@pytest.mark.parametrize("raw, expected", [
    ("My--Service_Name", "my-service-name"),
    ("1abc", "a1abc"),
    ("x", "xxy"),
])
def test_standard(raw, expected):
    assert standard(raw) == expected


def test_standard_rejects_non_strings():
    with pytest.raises(TypeError):
        standard(42)


def test_purge():
    assert purge("Cortex-SA_ab12") == "cortexsaab12"
    assert len(purge("x" * 40)) == 24
