import sys
import os
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from bus_protocol import encode_protocol, decode_protocol, roundtrip
from errors import MalformedSignature, ArgumentUnderflow

# Signatures and arguments served by the sd-bus test service
CORPUS = [
    ("s", '"str_arg"'),
    ("x", "15"),
    ("d", "1.1532"),
    ("v", "au 1 14460"),
    ("a{ss}", '2 "str_arg" "str_arg" "str_arg" "str_arg"'),
    ("a(ssso)", '2 "str_arg" "str_arg" "str_arg" /test/test "str_arg" "str_arg" "str_arg" /test/test'),
    ("asssbb", '4 "str_arg" "str_arg" "str_arg" "str_arg" "str_arg" "str_arg" true false'),
    ("sayssusaia(sv)", '"str_arg" 2 10 20 "str_arg" "str_arg" 1000 "str_arg" 3 1 2 3 3 "str_arg" s "str_arg" "str_arg" u 1000 "str_arg" b true'),
    ("ssa(sv)a(sa(sv))", '"str_arg" "str_arg" 2 "str_arg" au 1 14460 "str_arg" s "str_arg" 2 "str_arg" 3 "str_arg" y 1 "str_arg" u 2 "str_arg" x 3 "str_arg" 0'),
]


@pytest.mark.parametrize("signature,arguments", CORPUS)
def test_roundtrip_is_identity(signature, arguments):
    """Encoding canonical text and decoding it back reproduces it byte for byte."""
    assert roundtrip(signature, arguments) == arguments


@pytest.mark.parametrize("signature,arguments", CORPUS)
def test_message_signature_matches(signature, arguments):
    assert encode_protocol(signature, arguments).signature == signature


@pytest.mark.parametrize("signature,arguments,expected", [
    ("b", "yes", "true"),
    ("bb", "on off", "true false"),
    ("y", "300", "44"),
    ("n", "40000", "-25536"),
    ("d", "2.50", "2.5"),
    ("s", '"a\\b"', '"ab"'),
    ("as", '  2   "a"   "b"  ', '2 "a" "b"'),
])
def test_roundtrip_normalizes(signature, arguments, expected):
    """Non-canonical input comes back in canonical form."""
    assert roundtrip(signature, arguments) == expected


def test_escaped_strings_survive():
    text = r'"a \"b\" \\c" "x y"'
    assert roundtrip("ss", text) == text


def test_empty_array_is_single_token():
    assert roundtrip("as", "0") == "0"
    assert roundtrip("a{sv}s", '0 "x"') == '0 "x"'


def test_unterminated_struct():
    with pytest.raises(MalformedSignature):
        roundtrip("(ss", '"a" "b"')


def test_too_few_arguments():
    with pytest.raises(ArgumentUnderflow):
        roundtrip("a(ssso)", '1 "a" "b"')


def test_decode_seals_message():
    message = encode_protocol("u", "7")
    assert not message.sealed
    assert decode_protocol(message) == "7"
    assert message.sealed


def test_empty_signature_value_survives():
    assert roundtrip("gs", '"" "x"') == '"" "x"'
    assert roundtrip("og", '"/test/test" "a{sv}"') == "/test/test a{sv}"


def test_variant_nesting_is_bounded():
    with pytest.raises(MalformedSignature):
        roundtrip("v", "v " * 2000 + "u 1")
