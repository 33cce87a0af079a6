import unittest
import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from codes import TypeCode
from errors import (MalformedSignature, UnsupportedType, ArgumentUnderflow, ArgumentTypeMismatch,
                    UnterminatedString, SinkError)
from bus_message import BusMessage
from encode_content import encode, convert_token, parse_count

class RecordingSink:
    """Sink that only records the calls made to it."""
    def __init__(self):
        self.calls = []

    def append_basic(self, tag, value):
        self.calls.append(("basic", tag, value))

    def open_container(self, tag, contents):
        self.calls.append(("open", tag, contents))

    def close_container(self):
        self.calls.append(("close",))

def read_one(signature, arguments):
    """Encodes a single basic value and reads it back."""
    message = encode(signature, arguments).seal()
    return message.read_basic(signature)

class TestConvertToken(unittest.TestCase):
    def test_integers_wrap_to_width(self):
        """Test out-of-range integers are truncated to their width."""
        self.assertEqual(convert_token(TypeCode.BYTE, "256"), 0)
        self.assertEqual(convert_token(TypeCode.BYTE, "-1"), 255)
        self.assertEqual(convert_token(TypeCode.INT16, "32768"), -32768)
        self.assertEqual(convert_token(TypeCode.UINT16, "-1"), 65535)
        self.assertEqual(convert_token(TypeCode.INT32, "4294967295"), -1)
        self.assertEqual(convert_token(TypeCode.UINT64, "-1"), 2 ** 64 - 1)
        self.assertEqual(convert_token(TypeCode.INT64, "+15"), 15)

    def test_integer_mismatch(self):
        for token in ("abc", "1.5", "0x10", "1_000", "", "--1", "12\n", "\t12"):
            with self.assertRaises(ArgumentTypeMismatch):
                convert_token(TypeCode.INT32, token)

    def test_booleans(self):
        """Test the accepted boolean words, case-sensitively."""
        for token in ("1", "yes", "y", "true", "t", "on"):
            self.assertIs(convert_token(TypeCode.BOOLEAN, token), True)
        for token in ("0", "no", "n", "false", "f", "off"):
            self.assertIs(convert_token(TypeCode.BOOLEAN, token), False)
        for token in ("True", "FALSE", "2", "maybe"):
            with self.assertRaises(ArgumentTypeMismatch):
                convert_token(TypeCode.BOOLEAN, token)

    def test_double(self):
        self.assertEqual(convert_token(TypeCode.DOUBLE, "1.1532"), 1.1532)
        self.assertEqual(convert_token(TypeCode.DOUBLE, "1.5e3"), 1500.0)
        self.assertEqual(convert_token(TypeCode.DOUBLE, "-2"), -2.0)
        for token in ("abc", "1_0", "1,5", "1.5\n"):
            with self.assertRaises(ArgumentTypeMismatch):
                convert_token(TypeCode.DOUBLE, token)

    def test_strings_pass_through(self):
        self.assertEqual(convert_token(TypeCode.OBJECT_PATH, "/test/test"), "/test/test")

    def test_parse_count(self):
        self.assertEqual(parse_count("0"), 0)
        self.assertEqual(parse_count("12"), 12)
        for token in ("-1", "x", "1.0", "2\n"):
            with self.assertRaises(ArgumentTypeMismatch):
                parse_count(token)

class TestEncodeBasic(unittest.TestCase):
    def test_scalars(self):
        self.assertEqual(read_one("s", '"str_arg"'), "str_arg")
        self.assertEqual(read_one("x", "15"), 15)
        self.assertEqual(read_one("d", "1.1532"), 1.1532)
        self.assertEqual(read_one("y", "10"), 10)
        self.assertEqual(read_one("h", "3"), 3)
        self.assertIs(read_one("b", "true"), True)
        self.assertEqual(read_one("o", "/test/test"), "/test/test")
        self.assertEqual(read_one("g", "a{sv}"), "a{sv}")

    def test_string_with_escapes(self):
        self.assertEqual(read_one("s", r'"a \"quoted\" word"'), 'a "quoted" word')

    def test_path_and_signature_may_be_quoted(self):
        """Test object paths and signatures are read bare or quoted."""
        self.assertEqual(read_one("o", '"/test/test"'), "/test/test")
        self.assertEqual(read_one("g", '"a{sv}"'), "a{sv}")
        self.assertEqual(read_one("g", '""'), "")

    def test_string_needs_quotes(self):
        with self.assertRaises(ArgumentTypeMismatch):
            encode("s", "bare")

    def test_mismatch(self):
        with self.assertRaises(ArgumentTypeMismatch):
            encode("i", "abc")
        with self.assertRaises(ArgumentTypeMismatch):
            encode("b", "True")

    def test_underflow(self):
        """Test fewer tokens than the signature demands."""
        with self.assertRaises(ArgumentUnderflow):
            encode("ss", '"a"')
        with self.assertRaises(ArgumentUnderflow):
            encode("as", "2 \"a\"")
        with self.assertRaises(ArgumentUnderflow):
            encode("v", "")

    def test_unterminated(self):
        with self.assertRaises(UnterminatedString):
            encode("s", '"abc')

    def test_sink_error_passes_through(self):
        with self.assertRaises(SinkError):
            encode("o", "not_a_path")

    def test_trailing_arguments_logged(self):
        """Test leftover arguments are ignored with a warning."""
        with self.assertLogs(level="WARNING") as logs:
            message = encode("s", '"a" extra')
        self.assertEqual(message.signature, "s")
        self.assertIn("extra", logs.output[0])

    def test_empty_signature(self):
        self.assertEqual(encode("", "").signature, "")

class TestEncodeContainers(unittest.TestCase):
    def test_array(self):
        message = encode("ay", "2 10 20").seal()
        message.enter_container("a", "y")
        self.assertEqual([message.read_basic("y"), message.read_basic("y")], [10, 20])
        self.assertTrue(message.at_end())

    def test_empty_array(self):
        """Test count 0 yields an empty container."""
        message = encode("asu", "0 7").seal()
        self.assertEqual(message.signature, "asu")
        message.enter_container("a", "s")
        self.assertTrue(message.at_end())
        message.exit_container()
        self.assertEqual(message.read_basic("u"), 7)

    def test_bad_count(self):
        with self.assertRaises(ArgumentTypeMismatch):
            encode("as", "-1")
        with self.assertRaises(ArgumentTypeMismatch):
            encode("as", '"a"')

    def test_dict_array(self):
        message = encode("a{ss}", '2 "a" "b" "c" "d"')
        self.assertEqual(message.signature, "a{ss}")

    def test_variant(self):
        message = encode("v", "au 1 14460").seal()
        self.assertEqual(message.peek_type(), (TypeCode.VARIANT, "au"))
        message.enter_container("v", "au")
        message.enter_container("a", "u")
        self.assertEqual(message.read_basic("u"), 14460)

    def test_variant_signature_must_be_one_type(self):
        with self.assertRaises(MalformedSignature):
            encode("v", 'ss "a" "b"')
        with self.assertRaises(UnsupportedType):
            encode("v", "z 1")
        with self.assertRaises(MalformedSignature):
            encode("v", "a( 1")

    def test_nested_variants_limited(self):
        """Test variants nested through the arguments stop at the total depth limit."""
        message = encode("v", "v " * 63 + "u 1")
        self.assertEqual(message.signature, "v")
        with self.assertRaises(MalformedSignature):
            encode("v", "v " * 64 + "u 1")
        with self.assertRaises(MalformedSignature):
            encode("v", "v " * 2000 + "u 1")

    def test_nesting_checked_before_sink(self):
        sink = RecordingSink()
        with self.assertRaises(MalformedSignature):
            encode("v", "v " * 2000 + "u 1", sink)
        self.assertEqual(len(sink.calls), 64)

    def test_container_call_order(self):
        """Test containers are opened and closed around their members."""
        sink = RecordingSink()
        encode("a(si)v", '1 "x" 2 b on', sink)
        self.assertEqual(sink.calls, [
            ("open", TypeCode.ARRAY, "(si)"),
            ("open", TypeCode.STRUCT, "si"),
            ("basic", TypeCode.STRING, "x"),
            ("basic", TypeCode.INT32, 2),
            ("close",),
            ("close",),
            ("open", TypeCode.VARIANT, "b"),
            ("basic", TypeCode.BOOLEAN, True),
            ("close",),
        ])

    def test_empty_array_still_opened(self):
        sink = RecordingSink()
        encode("a{sv}", "0", sink)
        self.assertEqual(sink.calls, [("open", TypeCode.ARRAY, "{sv}"), ("close",)])

    def test_malformed_signature_writes_nothing(self):
        """Test a malformed signature fails before any write."""
        for signature in ("s(ss", "sa{sss}", "s()", "sz"):
            sink = RecordingSink()
            with self.assertRaises(MalformedSignature):
                encode(signature, '"a" "b" "c" "d"', sink)
            self.assertEqual(sink.calls, [])

    def test_nested_struct_array(self):
        message = encode("a(sa(sv))", '2 "a" 1 "b" y 1 "c" 0')
        self.assertEqual(message.signature, "a(sa(sv))")

    def test_writes_into_given_message(self):
        message = BusMessage(member="Test1")
        self.assertIs(encode("s", '"x"', message), message)

if __name__ == "__main__":
    unittest.main()
