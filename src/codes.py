from enum import Enum

class ResponseCode(Enum):
    """Enumeration of bridge response codes."""
    SUCCESS = 200
    BAD_REQUEST = 4000
    MALFORMED_SIGNATURE = 4001
    ARGUMENT_UNDERFLOW = 4002
    ARGUMENT_TYPE_MISMATCH = 4003
    UNTERMINATED_STRING = 4004
    UNSUPPORTED_TYPE = 4005
    METHOD_NOT_FOUND = 4041
    BUS_ERROR = 5000
    MESSAGE_ERROR = 5001

RESPONSE_MESSAGES = {
    ResponseCode.SUCCESS: "Operation successful",
    ResponseCode.BAD_REQUEST: "Bad request",
    ResponseCode.MALFORMED_SIGNATURE: "Malformed signature",
    ResponseCode.ARGUMENT_UNDERFLOW: "Not enough arguments for signature",
    ResponseCode.ARGUMENT_TYPE_MISMATCH: "Argument does not match its type",
    ResponseCode.UNTERMINATED_STRING: "Unterminated string argument",
    ResponseCode.UNSUPPORTED_TYPE: "Unsupported type",
    ResponseCode.METHOD_NOT_FOUND: "Method does not exist",
    ResponseCode.BUS_ERROR: "Bus call failed",
    ResponseCode.MESSAGE_ERROR: "Message error",
}

class TypeCode(Enum):
    """Type tag characters of a bus signature."""
    BYTE = 'y'
    BOOLEAN = 'b'
    INT16 = 'n'
    UINT16 = 'q'
    INT32 = 'i'
    UINT32 = 'u'
    INT64 = 'x'
    UINT64 = 't'
    DOUBLE = 'd'
    STRING = 's'
    OBJECT_PATH = 'o'
    SIGNATURE = 'g'
    UNIX_FD = 'h'
    ARRAY = 'a'
    VARIANT = 'v'
    STRUCT = 'r' # reported by a message source, never valid in a signature
    DICT_ENTRY = 'e' # same
    STRUCT_BEGIN = '('
    STRUCT_END = ')'
    DICT_ENTRY_BEGIN = '{'
    DICT_ENTRY_END = '}'

# Integer types mapped to (bit width, signed)
INTEGER_TYPES = {
    TypeCode.BYTE: (8, False),
    TypeCode.INT16: (16, True),
    TypeCode.UINT16: (16, False),
    TypeCode.INT32: (32, True),
    TypeCode.UINT32: (32, False),
    TypeCode.INT64: (64, True),
    TypeCode.UINT64: (64, False),
    TypeCode.UNIX_FD: (32, True),
}

STRING_TYPES = frozenset({TypeCode.STRING, TypeCode.OBJECT_PATH, TypeCode.SIGNATURE})

# Only plain strings travel quoted in the flat argument text
QUOTED_TYPES = frozenset({TypeCode.STRING})

BASIC_TYPES = frozenset(INTEGER_TYPES) | STRING_TYPES | {TypeCode.BOOLEAN, TypeCode.DOUBLE}

CONTAINER_TYPES = frozenset({TypeCode.ARRAY, TypeCode.VARIANT, TypeCode.STRUCT, TypeCode.DICT_ENTRY})

# Opening bracket -> (container type, closing bracket)
BRACKETS = {
    TypeCode.STRUCT_BEGIN.value: (TypeCode.STRUCT, TypeCode.STRUCT_END.value),
    TypeCode.DICT_ENTRY_BEGIN.value: (TypeCode.DICT_ENTRY, TypeCode.DICT_ENTRY_END.value),
}

CLOSING_BRACKETS = frozenset(close for _, close in BRACKETS.values())
