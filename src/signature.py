from codes import TypeCode, BASIC_TYPES, BRACKETS, CLOSING_BRACKETS
from errors import MalformedSignature, UnbalancedBrackets, UnsupportedType
from utils import MAX_SIGNATURE_LENGTH, MAX_STRUCT_DEPTH, MAX_ARRAY_DEPTH, MAX_CONTAINER_DEPTH

# Tags that may appear inside a signature; 'r' and 'e' only name containers on the wire
SIGNATURE_TAGS = frozenset(tag.value for tag in TypeCode) - {TypeCode.STRUCT.value, TypeCode.DICT_ENTRY.value}

def classify_next(signature, cursor):
    """
    Classifies the tag character at cursor.

    :param signature: Signature text.
    :param cursor: Offset of the character to classify.
    :return: TypeCode of the character.
    """
    if cursor >= len(signature):
        raise MalformedSignature(f"Unexpected end of signature {signature!r}", offset=cursor)
    char = signature[cursor]
    if char not in SIGNATURE_TAGS:
        raise UnsupportedType(f"Unknown type {char!r} in signature {signature!r}", offset=cursor)
    return TypeCode(char)

def find_matching_close(signature, cursor):
    """
    Finds the bracket closing the structure or dict-entry opened at cursor.

    :param signature: Signature text.
    :param cursor: Offset of an opening bracket.
    :return: Offset of the matching closing bracket.
    """
    if cursor >= len(signature) or signature[cursor] not in BRACKETS:
        raise MalformedSignature(f"No opening bracket at offset {cursor} of {signature!r}", offset=cursor)

    expected = []
    for offset in range(cursor, len(signature)):
        char = signature[offset]
        if char in BRACKETS:
            expected.append(BRACKETS[char][1])
        elif char in CLOSING_BRACKETS:
            if expected.pop() != char:
                raise UnbalancedBrackets(f"Mismatched {char!r} at offset {offset} of {signature!r}", offset=offset)
            if not expected:
                if offset - cursor + 1 > MAX_SIGNATURE_LENGTH:
                    raise MalformedSignature(f"Container in {signature!r} exceeds {MAX_SIGNATURE_LENGTH} characters", offset=cursor)
                return offset

    raise UnbalancedBrackets(f"Unterminated {signature[cursor]!r} at offset {cursor} of {signature!r}", offset=cursor)

def complete_type_end(signature, cursor=0, array_depth=0, struct_depth=0):
    """
    Walks one complete type starting at cursor, checking it as it goes.

    :return: Offset just past the complete type.
    """
    tag = classify_next(signature, cursor)

    if tag in BASIC_TYPES or tag is TypeCode.VARIANT:
        return cursor + 1

    if tag is TypeCode.ARRAY:
        if array_depth + 1 > MAX_ARRAY_DEPTH:
            raise MalformedSignature(f"Arrays nested deeper than {MAX_ARRAY_DEPTH} in {signature!r}", offset=cursor)
        if cursor + 1 >= len(signature):
            raise MalformedSignature(f"Array without element type in {signature!r}", offset=cursor)
        return complete_type_end(signature, cursor + 1, array_depth + 1, struct_depth)

    if tag in (TypeCode.STRUCT_BEGIN, TypeCode.DICT_ENTRY_BEGIN):
        if struct_depth + 1 > MAX_STRUCT_DEPTH:
            raise MalformedSignature(f"Containers nested deeper than {MAX_STRUCT_DEPTH} in {signature!r}", offset=cursor)
        close = find_matching_close(signature, cursor)
        members = _split(signature[cursor + 1:close], array_depth, struct_depth + 1)
        if not members:
            raise MalformedSignature(f"Empty container at offset {cursor} of {signature!r}", offset=cursor)
        if tag is TypeCode.DICT_ENTRY_BEGIN:
            check_dict_entry(members, signature)
        return close + 1

    raise MalformedSignature(f"Unexpected {tag.value!r} at offset {cursor} of {signature!r}", offset=cursor)

def check_container_depth(depth, signature=""):
    """
    Fails when opening one more container would exceed the total nesting limit.

    Variants take their contents from the data, so nesting through them is only
    bounded here and not by the signature checks above.

    :param depth: Number of containers already open around the new one.
    """
    if depth >= MAX_CONTAINER_DEPTH:
        raise MalformedSignature(f"Containers nested deeper than {MAX_CONTAINER_DEPTH} in {signature!r}")

def check_dict_entry(members, signature=""):
    """Dict-entries hold exactly a basic key type and one value type."""
    if len(members) != 2:
        raise MalformedSignature(f"Dict entry needs exactly 2 types, got {len(members)} in {signature!r}")
    if len(members[0]) != 1 or TypeCode(members[0]) not in BASIC_TYPES:
        raise MalformedSignature(f"Dict entry key {members[0]!r} is not a basic type in {signature!r}")

def _split(signature, array_depth, struct_depth):
    members = []
    cursor = 0
    while cursor < len(signature):
        end = complete_type_end(signature, cursor, array_depth, struct_depth)
        members.append(signature[cursor:end])
        cursor = end
    return members

def split_complete_types(signature):
    """Splits a signature into its top-level complete types, e.g. 'sa{sv}(ii)' -> ['s', 'a{sv}', '(ii)']."""
    return _split(signature, 0, 0)

def validate_signature(signature):
    """
    Checks a whole signature against the grammar and the length and nesting limits.

    :return: List of its top-level complete types.
    """
    if len(signature) > MAX_SIGNATURE_LENGTH:
        raise MalformedSignature(f"Signature longer than {MAX_SIGNATURE_LENGTH} characters")
    return split_complete_types(signature)

def element_type(signature, cursor):
    """Returns the element type of the array whose tag sits at cursor."""
    return signature[cursor + 1:complete_type_end(signature, cursor)]
