import re
import logging
from codes import TypeCode, INTEGER_TYPES, BASIC_TYPES, STRING_TYPES, QUOTED_TYPES
from errors import ArgumentTypeMismatch, MalformedSignature
from signature import classify_next, find_matching_close, complete_type_end, validate_signature, check_container_depth
from tokenizer import ArgumentTokenizer
from bus_message import BusMessage
from utils import TRUE_WORDS, FALSE_WORDS, truncate_integer

INTEGER_RE = re.compile(r"[+-]?[0-9]+")
COUNT_RE = re.compile(r"\+?[0-9]+")

def convert_token(tag, token):
    """
    Converts one argument token to the Python value written for a basic type.

    :param tag: TypeCode of a basic type.
    :param token: Token text, already unescaped.
    """
    if tag in INTEGER_TYPES:
        if not INTEGER_RE.fullmatch(token):
            raise ArgumentTypeMismatch(f"{token!r} is not a valid {tag.name}")
        bits, signed = INTEGER_TYPES[tag]
        return truncate_integer(int(token), bits, signed)
    if tag is TypeCode.BOOLEAN:
        if token in TRUE_WORDS:
            return True
        if token in FALSE_WORDS:
            return False
        raise ArgumentTypeMismatch(f"{token!r} is not a valid BOOLEAN")
    if tag is TypeCode.DOUBLE:
        try:
            # float() also takes digit separators and surrounding whitespace
            if "_" in token or token != token.strip():
                raise ValueError(token)
            return float(token)
        except ValueError:
            raise ArgumentTypeMismatch(f"{token!r} is not a valid DOUBLE") from None
    return token

def parse_count(token):
    """Array lengths are non-negative decimal integers."""
    if not COUNT_RE.fullmatch(token):
        raise ArgumentTypeMismatch(f"{token!r} is not a valid array length")
    return int(token)

def encode(signature, arguments, sink=None):
    """
    Writes the values in the flat argument text to sink, typed by signature.

    :param signature: Bus signature of the arguments, e.g. 'sa{sv}'.
    :param arguments: Flat argument text, e.g. '"name" 1 "key" s "value"'.
    :param sink: Message to write to (a new BusMessage when omitted).
    :return: The sink.
    """
    validate_signature(signature)
    if sink is None:
        sink = BusMessage()
    tokens = ArgumentTokenizer(arguments)
    logging.debug(f"Encoding {arguments!r} as {signature!r}")

    encode_signature(sink, signature, tokens)

    if not tokens.at_end():
        logging.warning(f"Ignoring arguments left over after {signature!r}: {tokens.remaining()!r}")
    return sink

def encode_signature(sink, signature, tokens, depth=0):
    """Encodes every complete type of signature, in order."""
    cursor = 0
    while cursor < len(signature):
        cursor = encode_complete_type(sink, signature, cursor, tokens, depth)

def encode_complete_type(sink, signature, cursor, tokens, depth=0):
    """
    Recursively encodes the complete type starting at cursor.

    :param depth: Number of containers open around this type.
    :return: Offset just past the complete type.
    """
    tag = classify_next(signature, cursor)

    # Base case: basic types take one token
    if tag in BASIC_TYPES:
        if tag in QUOTED_TYPES:
            token = tokens.next_string()
        elif tag in STRING_TYPES:
            token = tokens.next_optional_string()
        else:
            token = tokens.next_token()
        sink.append_basic(tag, convert_token(tag, token))
        return cursor + 1

    check_container_depth(depth, signature)

    # Arrays take a count, then count elements of the type the signature gives
    if tag is TypeCode.ARRAY:
        end = complete_type_end(signature, cursor)
        element = signature[cursor + 1:end]
        count = parse_count(tokens.next_token())
        logging.debug(f"Array of {count} {element!r}")
        sink.open_container(tag, element)
        for _ in range(count):
            encode_complete_type(sink, element, 0, tokens, depth + 1)
        sink.close_container()
        return end

    # Structures and dict-entries encode their members in order
    if tag in (TypeCode.STRUCT_BEGIN, TypeCode.DICT_ENTRY_BEGIN):
        close = find_matching_close(signature, cursor)
        contents = signature[cursor + 1:close]
        sink.open_container(TypeCode.STRUCT if tag is TypeCode.STRUCT_BEGIN else TypeCode.DICT_ENTRY, contents)
        encode_signature(sink, contents, tokens, depth + 1)
        sink.close_container()
        return close + 1

    # Variants carry their own signature as the first token
    if tag is TypeCode.VARIANT:
        contents = tokens.next_token()
        if len(validate_signature(contents)) != 1:
            raise MalformedSignature(f"Variant signature {contents!r} is not a single complete type")
        sink.open_container(tag, contents)
        encode_complete_type(sink, contents, 0, tokens, depth + 1)
        sink.close_container()
        return cursor + 1

    raise MalformedSignature(f"Unexpected {tag.value!r} at offset {cursor} of {signature!r}", offset=cursor)
