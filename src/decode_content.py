import logging
from codes import TypeCode, INTEGER_TYPES, BASIC_TYPES, CONTAINER_TYPES
from errors import SourceError, UnsupportedType
from bus_message import as_type_code
from signature import check_container_depth
from text_builder import TextBuilder, quote_string

class Renderer:
    """
    Output strategy driven by the decoder while it walks a message. Buffers are
    created by the renderer and handed back to it, so a renderer may use any
    accumulator it likes.

    Methods:
    - new_buffer(): Fresh, empty accumulator.
    - basic(buffer, tag, value): Add one basic value.
    - array(buffer, contents, count, members): Add an array whose rendered elements are in members.
    - struct(buffer, tag, contents, members): Add a structure or dict-entry.
    - variant(buffer, contents, member): Add a variant holding one rendered value of type contents.
    - render(buffer): Final output for a buffer.
    """
    def new_buffer(self):
        raise NotImplementedError

    def basic(self, buffer, tag, value):
        raise NotImplementedError

    def array(self, buffer, contents, count, members):
        raise NotImplementedError

    def struct(self, buffer, tag, contents, members):
        raise NotImplementedError

    def variant(self, buffer, contents, member):
        raise NotImplementedError

    def render(self, buffer):
        raise NotImplementedError

class TextRenderer(Renderer):
    """Renders the flat text form that encode() reads back."""
    def new_buffer(self):
        return TextBuilder()

    def basic(self, buffer, tag, value):
        if tag is TypeCode.BOOLEAN:
            buffer.append("true" if value else "false")
        elif tag in INTEGER_TYPES:
            buffer.append(str(int(value)))
        elif tag is TypeCode.DOUBLE:
            buffer.append(format(value, "g"))
        elif tag is TypeCode.STRING:
            buffer.append(quote_string(value))
        else:
            # Object paths and signatures go unquoted unless empty
            buffer.append(value if value else quote_string(value))

    def array(self, buffer, contents, count, members):
        buffer.append(str(count))
        if count:
            buffer.extend(members)

    def struct(self, buffer, tag, contents, members):
        buffer.extend(members)

    def variant(self, buffer, contents, member):
        buffer.append(contents)
        buffer.extend(member)

    def render(self, buffer):
        return buffer.getvalue()

def decode(source, renderer=None):
    """
    Renders every remaining value of source.

    :param source: Message to read, positioned where decoding should start.
    :param renderer: Output strategy, TextRenderer by default.
    :return: Rendered output.
    """
    renderer = renderer or TextRenderer()
    buffer = renderer.new_buffer()
    logging.debug(f"Decoding {source!r}")
    while decode_into(source, buffer, renderer):
        pass
    return renderer.render(buffer)

def decode_one(source, renderer=None):
    """
    Renders exactly one complete type from source.

    :return: Rendered value, or None when the current container has no values left.
    """
    renderer = renderer or TextRenderer()
    buffer = renderer.new_buffer()
    if not decode_into(source, buffer, renderer):
        return None
    return renderer.render(buffer)

def decode_into(source, buffer, renderer, depth=0):
    """
    Recursively decodes one complete type from source into buffer.

    :param depth: Number of containers entered above this value.
    :return: False when the current container is already at its end, True otherwise.
    """
    peeked = source.peek_type()
    if peeked is None:
        return False
    tag, contents = peeked
    try:
        tag = as_type_code(tag)
    except UnsupportedType:
        raise UnsupportedType(f"Unsupported type {tag!r} in message") from None
    if tag in CONTAINER_TYPES:
        check_container_depth(depth, contents)

    # Base case: basic types
    if tag in BASIC_TYPES:
        renderer.basic(buffer, tag, source.read_basic(tag))

    elif tag is TypeCode.VARIANT:
        source.enter_container(tag, contents)
        member = renderer.new_buffer()
        if not decode_into(source, member, renderer, depth + 1):
            raise SourceError("Variant holds no value")
        renderer.variant(buffer, contents, member)
        source.exit_container()

    elif tag in (TypeCode.STRUCT, TypeCode.DICT_ENTRY):
        source.enter_container(tag, contents)
        members = renderer.new_buffer()
        while decode_into(source, members, renderer, depth + 1):
            pass
        renderer.struct(buffer, tag, contents, members)
        source.exit_container()

    elif tag is TypeCode.ARRAY:
        source.enter_container(tag, contents)
        members = renderer.new_buffer()
        count = 0
        while decode_into(source, members, renderer, depth + 1):
            count += 1
        logging.debug(f"Decoded array of {count} {contents!r}")
        renderer.array(buffer, contents, count, members)
        source.exit_container()

    else:
        raise UnsupportedType(f"Unsupported type {tag.value!r} in message")

    return True
