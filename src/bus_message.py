import re
from codes import TypeCode, INTEGER_TYPES, BASIC_TYPES, CONTAINER_TYPES
from errors import SinkError, SourceError, MalformedSignature, UnsupportedType
from signature import split_complete_types, validate_signature, check_dict_entry, check_container_depth

OBJECT_PATH_RE = re.compile(r"/|(/[A-Za-z0-9_]+)+")

# Bracket tags accepted in place of the wire container tags
CONTAINER_ALIASES = {
    TypeCode.STRUCT_BEGIN: TypeCode.STRUCT,
    TypeCode.DICT_ENTRY_BEGIN: TypeCode.DICT_ENTRY,
}

def as_type_code(tag):
    """Normalizes a tag character or TypeCode, mapping bracket tags to their container tags."""
    if not isinstance(tag, TypeCode):
        try:
            tag = TypeCode(tag)
        except ValueError:
            raise UnsupportedType(f"Unknown type {tag!r}") from None
    return CONTAINER_ALIASES.get(tag, tag)

def container_signature(kind, contents):
    """Signature of a whole container value given its kind and contents."""
    if kind is TypeCode.ARRAY:
        return f"a{contents}"
    if kind is TypeCode.STRUCT:
        return f"({contents})"
    if kind is TypeCode.DICT_ENTRY:
        return f"{{{contents}}}"
    return TypeCode.VARIANT.value

class Container:
    """One container value: its kind, its contents signature and the values inside it."""
    def __init__(self, kind, contents):
        self.kind = kind
        self.contents = contents
        self.items = [] # (TypeCode, value) for basic values, Container otherwise

    @property
    def signature(self):
        return container_signature(self.kind, self.contents)

def item_signature(item):
    return item.signature if isinstance(item, Container) else item[0].value

class _WriteFrame:
    """Tracks which types an open container still expects."""
    def __init__(self, container, expected=None, repeat=False):
        self.container = container
        self.expected = expected # None accepts anything
        self.repeat = repeat
        self.index = 0

    def accept(self, signature):
        if self.expected is not None:
            if self.repeat:
                wanted = self.expected[0]
            elif self.index < len(self.expected):
                wanted = self.expected[self.index]
            else:
                raise SinkError(f"Container {self.container.signature!r} is already full, cannot append {signature!r}")
            if signature != wanted:
                raise SinkError(f"Container {self.container.signature!r} expects {wanted!r}, got {signature!r}")
        self.index += 1

    def complete(self):
        return self.expected is None or self.repeat or self.index == len(self.expected)

class BusMessage:
    """
    In-memory typed bus message. Written through the sink operations, then sealed
    and read back through the source operations.

    Methods:
    - append_basic(tag, value): Write one basic value.
    - open_container(tag, contents): Start an array, structure, dict-entry or variant.
    - close_container(): Finish the innermost open container.
    - seal(): End writing and rewind for reading.
    - peek_type(): (TypeCode, contents) of the next value, None at the end of the current container.
    - read_basic(tag): Read one basic value.
    - enter_container(tag, contents): Step into the next container value.
    - exit_container(): Step back out to the enclosing container.
    - at_end(): Whether the current container has no values left.
    - rewind(): Restart reading from the first value.
    """
    def __init__(self, destination=None, path=None, interface=None, member=None):
        self.destination = destination
        self.path = path
        self.interface = interface
        self.member = member
        self.body = Container(None, "")
        self.sealed = False
        self._write_stack = [_WriteFrame(self.body)]
        self._read_stack = []

    @property
    def signature(self):
        return "".join(item_signature(item) for item in self.body.items)

    def __repr__(self):
        return f"BusMessage(member={self.member!r}, signature={self.signature!r}, sealed={self.sealed})"

    ## SINK

    def _check_writable(self):
        if self.sealed:
            raise SinkError("Message is sealed")

    def append_basic(self, tag, value):
        self._check_writable()
        tag = as_type_code(tag)
        if tag not in BASIC_TYPES:
            raise SinkError(f"{tag.value!r} is not a basic type")
        value = self._check_value(tag, value)
        self._write_stack[-1].accept(tag.value)
        self._write_stack[-1].container.items.append((tag, value))

    def _check_value(self, tag, value):
        """Checks a basic value against its type, returning it in stored form."""
        if tag in INTEGER_TYPES:
            bits, signed = INTEGER_TYPES[tag]
            if not isinstance(value, int):
                raise SinkError(f"{tag.name} needs an integer, got {value!r}")
            low, high = (-(1 << (bits - 1)), (1 << (bits - 1)) - 1) if signed else (0, (1 << bits) - 1)
            if not low <= value <= high:
                raise SinkError(f"{value} does not fit {tag.name}")
            return int(value)
        if tag is TypeCode.BOOLEAN:
            if value not in (True, False):
                raise SinkError(f"BOOLEAN needs true or false, got {value!r}")
            return bool(value)
        if tag is TypeCode.DOUBLE:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise SinkError(f"DOUBLE needs a number, got {value!r}")
            return float(value)

        if not isinstance(value, str):
            raise SinkError(f"{tag.name} needs a string, got {value!r}")
        if "\0" in value:
            raise SinkError(f"{tag.name} may not contain NUL")
        if tag is TypeCode.OBJECT_PATH and not OBJECT_PATH_RE.fullmatch(value):
            raise SinkError(f"{value!r} is not a valid object path")
        if tag is TypeCode.SIGNATURE:
            try:
                validate_signature(value)
            except MalformedSignature as e:
                raise SinkError(f"{value!r} is not a valid signature: {e}") from e
        return value

    def open_container(self, tag, contents):
        self._check_writable()
        kind = as_type_code(tag)
        if kind not in CONTAINER_TYPES:
            raise SinkError(f"{kind.value!r} is not a container type")
        try:
            members = split_complete_types(contents)
        except MalformedSignature as e:
            raise SinkError(f"Invalid contents {contents!r}: {e}") from e

        if kind in (TypeCode.ARRAY, TypeCode.VARIANT) and len(members) != 1:
            raise SinkError(f"{kind.name} contents must be one complete type, got {contents!r}")
        if kind is TypeCode.STRUCT and not members:
            raise SinkError("STRUCT contents may not be empty")
        try:
            if kind is TypeCode.DICT_ENTRY:
                check_dict_entry(members, contents)
            check_container_depth(len(self._write_stack) - 1, contents)
        except MalformedSignature as e:
            raise SinkError(str(e)) from e

        container = Container(kind, contents)
        self._write_stack[-1].accept(container.signature)
        self._write_stack[-1].container.items.append(container)
        self._write_stack.append(_WriteFrame(container, members, repeat=kind is TypeCode.ARRAY))

    def close_container(self):
        self._check_writable()
        if len(self._write_stack) == 1:
            raise SinkError("No open container to close")
        frame = self._write_stack[-1]
        if not frame.complete():
            raise SinkError(f"Container {frame.container.signature!r} is missing values")
        self._write_stack.pop()

    def seal(self):
        """Ends writing; the message can be read from the start afterwards."""
        if self.sealed:
            return self
        if len(self._write_stack) != 1:
            raise SinkError(f"{len(self._write_stack) - 1} container(s) still open")
        self.sealed = True
        self.rewind()
        return self

    ## SOURCE

    def rewind(self):
        if not self.sealed:
            raise SourceError("Message is not sealed")
        self._read_stack = [[self.body, 0]]

    def _current(self):
        if not self.sealed:
            raise SourceError("Message is not sealed")
        container, index = self._read_stack[-1]
        if index >= len(container.items):
            return None
        return container.items[index]

    def at_end(self):
        return self._current() is None

    def peek_type(self):
        item = self._current()
        if item is None:
            return None
        if isinstance(item, Container):
            return item.kind, item.contents
        return item[0], None

    def read_basic(self, tag=None):
        item = self._current()
        if item is None:
            raise SourceError("No values left in container")
        if isinstance(item, Container):
            raise SourceError(f"Next value is a {item.kind.name}, not a basic type")
        if tag is not None and as_type_code(tag) is not item[0]:
            raise SourceError(f"Next value is {item[0].name}, not {as_type_code(tag).name}")
        self._read_stack[-1][1] += 1
        return item[1]

    def enter_container(self, tag=None, contents=None):
        item = self._current()
        if not isinstance(item, Container):
            raise SourceError("Next value is not a container")
        if tag is not None and as_type_code(tag) is not item.kind:
            raise SourceError(f"Next value is {item.kind.name}, not {as_type_code(tag).name}")
        if contents is not None and contents != item.contents:
            raise SourceError(f"Next container holds {item.contents!r}, not {contents!r}")
        self._read_stack[-1][1] += 1
        self._read_stack.append([item, 0])

    def exit_container(self):
        if not self.sealed:
            raise SourceError("Message is not sealed")
        if len(self._read_stack) == 1:
            raise SourceError("Not inside a container")
        container, index = self._read_stack[-1]
        # Arrays may be left early, other containers must be read to their end
        if container.kind is not TypeCode.ARRAY and index < len(container.items):
            raise SourceError(f"Container {container.signature!r} has unread values")
        self._read_stack.pop()
