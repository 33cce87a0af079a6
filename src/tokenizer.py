from errors import ArgumentUnderflow, ArgumentTypeMismatch, UnterminatedString
from utils import DELIMITER, STR_DELIMITER, ESCAPE

def next_token(arguments, cursor, quoted=False):
    """
    Reads the next argument token from the flat argument text.

    Bare tokens run to the next unescaped delimiter. Quoted tokens must start with
    the string delimiter and run to the next unescaped one. In both modes a
    backslash is dropped and the character after it is kept literally.

    :param arguments: Flat argument text.
    :param cursor: Offset to start reading from.
    :param quoted: Read a quoted string token instead of a bare one.
    :return: (token, consumed) where consumed also counts one trailing delimiter.
    """
    length = len(arguments)
    position = cursor
    while position < length and arguments[position] == DELIMITER:
        position += 1
    if position >= length:
        raise ArgumentUnderflow(f"Ran out of arguments at offset {position}", offset=position)

    if quoted:
        if arguments[position] != STR_DELIMITER:
            raise ArgumentTypeMismatch(f"Expected a quoted string at offset {position}, got {arguments[position:]!r}", offset=position)
        token, position = _read_quoted(arguments, position + 1)
    else:
        token, position = _read_bare(arguments, position)

    if position < length and arguments[position] == DELIMITER:
        position += 1
    return token, position - cursor

def _read_bare(arguments, position):
    chars = []
    while position < len(arguments):
        char = arguments[position]
        if char == ESCAPE and position + 1 < len(arguments):
            chars.append(arguments[position + 1])
            position += 2
            continue
        if char == DELIMITER:
            break
        chars.append(char)
        position += 1
    return "".join(chars), position

def _read_quoted(arguments, position):
    start = position - 1
    chars = []
    while position < len(arguments):
        char = arguments[position]
        if char == ESCAPE and position + 1 < len(arguments):
            chars.append(arguments[position + 1])
            position += 2
            continue
        if char == STR_DELIMITER:
            return "".join(chars), position + 1
        chars.append(char)
        position += 1
    raise UnterminatedString(f"String opened at offset {start} is never closed", offset=start)

class ArgumentTokenizer:
    """
    Cursor over one call's flat argument text.

    Methods:
    - next_token(): Next bare token.
    - next_string(): Next quoted string token.
    - next_optional_string(): Next token, quoted or bare.
    - at_end(): True when only delimiters remain.
    - remaining(): Unconsumed text.
    """
    def __init__(self, arguments):
        self.arguments = arguments or ""
        self.cursor = 0

    def _take(self, quoted):
        token, consumed = next_token(self.arguments, self.cursor, quoted)
        self.cursor += consumed
        return token

    def next_token(self):
        return self._take(False)

    def next_string(self):
        return self._take(True)

    def next_optional_string(self):
        """Next token, read as a quoted string when it starts with the string delimiter."""
        return self._take(self.remaining().lstrip(DELIMITER).startswith(STR_DELIMITER))

    def at_end(self):
        return not self.remaining().strip(DELIMITER)

    def remaining(self):
        return self.arguments[self.cursor:]
