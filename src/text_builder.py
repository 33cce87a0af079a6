from utils import DELIMITER, STR_DELIMITER, ESCAPE

def quote_string(value):
    """Wraps value in string delimiters, escaping delimiters and backslashes inside it."""
    escaped = value.replace(ESCAPE, ESCAPE * 2).replace(STR_DELIMITER, ESCAPE + STR_DELIMITER)
    return f"{STR_DELIMITER}{escaped}{STR_DELIMITER}"

class TextBuilder:
    """
    Append-only accumulator of delimiter separated tokens.

    Methods:
    - append(token): Add one token.
    - extend(other): Add every token of another builder, in order.
    - getvalue(): The joined text.
    """
    def __init__(self, delimiter=DELIMITER):
        self.delimiter = delimiter
        self._tokens = []

    def append(self, token):
        self._tokens.append(str(token))

    def extend(self, other):
        self._tokens.extend(other.tokens)

    @property
    def tokens(self):
        return tuple(self._tokens)

    def getvalue(self):
        return self.delimiter.join(self._tokens)

    def __len__(self):
        return len(self._tokens)

    def __str__(self):
        return self.getvalue()

    def __repr__(self):
        return f"TextBuilder({self.getvalue()!r})"
