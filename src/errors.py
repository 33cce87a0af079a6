from codes import ResponseCode

class CodecError(Exception):
    """
    Base class for every failure raised while turning flat argument text into a
    bus message or a bus message back into text.

    :param message: Human-readable description.
    :param offset: Position in the signature or argument text where the problem was found, if known.
    """
    code = ResponseCode.BAD_REQUEST

    def __init__(self, message, offset=None):
        super().__init__(message)
        self.offset = offset

class MalformedSignature(CodecError):
    """Bad tag, unmatched bracket, wrong dict-entry arity or a signature over the limits."""
    code = ResponseCode.MALFORMED_SIGNATURE

class UnbalancedBrackets(MalformedSignature):
    pass

class UnsupportedType(MalformedSignature):
    """Tag character outside the recognized alphabet."""
    code = ResponseCode.UNSUPPORTED_TYPE

class ArgumentUnderflow(CodecError):
    """The argument text ran out before the signature did."""
    code = ResponseCode.ARGUMENT_UNDERFLOW

class ArgumentTypeMismatch(CodecError):
    """An argument token cannot be converted to the type the signature asks for."""
    code = ResponseCode.ARGUMENT_TYPE_MISMATCH

class UnterminatedString(CodecError):
    code = ResponseCode.UNTERMINATED_STRING

class MessageError(CodecError):
    """Failure reported by the message a value is written to or read from."""
    code = ResponseCode.MESSAGE_ERROR

class SinkError(MessageError):
    pass

class SourceError(MessageError):
    pass

class BusCallError(CodecError):
    """The bus could not deliver a method call or returned an error reply."""
    code = ResponseCode.BUS_ERROR

class UnknownMethod(BusCallError):
    code = ResponseCode.METHOD_NOT_FOUND
