from bus_message import BusMessage
from encode_content import encode
from decode_content import decode

def encode_protocol(signature, arguments, message=None):
    """Encodes flat argument text into a bus message typed by signature."""
    return encode(signature, arguments, message if message is not None else BusMessage())

def decode_protocol(message):
    """Decodes a bus message into flat text. The message is sealed first if still being written."""
    if not message.sealed:
        message.seal()
    return decode(message)

def roundtrip(signature, arguments):
    """Encodes arguments into a fresh message and decodes it straight back."""
    return decode_protocol(encode_protocol(signature, arguments))
