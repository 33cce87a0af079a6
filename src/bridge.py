import sys
import logging
import argparse
from dataclasses import dataclass
from codes import ResponseCode, RESPONSE_MESSAGES
from errors import CodecError, BusCallError, UnknownMethod
from bus_message import BusMessage
from bus_protocol import encode_protocol, decode_protocol
from encode_content import encode
from decode_content import decode
from xpath import get_tail_node, get_tail_list_node, get_node_key_value, get_module_name
from utils import YANG_MODEL, DEFAULT_BUS, setup_logging

RPC_PATH = f"/{YANG_MODEL}:sd-bus-call"

RPC_SD_BUS = "sd-bus"
RPC_SD_BUS_SERVICE = "sd-bus-service"
RPC_SD_BUS_OBJPATH = "sd-bus-object-path"
RPC_SD_BUS_INTERFACE = "sd-bus-interface"
RPC_SD_BUS_METHOD = "sd-bus-method"
RPC_SD_BUS_SIGNATURE = "sd-bus-method-signature"
RPC_SD_BUS_ARGUMENTS = "sd-bus-method-arguments"

RPC_SD_BUS_RESULT = "sd-bus-result"
RPC_SD_BUS_RESPONSE = "sd-bus-response"
RPC_SD_BUS_REPLY_SIGNATURE = "sd-bus-signature"

RPC_SD_BUS_METHOD_XPATH = RPC_PATH + "/sd-bus-result[sd-bus-method='%s']/sd-bus-method"
RPC_SD_BUS_RESPONSE_XPATH = RPC_PATH + "/sd-bus-result[sd-bus-method='%s']/sd-bus-response"
RPC_SD_BUS_SIGNATURE_XPATH = RPC_PATH + "/sd-bus-result[sd-bus-method='%s']/sd-bus-signature"

# RPC input leaf -> MethodCall field
INPUT_FIELDS = {
    RPC_SD_BUS: "bus",
    RPC_SD_BUS_SERVICE: "service",
    RPC_SD_BUS_OBJPATH: "object_path",
    RPC_SD_BUS_INTERFACE: "interface",
    RPC_SD_BUS_METHOD: "method",
    RPC_SD_BUS_SIGNATURE: "signature",
    RPC_SD_BUS_ARGUMENTS: "arguments",
}

SYSTEM_BUS = "SYSTEM"
USER_BUS = "USER"

@dataclass
class MethodCall:
    """One bus method call as requested over the RPC."""
    bus: str
    service: str
    object_path: str
    interface: str
    method: str
    signature: str
    arguments: str

class BusTransport:
    """Blocking method-call transport. call() takes a sealed request and returns the sealed reply."""
    def call(self, message):
        raise NotImplementedError

class LoopbackTransport(BusTransport):
    """
    In-process bus dispatching method calls to registered Python handlers.

    Methods:
    - register(service, object_path, interface, method, handler): Serve a method; handler(request) returns the reply message.
    - call(message): Dispatch a request to its handler.
    """
    def __init__(self):
        self.methods = {}

    def register(self, service, object_path, interface, method, handler):
        self.methods[(service, object_path, interface, method)] = handler

    def call(self, message):
        key = (message.destination, message.path, message.interface, message.member)
        handler = self.methods.get(key)
        if handler is None:
            raise UnknownMethod(f"Unknown method {message.interface}.{message.member} on {message.destination} {message.path}")
        message.seal()
        try:
            reply = handler(message)
        except Exception as e:
            raise BusCallError(f"Method {message.interface}.{message.member} failed: {e}") from e
        return reply.seal()

def echo_handler(message):
    """Replies with the values of the request itself."""
    reply = BusMessage(destination=message.destination, path=message.path, interface=message.interface, member=message.member)
    message.rewind()
    return encode(message.signature, decode(message), reply)

class CallHandler:
    """
    Services sd-bus-call RPCs: encodes flat text arguments into a method call,
    sends it over the requested bus and decodes the reply back to flat text.
    Results are dictionaries with a status_code and data, like every other handler response.

    Methods:
    - open_bus(name): Transport for a bus name.
    - execute(call): Run one MethodCall.
    - handle_rpc(values): Run every call described by a list of (xpath, value) RPC input leaves.
    """
    def __init__(self, transports):
        """
        :param transports: Mapping of bus name (SYSTEM or USER) to BusTransport.
        """
        self.transports = transports

    def open_bus(self, name):
        """Anything other than SYSTEM selects the user bus."""
        bus = SYSTEM_BUS if name == SYSTEM_BUS else USER_BUS
        transport = self.transports.get(bus)
        if transport is None:
            raise BusCallError(f"Failed to connect to {bus.lower()} bus")
        return transport

    def execute(self, call) -> dict:
        logging.info(f"sd-bus call {call.service} {call.object_path} {call.interface}.{call.method} "
                     f"signature={call.signature!r} arguments={call.arguments!r} on {call.bus} bus")
        try:
            transport = self.open_bus(call.bus)
            message = BusMessage(destination=call.service, path=call.object_path, interface=call.interface, member=call.method)
            encode_protocol(call.signature, call.arguments, message)
            message.seal()
            reply = transport.call(message)
            response = decode_protocol(reply)
        except CodecError as e:
            logging.error(f"sd-bus call {call.interface}.{call.method} failed: {e}")
            return {"status_code": e.code.value, "data": str(e)}

        logging.info(f"sd-bus reply {call.interface}.{call.method}: {response!r}")
        return {
            "status_code": ResponseCode.SUCCESS.value,
            "data": {"method": call.method, "response": response, "signature": reply.signature},
        }

    def handle_rpc(self, values) -> dict:
        """
        Collects input leaves by name and executes a call each time a full set is present,
        so one RPC may carry several calls. The first failing call fails the RPC.

        :param values: (xpath, value) input leaves of the sd-bus-call RPC.
        :return: status_code and, on success, the (xpath, value) output leaves.
        """
        fields = {}
        output = []
        for xpath, value in values:
            try:
                module = get_module_name(xpath)
                node = get_tail_node(xpath)
            except ValueError as e:
                return {"status_code": ResponseCode.BAD_REQUEST.value, "data": str(e)}
            if module != YANG_MODEL:
                return {"status_code": ResponseCode.BAD_REQUEST.value, "data": f"Input {xpath!r} is not part of {YANG_MODEL}"}
            if node not in INPUT_FIELDS:
                logging.debug(f"Ignoring input {xpath!r}")
                continue

            fields[INPUT_FIELDS[node]] = value
            if len(fields) == len(INPUT_FIELDS):
                result = self.execute(MethodCall(**fields))
                if result["status_code"] != ResponseCode.SUCCESS.value:
                    return result
                output.extend(result_values(result["data"]))
                fields = {}

        if fields:
            missing = sorted(node for node, field in INPUT_FIELDS.items() if field not in fields)
            return {"status_code": ResponseCode.BAD_REQUEST.value, "data": f"Incomplete sd-bus call, missing {', '.join(missing)}"}
        if not output:
            return {"status_code": ResponseCode.BAD_REQUEST.value, "data": "No sd-bus call in request"}
        return {"status_code": ResponseCode.SUCCESS.value, "data": output}

def result_values(result):
    """Output leaves for one successful call."""
    method = result["method"]
    return [
        (RPC_SD_BUS_METHOD_XPATH % method, method),
        (RPC_SD_BUS_RESPONSE_XPATH % method, result["response"]),
        (RPC_SD_BUS_SIGNATURE_XPATH % method, result["signature"]),
    ]

def results_by_method(output):
    """Groups output leaves back into {method: {leaf name: value}}."""
    results = {}
    for xpath, value in output:
        if get_tail_list_node(xpath) != RPC_SD_BUS_RESULT:
            continue
        method = get_node_key_value(xpath, RPC_SD_BUS_RESULT, RPC_SD_BUS_METHOD)
        results.setdefault(method, {})[get_tail_node(xpath)] = value
    return results

def call_values(call):
    """Input leaves describing one MethodCall."""
    return [(f"{RPC_PATH}/{node}", getattr(call, field)) for node, field in INPUT_FIELDS.items()]

def main(argv=None):
    parser = argparse.ArgumentParser(description="Call a bus method with flat text arguments and print the reply. "
                                                 "The method is served by an in-process echo service.")
    parser.add_argument("--bus", type=str, choices=[SYSTEM_BUS, USER_BUS], default=DEFAULT_BUS, help="Bus to call on (default from config)")
    parser.add_argument("--service", type=str, default="net.sysrepo.SDBUSTest", help="Destination service name")
    parser.add_argument("--object-path", type=str, default="/net/sysrepo/SDBUSTest", help="Object path")
    parser.add_argument("--interface", type=str, default="net.sysrepo.SDBUSTest", help="Interface name")
    parser.add_argument("--method", type=str, required=True, help="Method name")
    parser.add_argument("--signature", type=str, default="", help="Signature of the arguments, e.g. 'sa{sv}'")
    parser.add_argument("--arguments", type=str, default="", help="Flat argument text, e.g. '\"name\" 1 \"key\" s \"value\"'")
    args = parser.parse_args(argv)

    setup_logging()

    transport = LoopbackTransport()
    transport.register(args.service, args.object_path, args.interface, args.method, echo_handler)
    handler = CallHandler({SYSTEM_BUS: transport, USER_BUS: transport})

    call = MethodCall(args.bus, args.service, args.object_path, args.interface, args.method, args.signature, args.arguments)
    result = handler.handle_rpc(call_values(call))
    if result["status_code"] != ResponseCode.SUCCESS.value:
        print(f"{RESPONSE_MESSAGES[ResponseCode(result['status_code'])]}: {result['data']}", file=sys.stderr)
        return 1

    for xpath, value in result["data"]:
        print(f"{xpath} = {value}")
    return 0

if __name__ == "__main__":
    sys.exit(main())
