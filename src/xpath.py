import re

def get_tail_node(xpath):
    """Name of the last node of xpath, e.g. '/m:rpc/leaf' -> 'leaf'."""
    if "/" not in xpath:
        raise ValueError(f"'/' is not found in {xpath!r}")
    return xpath[xpath.rindex("/") + 1:]

def get_tail_list_node(xpath):
    """Name of the last list node of xpath, e.g. '/m:rpc/result[key='a']/leaf' -> 'result'."""
    if "[" not in xpath:
        raise ValueError(f"No list node in {xpath!r}")
    head = xpath[:xpath.rindex("[")]
    if "/" not in head:
        raise ValueError(f"'/' is not found in {xpath!r}")
    return head[head.rindex("/") + 1:]

def get_node_key_value(xpath, node_name, key_name):
    """
    Value of the key predicate of a named node.

    :param xpath: xpath to be examined.
    :param node_name: Name of the list node holding the key.
    :param key_name: Name of the key.
    :return: Key value, e.g. 'a' for node_name[key_name='a'].
    """
    # Node names may carry a module prefix, e.g. /module:node[key='a']
    pattern = r"(?:^|/)(?:[^/:\[\]]+:)?" + re.escape(node_name) + r"((?:\[[^\]]*\])+)"
    match = re.search(pattern, xpath)
    if match:
        for name, quote, value in re.findall(r"\[\s*([^=\s\]]+)\s*=\s*(['\"])(.*?)\2\s*\]", match.group(1)):
            if name == key_name:
                return value
    raise ValueError(f"Key {key_name!r} of {node_name!r} not found in {xpath!r}")

def get_module_name(xpath):
    """YANG module prefix of xpath, e.g. '/generic-sdbus:sd-bus-call' -> 'generic-sdbus'."""
    if not xpath.startswith("/") or ":" not in xpath:
        raise ValueError(f"No module name in {xpath!r}")
    return xpath[1:xpath.index(":")]
