import os
import logging
import yaml

# Load configuration from YAML file
yaml_path = os.environ.get("BUS_BRIDGE_CONFIG", os.path.join(os.path.dirname(os.path.abspath(__file__)), "config.yaml"))

def load_config(path=yaml_path):
    """Loads the YAML configuration. A missing file yields an empty config so every key falls back to its default."""
    if not os.path.exists(path):
        return {}
    with open(path, "r") as y:
        return yaml.safe_load(y) or {}

config = load_config()

# Defaults
VERSION = config.get("version", 1)
YANG_MODEL = config.get("yang_model", "generic-sdbus")
DEFAULT_BUS = config.get("bus", "USER")
MAX_SIGNATURE_LENGTH = config.get("max_signature_length", 255)
MAX_STRUCT_DEPTH = config.get("max_struct_depth", 32)
MAX_ARRAY_DEPTH = config.get("max_array_depth", 32)
MAX_CONTAINER_DEPTH = config.get("max_container_depth", MAX_STRUCT_DEPTH + MAX_ARRAY_DEPTH)
LOG_LEVEL = config.get("log_level", "INFO")
LOG_PATH = config.get("log_path")

# Flat argument text
DELIMITER = ' '
STR_DELIMITER = '"'
ESCAPE = '\\'

TRUE_WORDS = frozenset({"1", "yes", "y", "true", "t", "on"})
FALSE_WORDS = frozenset({"0", "no", "n", "false", "f", "off"})

def setup_logging(level=LOG_LEVEL, log_path=LOG_PATH):
    """
    Configures the root logger for the bridge.

    :param level: Level name or number.
    :param log_path: Optional file to log to; stderr otherwise.
    """
    logger = logging.getLogger()
    logger.setLevel(level)
    handle = logging.FileHandler(log_path) if log_path else logging.StreamHandler()
    # format
    handle.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s"))
    logger.addHandler(handle)
    return logger

def truncate_integer(value, bits, signed):
    """Wraps value to a bits-wide integer: two's complement when signed, modulo otherwise."""
    value &= (1 << bits) - 1
    if signed and value >> (bits - 1):
        value -= 1 << bits
    return value
