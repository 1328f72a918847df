import os

RUNTIME_ENV = os.environ.get("RUNTIME_ENV", "production")
IS_DEV = RUNTIME_ENV == "development"

CONFIG_DIR = "/etc/pan-bridge"
CONFIG_FILE = os.environ.get("PAN_BRIDGE_CONFIG", os.path.join(CONFIG_DIR, "config.toml"))

# Seconds before an external tool invocation is abandoned
COMMAND_TIMEOUT = 10

# Virtual ports BlueZ attaches to the bridge itself when a PAN client connects
PAN_PORT_PATTERN = r"^bnep\d+$"
