import logging
import os
import sys

from pan_bridge.constants import IS_DEV


def supports_color():
    """
    Returns True if the running system's terminal supports color, and False otherwise.
    """
    # Check for explicit override
    if os.environ.get("FORCE_COLOR", "").lower() in ("1", "true", "yes"):
        return True
    if os.environ.get("NO_COLOR", "").lower() in ("1", "true", "yes"):
        return False

    plat = sys.platform
    supported_platform = plat != "Pocket PC" and (
        plat != "win32" or "ANSICON" in os.environ
    )

    is_a_tty = hasattr(sys.stdout, "isatty") and sys.stdout.isatty()

    # IDE consoles often support color even when not a TTY
    ide_support = any(
        env in os.environ for env in ["PYCHARM_HOSTED", "VSCODE_PID", "TERM_PROGRAM"]
    )

    return supported_platform and (is_a_tty or ide_support)


USE_COLOR = supports_color()


# https://talyian.github.io/ansicolors/
class CustomFormatter(logging.Formatter):
    """Custom colored logging formatter with support for terminal colors"""

    red = "\x1b[31;20m"
    white = "\x1b[38;5;255m"
    dark_grey = "\x1b[38;5;244m"
    orange = "\x1b[38;5;208m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"
    fmt = (
        "%(asctime)s | %(levelname)8s | %(name)s: %(message)s (%(filename)s:%(lineno)d)"
    )

    USE_COLOR = USE_COLOR

    FORMATS = {
        logging.DEBUG: dark_grey + fmt + reset,
        logging.INFO: white + fmt + reset,
        logging.WARNING: orange + fmt + reset,
        logging.ERROR: red + fmt + reset,
        logging.CRITICAL: bold_red + fmt + reset,
    }

    def format(self, record):
        log_fmt = self.FORMATS.get(record.levelno) if self.USE_COLOR else self.fmt
        formatter = logging.Formatter(log_fmt)
        return formatter.format(record)


def create_console_handler(level=logging.DEBUG):
    """Create a console handler with the CustomFormatter"""
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(CustomFormatter())
    return handler


def _env_level(name: str, default: int = logging.INFO) -> int:
    levels = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warn": logging.WARN,
        "warning": logging.WARN,
        "error": logging.ERROR,
        "critical": logging.CRITICAL,
    }
    value = os.environ.get(name)
    if value is None:
        return default
    return levels.get(value.strip().lower(), default)


def setup_logging(level=logging.INFO, handlers=None):
    """Setup logging with custom formatter"""

    if IS_DEV:
        # Default to DEBUG for dev mode.
        level = logging.DEBUG

    # Allow env override for global app log level
    level = _env_level("PAN_BRIDGE_LOG_LEVEL", level)

    if handlers is None:
        handlers = [create_console_handler(level)]

    logging.basicConfig(encoding="utf-8", level=level, handlers=handlers, force=True)

    # Set common library log levels
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("pyroute2").setLevel(logging.WARNING)
    logging.getLogger("pyroute2.netlink.core").setLevel(logging.WARNING)

    # The per-tick inventory chatter is only wanted while developing
    logging.getLogger("pan_bridge.utils").setLevel(logging.DEBUG if IS_DEV else logging.INFO)
    logging.getLogger("pan_bridge.lib.network_control.reconciler").setLevel(level)
