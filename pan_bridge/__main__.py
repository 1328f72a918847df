import asyncio
import logging

from pan_bridge.__version__ import __version__
from pan_bridge.lib.configuration import PanBridgeConfigFile
from pan_bridge.lib.logging_utils import setup_logging
from pan_bridge.lib.network_control import BridgeReconciler


def main():
    setup_logging(level=logging.INFO)
    logger = logging.getLogger("pan_bridge")
    logger.info(f"Starting pan-bridge {__version__}")

    config_file = PanBridgeConfigFile()
    config_file.load_or_create_defaults()

    reconciler = BridgeReconciler(config_file.config)
    try:
        asyncio.run(reconciler.run_forever())
    except KeyboardInterrupt:
        # Cleanup happens at the next startup
        logger.info("Interrupted, exiting")


if __name__ == "__main__":
    main()
