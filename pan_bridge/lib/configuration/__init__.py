from .config_file import ConfigFile
from .pan_bridge_config_file import PanBridgeConfigFile
from .schemas import PanBridgeConfig

__all__ = ["ConfigFile", "PanBridgeConfigFile", "PanBridgeConfig"]
