from pydantic import ValidationError

from pan_bridge import constants
from pan_bridge.lib.configuration.config_file import ConfigFile
from pan_bridge.lib.configuration.schemas import PanBridgeConfig


class PanBridgeConfigFile(ConfigFile):
    def __init__(self, path: str = None):
        super().__init__(
            path or constants.CONFIG_FILE,
            defaults=PanBridgeConfig().model_dump(),
        )

    def load_or_create_defaults(self, allow_empty: bool = False):  # type: ignore[override]
        super().load_or_create_defaults(allow_empty=allow_empty)
        # Validate and normalize with schema; fall back to defaults on error
        try:
            self.data = PanBridgeConfig(**self.data).model_dump()
        except (ValidationError, TypeError) as e:
            self.logger.warning(f"Invalid config in {self.path}, restoring defaults: {e}")
            self.create_defaults()
            try:
                self.save()
            except OSError as e:
                self.logger.error(f"Unable to write default config: {e}")

    @property
    def config(self) -> PanBridgeConfig:
        return PanBridgeConfig(**self.data)
