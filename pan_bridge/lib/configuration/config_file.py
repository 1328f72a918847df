import copy
import logging
import os
from typing import Any, Dict, Optional

import toml


class ConfigFile:
    """A TOML file of [Section] tables, with a fallback set of defaults"""

    def __init__(self, path: str, defaults: Optional[Dict[str, Any]] = None):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__} for {path}")
        self.path = str(path)
        self.defaults: Dict[str, Any] = defaults or {}
        self.data: Dict[str, Any] = {}

    def load(self):
        """Read the file, raising FileNotFoundError or TomlDecodeError"""
        self.data = toml.load(self.path)
        self.logger.debug(f"Loaded {self.path}")

    def save(self):
        # Written beside the target and renamed over it
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w") as f:
            toml.dump(self.data, f)
        os.replace(tmp_path, self.path)
        self.logger.debug(f"Saved {self.path}")

    def create_defaults(self):
        self.data = copy.deepcopy(self.defaults)

    def load_or_create_defaults(self, allow_empty: bool = False):
        try:
            self.load()
        except FileNotFoundError:
            self.logger.warning(f"{self.path} not found, using defaults")
            self.create_defaults()
            return
        except toml.TomlDecodeError as e:
            self.logger.warning(f"Unable to parse {self.path}, using defaults: {e}")
            self.create_defaults()
            return

        if not self.data and not allow_empty:
            self.logger.warning(f"{self.path} is empty, using defaults")
            self.create_defaults()
