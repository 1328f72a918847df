import logging
from abc import ABC, abstractmethod

from pyroute2 import NetlinkError

from .bridge_controller import BridgeController
from .domain import AttachResult, InterfaceKind
from .radio_controller import RadioController


class BridgePort(ABC):
    """How one kind of interface is brought up and joined to the bridge"""

    kind: InterfaceKind

    def __init__(self, bridge_name: str):
        self.logger = logging.getLogger(__name__)
        self.bridge_name = bridge_name

    @abstractmethod
    async def bring_up(self, name: str) -> AttachResult:
        pass


class WiredPort(BridgePort):
    kind = InterfaceKind.WIRED

    def __init__(self, bridge_name: str, bridge_controller: BridgeController):
        super().__init__(bridge_name)
        self.bridge_controller = bridge_controller

    async def bring_up(self, name: str) -> AttachResult:
        try:
            self.bridge_controller.attach_port(self.bridge_name, name)
        except NetlinkError as e:
            self.logger.error(f"Failed to bridge {name}: {e}")
            return AttachResult.FAILED
        return AttachResult.ATTACHED


class BluetoothPort(BridgePort):
    kind = InterfaceKind.BLUETOOTH

    def __init__(self, bridge_name: str, radio_controller: RadioController, bluetooth_name: str):
        super().__init__(bridge_name)
        self.radio_controller = radio_controller
        self.bluetooth_name = bluetooth_name

    async def bring_up(self, name: str) -> AttachResult:
        return await self.radio_controller.bring_up_for_pan(
            name, self.bridge_name, self.bluetooth_name
        )
