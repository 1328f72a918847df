import asyncio
import logging
import shutil
import tempfile
from typing import Optional

from pan_bridge.models.exceptions import InvalidAddressError
from pan_bridge.utils import run_command_async

from . import address_calculator
from .bridge_controller import BridgeController
from .domain import DhcpServerConfig

DHCP_SERVER_BINARY = "udhcpd"


class DhcpServer:
    """Runs udhcpd on the bridge, handing out the upper part of the bridge's subnet"""

    def __init__(
        self,
        bridge_controller: Optional[BridgeController] = None,
        dns_servers: Optional[list[str]] = None,
        lease_seconds: int = 86400,
        range_start: int = 100,
    ):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__}")
        self.bridge_controller = bridge_controller or BridgeController()
        self.dns_servers = dns_servers or ["8.8.8.8", "8.8.4.4"]
        self.lease_seconds = lease_seconds
        self.range_start = range_start
        self.process: Optional[asyncio.subprocess.Process] = None
        self.config_path: Optional[str] = None

    def build_config(self, bridge_name: str, bridge_address: str) -> DhcpServerConfig:
        return DhcpServerConfig(
            interface=bridge_name,
            start=address_calculator.host_at(bridge_address, self.range_start),
            end=address_calculator.host_max(bridge_address),
            dns_servers=self.dns_servers,
            router=address_calculator.host_min(bridge_address),
            subnet=address_calculator.netmask(bridge_address),
            lease_seconds=self.lease_seconds,
        )

    def write_config(self, config: DhcpServerConfig) -> str:
        with tempfile.NamedTemporaryFile(
            "w", prefix=f"{DHCP_SERVER_BINARY}-", suffix=".conf", delete=False
        ) as f:
            f.write(config.render())
        return f.name

    async def start_dhcp(self, bridge_name: str) -> bool:
        binary = shutil.which(DHCP_SERVER_BINARY)
        if binary is None:
            self.logger.warning(f"{DHCP_SERVER_BINARY} not found, not serving DHCP on {bridge_name}")
            return False

        bridge_address = self.bridge_controller.bridge_address(bridge_name)
        if bridge_address is None:
            self.logger.error(f"Bridge {bridge_name} has no address, not serving DHCP")
            return False

        try:
            config = self.build_config(bridge_name, bridge_address)
        except InvalidAddressError as e:
            self.logger.error(f"No DHCP range fits {bridge_address} on {bridge_name}: {e}")
            return False
        self.config_path = self.write_config(config)

        try:
            self.process = await asyncio.create_subprocess_exec(
                binary, "-f", self.config_path,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            self.logger.error(f"Unable to start {DHCP_SERVER_BINARY} on {bridge_name}: {e}")
            return False
        self.logger.info(
            f"DHCP server serving {config.start}-{config.end} on {bridge_name} (pid {self.process.pid})"
        )
        return True

    async def stop_dhcp(self):
        if self.process is not None and self.process.returncode is None:
            self.process.terminate()
            try:
                await asyncio.wait_for(self.process.wait(), 2.0)
            except asyncio.TimeoutError:
                self.process.kill()
                await self.process.wait()
        self.process = None
        # Also catches a server left running by a previous instance
        await run_command_async(["pkill", DHCP_SERVER_BINARY], raise_on_fail=False)
        self.logger.info("DHCP server stopped")
