import logging
from typing import Optional

from pan_bridge import utils
from pan_bridge.models.exceptions import RunCommandError

FIREWALL_TABLES = ("filter", "nat", "mangle")


class NatManager:
    """IPv4 forwarding and masquerading towards whichever interface holds the default route"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__}")

    async def reset_firewall(self):
        for table in FIREWALL_TABLES:
            await utils.run_command_async(["iptables", "-t", table, "-F"], raise_on_fail=False)
            await utils.run_command_async(["iptables", "-t", table, "-X"], raise_on_fail=False)
        await utils.run_command_async(["sysctl", "-w", "net.ipv4.ip_forward=1"])
        self.logger.info("Firewall flushed and IPv4 forwarding enabled")

    async def enable_masquerade(self) -> Optional[str]:
        """Masquerade outbound traffic on the default-route interface. Only the first default route is used."""
        try:
            interfaces = await utils.get_default_route_interfaces()
        except RunCommandError as e:
            self.logger.warning(f"Unable to read default route: {e}")
            return None
        if not interfaces:
            self.logger.info("No default route, skipping masquerade")
            return None

        uplink = interfaces[0]
        await utils.run_command_async(
            ["iptables", "-t", "nat", "-A", "POSTROUTING", "-o", uplink, "-j", "MASQUERADE"]
        )
        self.logger.info(f"Masquerading outbound traffic on {uplink}")
        return uplink

    async def reprogram(self) -> Optional[str]:
        await self.reset_firewall()
        return await self.enable_masquerade()
