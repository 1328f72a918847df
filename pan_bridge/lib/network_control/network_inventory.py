import logging
import re
import socket
from ipaddress import IPv4Interface
from pathlib import Path
from typing import Dict, Optional, Set

from pyroute2 import IPRoute

from pan_bridge.constants import PAN_PORT_PATTERN

from .domain import InterfaceInfo, InterfaceKind, InterfaceState

# Linux kernel interface flag constants, as defined in if.h
IFF_UP = 0x1
IFF_LOOPBACK = 0x8

SYSFS_NET = Path("/sys/class/net")


def link_kind(link) -> Optional[str]:
    """The IFLA_INFO_KIND of a link message ("bridge", "veth", ...) if it has one"""
    linkinfo = link.get_attr("IFLA_LINKINFO")
    if not linkinfo:
        return None
    return linkinfo.get_attr("IFLA_INFO_KIND")


class NetworkInventory:
    """Read-only view of the host's interfaces, taken fresh from netlink on every call"""

    def __init__(self, sysfs_net: Path = SYSFS_NET):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__}")
        self.sysfs_net = Path(sysfs_net)

    def is_wireless(self, name: str) -> bool:
        device = self.sysfs_net / name
        return (device / "wireless").exists() or (device / "phy80211").exists()

    def interfaces(self) -> Dict[str, InterfaceInfo]:
        """Snapshot of every non-loopback interface, keyed by name"""
        result: Dict[str, InterfaceInfo] = {}
        with IPRoute() as ipr:
            links = list(ipr.get_links())
            addresses: Dict[int, IPv4Interface] = {}
            for addr in ipr.get_addr(family=socket.AF_INET):
                # IFA_ADDRESS is the peer on point-to-point links
                local = addr.get_attr("IFA_LOCAL") or addr.get_attr("IFA_ADDRESS")
                # First address wins, as "ip addr" lists it
                addresses.setdefault(addr["index"], IPv4Interface(f"{local}/{addr['prefixlen']}"))

        names = {link["index"]: link.get_attr("IFLA_IFNAME") for link in links}
        for link in links:
            name = names[link["index"]]
            if link["flags"] & IFF_LOOPBACK:
                continue

            if link_kind(link) == "bridge":
                kind = InterfaceKind.BRIDGE
            elif re.match(PAN_PORT_PATTERN, name):
                kind = InterfaceKind.PAN_PORT
            elif self.is_wireless(name):
                kind = InterfaceKind.WIRELESS
            else:
                kind = InterfaceKind.WIRED

            master = link.get_attr("IFLA_MASTER")
            result[name] = InterfaceInfo(
                name=name,
                index=link["index"],
                kind=kind,
                state=InterfaceState.UP if link["flags"] & IFF_UP else InterfaceState.DOWN,
                mac_address=link.get_attr("IFLA_ADDRESS"),
                ip_address=addresses.get(link["index"]),
                master=names.get(master) if master else None,
            )
        return result

    def interface_info(self, name: str) -> Optional[InterfaceInfo]:
        return self.interfaces().get(name)

    @staticmethod
    def _manageable(info: InterfaceInfo, mac_filter: str) -> bool:
        if info.kind == InterfaceKind.BRIDGE or not info.mac_address:
            return False
        return re.search(mac_filter, info.mac_address, re.IGNORECASE) is not None

    def list_interfaces(self, mac_filter: str = ".") -> Set[str]:
        """Names of interfaces with a hardware address matching mac_filter, bridges excluded"""
        return {
            name
            for name, info in self.interfaces().items()
            if self._manageable(info, mac_filter)
        }

    def wireless_interfaces(self) -> Set[str]:
        if not self.sysfs_net.exists():
            return set()
        return {
            device.name for device in self.sysfs_net.iterdir() if self.is_wireless(device.name)
        }

    def wired_interfaces(self, mac_filter: str = ".") -> Set[str]:
        return self.list_interfaces(mac_filter) - self.wireless_interfaces()

    def ip_of(self, name: str) -> Optional[str]:
        info = self.interface_info(name)
        if info is None or info.ip_address is None:
            return None
        return info.ip_address.with_prefixlen

    def connected_interfaces(self, mac_filter: str = ".") -> Set[str]:
        return {
            name
            for name, info in self.interfaces().items()
            if self._manageable(info, mac_filter) and info.ip_address is not None
        }

    def assigned_addresses(self) -> Set[str]:
        """Every IPv4 address/prefix configured on the host, loopback excluded"""
        return {
            info.ip_address.with_prefixlen
            for info in self.interfaces().values()
            if info.ip_address is not None
        }
