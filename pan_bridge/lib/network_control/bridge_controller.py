import logging
from typing import Optional, Set

from pyroute2 import IPRoute, NetlinkError

from . import address_calculator
from .network_inventory import NetworkInventory, link_kind

DEFAULT_BRIDGE_ADDRESS = "10.0.0.1/24"


class BridgeController:
    """Creates and deletes bridges and moves ports in and out of them over netlink"""

    def __init__(self, inventory: Optional[NetworkInventory] = None):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__}")
        self.inventory = inventory or NetworkInventory()

    @staticmethod
    def _lookup(ipr, name: str) -> Optional[int]:
        indices = ipr.link_lookup(ifname=name)
        return indices[0] if indices else None

    def list_bridges(self) -> Set[str]:
        with IPRoute() as ipr:
            return {
                link.get_attr("IFLA_IFNAME")
                for link in ipr.get_links()
                if link_kind(link) == "bridge"
            }

    def ports_of(self, bridge_name: str) -> Set[str]:
        with IPRoute() as ipr:
            bridge_index = self._lookup(ipr, bridge_name)
            if bridge_index is None:
                return set()
            return {
                link.get_attr("IFLA_IFNAME")
                for link in ipr.get_links()
                if link.get_attr("IFLA_MASTER") == bridge_index
            }

    def create_bridge(self, name: str, address: str = DEFAULT_BRIDGE_ADDRESS) -> None:
        """Create the bridge with STP and forward delay off, address it and bring it up"""
        ip = address_calculator.address(address)
        prefixlen = int(address_calculator.network(address).split("/")[1])

        with IPRoute() as ipr:
            ipr.link("add", ifname=name, kind="bridge", br_stp_state=0, br_forward_delay=0)
            index = self._lookup(ipr, name)
            ipr.addr("add", index=index, address=ip, prefixlen=prefixlen)
            ipr.link("set", index=index, state="up")
        self.logger.info(f"Created bridge {name} at {address}")

    def delete_bridge(self, name: str) -> bool:
        """Bring the bridge down and destroy it. A missing bridge is not an error."""
        with IPRoute() as ipr:
            index = self._lookup(ipr, name)
            if index is None:
                self.logger.debug(f"Bridge {name} does not exist, nothing to delete")
                return False
            try:
                ipr.link("set", index=index, state="down")
                ipr.link("del", index=index)
            except NetlinkError as e:
                self.logger.warning(f"Failed to delete bridge {name}: {e}")
                return False
        self.logger.info(f"Deleted bridge {name}")
        return True

    def attach_port(self, bridge_name: str, interface_name: str) -> None:
        with IPRoute() as ipr:
            bridge_index = self._lookup(ipr, bridge_name)
            port_index = self._lookup(ipr, interface_name)
            if bridge_index is None or port_index is None:
                raise NetlinkError(19, f"No such device: {bridge_name if bridge_index is None else interface_name}")
            ipr.link("set", index=port_index, state="up")
            ipr.link("set", index=port_index, master=bridge_index)
        self.logger.info(f"Bridged {interface_name} into {bridge_name}")

    def detach_port(self, bridge_name: str, interface_name: str) -> None:
        with IPRoute() as ipr:
            port_index = self._lookup(ipr, interface_name)
            if port_index is None:
                raise NetlinkError(19, f"No such device: {interface_name}")
            ipr.link("set", index=port_index, master=0)
        self.logger.info(f"Removed {interface_name} from {bridge_name}")

    def bridge_address(self, bridge_name: str) -> Optional[str]:
        return self.inventory.ip_of(bridge_name)
