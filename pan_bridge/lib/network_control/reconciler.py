from __future__ import annotations

import asyncio
import logging
import re
from typing import TYPE_CHECKING, Dict, Iterable, Optional, Set, Tuple

from pyroute2 import NetlinkError

from pan_bridge.constants import PAN_PORT_PATTERN
from pan_bridge.models.exceptions import RunCommandError

from . import address_calculator
from .bridge_controller import BridgeController
from .connectivity_monitor import ConnectivityMonitor, next_state
from .dhcp_server import DhcpServer
from .domain import AttachResult, ConnectivityState, InterfaceKind
from .interface_kinds import BluetoothPort, BridgePort, WiredPort
from .nat_manager import NatManager
from .network_inventory import NetworkInventory
from .radio_controller import RadioController

if TYPE_CHECKING:
    from pan_bridge.lib.configuration.schemas import PanBridgeConfig


def compute_eligible(
    wired: Iterable[str],
    bluetooth: Iterable[str],
    active_pan: Iterable[str],
    connected: Iterable[str],
    dhcp_enabled: bool,
) -> Set[str]:
    """
    Interfaces that belong on the bridge: every wired interface plus every
    Bluetooth adapter without a running PAN listener. With DHCP served on the
    bridge, interfaces that already hold an address are left out so a DHCP
    client is never bridged into its own server.
    """
    eligible = set(wired) | (set(bluetooth) - set(active_pan))
    if dhcp_enabled:
        eligible -= set(connected)
    return eligible


class BridgeReconciler:
    """Keeps the managed bridge's ports, NAT and DHCP in step with the host"""

    def __init__(
        self,
        config: PanBridgeConfig,
        inventory: Optional[NetworkInventory] = None,
        bridge_controller: Optional[BridgeController] = None,
        radio_controller: Optional[RadioController] = None,
        connectivity_monitor: Optional[ConnectivityMonitor] = None,
        nat_manager: Optional[NatManager] = None,
        dhcp_server: Optional[DhcpServer] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__}")

        general = config.General
        self.bridge_name = general.bridge_name
        self.bridge_address = general.bridge_address
        self.bluetooth_name = general.bluetooth_name
        self.dhcp_enabled = general.bridge_dhcp
        self.mac_filter = general.mac_filter
        self.loop_interval = general.loop_interval

        self.inventory = inventory or NetworkInventory()
        self.bridge_controller = bridge_controller or BridgeController(self.inventory)
        self.radio_controller = radio_controller or RadioController()
        self.connectivity_monitor = connectivity_monitor or ConnectivityMonitor(
            probe_url=config.Connectivity.probe_url,
            timeout=config.Connectivity.timeout,
            attempts=config.Connectivity.attempts,
        )
        self.nat_manager = nat_manager or NatManager()
        self.dhcp_server = dhcp_server or DhcpServer(
            self.bridge_controller,
            dns_servers=config.Dhcp.dns_servers,
            lease_seconds=config.Dhcp.lease_seconds,
            range_start=config.Dhcp.range_start,
        )

        self.ports: Dict[InterfaceKind, BridgePort] = {
            InterfaceKind.WIRED: WiredPort(self.bridge_name, self.bridge_controller),
            InterfaceKind.BLUETOOTH: BluetoothPort(
                self.bridge_name, self.radio_controller, self.bluetooth_name
            ),
        }

        self.connectivity_state = ConnectivityState.DISCONNECTED

    def resolve_bridge_address(self) -> str:
        if self.bridge_address != "auto":
            return self.bridge_address
        subnet = address_calculator.next_free_subnet(self.inventory.assigned_addresses())
        return f"{address_calculator.host_min(f'{subnet}/24')}/24"

    async def startup(self):
        """Tear down whatever a previous run left behind and create a fresh bridge"""
        await self.radio_controller.kill_all_listeners()
        await self.dhcp_server.stop_dhcp()

        for bridge in sorted(self.bridge_controller.list_bridges()):
            self.bridge_controller.delete_bridge(bridge)

        self.bridge_controller.create_bridge(self.bridge_name, self.resolve_bridge_address())

        if self.dhcp_enabled:
            await self.dhcp_server.start_dhcp(self.bridge_name)

    async def handle_connectivity(self) -> bool:
        """Probe once and reprogram NAT if connectivity changed. Returns True if it did."""
        reachable = await self.connectivity_monitor.is_internet_reachable()
        new_state, reprogram = next_state(self.connectivity_state, reachable)
        if reprogram:
            self.logger.info(
                f"Connectivity changed: {self.connectivity_state.value} -> {new_state.value}. Reprogramming NAT"
            )
            # The disconnect edge reprograms the same way as the connect edge
            try:
                await self.nat_manager.reprogram()
            except RunCommandError as e:
                self.logger.error(f"Failed to reprogram NAT: {e}")
        self.connectivity_state = new_state
        return reprogram

    async def desired_interfaces(self, bluetooth: Optional[Set[str]] = None) -> Set[str]:
        if bluetooth is None:
            bluetooth = await self.radio_controller.list_adapters(self.mac_filter)
        connected = (
            self.inventory.connected_interfaces(self.mac_filter) if self.dhcp_enabled else set()
        )
        return compute_eligible(
            wired=self.inventory.wired_interfaces(self.mac_filter),
            bluetooth=bluetooth,
            active_pan=self.radio_controller.active_pan_adapters(),
            connected=connected,
            dhcp_enabled=self.dhcp_enabled,
        )

    async def reconcile_interfaces(self) -> Tuple[Set[str], Set[str]]:
        """
        One un-bridge pass followed by one bridge pass.

        Returns the names brought up and the names detached.
        """
        bluetooth = await self.radio_controller.list_adapters(self.mac_filter)
        desired = await self.desired_interfaces(bluetooth)
        attached = self.bridge_controller.ports_of(self.bridge_name)

        detached: Set[str] = set()
        for port in sorted(attached - desired):
            if re.match(PAN_PORT_PATTERN, port):
                continue
            try:
                self.bridge_controller.detach_port(self.bridge_name, port)
                detached.add(port)
            except (NetlinkError, OSError) as e:
                self.logger.error(f"Failed to remove {port} from {self.bridge_name}: {e}")

        brought_up: Set[str] = set()
        for name in sorted(desired - attached):
            kind = InterfaceKind.BLUETOOTH if name in bluetooth else InterfaceKind.WIRED
            try:
                result = await self.ports[kind].bring_up(name)
            except (NetlinkError, RunCommandError, OSError) as e:
                self.logger.error(f"Failed to bring up {name}: {e}")
                continue
            if result == AttachResult.FAILED:
                continue
            brought_up.add(name)

        return brought_up, detached

    async def run_once(self):
        await self.handle_connectivity()
        await self.reconcile_interfaces()

    async def run_forever(self):
        started = False
        while True:
            try:
                if not started:
                    await self.startup()
                    started = True
                    self.logger.info(f"Managing bridge {self.bridge_name}")
                await self.run_once()
            # A failed startup or pass is retried from scratch on the next tick
            except Exception:
                self.logger.exception(
                    "Reconciliation pass failed" if started else "Startup failed"
                )
            await asyncio.sleep(self.loop_interval)
