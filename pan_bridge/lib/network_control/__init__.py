"""
Network Control Module

Keeps one bridge in step with the interfaces of the host. It handles:
- Interface inventory and bridge port management over netlink (pyroute2)
- Bluetooth adapters and their bt-network PAN listeners
- Connectivity probing and NAT reprogramming on connectivity changes
- The udhcpd DHCP server bound to the bridge

Main components:
- BridgeReconciler: Main control loop
- NetworkInventory: Read-only interface snapshot
- BridgeController: Bridge creation and port attach/detach
- RadioController: Bluetooth adapter bring-up and listener registry
- ConnectivityMonitor: Internet reachability probe
- NatManager: Firewall flush, forwarding and masquerade
- DhcpServer: udhcpd lifecycle

Usage:
    from pan_bridge.lib.network_control import BridgeReconciler

    reconciler = BridgeReconciler(config)
    await reconciler.run_forever()
"""

from .bridge_controller import BridgeController
from .connectivity_monitor import ConnectivityMonitor, next_state
from .dhcp_server import DhcpServer
from .domain import (
    AttachResult,
    ConnectivityState,
    DhcpServerConfig,
    InterfaceInfo,
    InterfaceKind,
    InterfaceState,
)
from .nat_manager import NatManager
from .network_inventory import NetworkInventory
from .radio_controller import RadioController
from .reconciler import BridgeReconciler, compute_eligible

__all__ = [
    "BridgeReconciler",
    "compute_eligible",
    "NetworkInventory",
    "BridgeController",
    "RadioController",
    "ConnectivityMonitor",
    "next_state",
    "NatManager",
    "DhcpServer",
    "AttachResult",
    "ConnectivityState",
    "DhcpServerConfig",
    "InterfaceInfo",
    "InterfaceKind",
    "InterfaceState",
]
