from enum import Enum
from ipaddress import IPv4Interface
from typing import Optional

from pydantic import BaseModel, Field


class InterfaceState(Enum):
    """Network interface states"""

    UP = "up"
    DOWN = "down"
    UNKNOWN = "unknown"


class InterfaceKind(Enum):
    """Kinds of interface the bridge deals with"""

    WIRED = "wired"
    WIRELESS = "wireless"
    BLUETOOTH = "bluetooth"
    PAN_PORT = "pan_port"
    BRIDGE = "bridge"


class AttachResult(Enum):
    """Outcome of bringing an interface up for the bridge"""

    ATTACHED = "attached"
    # Listener spawned; BlueZ attaches the bnep port itself once a client connects
    PENDING = "pending"
    FAILED = "failed"


class ConnectivityState(Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class InterfaceInfo(BaseModel):
    """Information about a network interface"""

    name: str = Field(..., description="Interface name (e.g., eth0)")
    index: int = Field(..., description="Interface index")
    kind: InterfaceKind = Field(..., description="Kind of interface")
    state: InterfaceState = Field(..., description="Current interface state")
    mac_address: Optional[str] = Field(None, description="MAC address")
    ip_address: Optional[IPv4Interface] = Field(
        None, description="IP address with netmask"
    )
    master: Optional[str] = Field(None, description="Bridge this interface is a port of")


class DhcpServerConfig(BaseModel):
    """Settings written to the udhcpd configuration file"""

    interface: str
    start: str
    end: str
    dns_servers: list[str] = Field(default_factory=lambda: ["8.8.8.8", "8.8.4.4"])
    router: str
    subnet: str
    lease_seconds: int = 86400

    def render(self) -> str:
        lines = [
            f"interface {self.interface}",
            f"start {self.start}",
            f"end {self.end}",
            f"opt dns {' '.join(self.dns_servers)}",
            f"opt router {self.router}",
            f"opt subnet {self.subnet}",
            f"opt lease {self.lease_seconds}",
        ]
        return "\n".join(lines) + "\n"
