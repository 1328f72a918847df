"""
Subnet arithmetic over "address/prefix" strings such as "10.0.0.1/24".

Every function raises InvalidAddressError when handed something that is not an
IPv4 address with an explicit prefix length.
"""

from ipaddress import IPv4Address, IPv4Interface, IPv4Network
from typing import Iterable

from pan_bridge.models.exceptions import InvalidAddressError, SubnetExhaustedError

FREE_SUBNET_BASE = IPv4Network("192.168.0.0/16")


def _parse(a: str) -> IPv4Interface:
    if not isinstance(a, str) or "/" not in a:
        raise InvalidAddressError(f"Expected address/prefix, got {a!r}")
    try:
        return IPv4Interface(a.strip())
    except ValueError as e:
        raise InvalidAddressError(f"Invalid address {a!r}: {e}") from e


def address(a: str) -> str:
    return str(_parse(a).ip)


def network(a: str) -> str:
    return str(_parse(a).network)


def netmask(a: str) -> str:
    return str(_parse(a).netmask)


def network_prefix(a: str) -> str:
    """
    The network address with the zero octets of its host part dropped:
    "192.168.5.10/24" -> "192.168.5", "10.1.0.0/16" -> "10.1".
    """
    iface = _parse(a)
    octets = str(iface.network.network_address).split(".")
    # Octets wholly inside the network part stay, even when they are zero
    keep = max(1, -(-iface.network.prefixlen // 8))
    while len(octets) > keep and octets[-1] == "0":
        octets.pop()
    return ".".join(octets)


def host_min(a: str) -> str:
    net = _parse(a).network
    if net.prefixlen >= 31:
        return str(net.network_address)
    return str(net.network_address + 1)


def host_max(a: str) -> str:
    net = _parse(a).network
    if net.prefixlen >= 31:
        return str(net.broadcast_address)
    return str(net.broadcast_address - 1)


def host_at(a: str, offset: int) -> str:
    """The host offset addresses above the network address: ("10.1.0.1/16", 100) -> "10.1.0.100" """
    net = _parse(a).network
    if not 0 < offset < net.num_addresses - 1:
        raise InvalidAddressError(f"Offset {offset} is outside the host range of {net}")
    return str(net.network_address + offset)


def next_free_subnet(addresses: Iterable[str]) -> str:
    """
    Next unused 192.168.x.0 network after the highest one in use.

    Gaps below the highest third octet are not reused. Entries may be bare
    addresses or address/prefix strings.
    """
    highest = 0
    for a in addresses:
        if isinstance(a, str) and "/" not in a:
            a = f"{a}/32"
        ip = IPv4Address(address(a))
        if ip in FREE_SUBNET_BASE:
            highest = max(highest, ip.packed[2])
    if highest >= 255:
        raise SubnetExhaustedError("No 192.168.x.0 subnet left above 192.168.255.0")
    return f"192.168.{highest + 1}.0"
