import pytest

from pan_bridge.lib.network_control.domain import InterfaceKind, InterfaceState
from pan_bridge.lib.network_control.network_inventory import NetworkInventory


@pytest.fixture
def host(fake_ipr, sysfs_net):
    """lo, two wired NICs, a wifi card, a MAC-less tunnel and an existing bridge"""
    fake_ipr.add_link("lo", 1, mac="00:00:00:00:00:00", loopback=True)
    fake_ipr.add_link("eth0", 2, mac="b8:27:eb:00:00:01")
    fake_ipr.add_link("eth1", 3, mac="dc:a6:32:00:00:02", up=False)
    fake_ipr.add_link("wlan0", 4, mac="b8:27:eb:00:00:03")
    fake_ipr.add_link("tun0", 5)
    fake_ipr.add_link("pan0", 6, mac="02:00:00:00:00:01", kind="bridge")
    fake_ipr.add_addr(1, "127.0.0.1", 8)
    fake_ipr.add_addr(2, "192.168.1.20", 24)
    fake_ipr.add_addr(6, "10.0.0.1", 24)
    (sysfs_net / "wlan0" / "wireless").mkdir(parents=True)
    for name in ("lo", "eth0", "eth1", "tun0", "pan0"):
        (sysfs_net / name).mkdir()
    return NetworkInventory(sysfs_net=sysfs_net)


def test_list_interfaces_skips_loopback_bridges_and_macless(host):
    assert host.list_interfaces() == {"eth0", "eth1", "wlan0"}


def test_list_interfaces_applies_mac_filter(host):
    assert host.list_interfaces(r"^B8:27:EB") == {"eth0", "wlan0"}


def test_wireless_and_wired(host):
    assert host.wireless_interfaces() == {"wlan0"}
    assert host.wired_interfaces() == {"eth0", "eth1"}


def test_ip_of(host):
    assert host.ip_of("eth0") == "192.168.1.20/24"
    assert host.ip_of("eth1") is None
    assert host.ip_of("missing0") is None


def test_connected_interfaces(host):
    assert host.connected_interfaces() == {"eth0"}


def test_interface_info(host):
    info = host.interface_info("eth1")
    assert info.kind == InterfaceKind.WIRED
    assert info.state == InterfaceState.DOWN
    assert host.interface_info("pan0").kind == InterfaceKind.BRIDGE
    assert host.interface_info("lo") is None


def test_interface_info_reports_bridge_master(fake_ipr, sysfs_net):
    fake_ipr.add_link("pan0", 1, mac="02:00:00:00:00:01", kind="bridge")
    fake_ipr.add_link("bnep0", 2, mac="00:1a:7d:da:71:13", master=1)
    info = NetworkInventory(sysfs_net=sysfs_net).interface_info("bnep0")
    assert info.kind == InterfaceKind.PAN_PORT
    assert info.master == "pan0"


def test_assigned_addresses_excludes_loopback(host):
    assert host.assigned_addresses() == {"192.168.1.20/24", "10.0.0.1/24"}


def test_point_to_point_reports_local_address(fake_ipr, sysfs_net):
    fake_ipr.add_link("ppp0", 7)
    fake_ipr.add_addr(7, "10.64.64.64", 32, local="10.112.5.9")
    (sysfs_net / "ppp0").mkdir()

    inventory = NetworkInventory(sysfs_net=sysfs_net)

    assert inventory.ip_of("ppp0") == "10.112.5.9/32"
    assert inventory.assigned_addresses() == {"10.112.5.9/32"}
