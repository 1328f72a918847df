"""
Pytest configuration and shared fixtures for pan-bridge tests
"""
import logging
from typing import Optional

import pytest

from pan_bridge.lib.logging_utils import setup_logging
from pan_bridge.lib.network_control.network_inventory import IFF_LOOPBACK, IFF_UP


class FakeNlMsg(dict):
    """Stands in for a pyroute2 netlink message: header fields by key, NLAs by get_attr"""

    def __init__(self, attrs: Optional[dict] = None, **fields):
        super().__init__(**fields)
        self.attrs = attrs or {}

    def __bool__(self):
        # A real netlink message is always truthy, even one carrying only NLAs
        return True

    def get_attr(self, name, default=None):
        return self.attrs.get(name, default)


def make_link(name, index, mac=None, up=True, kind=None, master=None, loopback=False):
    flags = (IFF_UP if up else 0) | (IFF_LOOPBACK if loopback else 0)
    attrs = {"IFLA_IFNAME": name, "IFLA_ADDRESS": mac}
    if kind:
        attrs["IFLA_LINKINFO"] = FakeNlMsg({"IFLA_INFO_KIND": kind})
    if master:
        attrs["IFLA_MASTER"] = master
    return FakeNlMsg(attrs, index=index, flags=flags)


def make_addr(index, address, prefixlen=24, local=None):
    # The kernel reports IFA_LOCAL too; it only differs from IFA_ADDRESS on point-to-point links
    attrs = {"IFA_ADDRESS": address, "IFA_LOCAL": local or address}
    return FakeNlMsg(attrs, index=index, prefixlen=prefixlen)


class FakeIPRoute:
    """In-memory netlink: enough of IPRoute for inventory and bridge control"""

    def __init__(self):
        self.links: list[FakeNlMsg] = []
        self.addrs: list[FakeNlMsg] = []
        self.calls: list[tuple] = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def add_link(self, *args, **kwargs):
        link = make_link(*args, **kwargs)
        self.links.append(link)
        return link

    def add_addr(self, *args, **kwargs):
        self.addrs.append(make_addr(*args, **kwargs))

    def _by_index(self, index):
        return next(link for link in self.links if link["index"] == index)

    def get_links(self):
        return list(self.links)

    def get_addr(self, family=None, index=None):
        return [a for a in self.addrs if index is None or a["index"] == index]

    def link_lookup(self, ifname):
        return [link["index"] for link in self.links if link.get_attr("IFLA_IFNAME") == ifname]

    def link(self, command, **kwargs):
        self.calls.append(("link", command, kwargs))
        if command == "add":
            index = max([link["index"] for link in self.links], default=0) + 1
            self.add_link(kwargs["ifname"], index, mac="02:00:00:00:00:01", up=False, kind=kwargs.get("kind"))
        elif command == "del":
            self.links.remove(self._by_index(kwargs["index"]))
        elif command == "set":
            link = self._by_index(kwargs["index"])
            if kwargs.get("state") == "up":
                link["flags"] |= IFF_UP
            elif kwargs.get("state") == "down":
                link["flags"] &= ~IFF_UP
            if "master" in kwargs:
                link.attrs["IFLA_MASTER"] = kwargs["master"] or None

    def addr(self, command, **kwargs):
        self.calls.append(("addr", command, kwargs))
        if command == "add":
            self.add_addr(kwargs["index"], kwargs["address"], kwargs["prefixlen"])


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Setup logging for tests with appropriate levels"""
    setup_logging(level=logging.INFO)


@pytest.fixture
def fake_ipr(monkeypatch) -> FakeIPRoute:
    """A FakeIPRoute patched in wherever the package opens a netlink socket"""
    ipr = FakeIPRoute()
    monkeypatch.setattr(
        "pan_bridge.lib.network_control.network_inventory.IPRoute", lambda: ipr
    )
    monkeypatch.setattr(
        "pan_bridge.lib.network_control.bridge_controller.IPRoute", lambda: ipr
    )
    return ipr


@pytest.fixture
def sysfs_net(tmp_path):
    """An empty /sys/class/net lookalike; tests create device directories as needed"""
    path = tmp_path / "net"
    path.mkdir()
    return path
