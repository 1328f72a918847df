__title__ = "pan_bridge"
__description__ = (
    "Keeps a single network bridge in step with the wired and Bluetooth PAN "
    "interfaces of the host, with connectivity-aware NAT and an optional DHCP server."
)
__version__ = "1.0.0"
__status__ = "alpha"
__license__ = "BSD-3-Clause"
__license_url__ = "https://opensource.org/licenses/BSD-3-Clause"
