import asyncio
import logging
import re
from pathlib import Path
from typing import Dict, Optional, Set

from pan_bridge.utils import run_command_async

from .domain import AttachResult

SYSFS_BLUETOOTH = Path("/sys/class/bluetooth")
ADAPTER_PATTERN = re.compile(r"^hci\d+$")
BD_ADDRESS_PATTERN = re.compile(r"BD Address:\s*([0-9A-Fa-f]{2}(?::[0-9A-Fa-f]{2}){5})")

# Major class "Networking", service class bit for "Networking" (NAP)
PAN_DEVICE_CLASS = "0x020300"
LISTENER_BINARY = "bt-network"


class RadioController:
    """
    Bluetooth HCI adapters and the bt-network NAP listener bound to each of them.

    Listener liveness comes from the registry of processes this controller
    spawned, not from scanning the process table.
    """

    def __init__(self, sysfs_bluetooth: Path = SYSFS_BLUETOOTH, stop_timeout: float = 2.0):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__}")
        self.sysfs_bluetooth = Path(sysfs_bluetooth)
        self.stop_timeout = stop_timeout
        self.listeners: Dict[str, asyncio.subprocess.Process] = {}

    async def mac_of(self, adapter: str) -> Optional[str]:
        result = await run_command_async(["hciconfig", adapter], raise_on_fail=False)
        if not result.success:
            self.logger.debug(f"hciconfig {adapter} failed: {result.stderr.strip()}")
            return None
        match = BD_ADDRESS_PATTERN.search(result.output)
        return match.group(1).upper() if match else None

    async def list_adapters(self, mac_filter: str = ".") -> Set[str]:
        if not self.sysfs_bluetooth.exists():
            return set()
        adapters = set()
        for entry in self.sysfs_bluetooth.iterdir():
            if not ADAPTER_PATTERN.match(entry.name):
                continue
            mac = await self.mac_of(entry.name)
            if mac and re.search(mac_filter, mac, re.IGNORECASE):
                adapters.add(entry.name)
        return adapters

    def active_pan_adapters(self) -> Set[str]:
        """Adapters whose registered listener is still running"""
        for adapter, process in list(self.listeners.items()):
            if process.returncode is not None:
                self.logger.warning(
                    f"PAN listener for {adapter} exited with code {process.returncode}"
                )
                del self.listeners[adapter]
        return set(self.listeners)

    async def _stop_listener(self, adapter: str):
        process = self.listeners.pop(adapter, None)
        if process is not None and process.returncode is None:
            self.logger.info(f"Stopping PAN listener for {adapter} (pid {process.pid})")
            process.terminate()
            try:
                await asyncio.wait_for(process.wait(), self.stop_timeout)
            except asyncio.TimeoutError:
                process.kill()
                await process.wait()
        # Listeners left behind by an earlier run are not in the registry
        await run_command_async(
            ["pkill", "-f", f"{LISTENER_BINARY} -a {adapter} "], raise_on_fail=False
        )

    async def kill_all_listeners(self):
        for adapter in list(self.listeners):
            await self._stop_listener(adapter)
        await run_command_async(["pkill", "-f", LISTENER_BINARY], raise_on_fail=False)

    async def _hciconfig(self, adapter: str, *args: str) -> bool:
        result = await run_command_async(["hciconfig", adapter, *args], raise_on_fail=False)
        if not result.success:
            self.logger.warning(
                f"hciconfig {adapter} {' '.join(args)} failed: {result.stderr.strip()}"
            )
        return result.success

    async def bring_up_for_pan(
        self, adapter: str, bridge_name: str, bluetooth_name: str
    ) -> AttachResult:
        """
        Configure an adapter as a discoverable NAP and start its listener.

        Safe to repeat: any previous listener for the adapter is stopped first.
        The bnep port is attached to the bridge by BlueZ when a client connects,
        so success here is PENDING rather than ATTACHED.
        """
        await self._stop_listener(adapter)

        await self._hciconfig(adapter, "up")
        await self._hciconfig(adapter, "reset")
        await self._hciconfig(adapter, "name", f"{bluetooth_name}-{adapter}")
        await self._hciconfig(adapter, "class", PAN_DEVICE_CLASS)
        await self._hciconfig(adapter, "lm", "master,accept")
        await self._hciconfig(adapter, "piscan")

        try:
            process = await asyncio.create_subprocess_exec(
                LISTENER_BINARY, "-a", adapter, "-s", "nap", bridge_name,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            self.logger.error(f"Unable to start PAN listener for {adapter}: {e}")
            return AttachResult.FAILED

        self.listeners[adapter] = process
        self.logger.info(
            f"PAN listener for {adapter} started on {bridge_name} (pid {process.pid})"
        )
        return AttachResult.PENDING
