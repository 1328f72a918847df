import asyncio
import logging
from typing import Tuple

from aiohttp import ClientError, ClientSession, ClientTimeout

from .domain import ConnectivityState

DEFAULT_PROBE_URL = "http://connectivitycheck.gstatic.com/generate_204"


def next_state(
    state: ConnectivityState, reachable: bool
) -> Tuple[ConnectivityState, bool]:
    """
    Advance the connectivity state machine by one probe result.

    Returns the new state and whether NAT has to be reprogrammed, which is the
    case exactly when the state changes.
    """
    new_state = ConnectivityState.CONNECTED if reachable else ConnectivityState.DISCONNECTED
    return new_state, new_state != state


class ConnectivityMonitor:
    """Probes a well-known host over HTTP to decide whether the internet is reachable"""

    def __init__(
        self,
        probe_url: str = DEFAULT_PROBE_URL,
        timeout: float = 3.0,
        attempts: int = 3,
    ):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__}")
        self.probe_url = probe_url
        self.timeout = timeout
        self.attempts = attempts

    async def _probe_once(self) -> bool:
        async with ClientSession(timeout=ClientTimeout(total=self.timeout)) as session:
            async with session.get(self.probe_url, allow_redirects=False) as response:
                return response.status < 400

    async def is_internet_reachable(self) -> bool:
        for attempt in range(1, self.attempts + 1):
            try:
                if await self._probe_once():
                    return True
                self.logger.debug(f"Probe attempt {attempt} got an error status")
            except (ClientError, asyncio.TimeoutError, OSError) as e:
                self.logger.debug(f"Probe attempt {attempt} failed: {e!r}")
        return False
