import asyncio
import logging
from typing import Optional

from pan_bridge.constants import COMMAND_TIMEOUT
from pan_bridge.models.command_result import CommandResult
from pan_bridge.models.exceptions import RunCommandError

logger = logging.getLogger(__name__)


async def run_command_async(
    cmd: list, raise_on_fail=True, timeout: Optional[float] = COMMAND_TIMEOUT
) -> CommandResult:
    """Run a single CLI command and return its output. The process is killed if it outlives the timeout."""
    logger.debug(f"Running command: {cmd}")
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
        )
    except FileNotFoundError as e:
        if raise_on_fail:
            raise RunCommandError(str(e), 127) from e
        return CommandResult("", str(e), 127)

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except asyncio.TimeoutError as e:
        process.kill()
        await process.wait()
        if raise_on_fail:
            raise RunCommandError(f"Timed out after {timeout}s: {cmd}", -1) from e
        return CommandResult("", f"Timed out after {timeout}s", -1)

    result = CommandResult(
        stdout.decode(errors="replace"), stderr.decode(errors="replace"), process.returncode
    )
    if raise_on_fail and not result.success:
        raise RunCommandError(result.stderr, result.return_code)
    return result


async def get_default_route_interfaces() -> list[str]:
    """Interfaces carrying an IPv4 default route, in the order the kernel lists them"""
    routes = (await run_command_async(["ip", "-j", "route", "show", "default"])).output_from_json()
    if not routes:
        return []
    return [route["dev"] for route in routes if route.get("dev")]
