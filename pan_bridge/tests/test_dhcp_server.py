from pathlib import Path

import pytest

from pan_bridge.lib.network_control.dhcp_server import DhcpServer
from pan_bridge.models.command_result import CommandResult

MODULE = "pan_bridge.lib.network_control.dhcp_server"


@pytest.fixture
def bridge_controller(mocker):
    controller = mocker.Mock()
    controller.bridge_address.return_value = "10.0.0.1/24"
    return controller


@pytest.fixture
def mocked_pkill(mocker):
    return mocker.patch(
        f"{MODULE}.run_command_async",
        new_callable=mocker.AsyncMock,
        return_value=CommandResult("", "", 1),
    )


@pytest.fixture
def mocked_spawn(mocker):
    process = mocker.Mock()
    process.pid = 777
    process.returncode = None
    process.wait = mocker.AsyncMock(return_value=0)
    spawn = mocker.patch(
        f"{MODULE}.asyncio.create_subprocess_exec",
        new_callable=mocker.AsyncMock,
        return_value=process,
    )
    return spawn, process


def test_build_config_derives_range_from_bridge_address(bridge_controller):
    config = DhcpServer(bridge_controller).build_config("pan0", "10.0.0.1/24")

    assert config.render() == (
        "interface pan0\n"
        "start 10.0.0.100\n"
        "end 10.0.0.254\n"
        "opt dns 8.8.8.8 8.8.4.4\n"
        "opt router 10.0.0.1\n"
        "opt subnet 255.255.255.0\n"
        "opt lease 86400\n"
    )


def test_build_config_uses_configured_dns_and_lease(bridge_controller):
    server = DhcpServer(bridge_controller, dns_servers=["1.1.1.1"], lease_seconds=3600, range_start=50)
    config = server.build_config("pan0", "192.168.5.1/24")
    assert config.start == "192.168.5.50"
    assert config.dns_servers == ["1.1.1.1"]
    assert config.lease_seconds == 3600


@pytest.mark.asyncio
async def test_start_dhcp_writes_config_and_spawns_server(mocker, bridge_controller, mocked_spawn):
    spawn, process = mocked_spawn
    mocker.patch(f"{MODULE}.shutil.which", return_value="/usr/sbin/udhcpd")
    server = DhcpServer(bridge_controller)

    assert await server.start_dhcp("pan0") is True

    assert spawn.call_args.args == ("/usr/sbin/udhcpd", "-f", server.config_path)
    contents = Path(server.config_path).read_text()
    assert "interface pan0\n" in contents
    assert "opt router 10.0.0.1\n" in contents
    Path(server.config_path).unlink()


@pytest.mark.asyncio
async def test_start_dhcp_without_binary_is_a_no_op(mocker, bridge_controller, mocked_spawn):
    spawn, process = mocked_spawn
    mocker.patch(f"{MODULE}.shutil.which", return_value=None)

    assert await DhcpServer(bridge_controller).start_dhcp("pan0") is False
    spawn.assert_not_called()


@pytest.mark.asyncio
async def test_start_dhcp_without_bridge_address(mocker, bridge_controller, mocked_spawn):
    spawn, process = mocked_spawn
    mocker.patch(f"{MODULE}.shutil.which", return_value="/usr/sbin/udhcpd")
    bridge_controller.bridge_address.return_value = None

    assert await DhcpServer(bridge_controller).start_dhcp("pan0") is False
    spawn.assert_not_called()


@pytest.mark.asyncio
async def test_stop_dhcp_terminates_tracked_server(mocker, bridge_controller, mocked_spawn, mocked_pkill):
    spawn, process = mocked_spawn
    mocker.patch(f"{MODULE}.shutil.which", return_value="/usr/sbin/udhcpd")
    server = DhcpServer(bridge_controller)
    await server.start_dhcp("pan0")
    Path(server.config_path).unlink()

    await server.stop_dhcp()

    process.terminate.assert_called_once()
    assert server.process is None
    mocked_pkill.assert_awaited_once_with(["pkill", "udhcpd"], raise_on_fail=False)


@pytest.mark.asyncio
async def test_stop_dhcp_with_nothing_running(mocked_pkill, bridge_controller):
    await DhcpServer(bridge_controller).stop_dhcp()
    mocked_pkill.assert_awaited_once()


def test_build_config_for_wider_bridge_subnet(bridge_controller):
    config = DhcpServer(bridge_controller).build_config("pan0", "10.1.0.1/16")

    assert config.start == "10.1.0.100"
    assert config.end == "10.1.255.254"
    assert config.subnet == "255.255.0.0"


@pytest.mark.asyncio
async def test_start_dhcp_when_range_does_not_fit(mocker, bridge_controller, mocked_spawn):
    spawn, process = mocked_spawn
    mocker.patch(f"{MODULE}.shutil.which", return_value="/usr/sbin/udhcpd")
    bridge_controller.bridge_address.return_value = "10.0.0.1/28"

    assert await DhcpServer(bridge_controller).start_dhcp("pan0") is False
    spawn.assert_not_called()


@pytest.mark.asyncio
async def test_start_dhcp_spawn_failure(mocker, bridge_controller):
    mocker.patch(f"{MODULE}.shutil.which", return_value="/usr/sbin/udhcpd")
    mocker.patch(
        f"{MODULE}.asyncio.create_subprocess_exec",
        new_callable=mocker.AsyncMock,
        side_effect=PermissionError("udhcpd"),
    )
    server = DhcpServer(bridge_controller)

    assert await server.start_dhcp("pan0") is False
    assert server.process is None
    Path(server.config_path).unlink()
