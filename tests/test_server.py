"""Tests for the MCP tool layer with a mocked session."""

from __future__ import annotations

import json
import sys
from unittest.mock import MagicMock, patch

import pytest

from megatec_ups_mcp.errors import InvalidResponseError, InvalidTimeError, TransportError
from megatec_ups_mcp.models import Rating, Status


def _get_server_module():
    """Import server module with FastMCP mocked to avoid init issues."""
    mock_fastmcp_cls = MagicMock()
    mock_fastmcp_instance = MagicMock()
    # Make the @mcp.tool() decorator a no-op that returns the function unchanged
    mock_fastmcp_instance.tool.return_value = lambda fn: fn
    mock_fastmcp_instance.resource.return_value = lambda fn: fn
    mock_fastmcp_instance.prompt.return_value = lambda fn: fn
    mock_fastmcp_cls.return_value = mock_fastmcp_instance

    with patch("mcp.server.fastmcp.FastMCP", mock_fastmcp_cls):
        sys.modules.pop("megatec_ups_mcp.server", None)
        import megatec_ups_mcp.server as server_mod

    return server_mod


STATUS = Status(230.0, 195.0, 230.0, 14.0, 49.9, 27.4, 32.0)


def test_get_status_returns_fields():
    server = _get_server_module()
    ups = MagicMock()
    ups.get_status.return_value = STATUS

    with patch.object(server, "_session", ups):
        result = server.get_status()

    assert result["output_load"] == 14.0
    assert result["temperature"] == 32.0


def test_get_rating_returns_fields():
    server = _get_server_module()
    ups = MagicMock()
    ups.get_rating.return_value = Rating(220.0, 3.0, 12.0, 50.0)

    with patch.object(server, "_session", ups):
        result = server.get_rating()

    assert result == {
        "rated_voltage": 220.0,
        "rated_current": 3.0,
        "battery_voltage": 12.0,
        "rated_frequency": 50.0,
    }


def test_device_error_becomes_error_dict():
    server = _get_server_module()
    ups = MagicMock()
    ups.get_status_no_ack.side_effect = InvalidResponseError("bad reply", b"?\r")

    with patch.object(server, "_session", ups):
        result = server.get_status_no_ack()

    assert result["kind"] == "InvalidResponseError"
    assert "bad reply" in result["error"]


def test_run_test_modes():
    server = _get_server_module()
    ups = MagicMock()

    with patch.object(server, "_session", ups):
        assert server.run_test()["mode"] == "quick"
        assert server.run_test(until_low=True)["mode"] == "until_low"
        assert server.run_test(minutes=5)["minutes"] == 5

    ups.test.assert_called_once_with()
    ups.test_until_battery_low.assert_called_once_with()
    ups.test_with_time.assert_called_once_with(5)


def test_run_test_rejects_conflicting_arguments():
    server = _get_server_module()
    ups = MagicMock()

    with patch.object(server, "_session", ups):
        result = server.run_test(minutes=5, until_low=True)

    assert "error" in result
    ups.test_with_time.assert_not_called()
    ups.test_until_battery_low.assert_not_called()


def test_run_test_invalid_time():
    server = _get_server_module()
    ups = MagicMock()
    ups.test_with_time.side_effect = InvalidTimeError(120)

    with patch.object(server, "_session", ups):
        result = server.run_test(minutes=120)

    assert result["kind"] == "InvalidTimeError"


def test_shutdown_and_beep():
    server = _get_server_module()
    ups = MagicMock()

    with patch.object(server, "_session", ups):
        assert server.shutdown() == {"shutdown": True, "delay_minutes": 1}
        assert server.switch_beep() == {"toggled": True}
        assert server.abort_test() == {"aborted": True}

    ups.shutdown.assert_called_once_with()
    ups.switch_beep.assert_called_once_with()
    ups.abort_test.assert_called_once_with()


def test_connect_and_disconnect():
    server = _get_server_module()
    ups = MagicMock()
    ups.get_name.return_value = "UPS 1000"

    with patch.object(server.MegatecUps, "connect", return_value=ups) as connect:
        result = server.connect(0x0665, 0x5161)
        assert result["connected"] is True
        assert result["name"] == "UPS 1000"
        assert result["vendor_id"] == "0x0665"
        connect.assert_called_once_with(0x0665, 0x5161)

        assert server.connect()["message"] == "Already connected"
        assert server.disconnect() == {"disconnected": True}

    ups.close.assert_called_once_with()
    assert server._session is None


def test_connect_failure():
    server = _get_server_module()

    with patch.object(
        server.MegatecUps, "connect", side_effect=TransportError("not found")
    ):
        result = server.connect()

    assert result["kind"] == "TransportError"
    assert server._session is None


def test_status_resource():
    server = _get_server_module()
    assert json.loads(server.resource_device_status()) == {"connected": False}

    ups = MagicMock()
    ups.get_status_no_ack.return_value = STATUS
    with patch.object(server, "_session", ups):
        payload = json.loads(server.resource_device_status())
        assert json.loads(server.resource_connection()) == {"connected": True}

    assert payload["status"]["battery_voltage"] == 27.4


def test_tools_require_connection():
    server = _get_server_module()
    with pytest.raises(RuntimeError, match="connect"):
        server.get_name()
