"""MCP server entry point for Megatec-protocol UPS devices.

Exposes tools, resources, and prompts via the Model Context Protocol
using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .errors import UpsError
from .session import MegatecUps
from .transport.usb_connection import PRODUCT_ID, VENDOR_ID

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "megatec-ups",
    instructions="MCP server for Megatec-protocol UPS devices over USB",
)

# Global session state
_session: MegatecUps | None = None


def _get_session() -> MegatecUps:
    """Get the active UPS session, raising if not connected."""
    if _session is None:
        raise RuntimeError(
            "Not connected to device. Use the 'connect' tool first."
        )
    return _session


def _error(e: UpsError) -> dict[str, Any]:
    logger.warning("%s: %s", type(e).__name__, e)
    return {"error": str(e), "kind": type(e).__name__}


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(vendor_id: int = VENDOR_ID, product_id: int = PRODUCT_ID) -> dict[str, Any]:
    """Open a USB connection to the UPS.

    Args:
        vendor_id: USB vendor ID (default 0x0665).
        product_id: USB product ID (default 0x5161).
    """
    global _session
    if _session is not None:
        return {"connected": True, "message": "Already connected"}

    try:
        _session = MegatecUps.connect(vendor_id, product_id)
    except UpsError as e:
        return _error(e)

    result: dict[str, Any] = {
        "connected": True,
        "vendor_id": f"0x{vendor_id:04X}",
        "product_id": f"0x{product_id:04X}",
    }
    try:
        result["name"] = _session.get_name()
    except UpsError as e:
        logger.debug("Name query after connect failed: %s", e)
    return result


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the USB connection to the UPS."""
    global _session
    if _session is None:
        return {"disconnected": True}
    _session.close()
    _session = None
    return {"disconnected": True}


# ─── QUERY TOOLS ──────────────────────────────────────────────────────

@mcp.tool()
def get_name() -> dict[str, Any]:
    """Read the name string reported by the UPS."""
    ups = _get_session()
    try:
        return {"name": ups.get_name()}
    except UpsError as e:
        return _error(e)


@mcp.tool()
def get_status() -> dict[str, Any]:
    """Read live status: voltages, load %, frequency, battery, temperature."""
    ups = _get_session()
    try:
        return ups.get_status().to_dict()
    except UpsError as e:
        return _error(e)


@mcp.tool()
def get_status_no_ack() -> dict[str, Any]:
    """Read live status with the lighter query that needs no acknowledgment."""
    ups = _get_session()
    try:
        return ups.get_status_no_ack().to_dict()
    except UpsError as e:
        return _error(e)


@mcp.tool()
def get_rating() -> dict[str, Any]:
    """Read nameplate rating: voltage, current, battery voltage, frequency."""
    ups = _get_session()
    try:
        return ups.get_rating().to_dict()
    except UpsError as e:
        return _error(e)


# ─── CONTROL TOOLS ────────────────────────────────────────────────────

@mcp.tool()
def run_test(minutes: int | None = None, until_low: bool = False) -> dict[str, Any]:
    """Start a battery test.

    With no arguments runs the 10-second test.

    Args:
        minutes: Run the test for this many minutes (1-99).
        until_low: Run until the battery reports low.
    """
    if minutes is not None and until_low:
        return {"error": "Pass either minutes or until_low, not both"}

    ups = _get_session()
    try:
        if until_low:
            ups.test_until_battery_low()
            return {"started": True, "mode": "until_low"}
        if minutes is not None:
            ups.test_with_time(minutes)
            return {"started": True, "mode": "timed", "minutes": minutes}
        ups.test()
        return {"started": True, "mode": "quick"}
    except UpsError as e:
        return _error(e)


@mcp.tool()
def abort_test() -> dict[str, Any]:
    """Cancel a running battery test."""
    ups = _get_session()
    try:
        ups.abort_test()
    except UpsError as e:
        return _error(e)
    return {"aborted": True}


@mcp.tool()
def switch_beep() -> dict[str, Any]:
    """Toggle the UPS beeper on or off."""
    ups = _get_session()
    try:
        ups.switch_beep()
    except UpsError as e:
        return _error(e)
    return {"toggled": True}


@mcp.tool()
def shutdown() -> dict[str, Any]:
    """Shut the UPS output down after a one-minute delay."""
    ups = _get_session()
    try:
        ups.shutdown()
    except UpsError as e:
        return _error(e)
    return {"shutdown": True, "delay_minutes": 1}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("megatec://device/connection")
def resource_connection() -> str:
    """Connection state."""
    return json.dumps({"connected": _session is not None})


@mcp.resource("megatec://device/status")
def resource_device_status() -> str:
    """Current status readings, or the error that prevented reading them."""
    if _session is None:
        return json.dumps({"connected": False})
    try:
        status = _session.get_status_no_ack()
    except UpsError as e:
        return json.dumps({"connected": True, **_error(e)})
    return json.dumps({"connected": True, "status": status.to_dict()})


# ─── MCP PROMPTS ─────────────────────────────────────────────────────

@mcp.prompt()
def diagnose_ups() -> str:
    """Guide the AI through a health check of the connected UPS."""
    return """Check the health of the connected UPS.
Steps:
- Read the nameplate with get_rating
- Read live values with get_status
- Compare output voltage and input frequency against the rating
- Flag output load above 80% and battery voltage well below the rated value
- Flag temperatures above 40 degrees C

Only run run_test if the user asks for it. Never call shutdown unless the
user explicitly requests it."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
