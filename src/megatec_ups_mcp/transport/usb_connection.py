"""USB HID connection to a Megatec-protocol UPS.

Supports both ``hidapi`` (preferred) and ``pyusb`` backends.
The UPS presents a HID interface that tunnels the serial Megatec protocol:
commands are written as 8-byte HID output reports (SET_REPORT on the
control endpoint) and replies arrive as 8-byte interrupt reports on
endpoint 0x81 until a carriage return is seen.
"""

from __future__ import annotations

import errno
import logging
import time

from ..errors import TransportError

logger = logging.getLogger(__name__)

VENDOR_ID = 0x0665
PRODUCT_ID = 0x5161
HID_INTERFACE = 0
EP_IN = 0x81
REPORT_SIZE = 8
READ_TIMEOUT_MS = 1000
WRITE_TIMEOUT_MS = 5000
MAX_REPLY_SIZE = 256

# Poll timeout while discarding late replies; 0 means "block" to both backends
FLUSH_TIMEOUT_MS = 1
MAX_FLUSH_REPORTS = 4 * MAX_REPLY_SIZE // REPORT_SIZE

# HID class SET_REPORT, host-to-interface, output report 0
SET_REPORT_REQUEST_TYPE = 0x21
SET_REPORT_REQUEST = 0x09
SET_REPORT_VALUE = 0x0200

TERMINATOR = b"\r"


def split_reports(data: bytes) -> list[bytes]:
    """Split a command into zero-padded 8-byte HID reports."""
    reports: list[bytes] = []
    for offset in range(0, len(data), REPORT_SIZE):
        chunk = data[offset : offset + REPORT_SIZE]
        reports.append(chunk + b"\x00" * (REPORT_SIZE - len(chunk)))
    return reports


class USBConnection:
    """Owns the HID handle of one UPS.

    Usage::

        conn = USBConnection()
        conn.open()
        conn.write(b"Q1\\r")
        reply = conn.read()
        conn.close()

    Every ``write`` first discards input that is already queued, so a reply
    that arrived after an earlier read timed out is never taken as the
    answer to the next command.
    """

    def __init__(
        self,
        vendor_id: int = VENDOR_ID,
        product_id: int = PRODUCT_ID,
    ) -> None:
        self._vendor_id = vendor_id
        self._product_id = product_id
        self._device = None
        self._backend: str = ""
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def backend(self) -> str:
        """``"hidapi"``, ``"pyusb"``, or empty when closed."""
        return self._backend

    def open(self) -> None:
        """Open the UPS, trying hidapi first, then pyusb.

        Raises:
            TransportError: If neither backend can open the device.
        """
        failures: list[str] = []
        for backend, opener in (
            ("hidapi", self._open_hidapi),
            ("pyusb", self._open_pyusb),
        ):
            try:
                self._device = opener()
            except TransportError as e:
                logger.debug("%s backend unavailable: %s", backend, e)
                failures.append(f"{backend}: {e}")
                continue
            self._backend = backend
            self._connected = True
            logger.info(
                "UPS %04x:%04x opened via %s",
                self._vendor_id,
                self._product_id,
                backend,
            )
            return

        raise TransportError(
            f"Could not open UPS {self._vendor_id:04x}:{self._product_id:04x} "
            f"({'; '.join(failures)})"
        )

    def _open_hidapi(self):
        try:
            import hid
        except ImportError as e:
            raise TransportError("hidapi is not installed") from e

        device = hid.device()
        try:
            device.open(self._vendor_id, self._product_id)
            device.set_nonblocking(False)
        except (OSError, ValueError) as e:
            raise TransportError(f"open failed: {e}") from e
        return device

    def _open_pyusb(self):
        try:
            import usb.core
            import usb.util
        except ImportError as e:
            raise TransportError("pyusb is not installed") from e

        try:
            dev = usb.core.find(idVendor=self._vendor_id, idProduct=self._product_id)
            if dev is None:
                raise TransportError("no matching device on the bus")
            # Linux binds usbhid to the UPS; it has to let go of the interface
            if dev.is_kernel_driver_active(HID_INTERFACE):
                dev.detach_kernel_driver(HID_INTERFACE)
            usb.util.claim_interface(dev, HID_INTERFACE)
        except (OSError, NotImplementedError) as e:
            raise TransportError(f"claim failed: {e}") from e
        return dev

    def close(self) -> None:
        """Release the HID handle. Safe to call when already closed."""
        if not self._connected:
            return

        device, backend = self._device, self._backend
        self._device = None
        self._backend = ""
        self._connected = False
        try:
            if backend == "hidapi":
                device.close()
            else:
                import usb.util
                usb.util.release_interface(device, HID_INTERFACE)
                usb.util.dispose_resources(device)
        except (OSError, ValueError) as e:
            logger.warning("Error releasing UPS handle: %s", e)
        logger.info("UPS %04x:%04x closed", self._vendor_id, self._product_id)

    def flush_input(self) -> bytes:
        """Discard input reports already queued by the device.

        Returns:
            The discarded bytes, for logging.
        """
        if not self._connected:
            raise TransportError("Not connected to device")

        stale = b""
        try:
            for _ in range(MAX_FLUSH_REPORTS):
                report = self._read_report(FLUSH_TIMEOUT_MS)
                if not report:
                    break
                stale += report
        except (OSError, ValueError) as e:
            raise TransportError(f"Flush failed: {e}") from e

        if stale:
            logger.debug("Discarded stale input %r", stale)
        return stale

    def write(self, data: bytes) -> None:
        """Write a command as a sequence of 8-byte HID reports.

        Pending input is flushed first.

        Raises:
            TransportError: If not connected or the write fails.
        """
        self.flush_input()

        logger.debug("TX %r", data)
        try:
            for report in split_reports(data):
                if self._backend == "hidapi":
                    # Leading 0x00 is the report ID for unnumbered reports
                    written = self._device.write(b"\x00" + report)
                    if written < 0:
                        raise TransportError("hidapi write failed")
                else:
                    self._device.ctrl_transfer(
                        SET_REPORT_REQUEST_TYPE,
                        SET_REPORT_REQUEST,
                        SET_REPORT_VALUE,
                        HID_INTERFACE,
                        report,
                        WRITE_TIMEOUT_MS,
                    )
        except (OSError, ValueError) as e:
            raise TransportError(f"Write failed: {e}") from e

    def _read_report(self, timeout_ms: int) -> bytes:
        """Read one interrupt report; empty on timeout."""
        if self._backend == "hidapi":
            return bytes(self._device.read(REPORT_SIZE, timeout_ms))
        try:
            return bytes(self._device.read(EP_IN, REPORT_SIZE, timeout=timeout_ms))
        except OSError as e:
            if e.errno == errno.ETIMEDOUT:
                return b""
            raise

    def read(self, timeout_ms: int = READ_TIMEOUT_MS) -> bytes:
        """Read one reply line from the device.

        Interrupt reports are accumulated until a carriage return arrives.
        Bytes after the terminator are report padding and are dropped. If
        ``MAX_REPLY_SIZE`` bytes arrive without a terminator, they are
        returned as-is and rejected by the frame parser.

        Args:
            timeout_ms: Overall reply timeout in milliseconds.

        Returns:
            The reply, terminator included.

        Raises:
            TransportError: If not connected, on timeout, or if the read fails.
        """
        if not self._connected:
            raise TransportError("Not connected to device")

        deadline = time.monotonic() + timeout_ms / 1000
        buf = b""
        try:
            while len(buf) < MAX_REPLY_SIZE:
                remaining_ms = int((deadline - time.monotonic()) * 1000)
                if remaining_ms <= 0:
                    raise TransportError(
                        f"Timed out after {timeout_ms} ms waiting for reply "
                        f"(received {buf!r})"
                    )
                buf += self._read_report(remaining_ms)
                end = buf.find(TERMINATOR)
                if end != -1:
                    reply = buf[: end + len(TERMINATOR)]
                    logger.debug("RX %r", reply)
                    return reply
        except (OSError, ValueError) as e:
            raise TransportError(f"Read failed: {e}") from e

        logger.debug("RX (unterminated) %r", buf)
        return buf
