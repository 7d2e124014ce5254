"""
bfvm - Serial Port Streams

Runs a program against a serial device instead of stdin/stdout: every
',' reads one byte from the port and every '.' writes one byte to it.
A serial.Serial object is already a binary reader/writer, so the engine
uses it directly and this module only handles opening and closing.

Serial config: 8N1, baud rate selectable (default 9600).

Read timeout:
  None   - ',' blocks until a byte arrives (default)
  float  - ',' waits that many seconds; a timed-out read returns no data
           and the run stops with EndOfInput

``port`` may be a device path (/dev/ttyUSB0, COM3) or any pyserial URL,
e.g. ``loop://`` for a loopback port with no hardware attached.
"""

import logging
from typing import List, Optional

import serial
import serial.tools.list_ports

log = logging.getLogger('bfvm.serial')

DEFAULT_BAUD = 9600
WRITE_TIMEOUT_S = 1.0


class SerialLink:
    """
    Serial connection used as engine input and output.

    Usage:
        with SerialLink('/dev/ttyUSB0', baud=115200) as link:
            Engine(program, stdin=link.ser, stdout=link.ser).run()
    """

    def __init__(self, port: str, baud: int = DEFAULT_BAUD,
                 timeout: Optional[float] = None):
        self.port = port
        self.baud = baud
        self.timeout = timeout
        self.ser: Optional[serial.Serial] = None

    # -------------------------------------------------------------------------
    # Port Management
    # -------------------------------------------------------------------------

    @staticmethod
    def scan_ports() -> List[str]:
        """List serial devices present on this machine."""
        return [p.device for p in serial.tools.list_ports.comports()]

    def open(self):
        """Open the port. Raises serial.SerialException if it cannot be opened."""
        self.ser = serial.serial_for_url(
            self.port,
            baudrate=self.baud,
            bytesize=serial.EIGHTBITS,
            parity=serial.PARITY_NONE,
            stopbits=serial.STOPBITS_ONE,
            timeout=self.timeout,
            write_timeout=WRITE_TIMEOUT_S,
        )
        self.ser.reset_input_buffer()
        log.info(f"Opened {self.port} @ {self.baud} baud (8N1)")

    def close(self):
        """Close serial port."""
        if self.ser and self.ser.is_open:
            self.ser.close()
            log.info(f"Closed {self.port}")
        self.ser = None

    @property
    def is_connected(self) -> bool:
        return self.ser is not None and self.ser.is_open

    def __enter__(self) -> 'SerialLink':
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
