"""
Serial Link Tests

Uses pyserial's loop:// URL: bytes written to the port come straight
back on its read side, so no hardware is needed.
"""

import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from bfvm import Engine, StopReason, EndOfInput
from bfvm.serial_link import SerialLink, DEFAULT_BAUD


class TestSerialLink:

    def test_open_close(self):
        link = SerialLink('loop://', timeout=0.2)
        assert not link.is_connected
        link.open()
        assert link.is_connected
        assert link.baud == DEFAULT_BAUD
        link.close()
        assert not link.is_connected
        assert link.ser is None

    def test_context_manager_closes(self):
        with SerialLink('loop://', timeout=0.2) as link:
            assert link.is_connected
        assert not link.is_connected

    def test_close_twice(self):
        link = SerialLink('loop://', timeout=0.2)
        link.open()
        link.close()
        link.close()

    def test_engine_reads_and_writes_port(self):
        """Byte injected into the loopback is read by ',' and echoed by '.'"""
        with SerialLink('loop://', timeout=0.5) as link:
            link.ser.write(b'Q')
            engine = Engine(b',+.', stdin=link.ser, stdout=link.ser)
            assert engine.run() is StopReason.DONE
            assert link.ser.read(1) == b'R'

    def test_output_only_program(self):
        with SerialLink('loop://', timeout=0.5) as link:
            engine = Engine(b'++++++++[>++++++++<-]>.', stdin=link.ser, stdout=link.ser)
            engine.run()
            assert link.ser.read(1) == b'@'

    def test_read_timeout_is_end_of_input(self):
        with SerialLink('loop://', timeout=0.1) as link:
            engine = Engine(b',', stdin=link.ser, stdout=link.ser)
            with pytest.raises(EndOfInput):
                engine.run()

    def test_scan_ports_returns_list(self):
        assert isinstance(SerialLink.scan_ports(), list)
