"""
bfrun CLI Tests

Runs bfrun.py in a subprocess so stdin/stdout are real byte streams and
exit codes are the process's own.
"""

import os
import subprocess
import sys

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
BFRUN = os.path.join(ROOT, "bfrun.py")

EIGHT_TIMES_EIGHT = b'++++++++[>++++++++<-]>.'


def _bfrun(*args, stdin: bytes = b''):
    return subprocess.run(
        [sys.executable, BFRUN, *[str(a) for a in args]],
        input=stdin,
        capture_output=True,
        cwd=ROOT,
        timeout=30,
    )


def _program(tmp_path, code: bytes, name: str = "prog.b"):
    path = tmp_path / name
    path.write_bytes(code)
    return path


class TestRun:

    def test_output_program(self, tmp_path):
        proc = _bfrun(_program(tmp_path, EIGHT_TIMES_EIGHT))
        assert proc.returncode == 0, proc.stderr
        assert proc.stdout == b'@'

    def test_echo_stdin(self, tmp_path):
        proc = _bfrun(_program(tmp_path, b',[.,]'), stdin=b'ab\x00')
        assert proc.returncode == 0, proc.stderr
        assert proc.stdout == b'ab'

    def test_binary_bytes_pass_through(self, tmp_path):
        proc = _bfrun(_program(tmp_path, b',.,.'), stdin=b'\xff\r')
        assert proc.returncode == 0, proc.stderr
        assert proc.stdout == b'\xff\r'

    def test_input_file(self, tmp_path):
        data = tmp_path / "in.bin"
        data.write_bytes(b'Z')
        proc = _bfrun(_program(tmp_path, b',.'), "--input", data)
        assert proc.returncode == 0, proc.stderr
        assert proc.stdout == b'Z'


class TestExitCodes:

    def test_missing_argument_is_usage_error(self):
        proc = _bfrun()
        assert proc.returncode == 2

    def test_missing_file(self, tmp_path):
        proc = _bfrun(tmp_path / "nope.b")
        assert proc.returncode == 1
        assert b'Cannot read program' in proc.stderr

    def test_missing_input_file(self, tmp_path):
        proc = _bfrun(_program(tmp_path, b',.'), "--input", tmp_path / "nope.bin")
        assert proc.returncode == 1

    def test_execution_error(self, tmp_path):
        proc = _bfrun(_program(tmp_path, b'+<'))
        assert proc.returncode == 1
        assert b'TapeUnderflow' in proc.stderr
        assert b'pc 1' in proc.stderr

    def test_end_of_input(self, tmp_path):
        proc = _bfrun(_program(tmp_path, b',.'))
        assert proc.returncode == 1
        assert b'EndOfInput' in proc.stderr

    def test_output_before_error_is_kept(self, tmp_path):
        proc = _bfrun(_program(tmp_path, b'+++.]'))
        assert proc.returncode == 1
        assert proc.stdout == b'\x03'
        assert b'UnmatchedEndBracket' in proc.stderr

    def test_max_steps(self, tmp_path):
        proc = _bfrun(_program(tmp_path, b'+[]'), "--max-steps", 500)
        assert proc.returncode == 3
        assert b'500 steps' in proc.stderr

    def test_input_and_serial_conflict(self, tmp_path):
        proc = _bfrun(_program(tmp_path, b'.'), "--input", "x", "--serial", "loop://")
        assert proc.returncode == 2

    def test_baud_requires_serial(self, tmp_path):
        proc = _bfrun(_program(tmp_path, b'.'), "--baud", 115200)
        assert proc.returncode == 2

    def test_nonpositive_baud_is_usage_error(self, tmp_path):
        proc = _bfrun(_program(tmp_path, b'.'), "--serial", "loop://", "--baud", -5)
        assert proc.returncode == 2
        assert b'Traceback' not in proc.stderr

    def test_unknown_port_url(self, tmp_path):
        """pyserial raises ValueError for an unknown URL scheme"""
        proc = _bfrun(_program(tmp_path, b'.'), "--serial", "bogus://port")
        assert proc.returncode == 1
        assert b'Cannot open input' in proc.stderr
        assert b'Traceback' not in proc.stderr


class TestDiagnostics:

    def test_dump_tape(self, tmp_path):
        proc = _bfrun(_program(tmp_path, b'+++>++'), "--dump-tape", 16)
        assert proc.returncode == 0
        assert b'000000   03  [02]' in proc.stderr

    def test_trace(self, tmp_path):
        proc = _bfrun(_program(tmp_path, b'+.'), "--trace")
        assert proc.returncode == 0
        assert b'000000: INC' in proc.stderr
        assert b'000001: OUT' in proc.stderr

    def test_unbalanced_warning(self, tmp_path):
        proc = _bfrun(_program(tmp_path, b'[[]'))
        assert proc.returncode == 1
        assert b"unmatched '['" in proc.stderr

    def test_verbose(self, tmp_path):
        proc = _bfrun(_program(tmp_path, b'+'), "--verbose")
        assert proc.returncode == 0
        assert b'[DEBUG]' in proc.stderr

    def test_serial_loopback(self, tmp_path):
        proc = _bfrun(_program(tmp_path, EIGHT_TIMES_EIGHT),
                      "--serial", "loop://", "--timeout", 0.2)
        assert proc.returncode == 0, proc.stderr
        assert proc.stdout == b''
