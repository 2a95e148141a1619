"""upyremote: Windows console terminal (msvcrt/ctypes)"""

import sys as _sys
import ctypes as _ctypes
import msvcrt as _msvcrt

import upyremote.errors as _errors
from upyremote.terminal import TerminalBase

_kernel32 = _ctypes.windll.kernel32

# (std handle, console mode flags, flags are added to original mode)
_CONSOLE_MODES = (
    # input: only virtual terminal input, no line input, echo or CTRL + C
    (-10, 0x0200, False),
    # output: ANSI escape processing
    (-11, 0x0004, True),
)

# getch() returns prefix 0x00 or 0xe0 and scan code for extended keys,
# they are translated to sequences known by KeyDecoder
_EXTENDED_KEYS = {
    72: b'\x1b[A',
    80: b'\x1b[B',
    77: b'\x1b[C',
    75: b'\x1b[D',
    116: b'\x1b[1;5C',
    115: b'\x1b[1;5D',
    71: b'\x1b[H',
    79: b'\x1b[F',
    83: b'\x1b[3~',
}


class Terminal(TerminalBase):
    POLL_TIMEOUT = .005

    def __init__(self, conn, log=None, scanner=None):
        super().__init__(conn, log, scanner)
        self._saved_modes = []
        if not _sys.stdin.isatty():
            raise _errors.ParamsError("Interactive session needs a terminal")

    def __del__(self):
        self._restore()

    def _setup(self):
        for std_handle, flags, add in _CONSOLE_MODES:
            handle = _kernel32.GetStdHandle(std_handle)
            mode = _ctypes.c_uint32()
            _kernel32.GetConsoleMode(handle, _ctypes.byref(mode))
            self._saved_modes.append((handle, mode.value))
            _kernel32.SetConsoleMode(handle, mode.value | flags if add else flags)

    def _restore(self):
        while self._saved_modes:
            handle, mode = self._saved_modes.pop()
            _kernel32.SetConsoleMode(handle, mode)

    def read(self):
        """Read all pressed keys"""
        data = bytearray()
        while _msvcrt.kbhit():
            key = _msvcrt.getch()
            if key in (b'\x00', b'\xe0'):
                scan = _msvcrt.getch()[0]
                data += _EXTENDED_KEYS.get(scan, b'')
            else:
                data += key
        return bytes(data)

    def _loop(self):
        while self._running:
            if _msvcrt.kbhit():
                self._read_event_terminal()
            else:
                self.handle_idle()
            data = self._conn.read(self.POLL_TIMEOUT)
            if data:
                self.write(data)
