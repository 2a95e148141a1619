"""upyremote: Unix terminal (tty/termios/select)"""

import os as _os
import sys as _sys
import tty as _tty
import select as _select
import signal as _signal
import termios as _termios

import upyremote.errors as _errors
from upyremote.terminal import TerminalBase


class Terminal(TerminalBase):
    POLL_TIMEOUT = .05
    _SIGNALS = (_signal.SIGTERM, _signal.SIGHUP)

    def __init__(self, conn, log=None, scanner=None):
        super().__init__(conn, log, scanner)
        self._orig_attr = None
        self._orig_handlers = {}
        self._stdin_fd = _sys.stdin.fileno()
        if not _os.isatty(self._stdin_fd):
            raise _errors.ParamsError("Interactive session needs a terminal")

    def __del__(self):
        self._restore()

    @staticmethod
    def _on_signal(signum, _frame):
        raise SystemExit(128 + signum)

    def _setup(self):
        self._orig_attr = _termios.tcgetattr(self._stdin_fd)
        for signum in self._SIGNALS:
            self._orig_handlers[signum] = _signal.signal(
                signum, self._on_signal)
        _tty.setraw(self._stdin_fd)

    def _restore(self):
        if self._orig_attr:
            _termios.tcsetattr(
                self._stdin_fd, _termios.TCSANOW, self._orig_attr)
            self._orig_attr = None
        while self._orig_handlers:
            signum, handler = self._orig_handlers.popitem()
            _signal.signal(signum, handler)

    def read(self):
        return _os.read(self._stdin_fd, 32)

    def _loop(self):
        conn_fd = self._conn.fd
        select_fds = [self._stdin_fd]
        if conn_fd is not None:
            select_fds.append(conn_fd)
        while self._running:
            ret = _select.select(select_fds, [], [], self.POLL_TIMEOUT)
            if self._stdin_fd in ret[0]:
                self._read_event_terminal()
            else:
                self.handle_idle()
            if conn_fd is None or conn_fd in ret[0]:
                self._read_event_device()
