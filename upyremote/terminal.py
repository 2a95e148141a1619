"""upyremote: interactive terminal bridge

Local keys are decoded, line editing keys are handled locally in
TerminalLineBuffer, printable characters are forwarded to device
immediately. Device is responsible for echo, terminal only prints what
device sends.
"""

import sys as _sys

from upyremote.line_buffer import TerminalLineBuffer


CTRL_C = b'\x03'
CTRL_D = b'\x04'
BACKSPACE = b'\x7f'
ENTER = b'\r'

KEYS = {
    b'\x18': 'exit',  # CTRL + X
    b'\x03': 'interrupt',
    b'\x04': 'eof',
    b'\x01': 'home',
    b'\x05': 'end',
    b'\x0b': 'kill_to_end',
    b'\x15': 'kill_line',
    b'\x17': 'kill_word',
    b'\r': 'enter',
    b'\n': 'enter',
    b'\x7f': 'backspace',
    b'\x08': 'backspace',
    b'\x1b[A': 'up',
    b'\x1b[B': 'down',
    b'\x1b[C': 'right',
    b'\x1b[D': 'left',
    b'\x1bOA': 'up',
    b'\x1bOB': 'down',
    b'\x1bOC': 'right',
    b'\x1bOD': 'left',
    b'\x1b[1;5C': 'word_right',
    b'\x1b[1;5D': 'word_left',
    b'\x1b[H': 'home',
    b'\x1b[F': 'end',
    b'\x1bOH': 'home',
    b'\x1bOF': 'end',
    b'\x1b[1~': 'home',
    b'\x1b[4~': 'end',
    b'\x1b[7~': 'home',
    b'\x1b[8~': 'end',
    b'\x1b[3~': 'delete',
}

# local line editing, key: TerminalLineBuffer method
_EDIT_KEYS = {
    'home': 'home',
    'end': 'end',
    'left': 'left',
    'right': 'right',
    'word_left': 'word_left',
    'word_right': 'word_right',
    'delete': 'delete',
    'kill_to_end': 'kill_to_end',
    'kill_line': 'kill_line',
    'kill_word': 'kill_word',
    'up': 'history_prev',
    'down': 'history_next',
}


class KeyDecoder():
    """Split input bytes to keys, incomplete escape sequences are kept"""

    _ESCAPES = sorted(
        (seq for seq in KEYS if seq.startswith(b'\x1b')), key=len, reverse=True)

    def __init__(self):
        self._pending = bytearray()

    def _next_key(self):
        pending = bytes(self._pending)
        if pending[0] != 0x1b:
            return 1, KEYS.get(pending[:1])
        for seq in self._ESCAPES:
            if pending.startswith(seq):
                return len(seq), KEYS[seq]
        if any(seq.startswith(pending) for seq in self._ESCAPES):
            return None
        if pending[1:2] == b'[':
            # unknown CSI sequence, ends with final byte
            for pos in range(2, len(pending)):
                if 0x40 <= pending[pos] <= 0x7e:
                    return pos + 1, None
            return None
        return 1, None

    def feed(self, data):
        """Decode data

        Returns:
            list of (key, raw bytes), key is None for keys without meaning
        """
        self._pending += data
        keys = []
        while self._pending:
            res = self._next_key()
            if res is None:
                break
            size, key = res
            keys.append((key, bytes(self._pending[:size])))
            del self._pending[:size]
        return keys

    def flush(self):
        """Release incomplete sequence (lone ESC key)"""
        if not self._pending:
            return []
        data = bytes(self._pending)
        del self._pending[:]
        return [(None, data)]


class TerminalBase():
    def __init__(self, conn, log=None, scanner=None):
        self._conn = conn
        self._log = log
        self._scanner = scanner
        self._running = None
        self._decoder = KeyDecoder()
        self._line = TerminalLineBuffer()
        # what device holds in its line, printable keys are appended
        self._device_line = b''

    def __enter__(self):
        self._setup()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self._restore()

    @property
    def line_buffer(self):
        return self._line

    @property
    def running(self):
        return self._running

    def _setup(self):
        """Switch local terminal to raw mode"""

    def _restore(self):
        """Restore local terminal mode"""

    def read(self):
        raise NotImplementedError

    def write(self, buf):
        _sys.stdout.buffer.write(buf)
        _sys.stdout.buffer.flush()

    def _loop(self):
        raise NotImplementedError

    def _read_event_terminal(self):
        data = self.read()
        if self._log:
            self._log.debug('from terminal: %s', data)
        if data:
            self.handle_input(data)

    def _read_event_device(self):
        data = self._conn.read()
        if data:
            self.write(data)

    def _flush_device(self):
        if self._scanner is not None:
            data = self._scanner.read_available()
            if data:
                self.write(data)

    def handle_input(self, data):
        for key, raw in self._decoder.feed(data):
            self.handle_key(key, raw)

    def handle_idle(self):
        for key, raw in self._decoder.flush():
            self.handle_key(key, raw)

    def _forward(self, data):
        self._conn.write(data)

    def _submit(self):
        line = self._line.line.encode('latin-1')
        if line != self._device_line:
            # line was edited locally, replace line on device
            self._forward(BACKSPACE * len(self._device_line) + line)
        self._forward(ENTER)
        self._line.submit()
        self._device_line = b''

    def handle_key(self, key, raw):
        if key == 'exit':
            self._running = False
        elif key in ('interrupt', 'eof'):
            self._forward(CTRL_C if key == 'interrupt' else CTRL_D)
            self._line.kill_line()
            self._device_line = b''
        elif key == 'enter':
            self._submit()
        elif key == 'backspace':
            self._line.backspace()
            self._device_line = self._device_line[:-1]
            self._forward(raw)
        elif key in _EDIT_KEYS:
            getattr(self._line, _EDIT_KEYS[key])()
        elif len(raw) == 1 and raw[0] >= 0x20 and raw != BACKSPACE:
            self._line.insert(raw.decode('latin-1'))
            self._device_line += raw
            self._forward(raw)
        else:
            self._forward(raw)

    def run(self):
        """Run interactive session until CTRL + X"""
        self._running = True
        with self:
            self._flush_device()
            self._loop()
        self._running = False
        self.write(b'\r\n')


def get_terminal(conn, log=None, scanner=None):
    """Create terminal for current platform"""
    if _sys.platform == 'win32':
        import upyremote.terminal_win as _platform_terminal
    else:
        import upyremote.terminal_unix as _platform_terminal
    return _platform_terminal.Terminal(conn, log, scanner=scanner)
