"""upyremote: session with detected device"""

import upyremote.conn as _conn
import upyremote.errors as _errors
import upyremote.detect as _detect
import upyremote.scanner as _scanner
import upyremote.mpy as _mpy
import upyremote.mpy_comm as _mpy_comm
import upyremote.shell as _shell
import upyremote.terminal as _terminal

DeviceMode = _detect.DeviceMode


class Session():
    """Uniform operations over engine selected by device mode

    Session owns its connection exclusively. Mode is not re-detected
    automatically, after reset the mode is UNKNOWN until redetect().
    """

    OPERATIONS = ('execute', 'run', 'ls', 'put', 'get', 'send', 'reset')

    def __init__(self, conn, mode, log=None, shell_transfer=_shell.HEREDOC, scanner=None):
        conn.acquire(self)
        self._conn = conn
        self._log = log
        self._shell_transfer = shell_transfer
        self._scanner = scanner or _scanner.PromptScanner(conn, log=log)
        self._mode = DeviceMode.UNKNOWN
        self._engine = None
        self._set_mode(mode)

    @classmethod
    def connect(cls, conn, log=None, timeout=_detect.DETECT_TIMEOUT, **kwargs):
        """Detect mode on connection and create session"""
        scanner = _scanner.PromptScanner(conn, log=log)
        mode = _detect.detect_mode(scanner, timeout, log=log)
        return cls(conn, mode, log=log, scanner=scanner, **kwargs)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def _set_mode(self, mode):
        self._mode = mode
        if mode is DeviceMode.MICROPYTHON:
            self._engine = _mpy.Mpy(self._scanner, log=self._log)
        elif mode is DeviceMode.UPYOS:
            self._engine = _shell.Shell(
                self._scanner, log=self._log, transfer=self._shell_transfer)
        else:
            self._engine = None

    @property
    def conn(self):
        return self._conn

    @property
    def scanner(self):
        return self._scanner

    @property
    def mode(self):
        return self._mode

    @property
    def engine(self):
        return self._engine

    def _operation(self, name):
        if self._engine is None:
            raise _errors.ModeUnknown(name, self._mode)
        operation = getattr(self._engine, name, None)
        if operation is None:
            raise _errors.UnsupportedInMode(name, self._mode)
        return operation

    def execute(self, code, timeout=_mpy.Mpy.EXEC_TIMEOUT):
        """Execute code, returns ExecResult(stdout, stderr)"""
        return self._operation('execute')(code, timeout=timeout)

    def run(self, code, timeout=_mpy.Mpy.EXEC_TIMEOUT):
        """Run local script source on device"""
        return self._operation('run')(code, timeout=timeout)

    def ls(self, path='/'):
        return self._operation('ls')(path)

    def put(self, data, path):
        return self._operation('put')(data, path)

    def get(self, path):
        return self._operation('get')(path)

    def send(self, line, timeout=None):
        return self._operation('send')(line, timeout=timeout)

    def reset(self, kind=_conn.ResetKind.SOFT):
        """Reset device, mode becomes UNKNOWN even when reset fails"""
        operation = self._operation('reset')
        try:
            operation(kind)
        finally:
            if self._log:
                self._log.info("mode %s invalidated by reset", self._mode.value)
            self._set_mode(DeviceMode.UNKNOWN)

    def redetect(self, timeout=_detect.DETECT_TIMEOUT):
        """Detect mode again, typically after reset"""
        mode = _detect.detect_mode(self._scanner, timeout, log=self._log)
        self._set_mode(mode)
        return mode

    def terminal(self):
        """Create interactive terminal bridge over this connection"""
        return _terminal.get_terminal(self._conn, self._log, scanner=self._scanner)

    def close(self):
        if self._conn is not None:
            try:
                if isinstance(self._engine, _mpy.Mpy) and (
                        self._engine.comm.state is not _mpy_comm.ReplState.ERROR_ABORT):
                    self._engine.comm.exit_raw_repl()
            finally:
                self._conn.release(self)
                self._conn = None
