"""upyremote: MicroPython raw REPL communication"""

import ast as _ast
import enum as _enum
import contextlib as _contextlib
from collections import namedtuple as _namedtuple

import upyremote.conn as _conn
import upyremote.errors as _errors


CTRL_A = b'\x01'  # enter raw REPL
CTRL_B = b'\x02'  # exit raw REPL
CTRL_C = b'\x03'  # interrupt
CTRL_D = b'\x04'  # execute, soft reset

RAW_READY = b'raw REPL; CTRL-B to exit\r\n>'
EXEC_OK = b'OK'
SENTINEL = b'\x04'
END_MARKER = b'\x04>'
PROMPT = b'\r\n>>> '
SOFT_REBOOT = b'soft reboot'


ExecResult = _namedtuple('ExecResult', ['stdout', 'stderr'])


class ReplState(_enum.Enum):
    IDLE = 'idle'
    ENTERING_RAW = 'entering_raw'
    RAW_READY = 'raw_ready'
    EXECUTING = 'executing'
    COLLECTING = 'collecting'
    EXITING_RAW = 'exiting_raw'
    ERROR_ABORT = 'error_abort'


class MpyComm():
    INTERRUPT_TIMEOUT = .5
    ENTER_TIMEOUT = 1
    EXIT_TIMEOUT = 1
    ACK_TIMEOUT = 1
    RESET_TIMEOUT = 2

    def __init__(self, scanner, log=None):
        self._scanner = scanner
        self._conn = scanner.conn
        self._log = log
        self._state = ReplState.IDLE

    @property
    def conn(self):
        return self._conn

    @property
    def scanner(self):
        return self._scanner

    @property
    def state(self):
        return self._state

    def _set_state(self, state):
        if self._log and state is not self._state:
            self._log.debug("raw REPL: %s -> %s", self._state.value, state.value)
        self._state = state

    def stop_current_operation(self):
        """Interrupt running program and wait for friendly prompt"""
        if self._log:
            self._log.info('STOP CURRENT OPERATION')
        self._conn.write(b'\r' + CTRL_C + CTRL_C)
        result = self._scanner.read_until(
            PROMPT, self.INTERRUPT_TIMEOUT, trailing=False)
        if not result.matched and self._log:
            # probably is in RAW repl
            self._log.warning("Timeout while stopping program")
        self._scanner.flush()

    def enter_raw_repl(self):
        if self._state is ReplState.RAW_READY:
            return
        self._set_state(ReplState.ENTERING_RAW)
        self.stop_current_operation()
        if self._log:
            self._log.info('ENTER RAW REPL')
        self._conn.write(CTRL_A)
        result = self._scanner.read_until(
            RAW_READY, self.ENTER_TIMEOUT, trailing=False)
        if not result.matched:
            self._abort()
            raise _errors.ModeEntryFailed(
                'Raw REPL prompt was not received', result.data)
        self._set_state(ReplState.RAW_READY)

    def exit_raw_repl(self):
        """Leave raw REPL

        Exit is attempted from every state except IDLE,
        missing friendly prompt is only reported.
        """
        if self._state is ReplState.IDLE:
            return
        self._set_state(ReplState.EXITING_RAW)
        if self._log:
            self._log.info('EXIT RAW REPL')
        self._conn.write(CTRL_B)
        result = self._scanner.read_until(
            PROMPT, self.EXIT_TIMEOUT, trailing=False)
        self._set_state(ReplState.IDLE)
        if not result.matched and self._log:
            self._log.warning("Prompt not received after exit from raw REPL")

    def _abort(self):
        self._set_state(ReplState.ERROR_ABORT)
        if self._log:
            self._log.warning('ABORT, leaving raw REPL')
        try:
            self._conn.write(CTRL_C)
            self.exit_raw_repl()
        except _conn.ConnError as err:
            if self._log:
                self._log.error("Leaving raw REPL failed: %s", err)

    @_contextlib.contextmanager
    def raw_repl(self):
        """Context with device in raw REPL

        Raw REPL is always left at the end, also on error.
        Nested contexts reuse already entered raw REPL.
        """
        if self._state is ReplState.RAW_READY:
            yield self
            return
        self.enter_raw_repl()
        try:
            yield self
        except _conn.ConnError:
            # connection is gone, no cleanup possible
            self._set_state(ReplState.ERROR_ABORT)
            raise
        except BaseException:
            self._abort()
            raise
        self.exit_raw_repl()

    def _start(self, code):
        if self._state is not ReplState.RAW_READY:
            raise _errors.ProtocolFraming(
                f'Raw REPL is not ready ({self._state.value})')
        self._set_state(ReplState.EXECUTING)
        if isinstance(code, str):
            code = code.encode('utf-8')
        if self._log:
            self._log.info("CMD: %s", code)
        self._conn.write(code)
        self._conn.write(CTRL_D)
        self._set_state(ReplState.COLLECTING)
        result = self._scanner.read_until(
            EXEC_OK, self.ACK_TIMEOUT, trailing=False)
        if not result.matched:
            raise _errors.ProtocolFraming(
                'Code was not accepted by raw REPL', result.data)

    def _read_segment(self, marker, timeout):
        result = self._scanner.read_until(marker, timeout, trailing=False)
        if not result.matched:
            raise _errors.ProtocolFraming(
                f'Marker {marker} was not received', result.data)
        return result.payload

    def exec_raw(self, code, timeout=5):
        """Execute code in already entered raw REPL

        Arguments:
            code: code to execute
            timeout: maximum waiting time for each output segment

        Returns:
            ExecResult with STDOUT and STDERR of executed code
        """
        self._start(code)
        stdout = self._read_segment(SENTINEL, timeout)
        stderr = self._read_segment(END_MARKER, timeout)
        self._set_state(ReplState.RAW_READY)
        if self._log:
            if stdout:
                self._log.info("RES: %s", stdout)
            if stderr:
                self._log.info("ERR: %s", stderr)
        return ExecResult(stdout, stderr)

    def exec_lines(self, code, timeout=5):
        """Execute code and yield STDOUT lines while they arrive

        Raises:
            CmdError when code wrote to STDERR
        """
        self._start(code)
        while True:
            result = self._scanner.read_until(
                [b'\n', SENTINEL], timeout, trailing=False)
            if not result.matched:
                raise _errors.ProtocolFraming(
                    'Output line was not received', result.data)
            line = result.payload.rstrip(b'\r')
            if result.pattern == SENTINEL:
                if line:
                    yield line
                break
            yield line
        stderr = self._read_segment(END_MARKER, timeout)
        self._set_state(ReplState.RAW_READY)
        if stderr:
            raise _errors.CmdError(code, b'', stderr)

    def exec(self, command, timeout=5):
        """Execute command

        Arguments:
            command: command to execute
            timeout: maximum waiting time for result

        Returns:
            command STDOUT result

        Raises:
            CmdError when command return error
        """
        with self.raw_repl():
            result = self.exec_raw(command, timeout)
        if result.stderr:
            raise _errors.CmdError(command, result.stdout, result.stderr)
        return result.stdout

    def exec_eval(self, command, timeout=5):
        result = self.exec(f'print(repr({command}))', timeout)
        try:
            return _ast.literal_eval(result.strip().decode('utf-8'))
        except (ValueError, SyntaxError, UnicodeDecodeError) as err:
            raise _errors.ProtocolFraming(
                f'Unexpected result of {command}', result) from err

    def forget_state(self):
        """Device was reset externally, it is not in raw REPL"""
        self._set_state(ReplState.IDLE)

    def soft_reset(self):
        self.exit_raw_repl()
        self.stop_current_operation()
        if self._log:
            self._log.info('SOFT RESET')
        self._conn.write(CTRL_D)
        result = self._scanner.read_until(
            SOFT_REBOOT, self.RESET_TIMEOUT, trailing=False)
        self._set_state(ReplState.IDLE)
        if not result.matched:
            raise _errors.ProtocolFraming(
                'Soft reboot was not confirmed', result.data)
