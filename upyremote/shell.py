"""upyremote: upyOS shell engine"""

from collections import namedtuple as _namedtuple

import upyremote.conn as _conn
import upyremote.errors as _errors
import upyremote.detect as _detect
import upyremote.line_comm as _line_comm
from upyremote.mpy import DirEntry, TransferResult


PROMPT = b' $: '
RESET_COMMAND = 'reboot'
LS_COMMAND = 'ls {path}'


class ShellTransfer(_namedtuple('ShellTransfer', ['begin', 'line_ack', 'end', 'read'])):
    """Commands used for file transfer

    begin: command starting upload, formatted with path and end
    line_ack: marker acknowledging command and every uploaded line
    end: line terminating upload, shell prompt confirms it
    read: command printing file content, formatted with path
    """
    __slots__ = ()


HEREDOC = ShellTransfer(
    begin='cat > {path} << {end}',
    line_ack=b'\r\n> ',
    end='EOF',
    read='cat {path}')


class Shell():
    LINE_TIMEOUT = 2
    SEND_TIMEOUT = _line_comm.SEND_TIMEOUT

    def __init__(self, scanner, log=None, transfer=HEREDOC):
        self._scanner = scanner
        self._conn = scanner.conn
        self._log = log
        self._transfer = transfer

    @property
    def conn(self):
        return self._conn

    @property
    def transfer(self):
        return self._transfer

    def execute(self, code, timeout=None):
        raise _errors.UnsupportedInMode('execute', _detect.DeviceMode.UPYOS)

    def run(self, code, timeout=None):
        raise _errors.UnsupportedInMode('run', _detect.DeviceMode.UPYOS)

    def send(self, command, timeout=None):
        """Send command line to shell

        Arguments:
            command: command line
            timeout: None to wait for prompt, otherwise read for given
                number of seconds and return what arrived

        Returns:
            output of command without echo and prompt
        """
        return _line_comm.send_line(
            self._scanner, command, PROMPT, timeout,
            max_wait=self.SEND_TIMEOUT, log=self._log)

    def ls(self, path='/'):
        output = self.send(LS_COMMAND.format(path=path))
        entries = []
        for line in output.decode('utf-8', 'replace').splitlines():
            line = line.strip()
            if not line:
                continue
            size = None
            parts = line.split(None, 1)
            if len(parts) == 2 and parts[0].isdigit():
                size = int(parts[0])
                line = parts[1]
            if line.endswith('/'):
                entries.append(DirEntry(line.rstrip('/'), None, True))
            else:
                entries.append(DirEntry(line, size, False))
        return entries

    def _send_acked(self, line):
        if isinstance(line, str):
            line = line.encode('utf-8')
        self._conn.write(line + _line_comm.EOL)
        result = self._scanner.read_until(
            self._transfer.line_ack, self.LINE_TIMEOUT)
        return result.matched

    def _terminate_upload(self):
        """Close pending upload so shell returns to prompt"""
        try:
            self._conn.write(
                self._transfer.end.encode('utf-8') + _line_comm.EOL)
            self._scanner.read_until(PROMPT, self.LINE_TIMEOUT)
        except _conn.ConnError as err:
            if self._log:
                self._log.error("Terminating upload failed: %s", err)

    def _split_lines(self, data, path):
        if data and not data.endswith(b'\n'):
            raise _errors.ParamsError(
                f"'{path}' does not end with newline, "
                "shell upload transfers only complete lines")
        lines = data.split(b'\n')
        lines.pop()
        end = self._transfer.end.encode('utf-8')
        for index, line in enumerate(lines):
            if line == end:
                raise _errors.ParamsError(
                    f"Line {index} of '{path}' equals upload terminator")
            if line.endswith(b'\r'):
                raise _errors.ParamsError(
                    f"Line {index} of '{path}' has CRLF line ending, "
                    "shell upload supports only LF")
            if any(byte < 0x20 and byte != 0x09 for byte in line):
                raise _errors.ParamsError(
                    f"Line {index} of '{path}' contains control characters, "
                    "shell upload supports only text")
        return lines

    def put(self, data, path):
        """Upload text file line by line

        Every line must be acknowledged by shell before next is sent.

        Returns:
            TransferResult (size with LF line endings)

        Raises:
            TransferIncomplete with index of last acknowledged line
        """
        lines = self._split_lines(data, path)
        last_index = -1
        transferred = 0
        self._scanner.flush()
        if self._log:
            self._log.info("PUT: %s (%d lines)", path, len(lines))
        begin = self._transfer.begin.format(path=path, end=self._transfer.end)
        try:
            if not self._send_acked(begin):
                raise _errors.TransferIncomplete(
                    path, last_index, transferred, 'upload command not accepted')
            for index, line in enumerate(lines):
                if not self._send_acked(line):
                    raise _errors.TransferIncomplete(
                        path, last_index, transferred,
                        f'line {index} was not acknowledged')
                last_index = index
                transferred += len(line) + 1
        except _conn.ConnError:
            raise
        except BaseException:
            self._terminate_upload()
            raise
        self._conn.write(self._transfer.end.encode('utf-8') + _line_comm.EOL)
        result = self._scanner.read_until(PROMPT, self.LINE_TIMEOUT)
        if not result.matched:
            raise _errors.TransferIncomplete(
                path, last_index, transferred, 'upload was not confirmed')
        return TransferResult(transferred, len(lines))

    def get(self, path):
        return self.send(self._transfer.read.format(path=path))

    def reset(self, kind=_conn.ResetKind.SOFT):
        if kind is _conn.ResetKind.HARD:
            self._conn.hard_reset()
        else:
            if self._log:
                self._log.info('SOFT RESET')
            self._scanner.flush()
            self._conn.write(RESET_COMMAND.encode('utf-8') + _line_comm.EOL)
        self._scanner.flush()
