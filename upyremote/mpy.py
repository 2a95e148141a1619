"""upyremote: MicroPython raw REPL engine"""

import ast as _ast
from collections import namedtuple as _namedtuple

import upyremote.conn as _conn
import upyremote.errors as _errors
import upyremote.mpy_comm as _mpy_comm
import upyremote.chunk_codec as _chunk_codec
import upyremote.line_comm as _line_comm


DirEntry = _namedtuple('DirEntry', ['name', 'size', 'is_dir'])
TransferResult = _namedtuple('TransferResult', ['size', 'chunks'])


def _escape_path(path):
    """Escape path for use in single quoted string literal"""
    return path.replace('\\', '\\\\').replace("'", "\\'")


class Mpy():
    _ATTR_DIR = 0x4000
    _ATTR_FILE = 0x8000
    _EOF = b'#EOF'
    _IMPORT = """\
try:
    import binascii
except ImportError:
    import ubinascii as binascii
"""
    _LS_CODE = """\
import os
for _e in os.ilistdir('{path}'):
    print(repr((_e[0], _e[1], _e[3] if len(_e) > 3 else None)))
"""
    _GET_CODE = """\
while True:
    _c = _f.read({chunk_size})
    if not _c:
        print('#EOF')
        break
    print(binascii.b2a_base64(_c).strip().decode())
    if len(_c) < {chunk_size}:
        break
_f.close()
"""

    EXEC_TIMEOUT = 5
    CHUNK_TIMEOUT = 10
    SEND_TIMEOUT = _line_comm.SEND_TIMEOUT

    def __init__(self, scanner, log=None, chunk_size=_chunk_codec.CHUNK_SIZE):
        self._scanner = scanner
        self._conn = scanner.conn
        self._log = log
        self._chunk_size = chunk_size
        self._mpy_comm = _mpy_comm.MpyComm(scanner, log=log)

    @property
    def conn(self):
        """access to connector instance
        """
        return self._conn

    @property
    def comm(self):
        """access to raw REPL communication instance
        """
        return self._mpy_comm

    def execute(self, code, timeout=EXEC_TIMEOUT):
        """Execute code on device

        Exception raised on device is not an error here,
        it is returned as STDERR.

        Arguments:
            code: python source
            timeout: maximum waiting time for output

        Returns:
            ExecResult with STDOUT and STDERR (LF line endings)
        """
        with self._mpy_comm.raw_repl():
            result = self._mpy_comm.exec_raw(code, timeout)
        return _mpy_comm.ExecResult(
            result.stdout.replace(b'\r\n', b'\n'),
            result.stderr.replace(b'\r\n', b'\n'))

    def run(self, code, timeout=EXEC_TIMEOUT):
        """Run content of local script on device"""
        return self.execute(code, timeout)

    def ls(self, path='/'):
        """List directory

        Arguments:
            path: directory to list

        Returns:
            list of DirEntry, directories first
        """
        code = self._LS_CODE.format(path=_escape_path(path))
        try:
            result = self._mpy_comm.exec(code)
        except _errors.CmdError as err:
            raise _errors.DirNotFound(path) from err
        res_dir = []
        res_file = []
        for line in result.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                name, attr, size = _ast.literal_eval(line.decode('utf-8'))
            except (ValueError, SyntaxError, UnicodeDecodeError) as err:
                raise _errors.ProtocolFraming(
                    'Unexpected directory entry', line) from err
            if attr == self._ATTR_DIR:
                res_dir.append(DirEntry(name, None, True))
            else:
                res_file.append(DirEntry(name, size, False))
        return sorted(res_dir) + sorted(res_file)

    def _close_file(self, strict=True):
        if strict:
            self._mpy_comm.exec("_f.close()")
            return
        if self._mpy_comm.state is not _mpy_comm.ReplState.RAW_READY:
            return
        try:
            self._mpy_comm.exec("_f.close()")
        except _errors.MpyError as err:
            if self._log:
                self._log.warning("Closing remote file failed: %s", err)

    def put(self, data, path):
        """Write file to device

        Every chunk is acknowledged by device with number of written bytes
        before next chunk is sent.

        Arguments:
            data: bytes with file content
            path: file path to write

        Returns:
            TransferResult

        Raises:
            TransferIncomplete with index of last acknowledged chunk
        """
        chunks = _chunk_codec.encode(data, self._chunk_size)
        last_index = -1
        transferred = 0
        with self._mpy_comm.raw_repl():
            try:
                self._mpy_comm.exec(
                    self._IMPORT + f"_f = open('{_escape_path(path)}', 'wb')")
            except _errors.CmdError as err:
                raise _errors.TransferIncomplete(
                    path, last_index, transferred, err.error) from err
            try:
                for chunk in chunks:
                    expected = len(_chunk_codec.decode_chunk(chunk))
                    count = self._mpy_comm.exec_eval(
                        f"_f.write(binascii.a2b_base64({chunk.data!r}))",
                        timeout=self.CHUNK_TIMEOUT)
                    if count != expected:
                        raise _errors.TransferIncomplete(
                            path, last_index, transferred,
                            f"chunk {chunk.index}: written {count} of {expected} bytes")
                    last_index = chunk.index
                    transferred += count
                    if self._log:
                        self._log.debug(
                            "put %s: chunk %d, %d bytes", path, last_index, transferred)
            except (_errors.CmdError, _errors.ProtocolFraming) as err:
                self._close_file(strict=False)
                raise _errors.TransferIncomplete(
                    path, last_index, transferred, str(err)) from err
            except _errors.TransferIncomplete:
                self._close_file(strict=False)
                raise
            self._close_file()
        return TransferResult(transferred, len(chunks))

    def get(self, path):
        """Read file from device

        Arguments:
            path: file path to read

        Returns:
            bytes with file content
        """
        data = bytearray()
        with self._mpy_comm.raw_repl():
            try:
                self._mpy_comm.exec(
                    self._IMPORT + f"_f = open('{_escape_path(path)}', 'rb')")
            except _errors.CmdError as err:
                raise _errors.FileNotFound(path) from err
            code = self._GET_CODE.format(chunk_size=self._chunk_size)
            finished = False
            index = 0
            for line in self._mpy_comm.exec_lines(code, self.CHUNK_TIMEOUT):
                if finished:
                    raise _errors.ProtocolFraming(
                        'Data after end of file', line)
                if line == self._EOF:
                    finished = True
                    continue
                try:
                    chunk_data = _chunk_codec.decode_chunk(
                        _chunk_codec.Chunk(index, line))
                except _chunk_codec.ChunkError as err:
                    raise _errors.ProtocolFraming(str(err), line) from err
                data += chunk_data
                index += 1
                if len(chunk_data) < self._chunk_size:
                    finished = True
        if self._log:
            self._log.debug("get %s: %d chunks, %d bytes", path, index, len(data))
        return bytes(data)

    def send(self, line, timeout=None):
        """Type line into friendly REPL and return response"""
        self._mpy_comm.exit_raw_repl()
        return _line_comm.send_line(
            self._scanner, line, _mpy_comm.PROMPT, timeout,
            max_wait=self.SEND_TIMEOUT, log=self._log)

    def reset(self, kind=_conn.ResetKind.SOFT):
        """Reset device

        Arguments:
            kind: ResetKind.SOFT or ResetKind.HARD
        """
        if kind is _conn.ResetKind.HARD:
            self._conn.hard_reset()
            self._scanner.flush()
            self._mpy_comm.forget_state()
        else:
            self._mpy_comm.soft_reset()
