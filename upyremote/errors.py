"""upyremote: protocol and session errors"""


class MpyError(Exception):
    """General upyremote error"""


class ParamsError(MpyError):
    """Wrong parameters"""


class ProtocolFraming(MpyError):
    """Expected marker did not appear in time or was malformed"""
    def __init__(self, msg, data=b''):
        self._data = bytes(data)
        super().__init__(msg)

    def __str__(self):
        res = super().__str__()
        if self._data:
            res += f', received: {self._data!r}'
        return res

    @property
    def data(self):
        """bytes received before failure"""
        return self._data


class ModeEntryFailed(ProtocolFraming):
    """Device did not enter raw REPL"""


class CmdError(MpyError):
    """Command raised exception on device"""
    def __init__(self, cmd, result, error):
        self._cmd = cmd
        self._result = result
        self._error = error.decode('utf-8', 'backslashreplace')
        super().__init__(self.__str__())

    def __str__(self):
        res = f'Command:\n  {self._cmd}\n'
        if self._result:
            res += f'Result:\n  {self._result}\n'
        if self._error:
            res += f'Error:\n  {self._error}'
        return res

    @property
    def cmd(self):
        return self._cmd

    @property
    def result(self):
        return self._result

    @property
    def error(self):
        return self._error


class TransferIncomplete(MpyError):
    """Transfer aborted on unacknowledged chunk or line"""
    def __init__(self, path, last_index, transferred, reason=None):
        self._path = path
        self._last_index = last_index
        self._transferred = transferred
        self._reason = reason
        super().__init__(self.__str__())

    def __str__(self):
        if self._last_index < 0:
            res = f"Transfer of '{self._path}' failed, nothing was acknowledged"
        else:
            res = (
                f"Transfer of '{self._path}' incomplete, last acknowledged "
                f"block {self._last_index} ({self._transferred} bytes)")
        if self._reason:
            res += f': {self._reason}'
        return res

    @property
    def path(self):
        return self._path

    @property
    def last_index(self):
        """index of last acknowledged chunk, -1 if none"""
        return self._last_index

    @property
    def transferred(self):
        """number of bytes acknowledged by device"""
        return self._transferred


class UnsupportedInMode(MpyError):
    """Operation is not available for current device mode"""
    def __init__(self, operation, mode):
        self._operation = operation
        self._mode = mode
        super().__init__(self.__str__())

    def __str__(self):
        return (
            f"Operation '{self._operation}' is not supported in "
            f"{self._mode.value} mode, use 'send' to pass a raw command")

    @property
    def operation(self):
        return self._operation

    @property
    def mode(self):
        return self._mode


class ModeUnknown(UnsupportedInMode):
    """Device mode was not detected"""
    def __str__(self):
        return (
            f"Operation '{self._operation}' needs a known device mode, "
            "mode was not detected (only interactive 'connect' is available)")


class PathNotFound(MpyError):
    """File not found"""
    def __init__(self, file_name):
        self._file_name = file_name
        super().__init__(self.__str__())

    def __str__(self):
        return f"Path '{self._file_name}' was not found"


class FileNotFound(PathNotFound):
    """File not found"""
    def __str__(self):
        return f"File '{self._file_name}' was not found"


class DirNotFound(PathNotFound):
    """Folder not found"""
    def __str__(self):
        return f"Dir '{self._file_name}' was not found"
