"""upyremote"""

from upyremote.conn import ConnError, Timeout, ResetKind
from upyremote.conn_serial import ConnSerial
from upyremote.errors import (
    MpyError, ParamsError, ProtocolFraming, ModeEntryFailed, CmdError,
    TransferIncomplete, UnsupportedInMode, ModeUnknown,
    PathNotFound, FileNotFound, DirNotFound)
from upyremote.detect import DeviceMode, ModeDetector, detect_mode
from upyremote.scanner import PromptScanner
from upyremote.mpy import Mpy
from upyremote.shell import Shell, ShellTransfer, HEREDOC
from upyremote.session import Session
from upyremote.logger import SimpleColorLogger
