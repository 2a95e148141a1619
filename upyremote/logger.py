"""Simple color logger for upyremote"""

import os as _os
import sys as _sys


class SimpleColorLogger():
    # ANSI color codes
    _RESET = '\033[0m'
    _CLEAR_LINE = '\033[K'
    COLORS = {
        'red': '\033[1;31m',
        'yellow': '\033[1;33m',
        'magenta': '\033[1;35m',
        'blue': '\033[1;34m',
        'green': '\033[1;32m',
        'cyan': '\033[1;36m',
    }

    # name: (minimal loglevel, color, prefix without color)
    _LEVELS = {
        'error': (1, 'red', 'E'),
        'warning': (2, 'yellow', 'W'),
        'info': (3, 'magenta', 'I'),
        'debug': (4, 'blue', 'D'),
    }

    def __init__(self, loglevel=1, verbose_level=0, stream=None):
        self._loglevel = loglevel
        self._verbose_level = verbose_level
        self._stream = stream or _sys.stderr
        self._is_tty = self._stream.isatty()
        self._color = (
            self._is_tty
            and _os.environ.get('NO_COLOR') is None
            and _os.environ.get('TERM') != 'dumb'
            and _os.environ.get('CI') is None
            and (_sys.platform != 'win32' or _os.environ.get('TERM'))
        )

    @property
    def loglevel(self):
        return self._loglevel

    def log(self, msg):
        print(msg, file=self._stream)

    def _emit(self, level, msg, args):
        min_level, color, prefix = self._LEVELS[level]
        if self._loglevel < min_level:
            return
        if args:
            msg = msg % args
        if self._color:
            self.log(f"{self.COLORS[color]}{msg}{self._RESET}")
        else:
            self.log(f"{prefix}: {msg}")

    def error(self, msg, *args):
        self._emit('error', msg, args)

    def warning(self, msg, *args):
        self._emit('warning', msg, args)

    def info(self, msg, *args):
        self._emit('info', msg, args)

    def debug(self, msg, *args):
        self._emit('debug', msg, args)

    def verbose(self, msg, level=1, color='green', end='\n', overwrite=False):
        """Print verbose message if verbose_level >= level"""
        if self._verbose_level < level:
            return
        # progress lines without newline make sense only on terminal
        if overwrite and not self._is_tty and end != '\n':
            return
        color_code = self.COLORS.get(color, self.COLORS['green']) if self._color else ''
        reset_code = self._RESET if self._color else ''
        clear = ''
        if overwrite and self._is_tty:
            clear = f'\r{self._CLEAR_LINE}' if self._color else '\r'
        print(f"{clear}{color_code}{msg}{reset_code}", end=end, file=self._stream, flush=True)
