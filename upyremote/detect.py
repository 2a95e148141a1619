"""upyremote: detection of runtime running on device"""

import enum as _enum
from collections import namedtuple as _namedtuple


DETECT_TIMEOUT = 1.0


class DeviceMode(_enum.Enum):
    MICROPYTHON = 'micropython'
    UPYOS = 'upyos'
    UNKNOWN = 'unknown'


PromptPattern = _namedtuple('PromptPattern', ['marker', 'mode'])

# upyOS prompt contains current directory: '/ $: ', '/lib $: '
PROMPT_PATTERNS = (
    PromptPattern(b'>>> ', DeviceMode.MICROPYTHON),
    PromptPattern(b' $: ', DeviceMode.UPYOS),
)


class ModeDetector():
    def __init__(self, scanner, log=None, probe=b'\r\n', patterns=PROMPT_PATTERNS):
        self._scanner = scanner
        self._log = log
        self._probe = probe
        self._patterns = patterns

    def detect(self, timeout=DETECT_TIMEOUT):
        """Probe device and classify its runtime

        Arguments:
            timeout: maximum time to wait for prompt

        Returns:
            DeviceMode, UNKNOWN when no known prompt arrived in time
        """
        self._scanner.flush()
        if self._log:
            self._log.info('DETECT MODE')
        self._scanner.conn.write(self._probe)
        result = self._scanner.read_until(
            [pattern.marker for pattern in self._patterns], timeout)
        if not result.matched:
            if self._log:
                self._log.warning(
                    "No prompt detected, received: %s", result.data)
            return DeviceMode.UNKNOWN
        for pattern in self._patterns:
            if pattern.marker == result.pattern:
                if self._log:
                    self._log.info("detected mode: %s", pattern.mode.value)
                return pattern.mode
        return DeviceMode.UNKNOWN


def detect_mode(scanner, timeout=DETECT_TIMEOUT, log=None):
    """Detect mode on connector behind scanner"""
    return ModeDetector(scanner, log=log).detect(timeout)
