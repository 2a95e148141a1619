"""upyremote: prompt and marker scanner"""

import time as _time
from collections import namedtuple as _namedtuple


class ScanResult(_namedtuple('ScanResult', ['pattern', 'data'])):
    """Result of scanning

    pattern: matched pattern or None on timeout
    data: consumed bytes, including matched pattern
    """
    __slots__ = ()

    @property
    def matched(self):
        return self.pattern is not None

    @property
    def payload(self):
        """data without matched pattern"""
        if self.pattern is None:
            return self.data
        return self.data[:len(self.data) - len(self.pattern)]


class PromptScanner():
    """Single accumulation point for data received from connector

    All protocol reads from device go through one scanner instance,
    bytes received after a match stay buffered for the next scan.
    """

    POLL_INTERVAL = .01

    def __init__(self, conn, log=None):
        self._conn = conn
        self._log = log
        self._buffer = bytearray()

    @property
    def conn(self):
        return self._conn

    @property
    def buffered(self):
        """bytes received but not consumed yet"""
        return bytes(self._buffer)

    def _find_match(self, patterns, trailing):
        best_start = None
        best = None
        for pattern in patterns:
            if trailing:
                if not self._buffer.endswith(pattern):
                    continue
                start = len(self._buffer) - len(pattern)
            else:
                start = self._buffer.find(pattern)
                if start < 0:
                    continue
            if best is None or start < best_start or (
                    start == best_start and len(pattern) > len(best)):
                best_start = start
                best = pattern
        if best is None:
            return None
        return best_start + len(best), best

    def _can_extend(self, pattern, patterns):
        """Check if matched pattern is start of longer pattern,
        which can still complete at end of buffer"""
        for other in patterns:
            if len(other) <= len(pattern):
                continue
            for size in range(len(pattern), len(other)):
                if self._buffer.endswith(other[:size]):
                    return True
        return False

    def _consume(self, end, pattern=None):
        data = bytes(self._buffer[:end])
        del self._buffer[:end]
        if self._log:
            self._log.debug("rd: %s", data)
        return ScanResult(pattern, data)

    def read_until(self, patterns, timeout=1, trailing=True):
        """Read until one of patterns is received

        Arguments:
            patterns: pattern (bytes) or list of patterns
            timeout: time limit in seconds
            trailing: match only patterns at end of received data,
                otherwise first occurrence anywhere in data is matched

        Returns:
            ScanResult, pattern is None when timeout expired,
            in that case data contains everything received
        """
        if isinstance(patterns, (bytes, bytearray)):
            patterns = (patterns, )
        patterns = [bytes(pattern) for pattern in patterns]
        if self._log:
            self._log.debug("wait for %s", patterns)
        deadline = _time.monotonic() + timeout
        while True:
            match = self._find_match(patterns, trailing)
            if match is not None:
                end, pattern = match
                if end < len(self._buffer) or not self._can_extend(
                        pattern, patterns):
                    return self._consume(end, pattern)
            remaining = deadline - _time.monotonic()
            if remaining <= 0:
                break
            data = self._conn.read(min(remaining, self.POLL_INTERVAL))
            if data:
                self._buffer += data
        if match is not None:
            # longer pattern did not complete in time
            end, pattern = match
            return self._consume(end, pattern)
        if self._log:
            self._log.debug("timeout, received: %s", bytes(self._buffer))
        return self._consume(len(self._buffer))

    def read_for(self, duration):
        """Read everything what arrives during duration"""
        deadline = _time.monotonic() + duration
        while True:
            remaining = deadline - _time.monotonic()
            if remaining <= 0:
                break
            data = self._conn.read(min(remaining, self.POLL_INTERVAL))
            if data:
                self._buffer += data
        return self._consume(len(self._buffer))

    def read_available(self):
        """Return buffered and pending data, nothing stays buffered"""
        while True:
            data = self._conn.read(0)
            if not data:
                break
            self._buffer += data
        data = bytes(self._buffer)
        del self._buffer[:]
        return data

    def flush(self):
        """Drop stale data before new command"""
        data = self.read_available()
        if data and self._log:
            self._log.debug("drop: %s", data)
        return data
