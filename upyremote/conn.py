"""upyremote: abstract connector"""

import enum as _enum
import time as _time


class ConnError(Exception):
    """General connection error"""


class Timeout(ConnError):
    """Timeout"""


class ResetKind(_enum.Enum):
    SOFT = 'soft'
    HARD = 'hard'


class Conn():
    """Duplex byte channel to device

    Connector is owned by exactly one session, it can not be copied.
    """

    # DTR/RTS pulse used for hard reset: (dtr, rts, delay)
    HARD_RESET_PULSE = (
        (True, False, .1),
        (False, True, .1),
        (None, False, 1.0),
    )

    def __init__(self, log=None):
        self._log = log
        self._owner = None

    def __copy__(self):
        raise TypeError(f"{type(self).__name__} can not be duplicated")

    def __deepcopy__(self, memo):
        raise TypeError(f"{type(self).__name__} can not be duplicated")

    @property
    def fd(self):
        """Return file descriptor
        """
        return None

    @property
    def owner(self):
        """Session which owns this connector"""
        return self._owner

    def acquire(self, owner):
        """Mark connector as owned

        Raises:
            RuntimeError when connector already has another owner
        """
        if self._owner is not None and self._owner is not owner:
            raise RuntimeError("Connection is already owned by another session")
        self._owner = owner

    def release(self, owner):
        if self._owner is owner:
            self._owner = None

    def read(self, timeout=0):
        """Read available data from device

        Arguments:
            timeout: maximum time to wait for first byte

        Returns:
            bytes, empty when no data arrived
        """
        return b''

    def write(self, data):
        """Write to device
        """

    def set_dtr(self, state):
        """Set DTR control line
        """

    def set_rts(self, state):
        """Set RTS control line
        """

    def hard_reset(self):
        """Reset device by pulsing DTR and RTS lines"""
        if self._log:
            self._log.info('HARD RESET')
        for dtr, rts, delay in self.HARD_RESET_PULSE:
            if dtr is not None:
                self.set_dtr(dtr)
            if rts is not None:
                self.set_rts(rts)
            _time.sleep(delay)

    def close(self):
        """Close connection
        """
