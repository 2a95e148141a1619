"""upyremote: serial connector"""

import time as _time
import serial as _serial
import upyremote.conn as _conn


class ConnSerial(_conn.Conn):
    def __init__(self, log=None, **serial_config):
        super().__init__(log)
        self._serial = None
        self._timeout = None
        try:
            self._serial = _serial.Serial(**serial_config)
        except _serial.SerialException as err:
            raise _conn.ConnError(
                f"Error opening serial port {serial_config.get('port')}: {err}"
            ) from err

    def __del__(self):
        self.close()

    @property
    def fd(self):
        return getattr(self._serial, 'fd', None)

    def _set_timeout(self, timeout):
        # changing timeout reconfigures opened port
        if timeout != self._timeout:
            self._serial.timeout = timeout
            self._timeout = timeout

    def read(self, timeout=0):
        try:
            in_waiting = self._serial.in_waiting
            if in_waiting:
                self._set_timeout(0)
                data = self._serial.read(in_waiting)
            else:
                self._set_timeout(timeout)
                data = self._serial.read(1)
                if data and self._serial.in_waiting:
                    data += self._serial.read(self._serial.in_waiting)
        except (OSError, _serial.SerialException) as err:
            raise _conn.ConnError(f"Serial read failed: {err}") from err
        return bytes(data)

    def write(self, data, chunk_size=128, delay=0.01):
        if self._log:
            self._log.debug("wr: %s", bytes(data))
        try:
            while data:
                chunk = data[:chunk_size]
                count = self._serial.write(chunk)
                data = data[count:]
                if data:
                    _time.sleep(delay)
            self._serial.flush()
        except (OSError, _serial.SerialException) as err:
            raise _conn.ConnError(f"Serial write failed: {err}") from err

    def set_dtr(self, state):
        try:
            self._serial.dtr = state
        except (OSError, _serial.SerialException) as err:
            raise _conn.ConnError(f"Setting DTR failed: {err}") from err

    def set_rts(self, state):
        try:
            self._serial.rts = state
        except (OSError, _serial.SerialException) as err:
            raise _conn.ConnError(f"Setting RTS failed: {err}") from err

    def close(self):
        if self._serial:
            self._serial.close()
            self._serial = None
