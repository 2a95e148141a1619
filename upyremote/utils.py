"""Utility functions for upyremote"""

import glob as _glob
import sys as _sys

from serial.tools.list_ports import comports as _comports


PORT_ENV = 'UPYREMOTE_PORT'
DEFAULT_PORT = '/dev/ttyUSB0'


def resolve_port(port=None, environ=None, default=DEFAULT_PORT):
    """Resolve serial port: explicit value > environment variable > default

    Args:
        port: port given on command line or None
        environ: mapping with environment variables
        default: built-in default port

    Returns:
        port name
    """
    if port:
        return port
    if environ and environ.get(PORT_ENV):
        return environ[PORT_ENV]
    return default


def format_size(size):
    """Format size in bytes to human readable format (like ls -h)"""
    if size < 1024:
        return f"{int(size)}B"
    for unit in 'KMGT':
        size /= 1024
        if size < 1024:
            break
    precision = 2 if size < 10 else 1 if size < 100 else 0
    return f"{size:.{precision}f}{unit}"


# device names of USB serial adapters, cu.* on macOS does not wait for DCD
_PORT_PATTERNS = {
    'darwin': (
        '/dev/cu.usbmodem*',
        '/dev/cu.usbserial*',
        '/dev/cu.SLAB_USBtoUART*',
        '/dev/cu.wchusbserial*',
    ),
    'linux': (
        '/dev/ttyACM*',
        '/dev/ttyUSB*',
    ),
}


def detect_serial_ports():
    """Detect serial ports where device can be connected

    Returns:
        sorted list of port paths
    """
    patterns = _PORT_PATTERNS.get(_sys.platform)
    if patterns is None:
        # no naming convention, USB ports are those with vendor ID
        return sorted(port.device for port in _comports() if port.vid is not None)
    return sorted({
        path for pattern in patterns for path in _glob.glob(pattern)})
