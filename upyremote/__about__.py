"""ABOUT
"""

APP_NAME = "upyremote"
VERSION = "v0.3.0"
AUTHOR = "upyremote developers"
AUTHOR_EMAIL = "upyremote@users.noreply.github.com"
URL = "https://github.com/upyremote/upyremote"
DESCRIPTION = "upyremote - talk to MicroPython and upyOS devices over serial"
LONG_DESCRIPTION = DESCRIPTION + "\n\n" + URL
KEYWORDS = "MPY micropython upyos serial repl"
LICENSE = "MIT"
