"""upyremote"""

import os as _os
import sys as _sys
import argparse as _argparse

import upyremote.__about__ as _about
from upyremote.conn import ConnError, ResetKind
from upyremote.conn_serial import ConnSerial
from upyremote.detect import DeviceMode, DETECT_TIMEOUT
from upyremote.errors import MpyError, ParamsError, UnsupportedInMode
from upyremote.logger import SimpleColorLogger
from upyremote.session import Session
from upyremote.utils import resolve_port, format_size, detect_serial_ports, PORT_ENV, DEFAULT_PORT


EXIT_OK = 0
EXIT_ERROR = 1
EXIT_UNSUPPORTED = 3
EXIT_INTERRUPTED = 130


class UpyRemote():
    def __init__(self, session, log=None):
        self._session = session
        self._log = log

    def verbose(self, msg, level=1):
        if self._log:
            self._log.verbose(msg, level)

    @staticmethod
    def _write_stdout(data):
        _sys.stdout.buffer.write(data)
        _sys.stdout.buffer.flush()

    def cmd_connect(self):
        if self._session.mode is DeviceMode.UNKNOWN and self._log:
            self._log.warning("Device mode was not detected")
        terminal = self._session.terminal()
        print(
            f"Connected ({self._session.mode.value}), to exit press CTRL + X",
            end='\r\n', flush=True)
        terminal.run()
        return EXIT_OK

    def cmd_ls(self, path):
        for entry in self._session.ls(path):
            if entry.is_dir:
                print(f'{"":>8} {entry.name}/')
            elif entry.size is None:
                print(f'{"":>8} {entry.name}')
            else:
                print(f'{format_size(entry.size):>8} {entry.name}')
        return EXIT_OK

    def cmd_put(self, src_path, dst_path=None):
        if not _os.path.isfile(src_path):
            raise ParamsError(f'No file to upload: {src_path}')
        if not dst_path:
            dst_path = _os.path.basename(src_path)
        elif dst_path.endswith('/'):
            dst_path += _os.path.basename(src_path)
        with open(src_path, 'rb') as src_file:
            data = src_file.read()
        self.verbose(f"PUT: {src_path} -> {dst_path}")
        result = self._session.put(data, dst_path)
        self.verbose(f"  {format_size(result.size)} in {result.chunks} blocks")
        return EXIT_OK

    def cmd_get(self, src_path, dst_path=None):
        self.verbose(f"GET: {src_path}")
        data = self._session.get(src_path)
        if dst_path == '-':
            self._write_stdout(data)
            return EXIT_OK
        if not dst_path:
            dst_path = _os.path.basename(src_path.rstrip('/'))
        elif _os.path.isdir(dst_path):
            dst_path = _os.path.join(dst_path, _os.path.basename(src_path))
        with open(dst_path, 'wb') as dst_file:
            dst_file.write(data)
        self.verbose(f"  {format_size(len(data))} -> {dst_path}")
        return EXIT_OK

    def cmd_send(self, data, timeout=None):
        self._write_stdout(self._session.send(data, timeout=timeout))
        return EXIT_OK

    def cmd_reset(self, hard=False):
        kind = ResetKind.HARD if hard else ResetKind.SOFT
        self.verbose(f"RESET: {kind.value}")
        self._session.reset(kind)
        return EXIT_OK

    def _print_result(self, result):
        self._write_stdout(result.stdout)
        if result.stderr:
            _sys.stderr.write(result.stderr.decode('utf-8', 'backslashreplace'))
            return EXIT_ERROR
        return EXIT_OK

    def cmd_exec(self, code, timeout):
        return self._print_result(self._session.execute(code, timeout=timeout))

    def cmd_run(self, file_name, timeout):
        try:
            with open(file_name, 'r', encoding='utf-8') as src_file:
                code = src_file.read()
        except OSError as err:
            raise ParamsError(f"Can not read '{file_name}': {err}") from err
        self.verbose(f"RUN: {file_name}")
        return self._print_result(self._session.run(code, timeout=timeout))

    def process_command(self, args):
        command = args.command
        if command == 'connect':
            return self.cmd_connect()
        if command == 'ls':
            return self.cmd_ls(args.path)
        if command == 'put':
            return self.cmd_put(args.source, args.dest)
        if command == 'get':
            return self.cmd_get(args.source, args.dest)
        if command == 'send':
            return self.cmd_send(args.data, args.timeout)
        if command == 'reset':
            return self.cmd_reset(args.hard)
        if command == 'exec':
            return self.cmd_exec(args.code, args.timeout)
        if command == 'run':
            return self.cmd_run(args.file, args.timeout)
        raise ParamsError(f"unknown command: '{command}'")


_VERSION_STR = "%s %s (%s <%s>)" % (
    _about.APP_NAME,
    _about.VERSION,
    _about.AUTHOR,
    _about.AUTHOR_EMAIL)
_EPILOG_STR = f"""
Serial port is taken from --port, then from {PORT_ENV} environment
variable, default is {DEFAULT_PORT}.

Exit codes:
  {EXIT_OK}    success
  {EXIT_ERROR}    error
  2    wrong arguments
  {EXIT_UNSUPPORTED}    operation is not supported in current device mode
"""


def build_parser():
    parser = _argparse.ArgumentParser(
        prog=_about.APP_NAME,
        description=_about.DESCRIPTION,
        formatter_class=_argparse.RawTextHelpFormatter,
        epilog=_EPILOG_STR)
    parser.add_argument(
        "-V", "--version", action='version', version=_VERSION_STR)
    parser.add_argument('-p', '--port', help="serial port")
    parser.add_argument(
        '-b', '--baud', type=int, default=115200, help='baud rate')
    parser.add_argument(
        '-d', '--debug', default=0, action='count', help='set debug level')
    parser.add_argument(
        '-v', '--verbose', default=0, action='count', help='verbose output')
    parser.add_argument(
        '--detect-timeout', type=float, default=DETECT_TIMEOUT,
        help='time to wait for prompt during mode detection')
    parser.add_argument(
        '-m', '--mode', choices=[DeviceMode.MICROPYTHON.value, DeviceMode.UPYOS.value],
        help='skip detection and assume device mode')
    commands = parser.add_subparsers(dest='command', metavar='COMMAND')
    commands.required = True

    commands.add_parser('connect', help='open interactive session')
    cmd = commands.add_parser('ls', help='list files on device')
    cmd.add_argument('path', nargs='?', default='/', help='directory to list')
    cmd = commands.add_parser('put', help='upload file to device')
    cmd.add_argument('source', help='local file')
    cmd.add_argument('dest', nargs='?', help='destination on device')
    cmd = commands.add_parser('get', help='download file from device')
    cmd.add_argument('source', help='file on device')
    cmd.add_argument('dest', nargs='?', help="local destination, '-' for stdout")
    cmd = commands.add_parser('send', help='send line to device and print response')
    cmd.add_argument('data', help='line to send')
    cmd.add_argument(
        '-t', '--timeout', type=float,
        help='read response for given seconds instead of waiting for prompt')
    cmd = commands.add_parser('reset', help='reset device')
    cmd.add_argument(
        '-H', '--hard', action='store_true', help='hard reset using DTR/RTS')
    cmd = commands.add_parser('exec', help='execute python code on device')
    cmd.add_argument('code', help='code to execute')
    cmd.add_argument('-t', '--timeout', type=float, default=5, help='timeout')
    cmd = commands.add_parser('run', help='run local python file on device')
    cmd.add_argument('file', help='local python file')
    cmd.add_argument('-t', '--timeout', type=float, default=5, help='timeout')
    commands.add_parser('ports', help='list detected serial ports')
    return parser


def main(argv=None):
    """Main"""
    args = build_parser().parse_args(argv)
    log = SimpleColorLogger(args.debug + 1, verbose_level=args.verbose)
    if args.command == 'ports':
        for port in detect_serial_ports():
            print(port)
        return EXIT_OK
    port = resolve_port(args.port, _os.environ)
    conn = None
    try:
        conn = ConnSerial(port=port, baudrate=args.baud, log=log)
        if args.mode:
            session = Session(conn, DeviceMode(args.mode), log=log)
        else:
            session = Session.connect(conn, log=log, timeout=args.detect_timeout)
        log.info("device mode: %s", session.mode.value)
        with session:
            return UpyRemote(session, log=log).process_command(args)
    except UnsupportedInMode as err:
        log.error(err)
        return EXIT_UNSUPPORTED
    except (MpyError, ConnError) as err:
        log.error(err)
        return EXIT_ERROR
    except KeyboardInterrupt:
        log.warning(' Exiting..')
        return EXIT_INTERRUPTED
    finally:
        if conn is not None:
            conn.close()


if __name__ == '__main__':
    _sys.exit(main())
