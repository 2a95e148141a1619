"""Tests for command line interface"""

import os
import io
import shutil
import tempfile
import unittest
from contextlib import redirect_stdout, redirect_stderr
from unittest.mock import patch

from upyremote.conn import ConnError
from upyremote.upyremote import (
    main, build_parser, UpyRemote,
    EXIT_OK, EXIT_ERROR, EXIT_UNSUPPORTED, EXIT_INTERRUPTED)
from fake_device import FakeMpyDevice, FakeUpyOsDevice, ScriptedConn


class TestParser(unittest.TestCase):
    def test_command_required(self):
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                build_parser().parse_args([])
        self.assertEqual(ctx.exception.code, 2)

    def test_unknown_command(self):
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                main(['format'])
        self.assertEqual(ctx.exception.code, 2)

    def test_version(self):
        out = io.StringIO()
        with redirect_stdout(out):
            with self.assertRaises(SystemExit):
                build_parser().parse_args(['--version'])
        self.assertIn("upyremote", out.getvalue())

    def test_defaults(self):
        args = build_parser().parse_args(['ls'])
        self.assertIsNone(args.port)
        self.assertEqual(args.path, '/')
        self.assertEqual(args.baud, 115200)
        self.assertIsNone(args.mode)


class CliTestCase(unittest.TestCase):
    def setUp(self):
        self.stdout = []
        patcher = patch.object(
            UpyRemote, '_write_stdout', side_effect=self.stdout.append)
        patcher.start()
        self.addCleanup(patcher.stop)
        patcher = patch('upyremote.upyremote.ConnSerial')
        self.conn_serial = patcher.start()
        self.addCleanup(patcher.stop)
        self.stderr = io.StringIO()
        patcher = patch('sys.stderr', self.stderr)
        patcher.start()
        self.addCleanup(patcher.stop)

    def run_main(self, device, *argv):
        self.conn_serial.return_value = device
        return main(['--detect-timeout', '0.1'] + list(argv))


class TestPort(CliTestCase):
    def test_port_from_environment(self):
        with patch.dict(os.environ, {'UPYREMOTE_PORT': '/dev/ttyACM3'}):
            self.run_main(FakeMpyDevice(), 'exec', 'pass')
        self.assertEqual(self.conn_serial.call_args.kwargs['port'], '/dev/ttyACM3')

    def test_port_argument(self):
        with patch.dict(os.environ, {'UPYREMOTE_PORT': '/dev/ttyACM3'}):
            self.run_main(FakeMpyDevice(), '-p', '/dev/ttyUSB7', 'exec', 'pass')
        self.assertEqual(self.conn_serial.call_args.kwargs['port'], '/dev/ttyUSB7')

    def test_default_port(self):
        with patch.dict(os.environ, {}, clear=True):
            self.run_main(FakeMpyDevice(), 'exec', 'pass')
        self.assertEqual(self.conn_serial.call_args.kwargs['port'], '/dev/ttyUSB0')

    def test_connection_error(self):
        self.conn_serial.side_effect = ConnError("Error opening serial port")
        self.assertEqual(main(['exec', 'pass']), EXIT_ERROR)


class TestExec(CliTestCase):
    def test_exec(self):
        self.assertEqual(self.run_main(FakeMpyDevice(), 'exec', 'print(1+1)'), EXIT_OK)
        self.assertEqual(self.stdout, [b'2\n'])

    def test_exec_device_exception(self):
        self.assertEqual(self.run_main(FakeMpyDevice(), 'exec', '1/0'), EXIT_ERROR)
        self.assertIn("ZeroDivisionError", self.stderr.getvalue())

    def test_exec_in_upyos(self):
        device = FakeUpyOsDevice()
        self.assertEqual(self.run_main(device, 'exec', 'print(1)'), EXIT_UNSUPPORTED)
        self.assertEqual(device.commands, [''])

    def test_exec_unknown_mode(self):
        self.assertEqual(self.run_main(ScriptedConn(), 'exec', 'print(1)'), EXIT_UNSUPPORTED)

    def test_forced_mode(self):
        device = FakeUpyOsDevice()
        self.assertEqual(
            self.run_main(device, '--mode', 'upyos', 'send', 'ps'), EXIT_OK)
        self.assertEqual(device.commands, ['ps'])

    def test_interrupted(self):
        with patch.object(UpyRemote, 'cmd_exec', side_effect=KeyboardInterrupt):
            self.assertEqual(
                self.run_main(FakeMpyDevice(), 'exec', 'pass'), EXIT_INTERRUPTED)


class TestFiles(CliTestCase):
    def setUp(self):
        super().setUp()
        self.tmpdir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.tmpdir)

    def test_put_and_get(self):
        device = FakeMpyDevice()
        src = os.path.join(self.tmpdir, 'main.py')
        with open(src, 'wb') as src_file:
            src_file.write(b'print("hello")\n')
        self.assertEqual(self.run_main(device, 'put', src, '/'), EXIT_OK)
        self.assertEqual(device.files['/main.py'], b'print("hello")\n')
        self.assertEqual(self.run_main(device, 'get', '/main.py', '-'), EXIT_OK)
        self.assertEqual(self.stdout, [b'print("hello")\n'])
        self.assertEqual(self.run_main(device, 'get', '/main.py', self.tmpdir), EXIT_OK)

    def test_put_missing_local_file(self):
        missing = os.path.join(self.tmpdir, 'missing.py')
        self.assertEqual(self.run_main(FakeMpyDevice(), 'put', missing), EXIT_ERROR)

    def test_get_missing_remote_file(self):
        self.assertEqual(
            self.run_main(FakeMpyDevice(), 'get', '/missing.py', '-'), EXIT_ERROR)

    def test_run(self):
        src = os.path.join(self.tmpdir, 'script.py')
        with open(src, 'w', encoding='utf-8') as src_file:
            src_file.write('for i in range(2):\n    print(i)\n')
        self.assertEqual(self.run_main(FakeMpyDevice(), 'run', src), EXIT_OK)
        self.assertEqual(self.stdout, [b'0\n1\n'])

    def test_ls_upyos(self):
        device = FakeUpyOsDevice()
        device.files['/boot.py'] = b'x' * 2048
        out = io.StringIO()
        with redirect_stdout(out):
            self.assertEqual(self.run_main(device, 'ls'), EXIT_OK)
        self.assertIn("lib/", out.getvalue())
        self.assertIn("2.00K boot.py", out.getvalue())


class TestReset(CliTestCase):
    def test_soft_reset(self):
        device = FakeMpyDevice()
        self.assertEqual(self.run_main(device, 'reset'), EXIT_OK)
        self.assertEqual(device.soft_resets, 1)

    def test_hard_reset(self):
        device = FakeUpyOsDevice()
        with patch('upyremote.conn._time.sleep'):
            self.assertEqual(self.run_main(device, 'reset', '--hard'), EXIT_OK)
        self.assertIn(('dtr', True), device.control)


class TestPorts(unittest.TestCase):
    @patch('upyremote.upyremote.ConnSerial')
    @patch('upyremote.upyremote.detect_serial_ports')
    def test_ports_without_connection(self, mock_ports, mock_conn):
        mock_ports.return_value = ['/dev/ttyACM0', '/dev/ttyUSB0']
        out = io.StringIO()
        with redirect_stdout(out):
            self.assertEqual(main(['ports']), EXIT_OK)
        self.assertEqual(out.getvalue(), "/dev/ttyACM0\n/dev/ttyUSB0\n")
        mock_conn.assert_not_called()


if __name__ == "__main__":
    unittest.main()
