"""Tests for mpy module"""

import unittest
from unittest.mock import patch

from upyremote.conn import ResetKind
from upyremote.errors import TransferIncomplete, FileNotFound, DirNotFound
from upyremote.mpy import _escape_path, Mpy, DirEntry, TransferResult
from upyremote.mpy_comm import ReplState
from upyremote.scanner import PromptScanner
from fake_device import FakeMpyDevice


class TestEscapePath(unittest.TestCase):
    def test_no_escape_needed(self):
        self.assertEqual(_escape_path("simple.txt"), "simple.txt")
        self.assertEqual(_escape_path("/path/to/file"), "/path/to/file")

    def test_escape_apostrophe(self):
        self.assertEqual(_escape_path("file's.txt"), "file\\'s.txt")

    def test_escape_backslash(self):
        self.assertEqual(_escape_path("path\\file"), "path\\\\file")

    def test_escape_both(self):
        self.assertEqual(_escape_path("it's\\here"), "it\\'s\\\\here")

    def test_double_quotes_no_escape_needed(self):
        self.assertEqual(_escape_path('file"name.txt'), 'file"name.txt')


class MpyTestCase(unittest.TestCase):
    def setUp(self):
        self.device = FakeMpyDevice()
        self.mpy = Mpy(PromptScanner(self.device))


class TestExecute(MpyTestCase):
    def test_print(self):
        res = self.mpy.execute("print(1+1)")
        self.assertEqual(res.stdout, b'2\n')
        self.assertEqual(res.stderr, b'')

    def test_error_then_next_command(self):
        """Exception on device does not break following commands"""
        res = self.mpy.execute("1/0")
        self.assertIn(b'ZeroDivisionError', res.stderr)
        self.assertNotIn(b'\r', res.stderr)
        res = self.mpy.execute("print(1+1)")
        self.assertEqual(res.stdout, b'2\n')
        self.assertIs(self.mpy.comm.state, ReplState.IDLE)

    def test_expression_without_print(self):
        res = self.mpy.execute("1+1")
        self.assertEqual(res, (b'', b''))

    def test_run_script(self):
        res = self.mpy.run("def f(x):\n    return x * 2\n\nprint(f(21))\n")
        self.assertEqual(res.stdout, b'42\n')


class TestLs(MpyTestCase):
    def test_ls_dirs_first(self):
        self.device.dirs.add('/lib')
        self.device.files['/main.py'] = b'print(1)\n'
        self.device.files['/boot.py'] = b''
        self.assertEqual(self.mpy.ls('/'), [
            DirEntry('lib', None, True),
            DirEntry('boot.py', 0, False),
            DirEntry('main.py', 9, False),
        ])

    def test_ls_subdir(self):
        self.device.dirs.add('/lib')
        self.device.files['/lib/util.py'] = b'x = 1\n'
        self.assertEqual(self.mpy.ls('/lib'), [DirEntry('util.py', 6, False)])

    def test_ls_missing_dir(self):
        with self.assertRaises(DirNotFound):
            self.mpy.ls('/missing')


class TestPutGet(MpyTestCase):
    def test_round_trip_binary(self):
        data = bytes(range(256)) * 3 + b'tail'
        res = self.mpy.put(data, '/data.bin')
        self.assertEqual(res, TransferResult(len(data), 5))
        self.assertEqual(self.device.files['/data.bin'], data)
        self.assertEqual(self.mpy.get('/data.bin'), data)
        self.assertIs(self.mpy.comm.state, ReplState.IDLE)

    def test_round_trip_sizes(self):
        for size in (1, 2, 3, 191, 192, 193, 383, 385):
            data = bytes((i * 7) % 256 for i in range(size))
            self.mpy.put(data, '/f.bin')
            self.assertEqual(self.mpy.get('/f.bin'), data, size)

    def test_round_trip_exact_chunk_multiple(self):
        data = b'a' * 384
        self.mpy.put(data, '/a.txt')
        self.assertEqual(self.mpy.get('/a.txt'), data)

    def test_empty_file(self):
        res = self.mpy.put(b'', '/empty.txt')
        self.assertEqual(res, TransferResult(0, 0))
        self.assertEqual(self.device.files['/empty.txt'], b'')
        self.assertEqual(self.mpy.get('/empty.txt'), b'')

    def test_path_with_apostrophe(self):
        self.mpy.put(b'data', "/it's.txt")
        self.assertEqual(self.device.files["/it's.txt"], b'data')

    def test_small_chunk_size(self):
        mpy = Mpy(PromptScanner(self.device), chunk_size=3)
        res = mpy.put(b'abcdefg', '/x.txt')
        self.assertEqual(res.chunks, 3)
        self.assertEqual(mpy.get('/x.txt'), b'abcdefg')

    def test_write_failure_reports_last_chunk(self):
        self.device.fail_write_at = 2
        with self.assertRaises(TransferIncomplete) as ctx:
            self.mpy.put(b'z' * 1000, '/big.bin')
        self.assertEqual(ctx.exception.last_index, 1)
        self.assertEqual(ctx.exception.transferred, 384)
        self.assertIn("OSError", str(ctx.exception))
        self.assertFalse(self.device.raw)
        # partial file was closed
        self.assertEqual(self.device.files['/big.bin'], b'z' * 384)

    def test_short_write(self):
        self.device.short_write = True
        with self.assertRaises(TransferIncomplete) as ctx:
            self.mpy.put(b'z' * 100, '/short.bin')
        self.assertEqual(ctx.exception.last_index, -1)
        self.assertIn("99 of 100", str(ctx.exception))

    def test_open_failure(self):
        with self.assertRaises(TransferIncomplete) as ctx:
            self.mpy.put(b'data', '/missing/file.txt')
        self.assertEqual(ctx.exception.last_index, -1)
        self.assertEqual(ctx.exception.transferred, 0)

    def test_get_missing_file(self):
        with self.assertRaises(FileNotFound):
            self.mpy.get('/missing.txt')
        self.assertFalse(self.device.raw)
        self.assertEqual(self.mpy.execute("print(3)").stdout, b'3\n')


class TestSend(MpyTestCase):
    def test_send_line_to_friendly_repl(self):
        self.assertEqual(self.mpy.send("print(1+1)"), b'2\n')

    def test_send_leaves_raw_repl(self):
        self.mpy.comm.enter_raw_repl()
        self.assertEqual(self.mpy.send("6 * 7"), b'42\n')
        self.assertFalse(self.device.raw)


class TestReset(MpyTestCase):
    def test_soft_reset(self):
        self.mpy.reset(ResetKind.SOFT)
        self.assertEqual(self.device.soft_resets, 1)

    def test_hard_reset_pulses_lines(self):
        with patch('upyremote.conn._time.sleep') as sleep:
            self.mpy.reset(ResetKind.HARD)
        self.assertEqual(self.device.control, [
            ('dtr', True), ('rts', False),
            ('dtr', False), ('rts', True),
            ('rts', False),
        ])
        self.assertEqual(
            [call.args[0] for call in sleep.call_args_list], [.1, .1, 1.0])
        self.assertIs(self.mpy.comm.state, ReplState.IDLE)


if __name__ == "__main__":
    unittest.main()
