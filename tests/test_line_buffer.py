"""Tests for terminal line buffer"""

import unittest

from upyremote.line_buffer import TerminalLineBuffer


def _typed(text):
    buf = TerminalLineBuffer()
    buf.insert(text)
    return buf


class TestEditing(unittest.TestCase):
    def test_insert_in_middle(self):
        buf = _typed('helo')
        buf.left()
        buf.insert('l')
        self.assertEqual(buf.line, 'hello')
        self.assertEqual(buf.cursor, 4)

    def test_backspace(self):
        buf = _typed('abc')
        buf.backspace()
        self.assertEqual(buf.line, 'ab')
        buf.home()
        buf.backspace()
        self.assertEqual(buf.line, 'ab')

    def test_delete(self):
        buf = _typed('abc')
        buf.home()
        buf.delete()
        self.assertEqual(buf.line, 'bc')
        buf.end()
        buf.delete()
        self.assertEqual(buf.line, 'bc')

    def test_cursor_bounds(self):
        buf = _typed('ab')
        buf.right()
        self.assertEqual(buf.cursor, 2)
        buf.home()
        buf.left()
        self.assertEqual(buf.cursor, 0)

    def test_word_movement(self):
        buf = _typed('import os  sys')
        buf.word_left()
        self.assertEqual(buf.cursor, 11)
        buf.word_left()
        self.assertEqual(buf.cursor, 7)
        buf.word_right()
        self.assertEqual(buf.cursor, 9)
        buf.word_right()
        self.assertEqual(buf.cursor, 14)

    def test_kill_word(self):
        """CTRL + W removes word before cursor"""
        buf = _typed('hello world')
        buf.kill_word()
        self.assertEqual(buf.line, 'hello ')
        self.assertEqual(buf.cursor, 6)
        buf.kill_word()
        self.assertEqual(buf.line, '')

    def test_kill_to_end(self):
        buf = _typed('hello world')
        buf.word_left()
        buf.kill_to_end()
        self.assertEqual(buf.line, 'hello ')

    def test_kill_line(self):
        buf = _typed('hello')
        buf.kill_line()
        self.assertEqual(buf.line, '')
        self.assertEqual(buf.cursor, 0)


class TestHistory(unittest.TestCase):
    def test_submit(self):
        buf = _typed('ls')
        self.assertEqual(buf.submit(), 'ls')
        self.assertEqual(buf.line, '')
        self.assertEqual(buf.history, ['ls'])

    def test_empty_and_repeated_lines_not_stored(self):
        buf = TerminalLineBuffer()
        for line in ('ls', 'ls', '', 'ps'):
            buf.set_line(line)
            buf.submit()
        self.assertEqual(buf.history, ['ls', 'ps'])

    def test_up_clamps_at_oldest(self):
        buf = TerminalLineBuffer()
        for line in ('first', 'second'):
            buf.set_line(line)
            buf.submit()
        buf.history_prev()
        self.assertEqual(buf.line, 'second')
        buf.history_prev()
        buf.history_prev()
        buf.history_prev()
        self.assertEqual(buf.line, 'first')
        self.assertEqual(buf.cursor, 5)

    def test_down_returns_to_draft(self):
        buf = TerminalLineBuffer()
        buf.set_line('old')
        buf.submit()
        buf.insert('draft')
        buf.history_prev()
        self.assertEqual(buf.line, 'old')
        buf.history_next()
        self.assertEqual(buf.line, 'draft')
        buf.history_next()
        self.assertEqual(buf.line, 'draft')

    def test_history_size(self):
        buf = TerminalLineBuffer(history_size=2)
        for line in ('a', 'b', 'c'):
            buf.set_line(line)
            buf.submit()
        self.assertEqual(buf.history, ['b', 'c'])


if __name__ == "__main__":
    unittest.main()
