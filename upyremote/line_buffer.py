"""upyremote: local line editing state for terminal"""


class TerminalLineBuffer():
    """Edited line, cursor position and history of submitted lines

    History cursor points into history, position len(history) is the
    line which is being edited (draft).
    """

    def __init__(self, history_size=100):
        self._line = ''
        self._cursor = 0
        self._history = []
        self._history_size = history_size
        self._history_pos = 0
        self._draft = ''

    @property
    def line(self):
        return self._line

    @property
    def cursor(self):
        return self._cursor

    @property
    def history(self):
        return list(self._history)

    def set_line(self, line):
        self._line = line
        self._cursor = len(line)

    def insert(self, text):
        self._line = self._line[:self._cursor] + text + self._line[self._cursor:]
        self._cursor += len(text)

    def backspace(self):
        if self._cursor > 0:
            self._line = self._line[:self._cursor - 1] + self._line[self._cursor:]
            self._cursor -= 1

    def delete(self):
        self._line = self._line[:self._cursor] + self._line[self._cursor + 1:]

    def home(self):
        self._cursor = 0

    def end(self):
        self._cursor = len(self._line)

    def left(self):
        self._cursor = max(0, self._cursor - 1)

    def right(self):
        self._cursor = min(len(self._line), self._cursor + 1)

    def _word_start(self):
        pos = self._cursor
        while pos > 0 and self._line[pos - 1] == ' ':
            pos -= 1
        while pos > 0 and self._line[pos - 1] != ' ':
            pos -= 1
        return pos

    def _word_end(self):
        pos = self._cursor
        size = len(self._line)
        while pos < size and self._line[pos] == ' ':
            pos += 1
        while pos < size and self._line[pos] != ' ':
            pos += 1
        return pos

    def word_left(self):
        self._cursor = self._word_start()

    def word_right(self):
        self._cursor = self._word_end()

    def kill_to_end(self):
        self._line = self._line[:self._cursor]

    def kill_line(self):
        self._line = ''
        self._cursor = 0

    def kill_word(self):
        """Delete word before cursor (including spaces after it)"""
        start = self._word_start()
        self._line = self._line[:start] + self._line[self._cursor:]
        self._cursor = start

    def history_prev(self):
        if self._history_pos == 0:
            return
        if self._history_pos == len(self._history):
            self._draft = self._line
        self._history_pos -= 1
        self.set_line(self._history[self._history_pos])

    def history_next(self):
        if self._history_pos >= len(self._history):
            return
        self._history_pos += 1
        if self._history_pos == len(self._history):
            self.set_line(self._draft)
        else:
            self.set_line(self._history[self._history_pos])

    def submit(self):
        """Finish line, store it to history

        Returns:
            submitted line
        """
        line = self._line
        if line and (not self._history or self._history[-1] != line):
            self._history.append(line)
            del self._history[:-self._history_size]
        self._history_pos = len(self._history)
        self._draft = ''
        self.kill_line()
        return line
