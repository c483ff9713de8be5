"""LineFollower: watchdog event handler that reads lines appended to a file."""

import logging
import os

from watchdog.events import FileSystemEventHandler

logger = logging.getLogger(__name__)


class LineFollower(FileSystemEventHandler):
    def __init__(self, path: str, on_line, from_start: bool = False):
        super().__init__()
        self._path = os.path.abspath(path)
        self._on_line = on_line
        self._fh = None
        self._partial = ""
        self._from_start = from_start

    @property
    def path(self) -> str:
        return self._path

    @property
    def watch_dir(self) -> str:
        return os.path.dirname(self._path)

    def open(self):
        """Open the followed file, at its end unless following from the start."""
        self.close()
        try:
            self._fh = open(self._path, "r", encoding="utf-8", errors="replace")
        except FileNotFoundError:
            logger.debug("File not found: %s", self._path)
            return
        if not self._from_start:
            self._fh.seek(0, os.SEEK_END)
        self._partial = ""

    def read_new_lines(self) -> int:
        """Hand complete new lines to the callback. Returns how many were delivered."""
        if self._fh is None:
            self.open()
        if self._fh is None:
            return 0

        if os.path.getsize(self._path) < self._fh.tell():
            logger.info("File truncated: %s", self._path)
            self._fh.seek(0)
            self._partial = ""

        data = self._fh.read()
        if not data:
            return 0

        data = self._partial + data
        lines = data.split("\n")
        self._partial = lines.pop()

        delivered = 0
        for line in lines:
            if line.strip():
                self._on_line(line)
                delivered += 1
        return delivered

    def on_modified(self, event):
        if event.is_directory:
            return
        if os.path.abspath(event.src_path) == self._path:
            self.read_new_lines()

    def on_created(self, event):
        if event.is_directory:
            return
        if os.path.abspath(event.src_path) == self._path:
            logger.info("Followed file created: %s", self._path)
            self._from_start = True
            self.open()
            self.read_new_lines()

    def close(self):
        if self._fh is not None:
            self._fh.close()
            self._fh = None
