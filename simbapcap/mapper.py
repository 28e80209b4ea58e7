"""Read-only memory mapping of a whole file."""

from __future__ import annotations

import mmap
import os
from typing import Optional


class MemoryMapper:
    """Maps a file read-only into memory and gives bounds-checked access to it."""

    def __init__(self, filename: str | os.PathLike) -> None:
        self.filename = os.fspath(filename)
        try:
            self._file = open(self.filename, "rb")
        except OSError as exc:
            raise OSError(
                exc.errno, f"Failed to open file: {self.filename} - {exc.strerror}"
            ) from exc
        try:
            self._size = os.fstat(self._file.fileno()).st_size
        except OSError as exc:
            self._file.close()
            raise OSError(f"Failed to get file size: {self.filename}") from exc
        try:
            self._map: Optional[mmap.mmap] = mmap.mmap(
                self._file.fileno(), 0, access=mmap.ACCESS_READ
            )
        except (OSError, ValueError) as exc:
            self._file.close()
            raise OSError(f"Failed to memory map file: {self.filename}") from exc
        self.advise_sequential()

    @property
    def data(self) -> mmap.mmap:
        """The mapped file contents."""
        if self._map is None:
            raise ValueError("mapping is closed")
        return self._map

    @property
    def size(self) -> int:
        return self._size if self._map is not None else 0

    @property
    def is_valid(self) -> bool:
        return self._map is not None

    def read_at(self, offset: int, length: int) -> Optional[bytes]:
        """Return ``length`` bytes at ``offset``, or None if they lie outside the file."""
        if self._map is None or offset < 0 or length < 0 or offset + length > self._size:
            return None
        return self._map[offset:offset + length]

    def _advise(self, name: str, offset: int = 0, length: Optional[int] = None) -> None:
        option = getattr(mmap, name, None)
        if self._map is None or option is None or not hasattr(self._map, "madvise"):
            return
        start = offset - offset % mmap.PAGESIZE
        if length is None:
            length = self._size - start
        else:
            length += offset - start
        try:
            self._map.madvise(option, start, length)
        except (OSError, ValueError):
            pass

    def advise_sequential(self) -> None:
        """Hint that the file will be read front to back."""
        self._advise("MADV_SEQUENTIAL")

    def advise_random(self) -> None:
        """Hint that the file will be read in no particular order."""
        self._advise("MADV_RANDOM")

    def prefetch(self, offset: int, length: int) -> None:
        """Hint that the given range will be needed soon."""
        if self._map is None or offset < 0 or offset >= self._size:
            return
        self._advise("MADV_WILLNEED", offset, min(length, self._size - offset))

    def close(self) -> None:
        if self._map is not None:
            self._map.close()
            self._map = None
        self._file.close()

    def __enter__(self) -> "MemoryMapper":
        return self

    def __exit__(self, *args) -> None:
        self.close()