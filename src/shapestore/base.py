from __future__ import annotations

import logging
from types import TracebackType
from typing import IO, TypeVar

from .exceptions import NotOpenError, ShapefileException
from .helpers import fsdecode_if_pathlike
from .types import FileModeT, PathT

logger = logging.getLogger(__name__)

_StoreT = TypeVar("_StoreT", bound="FileStore")


class FileStore:
    """A file backed store with an explicit open/close lifecycle.

    Opening acquires the file handle and reads whatever header the store
    needs, closing releases it. Opening an opened store, or closing a
    closed one, does nothing. Used as a context manager the store is
    opened on entry and closed on exit.
    """

    MODES = ("rb", "r+b")

    def __init__(self, path: PathT, mode: FileModeT = "rb"):
        if mode not in self.MODES:
            raise ValueError(f"mode must be one of {self.MODES}, not {mode!r}")
        self.path: str = fsdecode_if_pathlike(path)
        self.mode = mode
        self._file: IO[bytes] | None = None

    @property
    def is_opened(self) -> bool:
        return self._file is not None

    @property
    def writable(self) -> bool:
        return self.mode == "r+b"

    def open(self) -> None:
        if self._file is not None:
            return
        self._file = open(self.path, self.mode)
        try:
            self._on_open(self._file)
        except BaseException:
            self._file.close()
            self._file = None
            raise
        logger.debug("Opened %s (%s)", self.path, self.mode)

    def close(self) -> None:
        if self._file is None:
            return
        try:
            self._on_close()
        finally:
            self._file.close()
            self._file = None
        logger.debug("Closed %s", self.path)

    def _on_open(self, f: IO[bytes]) -> None:
        """Reads the header of a freshly opened file."""

    def _on_close(self) -> None:
        """Releases anything derived from the open file."""

    def _check_is_opened(self) -> IO[bytes]:
        if self._file is None:
            raise NotOpenError(f"{type(self).__name__} {self.path} is not opened.")
        return self._file

    def _check_is_writable(self) -> IO[bytes]:
        f = self._check_is_opened()
        if not self.writable:
            raise ShapefileException(
                f"{type(self).__name__} {self.path} is opened read only."
            )
        return f

    def __enter__(self: _StoreT) -> _StoreT:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: BaseException | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool | None:
        self.close()
        return None

    def __repr__(self) -> str:
        state = "opened" if self.is_opened else "closed"
        return f"{type(self).__name__}({self.path!r}, {self.mode!r}) [{state}]"
