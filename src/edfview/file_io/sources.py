"""Byte sources supplying exact byte ranges of an EDF file to the decoders.

Every decoder in edfview reads through a ByteSource. A source answers one
question: give me exactly 'length' bytes starting at 'offset'. If the
source is too short a TruncatedDataError is raised; failures of the
operating system propagate as OSError.

This module contains:

    - ByteSource: The abstract interface all sources implement.
    - FileSource: A positioned reader over an open binary file handle.
    - MappedSource: A read-only numpy memory map of a file.
    - BufferSource: A source over an in-memory bytes-like object.

## Concurrency
The decoders never lock and never assume a source is thread-safe. Each
source states its own contract:

    - FileSource performs a seek followed by a read on a single handle.
      The pair is not atomic so a FileSource must not be shared between
      threads.
    - MappedSource and BufferSource hold immutable views and may be read
      concurrently by any number of callers.

Examples:
    >>> from edfview.file_io.sources import FileSource
    >>> with FileSource('recording_001.edf') as source:
    >>>     version = source.read(0, 8)
"""

import abc
import logging
import os
from pathlib import Path
from typing import Optional, Union

import numpy as np

from edfview.core import mixins
from edfview.file_io.errors import TruncatedDataError

logger = logging.getLogger(__name__)


class ByteSource(abc.ABC, mixins.ViewInstance):
    """Abstract base class for read-only providers of byte ranges.

    Inheritors must override the 'size' property and the '_fetch' method.
    Sources may be used with or without context management. Closing a
    source releases its underlying resources.
    """

    @property
    @abc.abstractmethod
    def size(self) -> int:
        """Returns the total number of bytes in this source."""

    @abc.abstractmethod
    def _fetch(self, offset: int, length: int) -> bytes:
        """Returns up to length bytes from offset.

        Fewer bytes than length may be returned near the end of the source;
        the public 'read' method detects the shortfall.
        """

    def read(self, offset: int, length: int) -> bytes:
        """Returns exactly length bytes beginning at offset.

        Args:
            offset:
                The non-negative byte position to start reading at.
            length:
                The non-negative number of bytes to read.

        Returns:
            A bytes instance of len(length).

        Raises:
            ValueError: If offset or length is negative.
            TruncatedDataError: If fewer than length bytes exist at offset.
            OSError: If the underlying resource fails to read.
        """

        if offset < 0 or length < 0:
            msg = 'offset and length must be non-negative not ({}, {})'
            raise ValueError(msg.format(offset, length))

        if length == 0:
            return b''

        data = self._fetch(offset, length)
        if len(data) < length:
            raise TruncatedDataError(offset, length, len(data))
        return data

    def close(self) -> None:
        """Releases any resources held by this source."""

    def __enter__(self):
        """Return this source as the target of the context."""

        return self

    def __exit__(self, exc_type, exc_value, traceback):
        """Close this source & propagate errors by returning None."""

        self.close()


class FileSource(ByteSource):
    """A byte source backed by a binary file handle.

    Each read seeks the handle and then reads from it. Since these two
    steps are not atomic, a FileSource is not safe for concurrent use by
    multiple threads. Give each thread its own FileSource or use a
    MappedSource.

    Attributes:
        path:
            Python path instance to the file being read.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        """Initialize this source by opening the file at path.

        Args:
            path:
                A string or python Path instance to a binary file.

        Raises:
            OSError: If the file can not be opened.
        """

        self.path = Path(path)
        # the handle lives until close is called
        # pylint: disable-next=consider-using-with
        self._fobj = open(self.path, 'rb')
        logger.debug('Opened file source %s', self.path)

    @property
    def size(self) -> int:
        """Returns the byte size of the open file."""

        if self._fobj is None:
            raise ValueError('I/O operation on closed source')
        return os.fstat(self._fobj.fileno()).st_size

    def _fetch(self, offset: int, length: int) -> bytes:
        """Seeks to offset and reads up to length bytes."""

        if self._fobj is None:
            raise ValueError('I/O operation on closed source')
        self._fobj.seek(offset)
        return self._fobj.read(length)

    def close(self) -> None:
        """Close the file handle and drop the reference to it."""

        if self._fobj:
            self._fobj.close()
            self._fobj = None
            logger.debug('Closed file source %s', self.path)


class MappedSource(ByteSource):
    """A byte source backed by a read-only numpy memory map.

    The map is never written to, so a MappedSource may be shared for
    concurrent reads across threads.

    Attributes:
        path:
            Python path instance to the mapped file.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        """Initialize this source by memory mapping the file at path.

        Args:
            path:
                A string or python Path instance to a binary file.

        Raises:
            OSError: If the file can not be opened or mapped.
        """

        self.path = Path(path)
        self._map: Optional[np.ndarray]
        if self.path.stat().st_size == 0:
            # numpy refuses to map an empty file
            self._map = np.empty(0, dtype=np.uint8)
        else:
            self._map = np.memmap(self.path, dtype=np.uint8, mode='r')
        logger.debug('Mapped %d bytes of %s', len(self._map), self.path)

    @property
    def size(self) -> int:
        """Returns the number of mapped bytes."""

        if self._map is None:
            raise ValueError('I/O operation on closed source')
        return len(self._map)

    def _fetch(self, offset: int, length: int) -> bytes:
        """Copies up to length bytes of the map beginning at offset."""

        if self._map is None:
            raise ValueError('I/O operation on closed source')
        return self._map[offset:offset + length].tobytes()

    def close(self) -> None:
        """Drop the reference to the map so the mapping can be released."""

        if self._map is not None:
            self._map = None
            logger.debug('Unmapped %s', self.path)


class BufferSource(ByteSource):
    """A byte source over an in-memory bytes-like object.

    The buffer is copied to an immutable bytes instance on initialization
    so a BufferSource may be read concurrently.
    """

    def __init__(self, data: Union[bytes, bytearray, memoryview]) -> None:
        """Initialize this source with a bytes-like object."""

        self._data = bytes(data)

    @property
    def size(self) -> int:
        """Returns the length of the buffer."""

        return len(self._data)

    def _fetch(self, offset: int, length: int) -> bytes:
        """Slices up to length bytes from offset."""

        return self._data[offset:offset + length]
