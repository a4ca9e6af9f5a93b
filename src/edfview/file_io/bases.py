"""A collection of base classes for reading fixed layout biosignal files &
their annotations.

The base classes of this module define interfaces for decoding header
metadata and reading data from a ByteSource. Inheritors of these classes
must supply all abstract methods to create a fully instantiable object.

These abstract classes are not part of the public interface and can not
be instantiated.
"""

import abc
from dataclasses import dataclass
from inspect import getmembers
import logging
from pathlib import Path
import pprint
import re
import typing

import numpy as np
import numpy.typing as npt

from edfview.core import mixins
from edfview.file_io import bytemaps
from edfview.file_io.errors import FormatError
from edfview.file_io.sources import ByteSource, FileSource, MappedSource

logger = logging.getLogger(__name__)

# numeric fields hold plain ascii digits with an optional sign and point
NUMERIC_PATTERNS = {int: re.compile(r'[+-]?\d+', re.ASCII),
                    float: re.compile(r'[+-]?(\d+(\.\d*)?|\.\d+)', re.ASCII)}


class Header(dict):
    """An extended dictionary base class for decoding file headers.

    This base class defines the expected interface for all readers of
    headers. Inheriting classes are required to override the bytemap method
    to be instantiable. The bytemap method is required to return a dict that
    specifies the field name, its byte offset, its byte width and the
    datatype of the value. An example bytemap dict looks like:
    {field_name1: (offset, width, dtype), fieldname2: ...}

    The parsed values are stored as the dict's items. The trimmed text of
    every field, before any numeric conversion, is stored to the 'raw' dict.

    Attributes:
        raw:
            A dict of the trimmed string of each field.
    """

    def __init__(self,
                 source: typing.Optional[ByteSource],
                 encoding: str = 'ascii',
    ) -> None:
        """Initialize this Header.

        Args:
            source:
                A ByteSource to decode the header from. If None, an empty
                Header is created.
            encoding:
                The encoding used to represent the values of each field.
        """

        dict.__init__(self)
        self.raw: typing.Dict[str, str] = {}
        if source is not None:
            self.update(self.read(source, encoding))

    def __getattr__(self, name: str):
        """Provides '.' notation access to this Header's values.

        Args:
            name:
                Name of field to access in this Header.
        """

        try:
            return self[name]
        except KeyError as exc:
            msg = "'{}' object has no attribute '{}'"
            raise AttributeError(msg.format(type(self).__name__, name)) from exc

    def bytemap(self) -> typing.Dict[str, typing.Tuple[int, int, type]]:
        """Returns a format specific mapping specifying byte locations
        in a file containing header data."""

        raise NotImplementedError

    def read(self, source: ByteSource, encoding: str = 'ascii') -> dict:
        """Reads the header of a source into a dict using a file format
        specific bytemap.

        The whole block spanned by the bytemap is fetched with a single
        read and each field is decoded from its explicit offset.

        Args:
            source:
                The ByteSource to read from.
            encoding:
                The encoding used to represent the values of each field.

        Raises:
            TruncatedDataError: If the source is shorter than the block.
            FormatError: If a numeric field's text does not parse.
        """

        fields = self.bytemap()
        nbytes = max(offset + width for offset, width, _ in fields.values())
        block = source.read(0, nbytes)

        header: typing.Dict[str, typing.Any] = {}
        for name, (offset, width, dtype) in fields.items():
            text = bytemaps.trim(block[offset:offset + width], encoding)
            self.raw[name] = text
            header[name] = parse(name, text, dtype)
        return header

    def _isprop(self, attr: str) -> bool:
        """Returns True if attr is a property of this Header."""

        return isinstance(attr, property)

    def __str__(self):
        """Overrides dict's print string to show accessible properties."""

        props = [k for k, v in getmembers(self.__class__, self._isprop)]
        pp = pprint.PrettyPrinter(sort_dicts=False, compact=True)
        props = {'Accessible Properties': props}
        return pp.pformat(dict(self)) + '\n\n' + pp.pformat(props)


def parse(field: str,
          text: str,
          dtype: type,
          column: typing.Optional[int] = None,
          label: typing.Optional[str] = None,
) -> typing.Any:
    """Converts the trimmed text of a field to dtype.

    Args:
        field:
            The name of the field being parsed, used in error messages.
        text:
            The trimmed field text.
        dtype:
            One of str, int or float.
        column:
            The signal column of a per-signal field, if any.
        label:
            The label of the signal at column, if known.

    Raises:
        FormatError: If text is not a plain ascii number of dtype.
    """

    if dtype is str:
        return text

    pattern = NUMERIC_PATTERNS.get(dtype)
    if pattern is not None and not pattern.fullmatch(text):
        raise FormatError(field, text, column, label)

    try:
        return dtype(text)
    except ValueError as exc:
        raise FormatError(field, text, column, label) from exc


class Reader(abc.ABC, mixins.ViewInstance):
    """Abstract base class for reading record based biosignal files.

    This ABC defines a protocol for reading data from any fixed layout file
    type through a ByteSource. All readers support being opened under
    context management or as an open reader whose resources should be
    closed when finished. Inheritors must override the 'signal' and
    'read_column' abstract methods.

    Attributes:
        path:
            Python path instance to the file or None if the reader was given
            an existing ByteSource.
        source:
            The ByteSource this reader decodes from.
    """

    def __init__(self,
                 source: typing.Union[str, Path, ByteSource],
                 mapped: bool = False,
    ) -> None:
        """Initialize this reader.

        Args:
            source:
                A path to a file or an open ByteSource. A path is opened by
                this Reader and closed with it; a ByteSource is borrowed and
                left open when this Reader closes.
            mapped:
                If True a path is memory mapped (see MappedSource) instead
                of read through a file handle (see FileSource). Ignored when
                source is a ByteSource.
        """

        if isinstance(source, ByteSource):
            self.path = getattr(source, 'path', None)
            self.source = source
            self._owned = False
        else:
            self.path = Path(source)
            opener = MappedSource if mapped else FileSource
            self.source = opener(self.path)
            self._owned = True

    @abc.abstractmethod
    def signal(self, column: int):
        """Returns the descriptor of the signal at column or None."""

    @abc.abstractmethod
    def read_column(self, column: int
    ) -> typing.Optional[npt.NDArray[np.int16]]:
        """Returns the samples of every record for the signal at column.

        Args:
            column:
                The index of the signal to read.

        Returns:
            A num_records x samples_per_record array or None if column has
            no sample data.
        """

    def __enter__(self):
        """Return reader instance as target variable of this context."""

        return self

    def __exit__(self, exc_type, exc_value, traceback):
        """On context exit, close this reader's source and propagate
        errors by returning None."""

        self.close()

    def close(self):
        """Close the source this reader opened.

        Sources passed to the initializer belong to the caller and are left
        open.
        """

        if self._owned:
            self.source.close()
            logger.debug('Closed reader of %s', self.path)


@dataclass(frozen=True)
class Annotation:
    """An object for storing a predefined set of annotation attributes.

    Attributes:
        label (str):
            The string text of this annotation.
        time (float):
            The time this annotation was made in seconds relative to the
            recording start.
        duration (float):
            The duration of this annotation in seconds. Annotations whose
            duration is unspecified have a duration of 0.
        channel (Any):
            The integer index of the signal this annotation was read from.
    """

    label: str
    time: float
    duration: float
    channel: typing.Any
