"""Byte maps of the EDF header record and the arithmetic that locates each
field within it.

The header record of an EDF file is partitioned into sequential sections.
Each section spans a fixed number of bytes holding a space-padded 'ascii'
string. The first two sections of the header are:

***************************************
* 8 bytes ** 80 bytes .................
***************************************

The first 8 bytes hold the version string and the next 80 the patient
identification. A 256 byte fixed block is followed by ten per-signal
field arrays. Each array holds one element for every signal and the
arrays are stored one after the other (all labels, then all transducer
types, ...):

************************************************************
* N x 16 labels ** N x 80 transducers ** ... ** N x 32 reserved
************************************************************

The order and widths below are protocol constants of the EDF
specification (https://www.edfplus.info/specs/edf.html). Reordering them
corrupts every subsequent offset.

This module contains:

    - HEADER_FIELDS: (name, width, dtype) of the fixed header block.
    - SIGNAL_FIELDS: (name, width, dtype) of the per-signal arrays.
    - width_of, offset_of, header_size: Layout arithmetic.
    - Chunks: A fixed-stride indexable view of a field array.
"""

from typing import Dict, Iterator, Tuple, Type, Union

# byte size of the fixed header block
BLOCK_SIZE = 256

# trailing characters padding a field's text
PADDING = ' \t'

HEADER_FIELDS: Tuple[Tuple[str, int, Type], ...] = (
    ('version', 8, str),
    ('patient', 80, str),
    ('recording', 80, str),
    ('start_date', 8, str),
    ('start_time', 8, str),
    ('header_bytes', 8, int),
    ('reserved_0', 44, str),
    ('num_records', 8, int),
    ('record_duration', 8, float),
    ('num_signals', 4, int),
)

SIGNAL_FIELDS: Tuple[Tuple[str, int, Type], ...] = (
    ('label', 16, str),
    ('transducer', 80, str),
    ('physical_dim', 8, str),
    ('physical_min', 8, int),
    ('physical_max', 8, int),
    ('digital_min', 8, int),
    ('digital_max', 8, int),
    ('prefiltering', 80, str),
    ('samples_per_record', 8, int),
    ('reserved', 32, str),
)

# bytes per signal across all ten arrays
SIGNAL_SIZE = sum(width for _, width, _ in SIGNAL_FIELDS)


def bytemap() -> Dict[str, Tuple[int, int, Type]]:
    """Returns a dict of the fixed header block keyed on field name with
    (offset, width, dtype) tuple values.

    For example:
        {'version': (0, 8, str), 'patient': (8, 80, str), ...}
    """

    result = {}
    offset = 0
    for name, width, dtype in HEADER_FIELDS:
        result[name] = (offset, width, dtype)
        offset += width
    return result


def width_of(field: str) -> int:
    """Returns the byte width of a single element of a per-signal field.

    Raises:
        KeyError: If field is not a per-signal field name.
    """

    for name, width, _ in SIGNAL_FIELDS:
        if name == field:
            return width
    raise KeyError(field)


def offset_of(field: str, num_signals: int) -> int:
    """Returns the absolute byte offset of a per-signal field array.

    The offset is the fixed block size plus num_signals times the widths
    of every field that precedes field in SIGNAL_FIELDS.

    Args:
        field:
            A per-signal field name such as 'label'.
        num_signals:
            The signal count declared in the fixed header block.

    Raises:
        KeyError: If field is not a per-signal field name.
    """

    preceding = 0
    for name, width, _ in SIGNAL_FIELDS:
        if name == field:
            return BLOCK_SIZE + num_signals * preceding
        preceding += width
    raise KeyError(field)


def header_size(num_signals: int) -> int:
    """Returns the header record byte size implied by num_signals."""

    return BLOCK_SIZE + num_signals * SIGNAL_SIZE


def trim(data: bytes, encoding: str = 'ascii') -> str:
    """Decodes a fixed-width field and strips its trailing spaces and tabs.

    Trimming is idempotent; text without trailing padding is returned
    unchanged. Other whitespace such as newlines is kept. Bytes invalid for
    encoding are replaced rather than raised since free-text fields carry no
    numeric meaning.
    """

    return data.decode(encoding, errors='replace').rstrip(PADDING)


class Chunks:
    """An indexable view of a field array with a fixed element width.

    The element slices are computed on demand from the buffer holding the
    whole array, so building a view never copies the buffer.

    Attributes:
        data:
            The bytes of a whole field array.
        width:
            The byte width of one element.
    """

    __slots__ = ('data', 'width')

    def __init__(self, data: Union[bytes, memoryview], width: int) -> None:
        """Initialize this view over data with element width."""

        if width <= 0:
            raise ValueError('width must be positive not {}'.format(width))
        self.data = memoryview(data)
        self.width = width

    def __len__(self) -> int:
        """Returns the number of whole elements in the view."""

        return len(self.data) // self.width

    def __getitem__(self, index: int) -> bytes:
        """Returns the bytes of the element at index.

        Raises:
            IndexError: If index is outside the view.
        """

        count = len(self)
        if index < 0:
            index += count
        if not 0 <= index < count:
            msg = 'chunk index {} out of range for {} elements'
            raise IndexError(msg.format(index, count))

        start = index * self.width
        return self.data[start:start + self.width].tobytes()

    def __iter__(self) -> Iterator[bytes]:
        """Yields the bytes of each element in order."""

        for index in range(len(self)):
            yield self[index]
