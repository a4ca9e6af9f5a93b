"""The byte layout of a single EDF data record.

Data records in the EDF data section following the header contain the
samples of every signal stored one block after the other:

--------------------------------------------------------------
Ch0 samples | Ch1 samples | Ch2 samples | ... | Annotations
--------------------------------------------------------------
(start, stop)|(start, stop)|(start, stop)| ... |(start, stop)
--------------------------------------------------------------

Each sample is a 2-byte little-endian integer, so the block of signal c
begins 2 * sum(samples_per_record[:c]) bytes into the record. The
annotation signal occupies a block of the same size but holds text.
"""

from typing import List, Optional, Sequence

import numpy as np

# EDF samples are 2-byte little endian integers
SAMPLE_DTYPE = np.dtype('<i2')
SAMPLE_BYTES = SAMPLE_DTYPE.itemsize


class RecordLayout:
    """Byte offsets and sizes of each signal's block within a data record.

    Attributes:
        samples_per_record:
            The number of samples each signal stores in one record.
        nbytes:
            The byte size of one whole data record.

    Examples:
        >>> layout = RecordLayout([4, 2])
        >>> layout.nbytes
        12
        >>> layout.offset(1)
        8
        >>> layout.locate(1, 1, header_bytes=768)
        788
    """

    def __init__(self, samples_per_record: Sequence[int]) -> None:
        """Initialize this layout from the samples per record of every
        signal in column order."""

        self.samples_per_record = [int(cnt) for cnt in samples_per_record]
        # cumulative sample counts; starts[c] is the first sample of c
        self._starts = np.cumsum([0] + self.samples_per_record)
        self.nbytes = int(self._starts[-1]) * SAMPLE_BYTES

    def __len__(self) -> int:
        """Returns the number of signals in a record."""

        return len(self.samples_per_record)

    def _valid(self, column: int) -> bool:
        """Returns True if column indexes a signal of this layout."""

        return 0 <= column < len(self)

    def offset(self, column: int) -> Optional[int]:
        """Returns the byte offset of column's block within a record or
        None if column is out of range."""

        if not self._valid(column):
            return None
        return int(self._starts[column]) * SAMPLE_BYTES

    def size(self, column: int) -> Optional[int]:
        """Returns the byte size of column's block within a record or None
        if column is out of range."""

        if not self._valid(column):
            return None
        return self.samples_per_record[column] * SAMPLE_BYTES

    def samples(self, column: int) -> Optional[int]:
        """Returns the samples column stores per record or None if column is
        out of range."""

        if not self._valid(column):
            return None
        return self.samples_per_record[column]

    @property
    def slices(self) -> List[slice]:
        """Returns a list of slice objects holding the start, stop samples
        for each signal within a data record."""

        return [slice(int(a), int(b))
                for a, b in zip(self._starts, self._starts[1:])]

    def locate(self, column: int, record: int, header_bytes: int
    ) -> Optional[int]:
        """Returns the absolute byte offset of column's block in a record.

        Args:
            column:
                The signal index.
            record:
                The data record index. Bounds on the record count are the
                caller's responsibility.
            header_bytes:
                The header record size declared by the file, which locates
                the first data record.

        Returns:
            header_bytes + record * nbytes + offset(column) or None if
            column is out of range.
        """

        start = self.offset(column)
        if start is None:
            return None
        return header_bytes + record * self.nbytes + start
