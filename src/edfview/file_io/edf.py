"""Tools for reading EEG metadata, samples and annotations from files in
the European Data Format (EDF/EDF+). This module contains:

    - Header: An extended dictionary representation of an EDF fixed header
    - Signal: A descriptor of one signal decoded from the signal table
    - Reader: A random access reader of EDF signals and annotations

## Header
The Header section of an EDF file is partitioned into sequential
sections containing metadata. Each section has a specified number of
bytes used to encode an 'ascii' string. For example the first two
sections of the header are:
```
***************************************
8 bytes | 80 bytes | ................
***************************************
```
The first 8 bytes are the EDF version string and the next 80 bytes are the
patient_id string. The full specification of the EDF header can be found
here: https://www.edfplus.info/specs/edf.html. A Header instance, is an
extended dictionary keyed on the field name from the EDF specification (i.e.
version, patient, etc) with a value that has been decoded from the first
256 bytes of the file like this:
```
{'version': '0', 'patient': 'mouse_1', ...}
```
The ten per-signal fields following this block (labels, transducers, ...)
are decoded on request by the Reader into Signal instances.

## Reader
EDF files are divided into header and data records sections. Each data
record contains measured signals and annotation signals stored sequentially.
Below is a sample layout of a single data record:
```
***********************************************************
Ch0 samples | Ch1 samples | Ch2 samples | ... | Annotations
***********************************************************
```
The Reader reads every record of one signal ('read_column'), a single
record of one signal ('read_column_at') and the decoded text of the
annotation signal ('annotations' and 'annotation_at'). Queries that have no
answer, such as an out of range signal or record or the samples of the
annotation signal, return None rather than raising.

Nothing but the fixed header is cached. Every query computes its offsets
and reads the source again, so callers issuing many queries should hold on
to the results of 'signals' and 'layout' themselves.

The reader supports reading from an EDF file with and without context
management. If opened outside of context management, you should close this
Reader's instance manually by calling the 'close' method to recover open
file resources when you finish processing a file.

Examples:
        >>> from edfview.file_io.edf import Reader
        >>> # open a reader using context management and read all records
        >>> # of signal 0
        >>> with Reader('recording_001.edf') as infile:
        >>>     x = infile.read_column(0)
        >>> print(x.shape)
        ... (3775, 5000)
        >>> # open the reader without context management, memory mapping
        >>> reader = Reader('recording_001.edf', mapped=True)
        >>> # view the descriptors of each signal
        >>> for signal in reader.signals():
        >>>     print(signal.label, signal.samples_per_record)
        >>> # read the annotations of record 10
        >>> print(reader.annotation_at(10))
        >>> reader.close()
"""

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
import numpy.typing as npt

from edfview.file_io import bases, bytemaps
from edfview.file_io.annotations import ENCODING, RecordAnnotation
from edfview.file_io.errors import FormatError, TruncatedDataError
from edfview.file_io.records import SAMPLE_DTYPE, RecordLayout
from edfview.file_io.sources import ByteSource

logger = logging.getLogger(__name__)

ANNOTATION_LABEL = 'EDF Annotations'


class Header(bases.Header):
    """An extended dictionary representation of an EDF fixed header block.

    The first 256 bytes of an EDF file are partitioned into sequential
    sections containing metadata. Each section has a specified number of
    bytes used to encode an 'ascii' string. This Header reads and stores
    each piece of metadata to an extended dict object. Numeric fields are
    stored as int or float values; the trimmed text of every field is
    available from the 'raw' dict.

    Attributes:
        raw: (dict)
            The trimmed string of each field.

    Raises:
        TruncatedDataError: If the source holds fewer than 256 bytes.
        FormatError: If a numeric field does not parse or the signal count
            is negative.
    """

    def __init__(self,
                 source: Optional[ByteSource],
                 encoding: str = 'ascii',
    ) -> None:
        """Initialize this Header by decoding the fixed block of source."""

        super().__init__(source, encoding)
        if source is None:
            return

        if self.num_signals < 0:
            raise FormatError('num_signals', self.raw['num_signals'],
                              reason='must be non-negative')

        if self.header_bytes != self.expected_bytes:
            logger.warning('Header declares %d header bytes but %d signals '
                           'imply %d; using the declared size',
                           self.header_bytes, self.num_signals,
                           self.expected_bytes)

    def bytemap(self) -> Dict:
        """A dictionary keyed on fields of the EDF fixed header block whose
        values are a tuple containing the byte offset of the field, the
        number of bytes used to encode the field's value and the datatype
        of the value. For example:

        {'version': (0, 8, str), 'patient': (8, 80, str), ....}
        """

        return bytemaps.bytemap()

    @property
    def expected_bytes(self) -> int:
        """Returns the header record size implied by the signal count."""

        return bytemaps.header_size(self.num_signals)

    @property
    def edfplus(self) -> bool:
        """Returns True if the reserved field marks an EDF+ file."""

        return self.reserved_0.startswith('EDF+')

    @property
    def continuous(self) -> bool:
        """Returns False only for EDF+D files whose records are not
        contiguous in time."""

        return not self.reserved_0.startswith('EDF+D')


@dataclass(frozen=True)
class Signal:
    """A descriptor of a single signal decoded from the signal table.

    Attributes:
        column: (int)
            The index of this signal within the header and data records.
        label: (str)
            The signal label (e.g. 'EEG Fpz-Cz' or 'Body temp').
        transducer: (str)
            The transducer type (e.g. 'AgAgCl electrode').
        physical_dim: (str)
            The physical dimension (e.g. 'uV' or 'degC').
        physical_min: (int)
            The physical minimum (e.g. -500 or 34).
        physical_max: (int)
            The physical maximum (e.g. 500 or 40).
        digital_min: (int)
            The digital minimum (e.g. -2048).
        digital_max: (int)
            The digital maximum (e.g. 2047).
        prefiltering: (str)
            The prefiltering (e.g. 'HP:0.1Hz LP:75Hz').
        samples_per_record: (int)
            The number of samples of this signal in each data record.
        reserved: (str)
            The reserved signal field.
    """

    column: int
    label: str
    transducer: str
    physical_dim: str
    physical_min: int
    physical_max: int
    digital_min: int
    digital_max: int
    prefiltering: str
    samples_per_record: int
    reserved: str

    @property
    def annotation(self) -> bool:
        """Returns True if this signal is an EDF+ annotation signal."""

        return self.label == ANNOTATION_LABEL


class Reader(bases.Reader):
    """A reader of European Data Format (EDF/EDF+) files.

    This reader supports reading signal descriptors, samples and annotations
    from an EDF file with and without context management (see module
    docs). If opened outside of context management, you should close this
    Reader's instance manually by calling the 'close' method to recover
    open file resources when you finish processing a file.

    Attributes:
        header (dict):
            A dictionary representation of the EDF's fixed header block.
        path (Path):
            The path of the file or None when reading a borrowed source.
        source (ByteSource):
            The source all reads are issued to.

    Examples:
        >>> from edfview.file_io.edf import Reader
        >>> with Reader('recording_001.edf') as infile:
        >>>     row = infile.read_column_at(0, 12)
        >>> print(row.shape)
        ... (5000,)
    """

    def __init__(self,
                 source: Union[str, Path, ByteSource],
                 mapped: bool = False,
                 encoding: str = 'ascii',
                 annotation_encoding: str = ENCODING,
    ) -> None:
        """Extends the Reader ABC with a header attribute.

        Args:
            source:
                A path to an EDF file or an open ByteSource.
            mapped:
                If True, a path is memory mapped rather than read through a
                file handle.
            encoding:
                The encoding of the header and signal table text.
            annotation_encoding:
                The encoding of the annotation signal's text.

        Raises:
            OSError: If a path can not be opened.
            TruncatedDataError: If the source is shorter than 256 bytes.
            FormatError: If a numeric fixed header field does not parse.
        """

        super().__init__(source, mapped=mapped)
        self.encoding = encoding
        self.annotation_encoding = annotation_encoding
        try:
            self.header = Header(self.source, encoding)
        except Exception:
            self.close()
            raise
        logger.debug('Opened EDF with %d signals and %d records',
                     self.header.num_signals, self.header.num_records)

    def _valid(self, column: int) -> bool:
        """Returns True if column indexes a signal of this file."""

        return 0 <= column < self.header.num_signals

    def _element(self, field: str, column: int) -> str:
        """Reads and trims the element of a per-signal field at column."""

        width = bytemaps.width_of(field)
        start = bytemaps.offset_of(field, self.header.num_signals)
        data = self.source.read(start + column * width, width)
        return bytemaps.trim(data, self.encoding)

    def _chunks(self, field: str) -> bytemaps.Chunks:
        """Reads a whole per-signal field array in a single read."""

        nsignals = self.header.num_signals
        width = bytemaps.width_of(field)
        start = bytemaps.offset_of(field, nsignals)
        return bytemaps.Chunks(self.source.read(start, width * nsignals),
                               width)

    def _build(self, column: int, texts: Dict[str, str]) -> Signal:
        """Parses the trimmed texts of column's fields into a Signal.

        Raises:
            FormatError: If a numeric field does not parse or the samples
                per record is not positive.
        """

        label = texts['label']
        values = {name: bases.parse(name, texts[name], dtype, column, label)
                  for name, _, dtype in bytemaps.SIGNAL_FIELDS}

        if values['samples_per_record'] < 1:
            raise FormatError('samples_per_record',
                              texts['samples_per_record'], column, label,
                              reason='must be a positive count')
        return Signal(column=column, **values)

    def field(self, name: str) -> List[str]:
        """Returns the trimmed text of a per-signal field for every signal.

        The whole field array is fetched with one read and sliced per
        signal.

        Args:
            name:
                A per-signal field name such as 'label' or 'transducer'.
                See bytemaps.SIGNAL_FIELDS for all names.

        Raises:
            KeyError: If name is not a per-signal field.
            TruncatedDataError: If the signal table is truncated.
        """

        return [bytemaps.trim(chunk, self.encoding)
                for chunk in self._chunks(name)]

    def labels(self) -> List[str]:
        """Returns the label of every signal in column order."""

        return self.field('label')

    def label(self, column: int) -> Optional[str]:
        """Returns the label of the signal at column or None if column is
        out of range.

        Labels are never parsed, so a label is available for diagnostics
        even when another field of the signal is malformed.
        """

        if not self._valid(column):
            return None
        return self._element('label', column)

    def signal(self, column: int) -> Optional[Signal]:
        """Returns the Signal descriptor at column.

        Each of the ten per-signal fields is read for this column alone.

        Args:
            column:
                The index of the signal to describe.

        Returns:
            A Signal instance or None if column is out of range.

        Raises:
            FormatError: If a numeric field of this signal does not parse.
        """

        if not self._valid(column):
            return None

        texts = {name: self._element(name, column)
                 for name, _, _ in bytemaps.SIGNAL_FIELDS}
        return self._build(column, texts)

    def signals(self) -> List[Signal]:
        """Returns the Signal descriptors of every signal in column order.

        Each field array is read once and sliced per column. The batch is
        all or nothing: a malformed numeric field in any signal raises a
        FormatError naming that signal. Use 'signal' per column to obtain
        the well formed signals of a partially malformed file.

        Raises:
            FormatError: If a numeric field of any signal does not parse.
        """

        arrays = {name: self.field(name)
                  for name, _, _ in bytemaps.SIGNAL_FIELDS}
        logger.debug('Read %d signal table arrays', len(arrays))

        return [self._build(column,
                            {name: texts[column]
                             for name, texts in arrays.items()})
                for column in range(self.header.num_signals)]

    def annotation_column(self) -> Optional[int]:
        """Returns the index of the first annotation signal or None if this
        file has no annotation signal."""

        labels = self.labels()
        if ANNOTATION_LABEL not in labels:
            return None
        return labels.index(ANNOTATION_LABEL)

    def layout(self) -> RecordLayout:
        """Returns the RecordLayout of this file's data records.

        Only the samples per record field is parsed, so malformed fields of
        other kinds do not prevent locating samples.

        Raises:
            FormatError: If a samples per record value does not parse or is
                negative.
        """

        texts = self.field('samples_per_record')
        counts = []
        for column, text in enumerate(texts):
            count = bases.parse('samples_per_record', text, int, column)
            if count < 0:
                raise FormatError('samples_per_record', text, column,
                                  reason='must be non-negative')
            counts.append(count)
        return RecordLayout(counts)

    def record_count(self, layout: Optional[RecordLayout] = None) -> int:
        """Returns the number of data records in this file.

        This is the header's record count unless the header declares -1
        (unknown), in which case the count of whole records the source holds
        after the header is returned.

        Args:
            layout:
                A RecordLayout of this file. If None, it is read.
        """

        declared = self.header.num_records
        if declared >= 0:
            return declared

        layout = self.layout() if layout is None else layout
        if layout.nbytes == 0:
            return 0
        available = max(self.source.size - self.header.header_bytes, 0)
        count = available // layout.nbytes
        logger.warning('Header record count is unknown (%d); inferred %d '
                       'records from the file size', declared, count)
        return count

    def _sample_column(self, column: int) -> bool:
        """Returns True if column is in range & is not an annotation."""

        return self._valid(column) and self.label(column) != ANNOTATION_LABEL

    def _read_samples(self, layout: RecordLayout, column: int, record: int
    ) -> npt.NDArray[np.int16]:
        """Reads column's samples in a single record as a 1-D int16 array."""

        start = layout.locate(column, record, self.header.header_bytes)
        data = self.source.read(start, layout.size(column))
        return np.frombuffer(data, dtype=SAMPLE_DTYPE).astype(np.int16)

    def read_column(self, column: int) -> Optional[npt.NDArray[np.int16]]:
        """Reads the samples of every data record for the signal at column.

        Record r of column c is read from header_bytes + r * record_bytes +
        offset(c) where header_bytes is the header record size declared in
        the header.

        Args:
            column:
                The index of the signal to read.

        Returns:
            An int16 array of shape (num_records, samples_per_record) or
            None if column is out of range or is the annotation signal.

        Raises:
            TruncatedDataError: If the file ends before the last record.
        """

        if not self._sample_column(column):
            return None

        layout = self.layout()
        nrecords = self.record_count(layout)
        # the last record must fit before the result is allocated
        if nrecords > 0:
            start = self.header.header_bytes
            last = layout.locate(column, nrecords - 1, start)
            end = last + layout.size(column)
            if end > self.source.size:
                raise TruncatedDataError(start, end - start,
                                         self.source.size - start)

        result = np.empty((nrecords, layout.samples(column)), dtype=np.int16)
        for record in range(nrecords):
            result[record] = self._read_samples(layout, column, record)
        return result

    def read_column_at(self, column: int, record: int
    ) -> Optional[npt.NDArray[np.int16]]:
        """Reads the samples of a single data record for the signal at
        column.

        Args:
            column:
                The index of the signal to read.
            record:
                The index of the data record to read.

        Returns:
            A 1-D int16 array of samples_per_record values or None if column
            is out of range, is the annotation signal or record is out of
            range.

        Raises:
            TruncatedDataError: If the file ends before the record.
        """

        if not self._sample_column(column):
            return None

        layout = self.layout()
        if not 0 <= record < self.record_count(layout):
            return None
        return self._read_samples(layout, column, record)

    def _read_annotation(self,
                         layout: RecordLayout,
                         column: int,
                         record: int,
    ) -> RecordAnnotation:
        """Reads and decodes the annotation block of a single record."""

        start = layout.locate(column, record, self.header.header_bytes)
        data = self.source.read(start, layout.size(column))
        return RecordAnnotation.from_bytes(data, column,
                                           self.annotation_encoding)

    def annotations(self) -> Optional[List[RecordAnnotation]]:
        """Reads the annotation text of every data record.

        Returns:
            A list of RecordAnnotation instances, one per record, or None if
            this file has no annotation signal.

        Raises:
            TruncatedDataError: If the file ends before the last record.
        """

        column = self.annotation_column()
        if column is None:
            return None

        layout = self.layout()
        return [self._read_annotation(layout, column, record)
                for record in range(self.record_count(layout))]

    def annotation_at(self, record: int) -> Optional[RecordAnnotation]:
        """Reads the annotation text of a single data record.

        Args:
            record:
                The index of the data record to read.

        Returns:
            A RecordAnnotation or None if this file has no annotation signal
            or record is out of range.

        Raises:
            TruncatedDataError: If the file ends before the record.
        """

        column = self.annotation_column()
        if column is None:
            return None

        layout = self.layout()
        if not 0 <= record < self.record_count(layout):
            return None
        return self._read_annotation(layout, column, record)
