"""Readers of EDF/EDF+ files and the byte sources they read from."""

from edfview.file_io.edf import Header, Reader, Signal
from edfview.file_io.errors import EDFError, FormatError, TruncatedDataError
from edfview.file_io.sources import (BufferSource, ByteSource, FileSource,
                                     MappedSource)
