"""Exceptions raised while decoding EDF headers, signal tables and data
records.

Failures of the underlying file or memory map are not wrapped; they
propagate as the builtin OSError. Conditions that are expected while
querying a file (an out-of-range column or record, a missing annotation
signal or an annotation without an onset) are reported as None by the
readers and never raise.
"""

from typing import Optional


class EDFError(Exception):
    """Base class of all decoding errors raised by edfview."""


class TruncatedDataError(EDFError, EOFError):
    """Raised when a byte source holds fewer bytes than a read requires.

    Attributes:
        offset:
            The byte offset the read started at.
        length:
            The number of bytes requested.
        available:
            The number of bytes the source could supply from offset.
    """

    def __init__(self, offset: int, length: int, available: int) -> None:
        self.offset = offset
        self.length = length
        self.available = max(available, 0)
        msg = 'Requested {} bytes at offset {} but only {} are available'
        super().__init__(msg.format(length, offset, self.available))


class FormatError(EDFError, ValueError):
    """Raised when a numeric header or signal field holds text that does
    not parse to the field's type.

    Attributes:
        field:
            The name of the offending field (e.g. 'num_records').
        text:
            The trimmed text that failed to parse.
        column:
            The signal column of a per-signal field or None for fields of
            the fixed header block.
        label:
            The label of the signal at column, if known.
    """

    def __init__(self,
                 field: str,
                 text: str,
                 column: Optional[int] = None,
                 label: Optional[str] = None,
                 reason: str = 'is not a valid value',
    ) -> None:
        self.field = field
        self.text = text
        self.column = column
        self.label = label
        msg = "Field '{}' value {!r} {}".format(field, text, reason)
        if column is not None:
            msg += ' (signal {} {!r})'.format(column, label)
        super().__init__(msg)
