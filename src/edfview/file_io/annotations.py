"""Decoding of the text stored in the annotation signal of EDF+ files.

An EDF+ file may carry a pseudo-signal labelled 'EDF Annotations'. Its
block in each data record holds text rather than samples: one or more
time-stamped annotation lists (TALs), each terminated by a 0x14 0x00 pair
and padded with 0x00 to the end of the block. A TAL looks like:
```
+Onset 0x15 Duration 0x14 Text 0x14 Text 0x14 0x00
```
The duration and its 0x15 delimiter are optional. The first TAL of every
record is a time-keeping TAL whose text is empty and whose onset is the
start time of the record.

This module contains the following:
```
    RecordAnnotation:
        The trimmed text of one record's annotation block with its parsed
        onset timestamp.

    decode:
        Decodes the raw bytes of a record's annotation block.

    onset:
        Parses the onset preceding the first delimiter of a block's text.

    tals:
        Splits a block's text into Annotation dataclass instances.
```

Examples:
        >>> from edfview.file_io.annotations import RecordAnnotation
        >>> ann = RecordAnnotation.from_bytes(b'+1.5\\x14Event A\\x14\\x00')
        >>> ann.timestamp
        1.5
        >>> ann.raw
        '+1.5\\x14Event A\\x14'
"""

from dataclasses import dataclass
import logging
import re
from typing import List, Optional

from edfview.file_io.bases import Annotation

logger = logging.getLogger(__name__)

# EDF+ annotation text is UTF-8
ENCODING = 'utf-8'

ONSET_DELIMITER = '\x15'
TEXT_DELIMITER = '\x14'
PADDING = b'\x00 '

_DELIMITERS = re.compile('[\x14\x15]')
_NUMBER = re.compile(r'[+-]?(\d+(\.\d*)?|\.\d+)', re.ASCII)


def decode(data: bytes, encoding: str = ENCODING) -> str:
    """Decodes the bytes of an annotation block.

    Trailing 0x00 padding and spaces are removed. All other bytes, including
    the control delimiters, are preserved. Bytes invalid for encoding are
    replaced since annotation text is free-form.

    Args:
        data:
            The raw bytes of one record's annotation block.
        encoding:
            The text encoding of the block.

    Returns:
        The decoded text.
    """

    return data.rstrip(PADDING).decode(encoding, errors='replace')


def number(text: str) -> Optional[float]:
    """Returns text as a float if it is a signed decimal number and None
    otherwise."""

    if not _NUMBER.fullmatch(text):
        return None
    return float(text)


def onset(text: str) -> Optional[float]:
    """Returns the onset timestamp of an annotation block's text.

    The onset is the numeric text preceding the first 0x14 or 0x15
    delimiter, or the whole text if it holds no delimiter.

    Args:
        text:
            The decoded text of an annotation block.

    Returns:
        The onset in seconds or None if the text before the first delimiter
        is not a signed decimal number of ascii digits.
    """

    head = _DELIMITERS.split(text, maxsplit=1)[0]
    return number(head)


def tals(text: str, channel: Optional[int] = None) -> List[Annotation]:
    """Splits the text of an annotation block into Annotation instances.

    Each text of each TAL becomes one Annotation sharing the TAL's onset
    and duration. Time-keeping TALs that hold no text and TALs whose onset
    or duration is malformed yield no Annotations.

    Args:
        text:
            The decoded text of an annotation block.
        channel:
            The signal index the text was read from.

    Returns:
        A list of Annotation dataclass instances in file order.
    """

    result = []
    for tal in text.split('\x00'):
        if not tal:
            continue

        head, *texts = tal.split(TEXT_DELIMITER)
        start, _, span = head.partition(ONSET_DELIMITER)
        time = number(start)
        duration = number(span) if span else 0.0
        if time is None or duration is None:
            logger.debug('Skipping malformed annotation list %r', tal)
            continue

        result.extend(Annotation(label, time, duration, channel)
                      for label in texts if label)
    return result


@dataclass(frozen=True)
class RecordAnnotation:
    """The annotation text of a single data record.

    Attributes:
        raw (str):
            The decoded block text with trailing padding removed. Control
            delimiters are preserved verbatim.
        timestamp (Optional[float]):
            The onset preceding the first delimiter or None if the text
            has no well formed onset.
        channel (Optional[int]):
            The index of the signal the text was read from.
    """

    raw: str
    timestamp: Optional[float]
    channel: Optional[int] = None

    @classmethod
    def from_bytes(cls,
                   data: bytes,
                   channel: Optional[int] = None,
                   encoding: str = ENCODING,
    ) -> 'RecordAnnotation':
        """Alternative constructor decoding the raw bytes of a block."""

        text = decode(data, encoding)
        return cls(text, onset(text), channel)

    @property
    def entries(self) -> List[Annotation]:
        """Returns the Annotation instances of every TAL in this record."""

        return tals(self.raw, self.channel)
