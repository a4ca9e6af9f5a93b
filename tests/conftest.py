"""Fixtures that synthesize small EDF/EDF+ files for the file_io tests.

The files are written byte by byte from the EDF specification so the
readers under test are checked against an independent encoding of the
layout.
"""

import numpy as np
import pytest

from edfview.file_io.sources import BufferSource, FileSource, MappedSource

# per-signal fields and widths in file order
WIDTHS = [('label', 16), ('transducer', 80), ('physical_dim', 8),
          ('physical_min', 8), ('physical_max', 8), ('digital_min', 8),
          ('digital_max', 8), ('prefiltering', 80),
          ('samples_per_record', 8), ('reserved', 32)]

DEFAULTS = {'label': 'EEG',
            'transducer': 'AgAgCl electrode',
            'physical_dim': 'uV',
            'physical_min': -500,
            'physical_max': 500,
            'digital_min': -32768,
            'digital_max': 32767,
            'prefiltering': 'HP:0.1Hz LP:75Hz',
            'samples_per_record': 1,
            'reserved': ''}


def field(value, width):
    """Encodes value as a left justified space padded ascii field."""

    return str(value).encode('ascii').ljust(width)


def build_edf(signals, records, num_records=None, header_bytes=None,
              reserved='', record_duration=1):
    """Returns the bytes of an EDF file.

    Args:
        signals:
            A list of dicts overriding DEFAULTS for each signal.
        records:
            A list of records each a list with one entry per signal. An
            entry is either a sequence of integer samples or raw bytes.
        num_records:
            The declared record count. If None, len(records).
        header_bytes:
            The declared header size. If None, 256 + 256 * len(signals). A
            larger declared size pads the header with spaces.
        reserved:
            The 44 byte reserved field (e.g. 'EDF+C').
        record_duration:
            The declared record duration in secs.
    """

    signals = [dict(DEFAULTS, **sig) for sig in signals]
    nsignals = len(signals)
    actual = 256 + 256 * nsignals
    header_bytes = actual if header_bytes is None else header_bytes
    num_records = len(records) if num_records is None else num_records

    fixed = [field('0', 8), field('patient X', 80),
             field('recording Y', 80), field('01.02.03', 8),
             field('04.05.06', 8), field(header_bytes, 8),
             field(reserved, 44), field(num_records, 8),
             field(record_duration, 8), field(nsignals, 4)]
    table = [field(sig[name], width) for name, width in WIDTHS
             for sig in signals]
    header = b''.join(fixed + table).ljust(header_bytes, b' ')

    body = []
    for record in records:
        for sig, entry in zip(signals, record):
            nbytes = 2 * int(sig['samples_per_record'])
            if isinstance(entry, bytes):
                body.append(entry.ljust(nbytes, b'\x00'))
            else:
                body.append(np.asarray(entry, dtype='<i2').tobytes())
    return header + b''.join(body)


def scenario_records():
    """Returns 3 records of 2 signals with 4 and 2 samples per record."""

    return [[[r * 10 + i for i in range(4)],
             [-(r * 10 + i) - 1 for i in range(2)]]
            for r in range(3)]


@pytest.fixture(scope='session')
def scenario_data():
    """Returns the samples written to each record of the scenario EDF."""

    return scenario_records()


@pytest.fixture(scope='session')
def builder():
    """Returns the build_edf function to tests that craft their own
    files."""

    return build_edf


@pytest.fixture(scope='session')
def scenario_bytes():
    """Returns an EDF with 2 signals, samples per record [4, 2] and 3
    records."""

    signals = [{'label': 'EEG Fpz-Cz', 'samples_per_record': 4},
               {'label': 'Temp', 'physical_dim': 'degC',
                'physical_min': 34, 'physical_max': 40,
                'digital_min': -2048, 'digital_max': 2047,
                'samples_per_record': 2}]
    return build_edf(signals, scenario_records())


@pytest.fixture(scope='session')
def annotated_bytes():
    """Returns an EDF+ with a sample signal either side of an annotation
    signal and 2 records."""

    signals = [{'label': 'EEG Fpz-Cz', 'samples_per_record': 4},
               {'label': 'EDF Annotations', 'transducer': '',
                'physical_dim': '', 'physical_min': -1, 'physical_max': 1,
                'prefiltering': '', 'samples_per_record': 16},
               {'label': 'Temp', 'samples_per_record': 2}]
    records = [[[1, 2, 3, 4], b'+0\x14\x14\x00', [5, 6]],
               [[7, 8, 9, 10], b'+1.5\x14Event A\x14\x00', [11, 12]]]
    return build_edf(signals, records, reserved='EDF+C')


@pytest.fixture(scope='session')
def scenario_path(tmp_path_factory, scenario_bytes):
    """Writes the scenario EDF to a temporary file."""

    fp = tmp_path_factory.mktemp('edf').joinpath('scenario.edf')
    fp.write_bytes(scenario_bytes)
    return fp


@pytest.fixture(scope='session')
def annotated_path(tmp_path_factory, annotated_bytes):
    """Writes the annotated EDF+ to a temporary file."""

    fp = tmp_path_factory.mktemp('edf').joinpath('annotated.edf')
    fp.write_bytes(annotated_bytes)
    return fp


@pytest.fixture(params=['file', 'mapped', 'buffer'])
def opener(request):
    """Returns a callable opening a path as each kind of ByteSource."""

    kinds = {'file': FileSource,
             'mapped': MappedSource,
             'buffer': lambda fp: BufferSource(fp.read_bytes())}
    return kinds[request.param]
