import io
import unittest
import warnings

import pytest

from rfnetworks import NetworkParameter
from rfnetworks.errors import (
    DisposedResourceUse,
    MalformedData,
    MalformedHeader,
    MalformedOption,
    TouchstoneParseError,
    UnsupportedConversion,
    ValidationError,
)
from rfnetworks.io.touchstone import Touchstone, TouchstoneOptions, complex_2_pair, pair_2_complex
from rfnetworks.io.touchstone_reader import TouchstoneReader, TouchstoneReaderSettings

ONE_PORT = """\
!1-port S-parameter file
# MHz S MA R 75
!freq magS11 angS11
100 0.99 -4
200 0.80 -22
300 0.707 -45
400 0.40 -62
500 0.01 -89
"""

TWO_PORT = """\
! 2-port S-parameter file, three frequency points
# GHz S RI R 50.0
!freq ReS11 ImS11 ReS21 ImS21 ReS12 ImS12 ReS22 ImS22
1.0000 0.3926 -0.1211 -0.0003 -0.0021 -0.0005 -0.0023 0.3926 -0.1211
2.0000 0.3517 -0.3054 -0.0096 -0.0298 -0.0098 -0.0300 0.3517 -0.3054
10.000 0.3419 0.3336 -0.0134 0.0379 -0.0136 0.0381 0.3420 0.3337
"""

TWO_PORT_SPLIT = """\
! 2-port S-parameter file, three frequency points
# GHz S RI R 50.0
1.0000 0.3926 -0.1211
 -0.0003 -0.0021 -0.0005 -0.0023
 0.3926 -0.1211
2.0000 0.3517 -0.3054 -0.0096 -0.0298
 -0.0098 -0.0300 0.3517 -0.3054
10.000 0.3419 0.3336 -0.0134 0.0379 -0.0136 0.0381 0.3420 0.3337
"""

FOUR_PORT = """\
! 4-port S-parameter data, taken at three frequency points
# GHz S MA R 50
5.00000 0.60 161.24 0.40 -42.20 0.42 -66.58 0.53 -79.34 !row 1
 0.40 -42.20 0.60 161.20 0.53 -79.34 0.42 -66.58 !row 2
 0.42 -66.58 0.53 -79.34 0.60 161.24 0.40 -42.20 !row 3
 0.53 -79.34 0.42 -66.58 0.40 -42.20 0.60 161.24 !row 4
6.00000 0.57 150.37 0.40 -44.34 0.41 -81.24 0.57 -95.77 !row 1
 0.40 -44.34 0.57 150.37 0.57 -95.77 0.41 -81.24 !row 2
 0.41 -81.24 0.57 -95.77 0.57 150.37 0.40 -44.34 !row 3
 0.57 -95.77 0.41 -81.24 0.40 -44.34 0.57 150.37 !row 4
7.00000 0.50 136.69 0.45 -46.41 0.37 -99.09 0.62 -114.19 !row 1
 0.45 -46.41 0.50 136.69 0.62 -114.19 0.37 -99.09 !row 2
 0.37 -99.09 0.62 -114.19 0.50 136.69 0.45 -46.41 !row 3
 0.62 -114.19 0.37 -99.09 0.45 -46.41 0.50 136.69 !row 4
"""

TWO_PORT_NOISE = """\
# GHz S MA R 50
2 .95 -26 3.57 157 .04 76 .66 -14
22 .60 -144 1.30 40 .14 40 .56 -85
! NOISE PARAMETERS
4 .7 .64 69 .38
18 2.7 .46 -33 .40
"""


def read(text: str, **kwargs) -> Touchstone:
    return Touchstone.read(io.StringIO(text), **kwargs)


class TouchstoneTestCase(unittest.TestCase):
    """
    TouchstoneTestCase tests reading version 1.0 Touchstone text
    """

    def test_read_one_port(self):
        ts = read(ONE_PORT)
        c = ts.network_parameters
        self.assertEqual(c.nports, 1)
        self.assertEqual(len(c), 5)
        self.assertEqual(ts.resistance, 75)
        self.assertEqual(ts.options.frequency_unit, 'MHz')
        self.assertEqual(ts.comments, '1-port S-parameter file')
        self.assertEqual(list(ts.frequencies), [1e8, 2e8, 3e8, 4e8, 5e8])
        self.assertEqual(c[100e6, 1, 1], pytest.approx(NetworkParameter.from_polar_degree(0.99, -4)))
        self.assertEqual(c[300e6, 1, 1], pytest.approx(NetworkParameter.from_polar_degree(0.707, -45)))
        self.assertEqual(c[500e6, 1, 1], pytest.approx(NetworkParameter.from_polar_degree(0.01, -89)))

    def test_read_two_port(self):
        ts = read(TWO_PORT)
        c = ts.network_parameters
        self.assertEqual(c.nports, 2)
        self.assertEqual(len(c), 3)
        self.assertEqual(c[1e9, 2, 1], pytest.approx(complex(-0.0003, -0.0021)))
        self.assertEqual(c[1e9, 1, 2], pytest.approx(complex(-0.0005, -0.0023)))
        self.assertEqual(c[2e9, 2, 1], pytest.approx(complex(-0.0096, -0.0298)))
        self.assertEqual(c[10e9, 2, 2], pytest.approx(complex(0.3420, 0.3337)))

    def test_read_four_port(self):
        c = read(FOUR_PORT).network_parameters
        self.assertEqual(c.nports, 4)
        self.assertEqual(len(c), 3)
        self.assertEqual(c[5e9, 1, 2], pytest.approx(NetworkParameter.from_polar_degree(0.40, -42.20)))
        self.assertEqual(c[5e9, 3, 3], pytest.approx(NetworkParameter.from_polar_degree(0.60, 161.24)))
        self.assertEqual(c[6e9, 4, 2], pytest.approx(NetworkParameter.from_polar_degree(0.41, -81.24)))
        self.assertEqual(c[7e9, 1, 2], pytest.approx(NetworkParameter.from_polar_degree(0.45, -46.41)))
        self.assertEqual(c[7e9, 4, 4], pytest.approx(NetworkParameter.from_polar_degree(0.50, 136.69)))

    def test_continuation_lines(self):
        """
        A record split over several lines reads the same as on one line
        """
        self.assertEqual(read(TWO_PORT_SPLIT).network_parameters, read(TWO_PORT).network_parameters)

        one_line = '# GHz S MA R 50\n' + ' '.join(
            ' '.join(line.split('!')[0].split()) for line in FOUR_PORT.splitlines()[2:6])
        single = read(one_line).network_parameters
        self.assertEqual(len(single), 1)
        self.assertEqual(single[5e9], read(FOUR_PORT).network_parameters[5e9])

    def test_noise_parameters(self):
        ts = read(TWO_PORT_NOISE)
        self.assertEqual(list(ts.frequencies), [2e9, 22e9])
        self.assertEqual(sorted(ts.noise_data), [4e9, 18e9])
        noise = ts.noise_data[4e9]
        self.assertEqual(noise.min_noise_figure_db, 0.7)
        self.assertAlmostEqual(noise.optimal_source_reflection.magnitude, 0.64)
        self.assertAlmostEqual(noise.optimal_source_reflection.phase_deg, 69)
        self.assertEqual(noise.noise_resistance, 0.38)

    def test_frequency_selector(self):
        settings = TouchstoneReaderSettings(frequency_selector=lambda f: f >= 2e9)
        ts = read(TWO_PORT, settings=settings)
        self.assertEqual(list(ts.frequencies), [2e9, 10e9])

    def test_reader_streaming(self):
        with TouchstoneReader(io.StringIO(TWO_PORT)) as reader:
            self.assertEqual(reader.version, '1.0')
            self.assertEqual(reader.nports, 2)
            first = reader.read()
            self.assertEqual(first.frequency, 1e9)
            rest = [f for f, _ in reader]
        self.assertEqual(rest, [2e9, 10e9])
        self.assertTrue(reader.closed)

    def test_read_after_close(self):
        reader = TouchstoneReader(io.StringIO(TWO_PORT))
        reader.close()
        with self.assertRaises(DisposedResourceUse):
            reader.read()
        with self.assertRaises(DisposedResourceUse):
            reader.read_collection()

    def test_source_ownership(self):
        source = io.StringIO(TWO_PORT)
        with TouchstoneReader(source) as reader:
            reader.read_collection()
        self.assertFalse(source.closed)
        source = io.StringIO(TWO_PORT)
        with TouchstoneReader(source, close_source=True):
            pass
        self.assertTrue(source.closed)


def test_read_from_file(tmp_path):
    path = tmp_path / "ntwk.s2p"
    path.write_text(TWO_PORT)
    ts = Touchstone.read(path)
    assert ts.nports == 2
    assert Touchstone.read(str(path)).network_parameters == ts.network_parameters


@pytest.mark.parametrize('line, expected', [
    ('# MHz S MA R 75', TouchstoneOptions('MHz', 's', 'ma', 75)),
    ('#', TouchstoneOptions('GHz', 's', 'ma', 50)),
    ('# ri khz', TouchstoneOptions('kHz', 's', 'ri', 50)),
    ('# R 25 hz db', TouchstoneOptions('Hz', 's', 'db', 25)),
    ('# ghz s ma r 50', TouchstoneOptions('GHz', 's', 'ma', 50)),
    ('# GHz Z RI R 100', TouchstoneOptions('GHz', 'z', 'ri', 100)),
    ('# GHz S MA R (50+10j)', TouchstoneOptions('GHz', 's', 'ma', 50, 10)),
    ('# GHz S MA R ( 50 - 10j )', TouchstoneOptions('GHz', 's', 'ma', 50, -10)),
])
def test_option_line(line, expected):
    assert TouchstoneOptions.parse(line) == expected


@pytest.mark.parametrize('line', [
    '# GHz X MA',
    '# GHz MHz',
    '# S S',
    '# GHz S MA R',
    '# GHz S MA R fifty',
    '# GHz S MA R (50+10j',
    'GHz S MA',
])
def test_malformed_option_line(line):
    with pytest.raises(MalformedOption):
        TouchstoneOptions.parse(line, 1)


@pytest.mark.parametrize('options, line', [
    (TouchstoneOptions(), '# GHz S MA R 50'),
    (TouchstoneOptions('MHz', 's', 'db', 75), '# MHz S DB R 75'),
    (TouchstoneOptions('Hz', 's', 'ri', 50, -10), '# Hz S RI R (50-10j)'),
])
def test_option_line_text(options, line):
    assert options.to_line() == line
    assert TouchstoneOptions.parse(line) == options


@pytest.mark.parametrize('text, error, line_number', [
    ('', MalformedHeader, None),
    ('! only a comment\n', MalformedHeader, None),
    ('1 2 3\n', MalformedHeader, 1),
    ('# GHz S RI\n1 0.5 a\n', MalformedData, 2),
    ('# GHz S RI\n1 0.5\n', MalformedData, 2),
    ('# GHz S RI\n1 1 0 1 0 1 0\n', MalformedData, 2),
    ('# GHz S RI\n1 1 0 1 0 1 0 1 0\n2 1 0 1 0 1 0\n', MalformedData, 3),
    ('# GHz S RI\n', MalformedData, None),
])
def test_malformed_file(text, error, line_number):
    with pytest.raises(error) as e_info:
        read(text)
    if line_number is not None:
        assert e_info.value.line_number == line_number
    assert isinstance(e_info.value, TouchstoneParseError)
    assert isinstance(e_info.value, ValueError)


def test_parse_error_message():
    with pytest.raises(MalformedData) as e_info:
        read('# GHz S RI\n! comment\n1 0.5 a\n')
    assert e_info.value.section == 'Data'
    assert str(e_info.value).startswith('Data (line 3):')


def test_non_scattering_parameters():
    with pytest.raises(UnsupportedConversion, match='line 2'):
        read('# GHz Z RI\n1 50 0\n')


def test_no_warnings_for_clean_file():
    with warnings.catch_warnings():
        warnings.simplefilter('error')
        read(TWO_PORT)


@pytest.mark.parametrize('z', [0.5 + 0.5j, -0.25j, 1, -1])
@pytest.mark.parametrize('format', ['ri', 'ma', 'db'])
def test_pair_conversion(z, format):
    assert pair_2_complex(*complex_2_pair(z, format), format) == pytest.approx(z)


@pytest.mark.parametrize('kwargs', [
    dict(parameter='x'),
    dict(format='xy'),
    dict(frequency_unit='THz'),
])
def test_invalid_options(kwargs):
    with pytest.raises(ValidationError):
        TouchstoneOptions(**kwargs)
