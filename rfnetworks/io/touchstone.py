"""
.. module:: rfnetworks.io.touchstone

========================================
touchstone (:mod:`rfnetworks.io.touchstone`)
========================================

Touchstone document class, option line and keyword state.

.. autosummary::
   :toctree: generated/

   Touchstone
   TouchstoneOptions
   TouchstoneKeywords
   NoiseRecord

Keyword tables
-------------------------------------------------

The text of every Touchstone keyword and option value is declared once in
the module level tables below. Reverse lookups are built from them at
import and never modified.

.. autosummary::
   :toctree: generated/

   KEYWORDS
   PARAMETER_TEXT
   FORMAT_TEXT
   MATRIX_FORMAT_TEXT

"""
from __future__ import annotations

from io import StringIO
import typing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, NamedTuple

from ..constants import (
    FREQ_UNITS,
    PARAMETER_TYPES,
    SPARAM_FORMATS,
    TOUCHSTONE_DEFAULTS,
    FileVersionT,
    FrequencyUnitT,
    MatrixFormatT,
    ParameterT,
    SparamFormatT,
    TwoPortOrderT,
)
from ..errors import MalformedOption, ValidationError
from ..mathFunctions import complex_2_db, complex_2_degree, dbdeg_2_reim, magdeg_2_reim
from ..networkCollection import NetworkParametersCollection
from ..parameter import NetworkParameter

if typing.TYPE_CHECKING:
    from .touchstone_writer import TouchstoneWriterSettings

KeywordT = Literal[
    "version", "number_of_ports", "two_port_data_order", "number_of_frequencies",
    "number_of_noise_frequencies", "reference", "matrix_format", "mixed_mode_order",
    "begin_information", "end_information", "network_data", "noise_data", "end",
]

KEYWORDS: dict[KeywordT, str] = {
    "version": "Version",
    "number_of_ports": "Number of Ports",
    "two_port_data_order": "Two-Port Data Order",
    "number_of_frequencies": "Number of Frequencies",
    "number_of_noise_frequencies": "Number of Noise Frequencies",
    "reference": "Reference",
    "matrix_format": "Matrix Format",
    "mixed_mode_order": "Mixed-Mode Order",
    "begin_information": "Begin Information",
    "end_information": "End Information",
    "network_data": "Network Data",
    "noise_data": "Noise Data",
    "end": "End",
}

PARAMETER_TEXT: dict[ParameterT, str] = {"s": "S", "y": "Y", "z": "Z", "h": "H", "g": "G"}
FORMAT_TEXT: dict[SparamFormatT, str] = {"db": "DB", "ma": "MA", "ri": "RI"}
MATRIX_FORMAT_TEXT: dict[MatrixFormatT, str] = {"full": "Full", "upper": "Upper", "lower": "Lower"}
TWO_PORT_ORDER_TEXT: dict[TwoPortOrderT, str] = {"12_21": "12_21", "21_12": "21_12"}

# column titles of a data pair, used in the optional column name comment
FORMAT_COLUMNS: dict[SparamFormatT, tuple[str, str]] = {
    "db": ("dB", "Ang"),
    "ma": ("Mag", "Ang"),
    "ri": ("Real", "Imag"),
}


def _reverse(table: dict) -> dict:
    return {v.lower(): k for k, v in table.items()}


KEYWORD_LOOKUP: dict[str, KeywordT] = _reverse(KEYWORDS)
FREQUENCY_UNIT_LOOKUP: dict[str, FrequencyUnitT] = {k.lower(): k for k in FREQ_UNITS}
PARAMETER_LOOKUP: dict[str, ParameterT] = _reverse(PARAMETER_TEXT)
FORMAT_LOOKUP: dict[str, SparamFormatT] = _reverse(FORMAT_TEXT)
MATRIX_FORMAT_LOOKUP: dict[str, MatrixFormatT] = _reverse(MATRIX_FORMAT_TEXT)
TWO_PORT_ORDER_LOOKUP: dict[str, TwoPortOrderT] = _reverse(TWO_PORT_ORDER_TEXT)


def pair_2_complex(a: float, b: float, format: SparamFormatT) -> complex:
    """
    Convert a data pair of a Touchstone record to a complex number.

    Parameters
    ----------
    a, b : float
        the two numbers of the pair
    format : {'db', 'ma', 'ri'}
        dB-angle, magnitude-angle or real-imaginary, angles in degrees
    """
    if format == "ri":
        return complex(a, b)
    if format == "ma":
        return complex(magdeg_2_reim(a, b))
    if format == "db":
        return complex(dbdeg_2_reim(a, b))
    raise ValueError(f"illegal format value {format}")


def complex_2_pair(z: complex, format: SparamFormatT) -> tuple[float, float]:
    """
    Inverse of :func:`pair_2_complex`.
    """
    if format == "ri":
        return z.real, z.imag
    if format == "ma":
        return abs(z), float(complex_2_degree(z))
    if format == "db":
        return float(complex_2_db(z)), float(complex_2_degree(z))
    raise ValueError(f"illegal format value {format}")


@dataclass
class TouchstoneOptions:
    """
    Content of the option line ``# <unit> <parameter> <format> R <resistance>``.

    Attributes default to ``# GHz S MA R 50``.
    """
    frequency_unit: FrequencyUnitT = TOUCHSTONE_DEFAULTS["frequency_unit"]
    parameter: ParameterT = TOUCHSTONE_DEFAULTS["parameter"]
    format: SparamFormatT = TOUCHSTONE_DEFAULTS["format"]
    resistance: float = TOUCHSTONE_DEFAULTS["resistance"]
    reactance: float | None = None

    def __post_init__(self):
        if self.frequency_unit not in FREQ_UNITS:
            raise ValidationError(f"frequency_unit must be one of {list(FREQ_UNITS)}, got {self.frequency_unit!r}")
        if self.parameter not in PARAMETER_TYPES:
            raise ValidationError(f"parameter must be one of {PARAMETER_TYPES}, got {self.parameter!r}")
        if self.format not in SPARAM_FORMATS:
            raise ValidationError(f"format must be one of {SPARAM_FORMATS}, got {self.format!r}")

    @property
    def frequency_mult(self) -> float:
        return FREQ_UNITS[self.frequency_unit]

    @classmethod
    def parse(cls, line: str, line_number: int | None = None) -> TouchstoneOptions:
        """Parse the option line starting with #

        Tokens are case insensitive and may come in any order. Missing
        tokens keep their default.

        Args:
            line (str): Line to parse, comments already removed.
            line_number (int): Line number reported in errors.

        Raises:
            MalformedOption: If option line contains invalid options.
        """
        if not line.startswith("#"):
            raise MalformedOption(f"Option line must start with '#', got {line!r}", line_number)
        options = cls()
        seen = set()
        toks = line[1:].lower().split()
        i = 0
        while i < len(toks):
            tok = toks[i]
            if tok == "r":
                i, resistance, reactance = cls._parse_resistance(toks, i + 1, line_number)
                options.resistance = resistance
                options.reactance = reactance
                category = "resistance"
            elif tok in FREQUENCY_UNIT_LOOKUP:
                options.frequency_unit = FREQUENCY_UNIT_LOOKUP[tok]
                category = "frequency unit"
            elif tok in PARAMETER_LOOKUP:
                options.parameter = PARAMETER_LOOKUP[tok]
                category = "parameter"
            elif tok in FORMAT_LOOKUP:
                options.format = FORMAT_LOOKUP[tok]
                category = "format"
            else:
                raise MalformedOption(f"illegal option {tok!r}", line_number)
            if category in seen:
                raise MalformedOption(f"{category} is given more than once", line_number)
            seen.add(category)
            i += 1
        return options

    @staticmethod
    def _parse_resistance(toks: list[str], i: int, line_number: int | None) -> tuple[int, float, float | None]:
        if i >= len(toks):
            raise MalformedOption("R must be followed by the reference resistance", line_number)
        if not toks[i].startswith("("):
            try:
                return i, float(toks[i]), None
            except ValueError as err:
                raise MalformedOption(f"illegal resistance {toks[i]!r}", line_number) from err

        # complex form (r+xj), possibly split by blanks
        end = i
        while not toks[end].endswith(")"):
            end += 1
            if end >= len(toks):
                raise MalformedOption("unterminated complex resistance", line_number)
        text = "".join(toks[i:end + 1])
        try:
            value = complex(text[1:-1])
        except ValueError as err:
            raise MalformedOption(f"illegal resistance {text!r}", line_number) from err
        return end, value.real, value.imag

    def to_line(self) -> str:
        """
        The option line, like ``# GHz S MA R 50``.
        """
        if self.reactance is None:
            resistance = f"{self.resistance:.12g}"
        else:
            resistance = f"({self.resistance:.12g}{self.reactance:+.12g}j)"
        return (f"# {self.frequency_unit} {PARAMETER_TEXT[self.parameter]} "
                f"{FORMAT_TEXT[self.format]} R {resistance}")

    def __str__(self) -> str:
        return self.to_line()


@dataclass
class TouchstoneKeywords:
    """
    Keyword state of a Touchstone file. Version 1.0 files only set `version`.
    """
    version: FileVersionT = "1.0"
    number_of_ports: int | None = None
    two_port_data_order: TwoPortOrderT | None = None
    number_of_frequencies: int | None = None
    number_of_noise_frequencies: int | None = None
    reference: list[float] | None = None
    matrix_format: MatrixFormatT = "full"
    mixed_mode_order: str | None = None
    information: str | None = None


class NoiseRecord(NamedTuple):
    """
    Noise parameters at one frequency.

    `noise_resistance` is the effective noise resistance normalized to the
    reference resistance, as stored in the file.
    """
    min_noise_figure_db: float
    optimal_source_reflection: NetworkParameter
    noise_resistance: float


@dataclass
class Touchstone:
    """
    Touchstone document: network data plus the file metadata.

    Parameters
    ----------
    network_parameters : :class:`~rfnetworks.networkCollection.NetworkParametersCollection`
        the frequency-indexed network data
    resistance : float
        reference resistance of the option line
    reactance : float, optional
        reference reactance, given by the ``R (r+xj)`` form of the option line
    reference : list of float, optional
        per port reference impedances (version 2.0 ``[Reference]``)
    noise_data : dict, optional
        frequency in Hz to :class:`NoiseRecord`
    information : str, optional
        free text of the ``[Begin Information]`` block
    comments : str, optional
        comment lines preceding the header
    options : :class:`TouchstoneOptions`, optional
        option line the document was read with
    keywords : :class:`TouchstoneKeywords`, optional
        keyword state the document was read with

    Examples
    --------
    From filename

    >>> t = Touchstone.read('network.s2p')

    From a io.StringIO object

    >>> t = Touchstone.read(io.StringIO(text))
    >>> t.network_parameters.nearest(1e9)
    """
    network_parameters: NetworkParametersCollection
    resistance: float = TOUCHSTONE_DEFAULTS["resistance"]
    reactance: float | None = None
    reference: list[float] | None = None
    noise_data: dict[float, NoiseRecord] | None = None
    information: str | None = None
    comments: str | None = None
    options: TouchstoneOptions | None = field(default=None, repr=False)
    keywords: TouchstoneKeywords | None = field(default=None, repr=False)

    @property
    def nports(self) -> int:
        return self.network_parameters.nports

    @property
    def frequencies(self):
        return self.network_parameters.frequencies

    @classmethod
    def read(cls, file: str | Path | typing.TextIO, **kwargs) -> Touchstone:
        """
        Read a Touchstone document from a filename or a text object.

        See Also
        --------
        rfnetworks.io.general.read_touchstone
        """
        from .general import read_touchstone
        return read_touchstone(file, **kwargs)

    def write(self, file: str | Path | typing.TextIO,
              settings: TouchstoneWriterSettings | None = None) -> None:
        """
        Write the document to a filename or a text object.

        See Also
        --------
        rfnetworks.io.general.write_touchstone
        """
        from .general import write_touchstone
        write_touchstone(self, file, settings)

    def to_string(self, settings: TouchstoneWriterSettings | None = None) -> str:
        """
        The document as Touchstone text.
        """
        buf = StringIO()
        self.write(buf, settings)
        return buf.getvalue()

    def __str__(self) -> str:
        return self.to_string()
