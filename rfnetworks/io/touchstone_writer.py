"""
.. module:: rfnetworks.io.touchstone_writer

====================================================
touchstone_writer (:mod:`rfnetworks.io.touchstone_writer`)
====================================================

Writers for Touchstone version 1.0 and 2.0 text.

.. autosummary::
   :toctree: generated/

   TouchstoneWriter
   AsyncTouchstoneWriter
   TouchstoneWriterSettings

The header is written once, before the first record. Version 2.0 output
is terminated by ``[End]`` when the writer is closed.

"""
from __future__ import annotations

import asyncio
import inspect
import logging
import typing
from dataclasses import dataclass
from pathlib import Path

from ..constants import (
    COLUMN_WIDTH,
    FREQ_UNITS,
    MATRIX_FORMATS,
    NUMERIC_FORMAT,
    SPARAM_FORMATS,
    TWO_PORT_ORDERS,
    V1_PAIRS_PER_LINE,
    FileVersionT,
    FrequencyUnitT,
    ListFormatT,
    MatrixFormatT,
    SparamFormatT,
    TwoPortOrderT,
)
from ..errors import DisposedResourceUse, ValidationError
from ..mathFunctions import is_symmetric
from ..network import NetworkParametersMatrix, port_pairs
from ..util import get_fid
from .touchstone import (
    FORMAT_COLUMNS,
    KEYWORDS,
    MATRIX_FORMAT_TEXT,
    PARAMETER_TEXT,
    Touchstone,
    TouchstoneOptions,
    complex_2_pair,
)

logger = logging.getLogger(__name__)


@dataclass
class TouchstoneWriterSettings:
    """
    Format of written Touchstone text.

    Attributes:
        file_version: '1.0' or '2.0'.
        frequency_unit: Unit the frequencies are written in.
        format: Data pair format, 'db', 'ma' or 'ri'.
        numeric_format: Python format spec of every number.
        column_width: Numbers are right aligned to this width, None to not pad.
        column_separator: Text between two numbers.
        include_column_names: Write a comment line naming the columns.
        two_port_data_order: Element order of 2-port version 2.0 data.
        matrix_format: 'full', 'upper' or 'lower' (version 2.0 only).
        number_of_frequencies: Count written to [Number of Frequencies] when no
            document is attached (version 2.0 only). Omitted if None.
    """
    file_version: FileVersionT = "1.0"
    frequency_unit: FrequencyUnitT = "GHz"
    format: SparamFormatT = "ma"
    numeric_format: str = NUMERIC_FORMAT
    column_width: int | None = COLUMN_WIDTH
    column_separator: str = " "
    include_column_names: bool = True
    two_port_data_order: TwoPortOrderT = "21_12"
    matrix_format: MatrixFormatT = "full"
    number_of_frequencies: int | None = None

    def __post_init__(self):
        choices = {
            "file_version": ("1.0", "2.0"),
            "frequency_unit": list(FREQ_UNITS),
            "format": SPARAM_FORMATS,
            "two_port_data_order": TWO_PORT_ORDERS,
            "matrix_format": MATRIX_FORMATS,
        }
        for name, allowed in choices.items():
            if getattr(self, name) not in allowed:
                raise ValidationError(f"{name} must be one of {list(allowed)}, got {getattr(self, name)!r}")
        if self.file_version == "1.0" and self.matrix_format != "full":
            raise ValidationError("Touchstone 1.0 only supports the full matrix format")
        if self.number_of_frequencies is not None and self.number_of_frequencies < 1:
            raise ValidationError(f"number_of_frequencies must be at least 1, got {self.number_of_frequencies}")

    @classmethod
    def from_touchstone(cls, touchstone: Touchstone, **kwargs) -> TouchstoneWriterSettings:
        """
        Settings reproducing the options and keywords `touchstone` was read with.

        Keyword arguments override the derived values.
        """
        derived = {}
        if touchstone.options is not None:
            derived.update(frequency_unit=touchstone.options.frequency_unit,
                           format=touchstone.options.format)
        if touchstone.keywords is not None:
            derived.update(file_version=touchstone.keywords.version,
                           matrix_format=touchstone.keywords.matrix_format)
            if touchstone.keywords.two_port_data_order is not None:
                derived["two_port_data_order"] = touchstone.keywords.two_port_data_order
        derived.update(kwargs)
        if derived.get("file_version") == "1.0" and "matrix_format" not in kwargs:
            derived["matrix_format"] = "full"
        return cls(**derived)


class _TouchstoneWriterBase:
    """
    Produces the lines of a Touchstone file, shared by the sync and async writers.
    """

    def __init__(self, sink: str | Path | typing.TextIO,
                 settings: TouchstoneWriterSettings | None = None,
                 touchstone: Touchstone | None = None,
                 close_sink: bool | None = None):
        self.settings = settings if settings is not None else TouchstoneWriterSettings()
        self.touchstone = touchstone
        self._close_sink = isinstance(sink, (str, Path)) if close_sink is None else close_sink
        self._sink = get_fid(sink, "w") if isinstance(sink, (str, Path)) else sink
        self._nports: int | None = touchstone.nports if touchstone is not None else None
        self._header_written = False
        self._noise_written = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise DisposedResourceUse("I/O operation on a closed Touchstone writer")

    # -- formatting ---------------------------------------------------------

    @property
    def options(self) -> TouchstoneOptions:
        ts = self.touchstone
        parameter = ts.options.parameter if ts is not None and ts.options is not None else "s"
        return TouchstoneOptions(
            frequency_unit=self.settings.frequency_unit,
            parameter=parameter,
            format=self.settings.format,
            resistance=ts.resistance if ts is not None else TouchstoneOptions.resistance,
            reactance=ts.reactance if ts is not None else None,
        )

    def _list_format(self, nports: int) -> ListFormatT:
        # v1 2-port data is S11 S21 S12 S22, any other port count row major
        if nports == 2:
            if self.settings.file_version == "1.0" or self.settings.two_port_data_order == "21_12":
                return "source"
        return "destination"

    def _number(self, value: float) -> str:
        text = format(value, self.settings.numeric_format)
        if self.settings.column_width:
            text = text.rjust(self.settings.column_width)
        return text

    def _join(self, fields: list[str]) -> str:
        return self.settings.column_separator.join(fields)

    def _stored(self, dest: int, source: int) -> bool:
        matrix_format = self.settings.matrix_format
        if matrix_format == "lower":
            return dest >= source
        if matrix_format == "upper":
            return dest <= source
        return True

    def _layout(self, nports: int) -> list[list[tuple[int, int]]]:
        """
        Port pairs of each physical line of a record.
        """
        order = self._list_format(nports)
        groups: list[list[tuple[int, int]]] = []
        if self.settings.file_version == "1.0" and nports <= 2:
            groups.append(list(port_pairs(nports, order)))
        else:
            # one matrix row per line
            for outer in range(1, nports + 1):
                row = [(d, s) for d, s in port_pairs(nports, order)
                       if (d if order == "destination" else s) == outer and self._stored(d, s)]
                groups.append(row)

        max_pairs = V1_PAIRS_PER_LINE if self.settings.file_version == "1.0" else nports
        lines = []
        for group in groups:
            for i in range(0, len(group), max_pairs):
                lines.append(group[i:i + max_pairs])
        return lines

    def _column_names(self, nports: int) -> str:
        parameter = PARAMETER_TEXT[self.options.parameter]
        first, second = FORMAT_COLUMNS[self.settings.format]
        names = [f"Freq[{self.settings.frequency_unit}]"]
        sep = "_" if nports > 9 else ""
        for line in self._layout(nports):
            for dest, source in line:
                names.append(f"{parameter}{dest}{sep}{source}:{first}")
                names.append(f"{parameter}{dest}{sep}{source}:{second}")
        width = self.settings.column_width or 0
        return "! " + self._join([n.rjust(width) for n in names])

    def _keyword(self, keyword: str, value: str | None = None) -> str:
        if value:
            return f"[{KEYWORDS[keyword]}] {value}"
        return f"[{KEYWORDS[keyword]}]"

    def _header_lines(self, nports: int) -> list[str]:
        ts = self.touchstone
        lines = []
        if ts is not None and ts.comments:
            lines.extend(f"! {line}".rstrip() for line in ts.comments.splitlines())

        if self.settings.file_version == "1.0":
            lines.append(self.options.to_line())
            if ts is not None and ts.information:
                lines.extend(f"! {line}".rstrip() for line in ts.information.splitlines())
        else:
            lines.append(self._keyword("version", "2.0"))
            lines.append(self.options.to_line())
            lines.append(self._keyword("number_of_ports", str(nports)))
            if nports == 2:
                lines.append(self._keyword("two_port_data_order", self.settings.two_port_data_order))
            if ts is not None:
                lines.append(self._keyword("number_of_frequencies", str(len(ts.network_parameters))))
            elif self.settings.number_of_frequencies is not None:
                lines.append(self._keyword("number_of_frequencies", str(self.settings.number_of_frequencies)))
            if ts is not None:
                if ts.noise_data:
                    lines.append(self._keyword("number_of_noise_frequencies", str(len(ts.noise_data))))
                if ts.reference:
                    lines.append(self._keyword("reference", " ".join(f"{r:.12g}" for r in ts.reference)))
            if self.settings.matrix_format != "full":
                lines.append(self._keyword("matrix_format", MATRIX_FORMAT_TEXT[self.settings.matrix_format]))
            if ts is not None and ts.keywords is not None and ts.keywords.mixed_mode_order:
                lines.append(self._keyword("mixed_mode_order", ts.keywords.mixed_mode_order))
            if ts is not None and ts.information:
                lines.append(self._keyword("begin_information"))
                lines.extend(ts.information.splitlines())
                lines.append(self._keyword("end_information"))
            lines.append(self._keyword("network_data"))

        if self.settings.include_column_names:
            lines.append(self._column_names(nports))
        return lines

    def _data_lines(self, frequency: float, matrix: NetworkParametersMatrix) -> list[str]:
        s = matrix.convert_to("s")
        if self.settings.matrix_format != "full" and not is_symmetric(s.data):
            logger.warning("the matrix at %g Hz is not symmetric, the %s format drops half of it",
                           frequency, self.settings.matrix_format)
        frequency_text = self._number(frequency / self.options.frequency_mult)
        indent = " " * len(frequency_text)
        lines = []
        for i, line in enumerate(self._layout(s.nports)):
            fields = [frequency_text if i == 0 else indent]
            for dest, source in line:
                a, b = complex_2_pair(complex(s[dest, source]), self.settings.format)
                fields.extend((self._number(a), self._number(b)))
            lines.append(self._join(fields).rstrip())
        return lines

    def _noise_lines(self) -> list[str]:
        ts = self.touchstone
        if ts is None or not ts.noise_data:
            return []
        if self.settings.file_version == "1.0" and self._nports != 2:
            logger.warning("noise data of a %s-port cannot be written to a Touchstone 1.0 file", self._nports)
            return []
        lines = []
        if self.settings.file_version == "2.0":
            lines.append(self._keyword("noise_data"))
        mult = self.options.frequency_mult
        for frequency in sorted(ts.noise_data):
            record = ts.noise_data[frequency]
            gamma = record.optimal_source_reflection
            values = (frequency / mult, record.min_noise_figure_db, abs(gamma),
                      complex_2_pair(complex(gamma), "ma")[1], record.noise_resistance)
            lines.append(self._join([self._number(v) for v in values]))
        return lines

    def _attach(self, touchstone: Touchstone) -> None:
        self._check_open()
        if len(touchstone.network_parameters) == 0:
            raise ValidationError("a Touchstone file needs at least one frequency")
        self.touchstone = touchstone
        self._nports = touchstone.nports

    def _prepare_data(self, frequency: float, matrix: NetworkParametersMatrix) -> list[str]:
        self._check_open()
        if self._noise_written:
            raise ValidationError("network data cannot follow the noise data")
        lines = []
        if not self._header_written:
            if self._nports is None:
                self._nports = matrix.nports
            lines.extend(self._prepare_header(self._nports))
        if matrix.nports != self._nports:
            raise ValidationError(f"a {matrix.nports}-port matrix cannot be written to a {self._nports}-port file")
        lines.extend(self._data_lines(frequency, matrix))
        return lines

    def _prepare_header(self, nports: int) -> list[str]:
        self._check_open()
        if self._header_written:
            return []
        self._header_written = True
        self._nports = nports
        logger.debug("writing Touchstone %s header for a %d-port", self.settings.file_version, nports)
        return self._header_lines(nports)

    def _prepare_noise(self) -> list[str]:
        self._check_open()
        if self._noise_written:
            return []
        lines = []
        if not self._header_written and self._nports is not None:
            lines.extend(self._prepare_header(self._nports))
        self._noise_written = True
        return lines + self._noise_lines()

    def _prepare_footer(self) -> list[str]:
        if self.settings.file_version == "2.0" and self._header_written:
            return [self._keyword("end")]
        return []


class TouchstoneWriter(_TouchstoneWriterBase):
    """
    Write Touchstone 1.0 and 2.0 files.

    Parameters
    ----------
    sink : str, Path, or file-object
        file to write to
    settings : :class:`TouchstoneWriterSettings`, optional
    touchstone : :class:`~rfnetworks.io.touchstone.Touchstone`, optional
        document providing resistance, reference, noise data and the
        other metadata of the header
    close_sink : bool, optional
        close `sink` when the writer is closed. Defaults to True if `sink`
        is a filename.

    Examples
    --------
    >>> with TouchstoneWriter('network.s2p', touchstone=ts) as writer:
    ...     for frequency, matrix in ts.network_parameters:
    ...         writer.write(frequency, matrix)

    or simply

    >>> with TouchstoneWriter('network.s2p') as writer:
    ...     writer.write_touchstone(ts)
    """

    def _write_lines(self, lines: list[str]) -> None:
        for line in lines:
            self._sink.write(line + "\n")

    def write_header(self, nports: int | None = None) -> None:
        """
        Write the header, if not written yet.
        """
        nports = nports if nports is not None else self._nports
        if nports is None:
            raise ValidationError("the port count is needed to write the header")
        self._write_lines(self._prepare_header(nports))

    def write(self, frequency: float, matrix: NetworkParametersMatrix) -> None:
        """
        Write the record of one frequency, in Hz.
        """
        self._write_lines(self._prepare_data(frequency, matrix))

    def write_noise(self) -> None:
        """
        Write the noise data of the document, if any.
        """
        self._write_lines(self._prepare_noise())

    def write_touchstone(self, touchstone: Touchstone) -> None:
        """
        Write a whole document: header, network data and noise data.
        """
        self._attach(touchstone)
        self.write_header()
        for frequency, matrix in touchstone.network_parameters:
            self.write(frequency, matrix)
        self.write_noise()

    def flush(self) -> None:
        self._sink.flush()

    def close(self) -> None:
        if self._closed:
            return
        try:
            self._write_lines(self._prepare_footer())
            self._sink.flush()
        finally:
            self._closed = True
            if self._close_sink:
                self._sink.close()

    def __enter__(self) -> TouchstoneWriter:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class AsyncTouchstoneWriter(_TouchstoneWriterBase):
    """
    Asynchronous variant of :class:`TouchstoneWriter`.

    `sink` provides ``write()``, either a coroutine function or a plain one.
    The writer only suspends while a line is written.

    Examples
    --------
    >>> async with AsyncTouchstoneWriter(stream, touchstone=ts) as writer:
    ...     await writer.write_touchstone(ts)
    """

    async def _write_lines(self, lines: list[str]) -> None:
        for line in lines:
            result = self._sink.write(line + "\n")
            if inspect.isawaitable(result):
                await result

    async def write_header(self, nports: int | None = None) -> None:
        nports = nports if nports is not None else self._nports
        if nports is None:
            raise ValidationError("the port count is needed to write the header")
        await self._write_lines(self._prepare_header(nports))

    async def write(self, frequency: float, matrix: NetworkParametersMatrix) -> None:
        await self._write_lines(self._prepare_data(frequency, matrix))

    async def write_noise(self) -> None:
        await self._write_lines(self._prepare_noise())

    async def write_touchstone(self, touchstone: Touchstone, cancel=None) -> None:
        """
        Write a whole document.

        Parameters
        ----------
        touchstone : :class:`~rfnetworks.io.touchstone.Touchstone`
        cancel : event-like, optional
            checked between records, writing stops with
            :class:`asyncio.CancelledError` once it is set
        """
        self._attach(touchstone)
        await self.write_header()
        for frequency, matrix in touchstone.network_parameters:
            if cancel is not None and cancel.is_set():
                raise asyncio.CancelledError("Touchstone writing was cancelled")
            await self.write(frequency, matrix)
        await self.write_noise()

    async def close(self) -> None:
        if self._closed:
            return
        try:
            await self._write_lines(self._prepare_footer())
        finally:
            self._closed = True
            if self._close_sink:
                result = self._sink.close()
                if inspect.isawaitable(result):
                    await result

    async def __aenter__(self) -> AsyncTouchstoneWriter:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()
