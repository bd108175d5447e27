"""
.. module:: rfnetworks.io.touchstone_reader

====================================================
touchstone_reader (:mod:`rfnetworks.io.touchstone_reader`)
====================================================

Readers for Touchstone version 1.0 and 2.0 text.

The first non-blank, non-comment character selects the dialect: ``#``
starts a version 1.0 file with its option line, ``[`` a version 2.0 file
with the ``[Version] 2.0`` keyword. The header is parsed when the reader
is created, network data is decoded record by record on demand.

.. autosummary::
   :toctree: generated/

   TouchstoneReader
   AsyncTouchstoneReader
   TouchstoneReaderSettings

The parsing state machine is written once, as generators that request one
physical line at a time. :class:`TouchstoneReader` feeds them from
``readline()`` and :class:`AsyncTouchstoneReader` from an awaited
``readline()``, so both variants go through identical transitions.

"""
from __future__ import annotations

import asyncio
import inspect
import logging
import re
import typing
import warnings
from collections import deque
from dataclasses import dataclass, field
from math import isqrt
from pathlib import Path
from typing import Callable, Generator

import numpy as np

from ..constants import FileVersionT, ListFormatT, ParseSectionT
from ..errors import (
    DisposedResourceUse,
    MalformedData,
    MalformedHeader,
    MalformedKeyword,
    TouchstoneWarning,
    UnsupportedConversion,
)
from ..mathFunctions import is_perfect_square
from ..network import NetworkParametersMatrix, port_pairs
from ..networkCollection import FrequencyParametersPair, NetworkParametersCollection
from ..parameter import NetworkParameter
from ..util import get_fid
from .touchstone import (
    KEYWORD_LOOKUP,
    KEYWORDS,
    MATRIX_FORMAT_LOOKUP,
    PARAMETER_TEXT,
    TWO_PORT_ORDER_LOOKUP,
    NoiseRecord,
    Touchstone,
    TouchstoneKeywords,
    TouchstoneOptions,
    pair_2_complex,
)

logger = logging.getLogger(__name__)

_KEYWORD_RE = re.compile(r"^\[([^\]]*)\](.*)$")

# physical line number and its content without comment
Line = typing.Tuple[int, str]
# a parser step: yields to request a raw line, is sent the raw line
LineRequest = Generator[None, str, typing.Any]


@dataclass
class TouchstoneReaderSettings:
    """
    Reader configuration.

    Attributes:
        frequency_selector: Predicate on the frequency in Hz. Records for
            which it returns False are parsed but not returned.
    """
    frequency_selector: Callable[[float], bool] | None = None


@dataclass
class ParserState:
    """Class to hold dynamic variables while parsing the touchstone file.
    """
    line_number: int = 0
    pending: deque[Line] = field(default_factory=deque)
    header_parsed: bool = False
    data_done: bool = False
    version: FileVersionT = "1.0"
    options: TouchstoneOptions = field(default_factory=TouchstoneOptions)
    keywords: TouchstoneKeywords = field(default_factory=TouchstoneKeywords)
    comments: list[str] = field(default_factory=list)
    rank: int | None = None
    previous_frequency: float | None = None
    records_read: int = 0
    noise: dict[float, NoiseRecord] = field(default_factory=dict)

    @property
    def numbers_per_record(self) -> int:
        """Returns numbers per record, including the frequency.

        Returns:
            int: Number of values of one frequency point.
        """
        if self.keywords.matrix_format == "full":
            return 2 * self.rank**2 + 1
        return self.rank * (self.rank + 1) + 1

    @property
    def list_format(self) -> ListFormatT:
        """Element order of the network data.

        2-port data of version 1.0 files lists S11 S21 S12 S22. Version 2.0
        files choose with [Two-Port Data Order]. Everything else is row major
        (S11 S12 ... S1N S21 ...), the order the Touchstone standard defines
        for 1-port and 3-port and larger data.
        """
        if self.rank == 2:
            if self.version == "1.0" or self.keywords.two_port_data_order == "21_12":
                return "source"
        return "destination"


class _TouchstoneReaderBase:
    """
    State machine shared by the sync and async readers.
    """

    def __init__(self, source: str | Path | typing.TextIO,
                 settings: TouchstoneReaderSettings | None = None,
                 close_source: bool | None = None):
        self._close_source = isinstance(source, (str, Path)) if close_source is None else close_source
        self._source = get_fid(source)
        self.settings = settings if settings is not None else TouchstoneReaderSettings()
        self._state = ParserState()
        self._closed = False
        self._buffered: FrequencyParametersPair | None = None

    # -- public state -------------------------------------------------------

    @property
    def version(self) -> FileVersionT:
        return self._state.version

    @property
    def options(self) -> TouchstoneOptions:
        return self._state.options

    @property
    def keywords(self) -> TouchstoneKeywords:
        return self._state.keywords

    @property
    def comments(self) -> str:
        return "\n".join(self._state.comments)

    @property
    def noise_data(self) -> dict[float, NoiseRecord]:
        """
        Noise parameters read so far, frequency in Hz to :class:`NoiseRecord`.

        Noise data follows the network data, so it is complete once all
        records were read.
        """
        return dict(self._state.noise)

    @property
    def nports(self) -> int | None:
        """
        Port count, None until the first version 1.0 record was read.
        """
        return self._state.rank

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._close_source:
            self._source.close()

    def _check_open(self) -> None:
        if self._closed:
            raise DisposedResourceUse("I/O operation on a closed Touchstone reader")

    # -- lexical layer ------------------------------------------------------

    def _next_line(self) -> LineRequest:
        """
        Next line with content, comments removed, or None at the end of the source.

        Lines pushed back by the version 1.0 lookahead are served first.
        """
        state = self._state
        if state.pending:
            return state.pending.popleft()
        while True:
            raw = yield
            if not raw:
                return None
            state.line_number += 1
            text, bang, comment = raw.partition("!")
            if bang and not state.header_parsed:
                state.comments.append(comment.strip())
            text = text.strip()
            if text:
                return state.line_number, text

    def _split_keyword(self, line: Line, section: ParseSectionT = "Keywords") -> tuple[str, str]:
        line_number, text = line
        m = _KEYWORD_RE.match(text)
        if not m:
            raise MalformedKeyword(f"unterminated keyword {text!r}", line_number, section)
        name = " ".join(m.group(1).lower().split())
        try:
            keyword = KEYWORD_LOOKUP[name]
        except KeyError as err:
            raise MalformedKeyword(f"unknown keyword [{m.group(1)}]", line_number, section) from err
        return keyword, m.group(2).strip()

    @staticmethod
    def _parse_floats(line: Line, section: ParseSectionT = "Data") -> list[float]:
        line_number, text = line
        try:
            return [float(tok) for tok in text.split()]
        except ValueError as err:
            raise MalformedData(f"non-numeric value in {text!r}", line_number, section) from err

    @staticmethod
    def _parse_count(line: Line, keyword: str, value: str, minimum: int = 0) -> int:
        try:
            count = int(value)
        except ValueError as err:
            raise MalformedKeyword(f"[{KEYWORDS[keyword]}] needs an integer, got {value!r}", line[0]) from err
        if count < minimum:
            raise MalformedKeyword(f"[{KEYWORDS[keyword]}] must be at least {minimum}, got {count}", line[0])
        return count

    # -- header -------------------------------------------------------------

    def _parse_header(self) -> LineRequest:
        state = self._state
        line = yield from self._next_line()
        if line is None:
            raise MalformedHeader("no option line or [Version] keyword found", state.line_number)
        line_number, text = line
        if text.startswith("#"):
            state.version = "1.0"
            state.options = TouchstoneOptions.parse(text, line_number)
        elif text.startswith("["):
            keyword, value = self._split_keyword(line, "Header")
            if keyword != "version" or value != "2.0":
                raise MalformedHeader(f"expected '[Version] 2.0', got {text!r}", line_number)
            state.version = "2.0"
            yield from self._parse_header_v2()
        else:
            raise MalformedHeader(f"expected an option line or [Version] keyword, got {text!r}", line_number)

        state.keywords.version = state.version
        state.header_parsed = True
        logger.debug("Touchstone %s header parsed: %s", state.version, state.options)

    def _parse_header_v2(self) -> LineRequest:
        state = self._state
        keywords = state.keywords

        line = yield from self._next_line()
        if line is None or not line[1].startswith("#"):
            raise MalformedHeader("the option line must follow [Version]", state.line_number)
        state.options = TouchstoneOptions.parse(line[1], line[0])

        line = yield from self._next_line()
        if line is None or not line[1].startswith("[") or self._split_keyword(line)[0] != "number_of_ports":
            raise MalformedHeader("[Number of Ports] must follow the option line", state.line_number)
        keywords.number_of_ports = self._parse_count(line, "number_of_ports", self._split_keyword(line)[1], 1)
        state.rank = keywords.number_of_ports

        # keywords whose value may continue on the following lines
        continued: tuple[Line, str, list[str]] | None = None
        information: list[str] | None = None

        while True:
            line = yield from self._next_line()
            if line is None:
                raise MalformedHeader("end of file before [Network Data]", state.line_number, "Keywords")
            line_number, text = line

            if information is not None:
                if text.lower().replace(" ", "").startswith("[endinformation]"):
                    keywords.information = "\n".join(information)
                    information = None
                else:
                    information.append(text)
                continue

            if not text.startswith("["):
                if text.startswith("#"):
                    raise MalformedHeader("only one option line is allowed", line_number, "Options")
                if continued is None:
                    raise MalformedKeyword(f"unexpected line {text!r} in the keyword section", line_number)
                continued[2].append(text)
                continue

            if continued is not None:
                self._finish_keyword(*continued)
                continued = None

            keyword, value = self._split_keyword(line)
            if keyword == "network_data":
                break
            elif keyword in ("reference", "mixed_mode_order"):
                continued = (line, keyword, [value] if value else [])
            elif keyword == "begin_information":
                information = [value] if value else []
            elif keyword == "two_port_data_order":
                try:
                    keywords.two_port_data_order = TWO_PORT_ORDER_LOOKUP[value.lower()]
                except KeyError as err:
                    raise MalformedKeyword(f"illegal two-port data order {value!r}", line_number) from err
            elif keyword == "matrix_format":
                try:
                    keywords.matrix_format = MATRIX_FORMAT_LOOKUP[value.lower()]
                except KeyError as err:
                    raise MalformedKeyword(f"illegal matrix format {value!r}", line_number) from err
            elif keyword == "number_of_frequencies":
                keywords.number_of_frequencies = self._parse_count(line, keyword, value, 1)
            elif keyword == "number_of_noise_frequencies":
                keywords.number_of_noise_frequencies = self._parse_count(line, keyword, value, 1)
            else:
                raise MalformedKeyword(f"[{KEYWORDS[keyword]}] is not allowed before [Network Data]", line_number)

        if state.rank == 2 and keywords.two_port_data_order is None:
            raise MalformedHeader("[Two-Port Data Order] is required for 2-port files", line_number, "Keywords")

    def _finish_keyword(self, line: Line, keyword: str, values: list[str]) -> None:
        keywords = self._state.keywords
        if keyword == "mixed_mode_order":
            keywords.mixed_mode_order = " ".join(values)
            return
        toks = " ".join(values).split()
        try:
            reference = [float(tok) for tok in toks]
        except ValueError as err:
            raise MalformedKeyword(f"illegal reference impedance in {toks}", line[0]) from err
        if len(reference) != self._state.rank:
            raise MalformedKeyword(
                f"[Reference] needs {self._state.rank} values, got {len(reference)}", line[0])
        keywords.reference = reference

    # -- network data -------------------------------------------------------

    def _read_record(self) -> LineRequest:
        state = self._state
        if state.data_done:
            return None
        if state.version == "1.0":
            values = yield from self._read_values_v1()
        else:
            values = yield from self._read_values_v2()
        if values is None:
            self._finish_data()
            return None
        return self._build_record(*values)

    def _read_values_v1(self) -> LineRequest:
        state = self._state
        line = yield from self._next_line()
        if line is None:
            return None
        tokens = self._parse_floats(line)
        if len(tokens) % 2 == 0:
            raise MalformedData(
                f"a record starts with the frequency and data pairs, found {len(tokens)} values", line[0])

        if (state.rank == 2 and state.previous_frequency is not None
                and tokens[0] < state.previous_frequency):
            # a decreasing frequency starts the noise parameters of a 2-port
            yield from self._read_noise(line, "Data")
            return None

        # an even number of values continues the record, an odd one starts the next
        while state.rank is None or len(tokens) < state.numbers_per_record:
            following = yield from self._next_line()
            if following is None:
                break
            more = self._parse_floats(following)
            if len(more) % 2 == 1:
                state.pending.append(following)
                break
            tokens.extend(more)

        if state.rank is None:
            pairs = (len(tokens) - 1) // 2
            if pairs == 0 or not is_perfect_square(pairs):
                raise MalformedData(f"{pairs} data pairs do not form a square matrix", line[0])
            state.rank = isqrt(pairs)
            logger.debug("port count inferred from the first record: %d", state.rank)

        if len(tokens) != state.numbers_per_record:
            raise MalformedData(
                f"a {state.rank}-port record needs {state.numbers_per_record} values, found {len(tokens)}",
                line[0])
        return line[0], tokens

    def _read_values_v2(self) -> LineRequest:
        state = self._state
        expected = state.numbers_per_record
        tokens: list[float] = []
        first: int | None = None
        while len(tokens) < expected:
            line = yield from self._next_line()
            if line is None:
                if tokens:
                    raise MalformedData("end of file inside a record", state.line_number, "NetworkData")
                warnings.warn("Touchstone 2.0 data is not terminated by [End]", TouchstoneWarning, stacklevel=3)
                return None
            if line[1].startswith("["):
                if tokens:
                    raise MalformedData(f"incomplete record, expected {expected} values, found {len(tokens)}",
                                        first, "NetworkData")
                yield from self._read_trailer(line)
                return None
            if first is None:
                first = line[0]
            tokens.extend(self._parse_floats(line, "NetworkData"))

        if len(tokens) != expected:
            raise MalformedData(f"a record needs {expected} values, found {len(tokens)}", first, "NetworkData")
        return first, tokens

    def _read_trailer(self, line: Line) -> LineRequest:
        keyword, _ = self._split_keyword(line, "NetworkData")
        if keyword == "noise_data":
            following = yield from self._next_line()
            if following is not None and not following[1].startswith("["):
                following = yield from self._read_noise(following, "NetworkData")
            if following is None:
                warnings.warn("Touchstone 2.0 data is not terminated by [End]", TouchstoneWarning, stacklevel=4)
                return
            keyword, _ = self._split_keyword(following, "NetworkData")
            line = following
        if keyword != "end":
            raise MalformedKeyword(f"[{KEYWORDS[keyword]}] is not allowed after [Network Data]",
                                   line[0], "NetworkData")

    def _read_noise(self, line: Line, section: ParseSectionT) -> LineRequest:
        """
        Read noise records starting at `line`. Returns the first line that
        is not a noise record, or None at the end of the source.
        """
        state = self._state
        mult = state.options.frequency_mult
        while line is not None and not line[1].startswith("["):
            values = self._parse_floats(line, section)
            if len(values) != 5:
                raise MalformedData(f"a noise record needs 5 values, found {len(values)}", line[0], section)
            frequency, nf_min, gamma_mag, gamma_deg, rn = values
            state.noise[frequency * mult] = NoiseRecord(
                nf_min, NetworkParameter.from_polar_degree(gamma_mag, gamma_deg), rn)
            line = yield from self._next_line()
        return line

    def _build_record(self, line_number: int, values: list[float]) -> FrequencyParametersPair:
        state = self._state
        options = state.options
        if options.parameter != "s":
            raise UnsupportedConversion(
                f"{PARAMETER_TEXT[options.parameter]}-parameters in record at line {line_number} "
                "are not supported, only S-parameters")
        data = values[1:]
        params = [pair_2_complex(data[k], data[k + 1], options.format) for k in range(0, len(data), 2)]
        matrix_format = state.keywords.matrix_format
        if matrix_format != "full":
            params = _insert_placeholders(params, state.rank, state.list_format, matrix_format)
        matrix = NetworkParametersMatrix.from_flat(params, state.rank, state.list_format)
        if matrix_format != "full":
            matrix = _mirror(matrix, matrix_format)

        state.previous_frequency = values[0]
        state.records_read += 1
        return FrequencyParametersPair(values[0] * options.frequency_mult, matrix)

    def _finish_data(self) -> None:
        state = self._state
        state.data_done = True
        expected = state.keywords.number_of_frequencies
        if expected is not None and expected != state.records_read:
            warnings.warn(f"[Number of Frequencies] is {expected} but {state.records_read} records were read",
                          TouchstoneWarning, stacklevel=4)
        logger.debug("%d records and %d noise records read", state.records_read, len(state.noise))

    def _selected(self, record: FrequencyParametersPair) -> bool:
        selector = self.settings.frequency_selector
        return selector is None or selector(record.frequency)

    def _empty_collection(self) -> NetworkParametersCollection:
        if self._state.rank is None:
            raise MalformedData("no network data, the port count cannot be inferred",
                                self._state.line_number, "Data")
        return NetworkParametersCollection(self._state.rank)

    def _touchstone(self, collection: NetworkParametersCollection) -> Touchstone:
        state = self._state
        return Touchstone(
            collection,
            resistance=state.options.resistance,
            reactance=state.options.reactance,
            reference=state.keywords.reference,
            noise_data=self.noise_data or None,
            information=state.keywords.information,
            comments=self.comments or None,
            options=state.options,
            keywords=state.keywords,
        )


def _insert_placeholders(params: list[complex], nports: int, order: ListFormatT,
                         matrix_format: str) -> list[complex]:
    values = iter(params)
    out = []
    for dest, source in port_pairs(nports, order):
        stored = dest >= source if matrix_format == "lower" else dest <= source
        out.append(next(values) if stored else 0j)
    return out


def _mirror(matrix: NetworkParametersMatrix, matrix_format: str) -> NetworkParametersMatrix:
    p = matrix.data
    index = np.triu_indices(matrix.nports, 1) if matrix_format == "lower" else np.tril_indices(matrix.nports, -1)
    p[index] = p.T[index]
    return NetworkParametersMatrix(p, matrix.variant)


class TouchstoneReader(_TouchstoneReaderBase):
    """
    Read Touchstone 1.0 and 2.0 files.

    Parameters
    ----------
    source : str, Path, or file-object
        touchstone file to read
    settings : :class:`TouchstoneReaderSettings`, optional
    close_source : bool, optional
        close `source` when the reader is closed. Defaults to True if
        `source` is a filename.

    Raises
    ------
    MalformedHeader, MalformedKeyword, MalformedOption
        if the header can't be parsed

    Examples
    --------
    >>> with TouchstoneReader('network.s2p') as reader:
    ...     for frequency, matrix in reader:
    ...         print(frequency, matrix[2, 1].magnitude_db)

    Whole file at once

    >>> collection = TouchstoneReader(io.StringIO(text)).read_collection()
    """

    def __init__(self, source: str | Path | typing.TextIO,
                 settings: TouchstoneReaderSettings | None = None,
                 close_source: bool | None = None):
        super().__init__(source, settings, close_source)
        try:
            self._run(self._parse_header())
        except Exception:
            self.close()
            raise

    def _run(self, parser: LineRequest):
        try:
            next(parser)
            while True:
                parser.send(self._source.readline())
        except StopIteration as stop:
            return stop.value

    @property
    def nports(self) -> int:
        """
        Port count. Version 1.0 files infer it from the first record,
        which is then read ahead.
        """
        if self._state.rank is None and self._buffered is None:
            self._buffered = self._next_record()
        if self._state.rank is None:
            raise MalformedData("no network data, the port count cannot be inferred",
                                self._state.line_number, "Data")
        return self._state.rank

    def _next_record(self) -> FrequencyParametersPair | None:
        self._check_open()
        return self._run(self._read_record())

    def read(self) -> FrequencyParametersPair | None:
        """
        Read the next (frequency, matrix) pair.

        Returns
        -------
        pair : :class:`~rfnetworks.networkCollection.FrequencyParametersPair` or None
            None once all network data was read
        """
        self._check_open()
        while True:
            if self._buffered is not None:
                record, self._buffered = self._buffered, None
            else:
                record = self._next_record()
            if record is None or self._selected(record):
                return record

    def __iter__(self) -> typing.Iterator[FrequencyParametersPair]:
        while True:
            record = self.read()
            if record is None:
                return
            yield record

    def read_collection(self) -> NetworkParametersCollection:
        """
        Read all remaining records into a collection.
        """
        records = list(self)
        collection = self._empty_collection()
        for frequency, matrix in records:
            collection.set(frequency, matrix)
        return collection

    def read_touchstone(self) -> Touchstone:
        """
        Read all remaining records into a :class:`~rfnetworks.io.touchstone.Touchstone` document.
        """
        return self._touchstone(self.read_collection())

    def __enter__(self) -> TouchstoneReader:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class AsyncTouchstoneReader(_TouchstoneReaderBase):
    """
    Asynchronous variant of :class:`TouchstoneReader`.

    `source` provides ``readline()``, either a coroutine function or a plain
    one. The reader only suspends while waiting for a line, the parsing
    itself is the same as in :class:`TouchstoneReader`. The header is
    parsed by :meth:`open`, which ``async with`` calls.

    Examples
    --------
    >>> async with AsyncTouchstoneReader(stream) as reader:
    ...     async for frequency, matrix in reader:
    ...         ...
    """

    async def _run(self, parser: LineRequest):
        try:
            next(parser)
            while True:
                line = self._source.readline()
                if inspect.isawaitable(line):
                    line = await line
                parser.send(line)
        except StopIteration as stop:
            return stop.value

    async def open(self) -> AsyncTouchstoneReader:
        """
        Parse the header, if not done yet.
        """
        self._check_open()
        if not self._state.header_parsed:
            await self._run(self._parse_header())
        return self

    async def read(self) -> FrequencyParametersPair | None:
        """
        Read the next (frequency, matrix) pair, None at the end of the network data.
        """
        await self.open()
        while True:
            record = await self._run(self._read_record())
            if record is None or self._selected(record):
                return record

    def __aiter__(self) -> AsyncTouchstoneReader:
        return self

    async def __anext__(self) -> FrequencyParametersPair:
        record = await self.read()
        if record is None:
            raise StopAsyncIteration
        return record

    async def read_collection(self, cancel: asyncio.Event | None = None) -> NetworkParametersCollection:
        """
        Read all remaining records into a collection.

        Parameters
        ----------
        cancel : event-like, optional
            checked between records, reading stops with
            :class:`asyncio.CancelledError` once it is set
        """
        records = []
        while True:
            if cancel is not None and cancel.is_set():
                raise asyncio.CancelledError("Touchstone reading was cancelled")
            record = await self.read()
            if record is None:
                break
            records.append(record)
        collection = self._empty_collection()
        for frequency, matrix in records:
            collection.set(frequency, matrix)
        return collection

    async def read_touchstone(self, cancel: asyncio.Event | None = None) -> Touchstone:
        return self._touchstone(await self.read_collection(cancel))

    async def __aenter__(self) -> AsyncTouchstoneReader:
        try:
            return await self.open()
        except Exception:
            self.close()
            raise

    async def __aexit__(self, *exc) -> None:
        self.close()
