"""
.. module:: rfnetworks.networkCollection
=====================================================
networkCollection (:mod:`rfnetworks.networkCollection`)
=====================================================

Provides a frequency-indexed collection of network parameter matrices.

A :class:`NetworkParametersCollection` maps frequencies in Hz to
:class:`~rfnetworks.network.NetworkParametersMatrix` objects which all
share the same port count and parameter variant. Iteration is always in
ascending frequency.

.. autosummary::
   :toctree: generated/

   NetworkParametersCollection
   FrequencyParametersPair

"""
from __future__ import annotations

import bisect
import logging
from typing import Iterable, Iterator, NamedTuple

import numpy as np

from .constants import VARIANTS, VariantT
from .errors import FrequencyNotFound, PortCountMismatch, ValidationError
from .network import NetworkParametersMatrix, cascade
from .parameter import NetworkParameter

logger = logging.getLogger(__name__)


class FrequencyParametersPair(NamedTuple):
    frequency: float
    parameters: NetworkParametersMatrix


class NetworkParametersCollection:
    """
    An ordered mapping from frequency (Hz) to network parameter matrices.

    Parameters
    ----------
    nports : int
        port count shared by every matrix of the collection
    variant : {'s', 't'}
        parameter variant of every matrix of the collection. Matrices of
        another variant are converted when inserted.
    data : iterable of (frequency, matrix) pairs, optional
        initial content

    Examples
    --------
    >>> c = NetworkParametersCollection(2)
    >>> c[1e9] = NetworkParametersMatrix([[0, 1], [1, 0]])
    >>> c[1e9, 2, 1]
    NetworkParameter((1+0j))
    >>> c.nearest(1.2e9).frequency
    1000000000.0

    Note
    ----
    The collection has no built-in synchronization; concurrent access from
    several threads has to be serialized by the caller.
    """

    def __init__(self, nports: int, variant: VariantT = 's',
                 data: Iterable[tuple[float, NetworkParametersMatrix]] | None = None):
        if variant not in VARIANTS:
            raise ValidationError(f'Unknown parameter variant {variant!r}, expected one of {VARIANTS}')
        if nports < 1:
            raise ValidationError('Port count must be a positive integer')
        self._nports = int(nports)
        self._variant = variant
        self._frequencies: list[float] = []
        self._matrices: dict[float, NetworkParametersMatrix] = {}

        if data is not None:
            for frequency, matrix in data:
                self.set(frequency, matrix)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[float, NetworkParametersMatrix]],
                   variant: VariantT | None = None) -> NetworkParametersCollection:
        """
        Collection from (frequency, matrix) pairs.

        Port count and, unless given, variant are taken from the first
        matrix.

        Raises
        ------
        ValidationError
            if `pairs` is empty
        """
        pairs = list(pairs)
        if not pairs:
            raise ValidationError('Cannot infer the port count of an empty collection')
        first = pairs[0][1]
        return cls(first.nports, variant or first.variant, pairs)

    @property
    def nports(self) -> int:
        return self._nports

    number_of_ports = nports

    @property
    def variant(self) -> VariantT:
        return self._variant

    @property
    def frequencies(self) -> np.ndarray:
        """
        Frequencies in Hz, ascending.
        """
        return np.array(self._frequencies, dtype=float)

    def get(self, frequency: float) -> NetworkParametersMatrix:
        """
        Matrix stored at `frequency`.

        Raises
        ------
        FrequencyNotFound
        """
        try:
            return self._matrices[float(frequency)]
        except KeyError as err:
            raise FrequencyNotFound(f'No value exists for frequency {frequency} Hz') from err

    def set(self, frequency: float, matrix: NetworkParametersMatrix) -> None:
        """
        Store `matrix` at `frequency`, replacing any existing entry.

        Raises
        ------
        PortCountMismatch
            if `matrix` does not have the port count of the collection
        """
        if not isinstance(matrix, NetworkParametersMatrix):
            raise TypeError(f'Expected a NetworkParametersMatrix, got {type(matrix).__name__}')
        if matrix.nports != self._nports:
            raise PortCountMismatch(
                f'A {matrix.nports}-port matrix cannot be stored in a {self._nports}-port collection')
        frequency = float(frequency)
        if frequency not in self._matrices:
            bisect.insort(self._frequencies, frequency)
        self._matrices[frequency] = matrix.convert_to(self._variant)

    add = set

    def remove(self, frequency: float) -> bool:
        """
        Remove the entry at `frequency`. Returns whether an entry was removed.
        """
        frequency = float(frequency)
        if self._matrices.pop(frequency, None) is None:
            return False
        del self._frequencies[bisect.bisect_left(self._frequencies, frequency)]
        return True

    def contains(self, frequency: float) -> bool:
        return float(frequency) in self._matrices

    def try_get(self, frequency: float, default: NetworkParametersMatrix | None = None
                ) -> NetworkParametersMatrix | None:
        return self._matrices.get(float(frequency), default)

    def clear(self) -> None:
        self._frequencies.clear()
        self._matrices.clear()

    def nearest(self, frequency: float) -> FrequencyParametersPair:
        """
        Entry closest to `frequency`.

        The exact entry is returned if `frequency` is stored. Below the
        lowest frequency the first entry is returned, above the highest
        the last one. Otherwise the neighbour with the strictly smaller
        distance is returned, the higher neighbour on a tie.

        Parameters
        ----------
        frequency : float
            frequency in Hz

        Returns
        -------
        pair : :class:`FrequencyParametersPair`

        Raises
        ------
        FrequencyNotFound
            if the collection is empty
        """
        if not self._frequencies:
            raise FrequencyNotFound('Collection is empty')
        frequency = float(frequency)
        if frequency in self._matrices:
            return FrequencyParametersPair(frequency, self._matrices[frequency])

        idx = bisect.bisect_left(self._frequencies, frequency)
        if idx == 0:
            key = self._frequencies[0]
        elif idx == len(self._frequencies):
            key = self._frequencies[-1]
        else:
            before, after = self._frequencies[idx - 1], self._frequencies[idx]
            key = before if frequency - before < after - frequency else after
        return FrequencyParametersPair(key, self._matrices[key])

    def cascade(self, *others: NetworkParametersCollection) -> NetworkParametersCollection:
        """
        Cascade this collection with `others`, frequency by frequency.

        Only frequencies present in every operand are cascaded. A frequency
        missing from any operand is left out of the result, no
        interpolation is done.

        Returns
        -------
        out : :class:`NetworkParametersCollection`
            in the variant of this collection

        Raises
        ------
        PortCountMismatch
        """
        collections = [self, *others]
        for other in others:
            if other.nports != self._nports:
                raise PortCountMismatch(
                    f'Cannot cascade a {self._nports}-port collection with a {other.nports}-port collection')

        out = NetworkParametersCollection(self._nports, self._variant)
        frequencies = sorted(set().union(*(c._matrices for c in collections)))
        for frequency in frequencies:
            if all(c.contains(frequency) for c in collections):
                out.set(frequency, cascade([c._matrices[frequency] for c in collections]))
        excluded = len(frequencies) - len(out)
        if excluded:
            logger.debug('%d frequencies are not present in every collection and were not cascaded', excluded)
        return out

    def deembed(self, left: NetworkParametersCollection,
                right: NetworkParametersCollection) -> NetworkParametersCollection:
        """
        De-embed `left` and `right` at every frequency the three collections share.

        See Also
        --------
        rfnetworks.network.NetworkParametersMatrix.deembed
        """
        out = NetworkParametersCollection(self._nports, self._variant)
        for frequency, matrix in self:
            lhs, rhs = left.try_get(frequency), right.try_get(frequency)
            if lhs is not None and rhs is not None:
                out.set(frequency, matrix.deembed(lhs, rhs))
        return out

    def items(self) -> Iterator[FrequencyParametersPair]:
        for frequency in self._frequencies:
            yield FrequencyParametersPair(frequency, self._matrices[frequency])

    def matrices(self) -> list[NetworkParametersMatrix]:
        return [self._matrices[f] for f in self._frequencies]

    def to_dataframe(self, attrs: Iterable[str] = ('s_db',), ports: Iterable[tuple[int, int]] | None = None):
        """
        Pandas DataFrame of this collection, see
        :func:`rfnetworks.io.general.collection_2_dataframe`.
        """
        from .io.general import collection_2_dataframe
        return collection_2_dataframe(self, attrs=attrs, ports=ports)

    def __getitem__(self, key):
        if isinstance(key, tuple):
            frequency, dest, source = key
            return self.get(frequency)[dest, source]
        return self.get(key)

    def __setitem__(self, key, value) -> None:
        if isinstance(key, tuple):
            frequency, dest, source = key
            matrix = self.try_get(frequency)
            if matrix is None:
                matrix = NetworkParametersMatrix(self._nports, self._variant)
                self.set(frequency, matrix)
            matrix[dest, source] = NetworkParameter(value)
        else:
            self.set(key, value)

    def __delitem__(self, frequency: float) -> None:
        if not self.remove(frequency):
            raise FrequencyNotFound(f'No value exists for frequency {frequency} Hz')

    def __contains__(self, frequency: float) -> bool:
        return self.contains(frequency)

    def __iter__(self) -> Iterator[FrequencyParametersPair]:
        return self.items()

    def __len__(self) -> int:
        return len(self._frequencies)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NetworkParametersCollection):
            return NotImplemented
        return (self._nports == other._nports
                and self._variant == other._variant
                and self._frequencies == other._frequencies
                and all(self._matrices[f] == other._matrices[f] for f in self._frequencies))

    __hash__ = None

    def __str__(self) -> str:
        if not self._frequencies:
            return f'{self._nports}-Port {self._variant.upper()}-Parameter Collection: empty'
        return (f'{self._nports}-Port {self._variant.upper()}-Parameter Collection: '
                f'{len(self)} points, {self._frequencies[0]}-{self._frequencies[-1]} Hz')

    def __repr__(self) -> str:
        return self.__str__()
