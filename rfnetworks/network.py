"""
.. module:: rfnetworks.network
========================================
network (:mod:`rfnetworks.network`)
========================================


Provide the network parameter matrix class and the functions that
convert, cascade and de-embed matrices.

Much of the functionality in this module is provided as methods and
properties of the :class:`NetworkParametersMatrix` Class.


Matrix Class
===============

.. autosummary::
    :toctree: generated/

    NetworkParametersMatrix

Connecting Networks
===============================

.. autosummary::
    :toctree: generated/

    cascade
    cascade_list
    de_embed

Supporting Functions
======================

.. autosummary::
    :toctree: generated/

    s2t
    t2s
    inv
    check_nports_equal

Algebraic Elements
======================

.. autosummary::
    :toctree: generated/

    SymmetryElement
    ScalarElement

"""
from __future__ import annotations

from functools import reduce
from typing import Callable, Iterator, Protocol, Sequence

import numpy as np

from .constants import TOL, VARIANTS, ListFormatT, VariantT
from .errors import (
    IndexOutOfRange,
    PortCountMismatch,
    SingularMatrix,
    UnsupportedConversion,
    ValidationError,
)
from .mathFunctions import is_perfect_square
from .parameter import NetworkParameter


class SymmetryElement(Protocol):
    """
    Algebra needed by the closed-form S/T conversion formulas.

    The formulas only add, subtract, multiply, negate and invert their
    operands, so they hold for complex scalars (2-ports) as well as for
    square sub-matrix blocks of a 2N-port.
    """

    def __add__(self, other: SymmetryElement) -> SymmetryElement: ...

    def __sub__(self, other: SymmetryElement) -> SymmetryElement: ...

    def __mul__(self, other: SymmetryElement) -> SymmetryElement: ...

    def __neg__(self) -> SymmetryElement: ...

    def inverse(self) -> SymmetryElement: ...


class ScalarElement:
    """
    Complex scalar implementation of :class:`SymmetryElement`.
    """
    __slots__ = ('value',)

    def __init__(self, value: complex):
        self.value = complex(value)

    def __add__(self, other: ScalarElement) -> ScalarElement:
        return ScalarElement(self.value + other.value)

    def __sub__(self, other: ScalarElement) -> ScalarElement:
        return ScalarElement(self.value - other.value)

    def __mul__(self, other: ScalarElement) -> ScalarElement:
        return ScalarElement(self.value * other.value)

    def __neg__(self) -> ScalarElement:
        return ScalarElement(-self.value)

    def inverse(self) -> ScalarElement:
        if self.value == 0:
            raise SingularMatrix('Element is zero and has no inverse')
        return ScalarElement(1 / self.value)

    def __repr__(self) -> str:
        return f'ScalarElement({self.value!r})'


def _s2t_elements(s11: SymmetryElement, s12: SymmetryElement,
                  s21: SymmetryElement, s22: SymmetryElement) -> tuple[SymmetryElement, ...]:
    # T_I,I = S_I,II - S_I,I . S_II,I^-1 . S_II,II
    s21_inv = s21.inverse()
    w = s21_inv * s22
    return (s12 - s11 * w, s11 * s21_inv, -w, s21_inv)


def _t2s_elements(t11: SymmetryElement, t12: SymmetryElement,
                  t21: SymmetryElement, t22: SymmetryElement) -> tuple[SymmetryElement, ...]:
    # S_I,II = T_I,I - T_I,II . T_II,II^-1 . T_II,I
    t22_inv = t22.inverse()
    w = t22_inv * t21
    return (t12 * t22_inv, t11 - t12 * w, t22_inv, -w)


def _check_two_port(p: np.ndarray, conversion: str) -> None:
    nports = p.shape[0]
    if nports == 1:
        raise UnsupportedConversion(f'{conversion} is undefined for a 1-port network')
    if nports != 2:
        raise UnsupportedConversion(f'{conversion} is not implemented for {nports}-port networks')


def _apply_elements(p: np.ndarray, formula: Callable) -> np.ndarray:
    elements = [ScalarElement(p[i, j]) for i, j in ((0, 0), (0, 1), (1, 0), (1, 1))]
    out = [e.value for e in formula(*elements)]
    return np.array(out, dtype=complex).reshape(2, 2)


def s2t(s: np.ndarray) -> np.ndarray:
    """
    Convert scattering parameters to scattering transfer parameters.

    .. math::

        T_{11} = -\\det(S)/S_{21}, \\quad T_{12} = S_{11}/S_{21}, \\quad
        T_{21} = -S_{22}/S_{21}, \\quad T_{22} = 1/S_{21}

    Parameters
    ----------
    s : :class:`numpy.ndarray` (shape 2x2)
        scattering parameter matrix

    Returns
    -------
    t : np.ndarray
        scattering transfer parameters (aka wave cascading matrix)

    Raises
    ------
    UnsupportedConversion
        for anything but a 2-port
    SingularMatrix
        if S21 is zero

    See Also
    --------
    t2s
    inv
    """
    _check_two_port(s, 'S to T conversion')
    try:
        return _apply_elements(s, _s2t_elements)
    except SingularMatrix as err:
        raise SingularMatrix('S21 is zero, a network without transmission has no T-parameters') from err


def t2s(t: np.ndarray) -> np.ndarray:
    """
    Convert scattering transfer parameters to scattering parameters.

    .. math::

        S_{11} = T_{12}/T_{22}, \\quad S_{12} = \\det(T)/T_{22}, \\quad
        S_{21} = 1/T_{22}, \\quad S_{22} = -T_{21}/T_{22}

    Parameters
    ----------
    t : :class:`numpy.ndarray` (shape 2x2)
        scattering transfer parameter matrix

    Returns
    -------
    s : np.ndarray
        scattering parameters

    See Also
    --------
    s2t
    """
    _check_two_port(t, 'T to S conversion')
    try:
        return _apply_elements(t, _t2s_elements)
    except SingularMatrix as err:
        raise SingularMatrix('T22 is zero, the T-matrix has no S-parameter equivalent') from err


# exhaustive table of variant conversions, keyed by (source, target)
_CONVERSIONS: dict[tuple[VariantT, VariantT], Callable[[np.ndarray], np.ndarray]] = {
    ('s', 't'): s2t,
    ('t', 's'): t2s,
}


def _matrix_inverse(p: np.ndarray) -> np.ndarray:
    try:
        return np.linalg.inv(p)
    except np.linalg.LinAlgError as err:
        raise SingularMatrix('Transfer matrix is singular and cannot be inverted') from err


class NetworkParametersMatrix:
    r"""
    A square matrix of network parameters at a single frequency.

    Cells are addressed with 1-based ``(destination_port, source_port)``
    indices, so ``m[2, 1]`` is the transmission from port 1 to port 2
    (:math:`S_{21}`).

    Parameters
    ----------
    data : int or array-like
        the port count, giving a zero-filled matrix, or a square 2D
        array of complex values
    variant : {'s', 't'}
        representation of the parameters, scattering or scattering transfer

    Examples
    --------
    >>> m = NetworkParametersMatrix([[0, 1], [1, 0]])
    >>> m[2, 1]
    NetworkParameter((1+0j))
    >>> m.convert_to('t').variant
    't'
    """

    def __init__(self, data: int | Sequence | np.ndarray, variant: VariantT = 's'):
        if variant not in VARIANTS:
            raise ValidationError(f'Unknown parameter variant {variant!r}, expected one of {VARIANTS}')

        if isinstance(data, (int, np.integer)):
            if data < 1:
                raise ValidationError('Port count must be a positive integer')
            self._data = np.zeros((int(data), int(data)), dtype=complex)
        else:
            p = np.array(data, dtype=complex)
            if p.ndim != 2 or p.shape[0] != p.shape[1] or p.shape[0] == 0:
                raise ValidationError(f'Network parameters must be a non-empty square matrix, got shape {p.shape}')
            self._data = p
        self._variant = variant

    @classmethod
    def from_flat(cls, values: Sequence[complex], nports: int | None = None,
                  order: ListFormatT = 'destination', variant: VariantT = 's') -> NetworkParametersMatrix:
        """
        Build a matrix from a flat list of parameters.

        Parameters
        ----------
        values : sequence of complex
            the nports**2 parameters
        nports : int, optional
            port count, inferred from the length of `values` if None
        order : {'destination', 'source'}
            'destination' is row major (S11 S12 S21 S22), 'source' lists
            all destinations of a source port first (S11 S21 S12 S22)
        variant : {'s', 't'}

        Returns
        -------
        m : :class:`NetworkParametersMatrix`
        """
        values = list(values)
        if nports is None:
            if not is_perfect_square(len(values)) or not values:
                raise ValidationError(f'{len(values)} values do not form a square matrix')
            nports = int(round(len(values) ** 0.5))
        elif len(values) != nports ** 2:
            raise ValidationError(f'A {nports}-port needs {nports ** 2} values, got {len(values)}')

        out = cls(nports, variant)
        for (dest, source), value in zip(port_pairs(nports, order), values):
            out._data[dest - 1, source - 1] = value
        return out

    @property
    def nports(self) -> int:
        """
        Number of ports of the network.
        """
        return self._data.shape[0]

    number_of_ports = nports

    @property
    def variant(self) -> VariantT:
        return self._variant

    @property
    def data(self) -> np.ndarray:
        """
        Copy of the underlying complex array, zero-based.
        """
        return self._data.copy()

    def _index(self, key: tuple[int, int]) -> tuple[int, int]:
        if not isinstance(key, tuple) or len(key) != 2:
            raise TypeError('Index with a (destination_port, source_port) pair')
        dest, source = key
        n = self.nports
        if not (1 <= dest <= n and 1 <= source <= n):
            raise IndexOutOfRange(f'Port indices ({dest}, {source}) outside of [1, {n}] for a {n}-port')
        return dest - 1, source - 1

    def __getitem__(self, key: tuple[int, int]) -> NetworkParameter:
        return NetworkParameter(self._data[self._index(key)])

    def __setitem__(self, key: tuple[int, int], value: complex) -> None:
        self._data[self._index(key)] = complex(value)

    def items(self, order: ListFormatT = 'destination') -> Iterator[tuple[tuple[int, int], NetworkParameter]]:
        """
        Iterate over ``((destination_port, source_port), parameter)`` pairs.
        """
        for dest, source in port_pairs(self.nports, order):
            yield (dest, source), NetworkParameter(self._data[dest - 1, source - 1])

    def to_flat(self, order: ListFormatT = 'destination') -> list[NetworkParameter]:
        """
        Parameters as a flat list, see :meth:`from_flat` for `order`.
        """
        return [p for _, p in self.items(order)]

    def determinant(self) -> NetworkParameter:
        return NetworkParameter(np.linalg.det(self._data))

    def inverse(self) -> NetworkParametersMatrix:
        """
        Matrix inverse, in the same variant.

        Raises
        ------
        SingularMatrix
        """
        return NetworkParametersMatrix(_matrix_inverse(self._data), self._variant)

    @property
    def inv(self) -> NetworkParametersMatrix:
        """
        A matrix with 'inverse' parameters, used for de-embedding.

        It is defined such that cascading it with the original gives a unity
        transfer matrix, ``inv(T)`` converted back to this variant.

        See Also
        --------
        inv : function which implements the inverse matrix
        """
        return inv(self)

    def convert_to(self, variant: VariantT) -> NetworkParametersMatrix:
        """
        Convert to another parameter variant.

        Returns `self` when the matrix already is in `variant`.

        Parameters
        ----------
        variant : {'s', 't'}

        Returns
        -------
        m : :class:`NetworkParametersMatrix`

        Raises
        ------
        UnsupportedConversion
            for 1-port and N>2-port networks
        SingularMatrix
            when the source has no transmission
        """
        if variant == self._variant:
            return self
        try:
            conversion = _CONVERSIONS[(self._variant, variant)]
        except KeyError as err:
            raise ValidationError(f'Unknown parameter variant {variant!r}, expected one of {VARIANTS}') from err
        return NetworkParametersMatrix(conversion(self._data), variant)

    def _transfer(self) -> np.ndarray:
        return self.convert_to('t')._data

    def cascade(self, *others: NetworkParametersMatrix) -> NetworkParametersMatrix:
        """
        Cascade this matrix with `others`, see :func:`cascade`.
        """
        return cascade([self, *others])

    def __pow__(self, other: NetworkParametersMatrix) -> NetworkParametersMatrix:
        """
        Cascade this network with another network, ``a ** b``.
        """
        if not isinstance(other, NetworkParametersMatrix):
            return NotImplemented
        return cascade([self, other])

    def deembed_left(self, left: NetworkParametersMatrix) -> NetworkParametersMatrix:
        """
        Remove `left` from the input side: ``T = inv(T_left) . T_self``.
        """
        check_nports_equal(self, left)
        t = _matrix_inverse(left._transfer()) @ self._transfer()
        return NetworkParametersMatrix(t, 't').convert_to(self._variant)

    def deembed_right(self, right: NetworkParametersMatrix) -> NetworkParametersMatrix:
        """
        Remove `right` from the output side: ``T = T_self . inv(T_right)``.
        """
        check_nports_equal(self, right)
        t = self._transfer() @ _matrix_inverse(right._transfer())
        return NetworkParametersMatrix(t, 't').convert_to(self._variant)

    def deembed(self, left: NetworkParametersMatrix, right: NetworkParametersMatrix) -> NetworkParametersMatrix:
        """
        De-embed `left` and then `right` from this matrix.

        Parameters
        ----------
        left : :class:`NetworkParametersMatrix`
            network cascaded in front of the device
        right : :class:`NetworkParametersMatrix`
            network cascaded behind the device

        Returns
        -------
        dut : :class:`NetworkParametersMatrix`
            in the variant of this matrix

        Examples
        --------
        >>> measured = cascade([lead_in, dut, lead_out])
        >>> measured.deembed(lead_in, lead_out).allclose(dut)
        True
        """
        return self.deembed_left(left).deembed_right(right)

    def copy(self) -> NetworkParametersMatrix:
        return NetworkParametersMatrix(self._data.copy(), self._variant)

    def allclose(self, other: NetworkParametersMatrix, rtol: float = 0, atol: float = TOL) -> bool:
        """
        Whether `other` has the same shape and variant and numerically close cells.
        """
        return (isinstance(other, NetworkParametersMatrix)
                and self._variant == other._variant
                and self.nports == other.nports
                and bool(np.allclose(self._data, other._data, rtol=rtol, atol=atol)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NetworkParametersMatrix):
            return NotImplemented
        return (self._variant == other._variant
                and self.nports == other.nports
                and bool(np.array_equal(self._data, other._data)))

    __hash__ = None

    def __str__(self) -> str:
        return f'{self.nports}-Port {self._variant.upper()}-Matrix'

    def __repr__(self) -> str:
        return f'{self}:\n{self._data!r}'


def port_pairs(nports: int, order: ListFormatT = 'destination') -> Iterator[tuple[int, int]]:
    """
    Iterate over 1-based ``(destination_port, source_port)`` pairs.

    Parameters
    ----------
    nports : int
    order : {'destination', 'source'}
        'destination' is row major (S11 S12 S21 S22), 'source' lists all
        destinations of a source port first (S11 S21 S12 S22)
    """
    if order == 'destination':
        for dest in range(1, nports + 1):
            for source in range(1, nports + 1):
                yield dest, source
    elif order == 'source':
        for source in range(1, nports + 1):
            for dest in range(1, nports + 1):
                yield dest, source
    else:
        raise ValidationError(f'Unknown list format {order!r}')


def inv(m: NetworkParametersMatrix) -> NetworkParametersMatrix:
    """
    Calculate the 'inverse' network, used for de-embedding.

    This is not literally the inverse of the parameter matrix. It is the
    inverse of the transfer matrix transformed back into the variant of `m`,
    such that ``inv(m) ** m`` is a unity transfer matrix.

    Parameters
    ----------
    m : :class:`NetworkParametersMatrix`

    Returns
    -------
    m_inv : :class:`NetworkParametersMatrix`
    """
    t_inv = _matrix_inverse(m._transfer())
    return NetworkParametersMatrix(t_inv, 't').convert_to(m.variant)


def cascade(matrices: Sequence[NetworkParametersMatrix]) -> NetworkParametersMatrix:
    """
    Cascade an ordered list of networks.

    Every operand is converted to transfer parameters, the transfer
    matrices are multiplied left to right and the product is converted
    back to the variant of the first operand. A single operand is returned
    unchanged (as a copy).

    Parameters
    ----------
    matrices : list-like
        (ordered) list of :class:`NetworkParametersMatrix`

    Returns
    -------
    out : :class:`NetworkParametersMatrix`
        the result of cascading all networks in `matrices`

    Raises
    ------
    ValidationError
        if `matrices` is empty
    PortCountMismatch
        if the port counts differ

    See Also
    --------
    cascade_list
    NetworkParametersMatrix.deembed
    """
    matrices = list(matrices)
    if not matrices:
        raise ValidationError('Nothing to cascade, the list of networks is empty')
    first = matrices[0]
    for m in matrices[1:]:
        check_nports_equal(first, m)
    if len(matrices) == 1:
        return first.copy()

    t = reduce(np.matmul, [m._transfer() for m in matrices])
    return NetworkParametersMatrix(t, 't').convert_to(first.variant)


def cascade_list(*matrices: NetworkParametersMatrix) -> NetworkParametersMatrix:
    """
    Cascade networks given as positional arguments, see :func:`cascade`.
    """
    return cascade(matrices)


def de_embed(ntwkA: NetworkParametersMatrix, ntwkB: NetworkParametersMatrix) -> NetworkParametersMatrix:
    """
    De-embed `ntwkA` from `ntwkB`.

    This calls ``ntwkA.inv ** ntwkB``.

    Parameters
    ----------
    ntwkA : :class:`NetworkParametersMatrix`
            network to remove
    ntwkB : :class:`NetworkParametersMatrix`
            network with `ntwkA` on its input side

    Returns
    -------
    C : :class:`NetworkParametersMatrix`
    """
    return ntwkA.inv ** ntwkB


def check_nports_equal(ntwkA: NetworkParametersMatrix, ntwkB: NetworkParametersMatrix) -> None:
    """
    Check if two networks have same number of ports.
    """
    if ntwkA.nports != ntwkB.nports:
        raise PortCountMismatch(
            f'Networks don\'t have matching number of ports ({ntwkA.nports} != {ntwkB.nports}).')
