"""
.. currentmodule:: rfnetworks.parameter

========================================
parameter (:mod:`rfnetworks.parameter`)
========================================

Single complex network parameter with polar and dB accessors.

.. autosummary::
   :toctree: generated/

   NetworkParameter

"""
from __future__ import annotations

import cmath
import math

from .mathFunctions import dbdeg_2_reim, magdeg_2_reim, magnitude_2_db


class NetworkParameter(complex):
    """
    An immutable complex network parameter, such as S21 at one frequency.

    Behaves as a builtin :class:`complex` and adds polar accessors.
    Arithmetic with numbers returns :class:`NetworkParameter`.

    Examples
    --------
    >>> s21 = NetworkParameter.from_polar_db_degree(-3, 90)
    >>> round(s21.magnitude_db, 6)
    -3.0
    >>> round(s21.phase_deg)
    90
    """
    __slots__ = ()

    def __new__(cls, real: complex | float = 0.0, imag: float = 0.0):
        if imag == 0.0:
            return super().__new__(cls, complex(real))
        return super().__new__(cls, real, imag)

    @classmethod
    def from_real_imaginary(cls, real: float, imag: float) -> NetworkParameter:
        return cls(real, imag)

    @classmethod
    def from_polar(cls, magnitude: float, phase: float) -> NetworkParameter:
        """
        Parameter from linear magnitude and phase in radians.
        """
        return cls(cmath.rect(magnitude, phase))

    @classmethod
    def from_polar_degree(cls, magnitude: float, phase_deg: float) -> NetworkParameter:
        """
        Parameter from linear magnitude and phase in degrees.
        """
        return cls(complex(magdeg_2_reim(magnitude, phase_deg)))

    @classmethod
    def from_polar_db_degree(cls, magnitude_db: float, phase_deg: float) -> NetworkParameter:
        """
        Parameter from magnitude in dB (20*log10) and phase in degrees.

        A magnitude of ``-inf`` dB gives a zero parameter.
        """
        return cls(complex(dbdeg_2_reim(magnitude_db, phase_deg)))

    @property
    def magnitude(self) -> float:
        return abs(self)

    @property
    def magnitude_db(self) -> float:
        """
        Magnitude in dB, 20*log10(|z|). ``-inf`` for a zero parameter.
        """
        return float(magnitude_2_db(abs(self)))

    @property
    def phase(self) -> float:
        """
        Phase in radians, in ``(-pi, pi]``.
        """
        return cmath.phase(self)

    @property
    def phase_deg(self) -> float:
        return math.degrees(cmath.phase(self))

    def conjugate(self) -> NetworkParameter:
        return NetworkParameter(complex.conjugate(self))

    def __add__(self, other):
        return _wrap(complex.__add__(self, other))

    def __radd__(self, other):
        return _wrap(complex.__radd__(self, other))

    def __sub__(self, other):
        return _wrap(complex.__sub__(self, other))

    def __rsub__(self, other):
        return _wrap(complex.__rsub__(self, other))

    def __mul__(self, other):
        return _wrap(complex.__mul__(self, other))

    def __rmul__(self, other):
        return _wrap(complex.__rmul__(self, other))

    def __truediv__(self, other):
        return _wrap(complex.__truediv__(self, other))

    def __rtruediv__(self, other):
        return _wrap(complex.__rtruediv__(self, other))

    def __neg__(self):
        return NetworkParameter(complex.__neg__(self))

    def __pos__(self):
        return self

    def __repr__(self) -> str:
        return f'NetworkParameter({complex.__repr__(self)})'

    def __str__(self) -> str:
        return complex.__repr__(self)


def _wrap(value):
    if value is NotImplemented:
        return value
    return NetworkParameter(value)

