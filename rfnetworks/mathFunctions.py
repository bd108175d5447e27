"""
.. currentmodule:: rfnetworks.mathFunctions

=============================================
mathFunctions (:mod:`rfnetworks.mathFunctions`)
=============================================

Convenience math functions for complex numbers and dB values.

Complex Component Conversion
---------------------------------
.. autosummary::
   :toctree: generated/

   complex_2_magnitude
   complex_2_db
   complex_2_radian
   complex_2_degree
   complex_2_reim

Magnitude and Phase Conversion
---------------------------------
.. autosummary::
   :toctree: generated/

   magnitude_2_db
   db_2_magnitude
   magdeg_2_reim
   dbdeg_2_reim
   radian_2_degree
   degree_2_radian

Miscellaneous
---------------------------------
.. autosummary::
   :toctree: generated/

   is_perfect_square
   is_symmetric

"""
from __future__ import annotations

import math

import numpy as npy
from numpy import pi

from .constants import ALMOST_ZERO, NumberLike


def complex_2_magnitude(z: NumberLike):
    """
    Return the magnitude of the complex argument.

    Parameters
    ----------
    z : number or array_like
        A complex number or sequence of complex numbers

    Returns
    -------
    mag : ndarray or scalar

    """
    return npy.abs(z)


def complex_2_db(z: NumberLike):
    r"""
    Return the magnitude in dB of a complex number (as :math:`20\log_{10}(|z|)`).

    A zero magnitude gives ``-inf``.

    Parameters
    ----------
    z : number or array_like
        A complex number or sequence of complex numbers

    Returns
    -------
    mag20dB : ndarray or scalar
    """
    return magnitude_2_db(npy.abs(z))


def complex_2_radian(z: NumberLike):
    """
    Return the angle complex argument in radian.

    Parameters
    ----------
    z : number or array_like
        A complex number or sequence of complex numbers

    Returns
    -------
    ang_rad : ndarray or scalar
        The counterclockwise angle from the positive real axis on the complex
        plane in the range ``(-pi, pi]``.
    """
    return npy.angle(z)


def complex_2_degree(z: NumberLike):
    """
    Returns the angle complex argument in degree.

    Parameters
    ----------
    z : number or array_like
        A complex number or sequence of complex numbers

    Returns
    -------
    ang_deg : ndarray or scalar
    """
    return npy.angle(z, deg=True)


def complex_2_reim(z: NumberLike):
    """
    Return real and imaginary parts of a complex number.

    Parameters
    ----------
    z : number or array_like
        A complex number or sequence of complex numbers

    Returns
    -------
    re : ndarray or scalar
    im : ndarray or scalar
    """
    return npy.real(z), npy.imag(z)


def magnitude_2_db(z: NumberLike):
    """
    Convert linear magnitude to dB.

    Parameters
    ----------
    z : number or array_like
        A real number or sequence of real numbers

    Returns
    -------
    z : number or array_like
        20*log10(z), ``-inf`` where z is zero
    """
    with npy.errstate(divide='ignore'):
        return 20 * npy.log10(z)


def db_2_magnitude(z: NumberLike):
    """
    Convert dB to linear magnitude.

    Parameters
    ----------
    z : number or array_like
        A real number or sequence of real numbers

    Returns
    -------
    z : number or array_like
        10**((z)/20)
    """
    return 10**((z)/20.)


def magdeg_2_reim(mag: NumberLike, deg: NumberLike):
    """
    Convert linear magnitude and phase (in deg) arrays into a complex array.

    Parameters
    ----------
    mag : number or array_like
        A real number or sequence of real numbers
    deg : number or array_like
        A real number or sequence of real numbers

    Returns
    -------
    z : array_like
        A complex number or sequence of complex numbers

    """
    return mag*npy.exp(1j*deg*pi/180.)


def dbdeg_2_reim(db: NumberLike, deg: NumberLike):
    """
    Converts dB magnitude and phase (in deg) arrays into a complex array.

    Parameters
    ----------
    db : number or array_like
        A real number or sequence of real numbers
    deg : number or array_like
        A real number or sequence of real numbers

    Returns
    -------
    z : array_like
        A complex number or sequence of complex numbers
    """
    return magdeg_2_reim(db_2_magnitude(db), deg)


def radian_2_degree(rad: NumberLike):
    """
    Convert angles from radians to degrees.
    """
    return (rad)*180/pi


def degree_2_radian(deg: NumberLike):
    """
    Convert angles from degrees to radians.
    """
    return (deg)*pi/180.


def is_perfect_square(n: int) -> bool:
    """
    Test whether a non-negative integer is the square of an integer.

    Parameters
    ----------
    n : int

    Returns
    -------
    bool
    """
    if n < 0:
        return False
    root = math.isqrt(n)
    return root * root == n


def is_symmetric(mat: npy.ndarray, tol: float = ALMOST_ZERO) -> bool:
    """
    Returns whether a 2D square matrix is symmetric.

    Parameters
    ----------
    mat : npy.ndarray
        square matrix
    tol : float
        absolute tolerance

    Returns
    -------
    bool
    """
    return npy.allclose(mat, npy.transpose(mat), rtol=0, atol=tol)
