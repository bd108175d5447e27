"""
.. currentmodule:: rfnetworks.constants

========================================
constants (:mod:`rfnetworks.constants`)
========================================

This module contains constants, numerical tolerances, type aliases and the
defaults of the Touchstone option line.

.. data:: FREQ_UNITS

    Multipliers from the Touchstone frequency units to Hz.

.. data:: TOUCHSTONE_DEFAULTS

    Option line values assumed when a token is omitted: ``# GHz S MA R 50``

"""
from __future__ import annotations

from numbers import Number
from typing import Literal, Sequence, Union, get_args

import numpy as np

ALMOST_ZERO = 1e-12
"""
Very tiny but not zero value to handle mathematical singularities.
"""

TOL = 1e-6
"""
Absolute tolerance used by :meth:`NetworkParametersMatrix.allclose`.
"""

FrequencyUnitT = Literal["Hz", "kHz", "MHz", "GHz"]
FREQ_UNITS: dict[FrequencyUnitT, float] = {"Hz": 1.0, "kHz": 1e3, "MHz": 1e6, "GHz": 1e9}

VariantT = Literal['s', 't']
VARIANTS: list[VariantT] = list(get_args(VariantT))

ParameterT = Literal['s', 'y', 'z', 'h', 'g']
PARAMETER_TYPES: list[ParameterT] = list(get_args(ParameterT))

SparamFormatT = Literal["db", "ri", "ma"]
SPARAM_FORMATS: list[SparamFormatT] = list(get_args(SparamFormatT))

MatrixFormatT = Literal["full", "upper", "lower"]
MATRIX_FORMATS: list[MatrixFormatT] = list(get_args(MatrixFormatT))

TwoPortOrderT = Literal["12_21", "21_12"]
TWO_PORT_ORDERS: list[TwoPortOrderT] = list(get_args(TwoPortOrderT))

# 'source': S11 S21 S12 S22, 'destination': S11 S12 S21 S22
ListFormatT = Literal["source", "destination"]

FileVersionT = Literal["1.0", "2.0"]

ParseSectionT = Literal["Header", "Keywords", "Options", "Data", "NetworkData"]

NumberLike = Union[Number, Sequence[Number], np.ndarray]

TOUCHSTONE_DEFAULTS = {
    'frequency_unit': 'GHz',
    'parameter': 's',
    'format': 'ma',
    'resistance': 50.0,
}

NUMERIC_FORMAT = '.11E'
"""
Default format spec for numbers written to Touchstone files.
"""

COLUMN_WIDTH = 18
"""
Default fixed width of a numeric column in written Touchstone files.
"""

V1_PAIRS_PER_LINE = 4
"""
Maximum number of data pairs on a physical line of a version 1.0 file.
"""
