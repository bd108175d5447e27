"""
.. currentmodule:: rfnetworks.errors

========================================
errors (:mod:`rfnetworks.errors`)
========================================

Exceptions and warnings raised by rfnetworks.

Each exception also derives from the builtin exception a caller would
expect, so ``except ValueError`` or ``except KeyError`` keep working.

.. autosummary::
   :toctree: generated/

   RFNetworksError
   TouchstoneParseError
   MalformedHeader
   MalformedKeyword
   MalformedOption
   MalformedData
   ValidationError
   PortCountMismatch
   FrequencyNotFound
   SingularMatrix
   UnsupportedConversion
   IndexOutOfRange
   DisposedResourceUse
   TouchstoneWarning

"""
from __future__ import annotations

import numpy as np

from .constants import ParseSectionT


class RFNetworksError(Exception):
    """Base class of all rfnetworks exceptions."""


class TouchstoneParseError(RFNetworksError, ValueError):
    """
    A Touchstone source could not be parsed.

    Parameters
    ----------
    message : str
        description of the problem
    line_number : int, optional
        1-based physical line number of the offending line
    section : str, optional
        grammar section that was being parsed, one of
        'Header', 'Keywords', 'Options', 'Data', 'NetworkData'
    """
    default_section: ParseSectionT = 'Header'

    def __init__(self, message: str, line_number: int | None = None,
                 section: ParseSectionT | None = None):
        self.message = message
        self.line_number = line_number
        self.section = section if section is not None else self.default_section
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.line_number is None:
            return f'{self.section}: {self.message}'
        return f'{self.section} (line {self.line_number}): {self.message}'

    def __reduce__(self):
        return self.__class__, (self.message, self.line_number, self.section)


class MalformedHeader(TouchstoneParseError):
    default_section = 'Header'


class MalformedKeyword(TouchstoneParseError):
    default_section = 'Keywords'


class MalformedOption(TouchstoneParseError):
    default_section = 'Options'


class MalformedData(TouchstoneParseError):
    default_section = 'Data'


class ValidationError(RFNetworksError, ValueError):
    """An argument is inconsistent with the object it is applied to."""


class PortCountMismatch(ValidationError):
    """Networks with different port counts were combined."""


class FrequencyNotFound(RFNetworksError, KeyError):
    """A frequency is not present in a collection."""

    def __str__(self) -> str:
        # KeyError repr()s its argument
        return str(self.args[0]) if self.args else ''


class SingularMatrix(RFNetworksError, np.linalg.LinAlgError):
    """A matrix needed by a conversion or a de-embedding is not invertible."""


class UnsupportedConversion(RFNetworksError, NotImplementedError):
    """The requested parameter conversion is not implemented."""


class IndexOutOfRange(RFNetworksError, IndexError):
    """A port index is outside of ``[1, nports]``."""


class DisposedResourceUse(RFNetworksError, ValueError):
    """A reader or writer was used after it was closed."""


class TouchstoneWarning(UserWarning):
    """A Touchstone source is inconsistent but still readable."""
