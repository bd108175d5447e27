"""
.. module:: rfnetworks.io.general

========================================
general (:mod:`rfnetworks.io.general`)
========================================

General input/output functions for reading and writing rfnetworks objects


Touchstone
-----------------------------

.. autosummary::
   :toctree: generated/

   read_touchstone
   write_touchstone

Pandas dataframe
----------------------------------

.. autosummary::
   :toctree: generated/

   collection_2_dataframe

"""
from __future__ import annotations

import logging
import typing
import warnings
from pathlib import Path

import numpy as np
from pandas import DataFrame

from ..errors import TouchstoneWarning
from ..mathFunctions import complex_2_db, complex_2_degree, complex_2_magnitude
from ..networkCollection import NetworkParametersCollection
from ..util import get_extn, touchstone_nports_from_extn
from .touchstone import Touchstone
from .touchstone_reader import TouchstoneReader, TouchstoneReaderSettings
from .touchstone_writer import TouchstoneWriter, TouchstoneWriterSettings

logger = logging.getLogger(__name__)

# parameter accessors available to collection_2_dataframe
_ATTRS: dict[str, typing.Callable[[np.ndarray], np.ndarray]] = {
    's_re': np.real,
    's_im': np.imag,
    's_mag': complex_2_magnitude,
    's_db': complex_2_db,
    's_deg': complex_2_degree,
}


def read_touchstone(file: str | Path | typing.TextIO,
                    settings: TouchstoneReaderSettings | None = None) -> Touchstone:
    """
    Read a Touchstone 1.0 or 2.0 file.

    Parameters
    ----------
    file : str, Path or file-object
        filename or an open text object
    settings : :class:`~rfnetworks.io.touchstone_reader.TouchstoneReaderSettings`, optional

    Returns
    -------
    touchstone : :class:`~rfnetworks.io.touchstone.Touchstone`

    Examples
    --------
    >>> ts = read_touchstone('ntwk.s2p')
    >>> ts.network_parameters.nearest(1e9).parameters[2, 1].magnitude_db
    """
    with TouchstoneReader(file, settings) as reader:
        ts = reader.read_touchstone()

    if isinstance(file, (str, Path)):
        expected = touchstone_nports_from_extn(file)
        if expected is not None and expected != ts.nports:
            warnings.warn(f"{file} holds a {ts.nports}-port but its extension announces {expected} ports",
                          TouchstoneWarning, stacklevel=2)
    logger.debug("read %s: %s", file, ts.network_parameters)
    return ts


def write_touchstone(touchstone: Touchstone, file: str | Path | typing.TextIO,
                     settings: TouchstoneWriterSettings | None = None) -> None:
    """
    Write a Touchstone document to a file.

    Without `settings` the options and keywords the document was read with
    are reproduced. A '.ts' extension selects version 2.0.

    Parameters
    ----------
    touchstone : :class:`~rfnetworks.io.touchstone.Touchstone`
        the document to write
    file : str, Path or file-object
        filename or an open text object
    settings : :class:`~rfnetworks.io.touchstone_writer.TouchstoneWriterSettings`, optional
    """
    if settings is None:
        overrides = {}
        if isinstance(file, (str, Path)) and (get_extn(file) or '').lower() == 'ts':
            overrides['file_version'] = '2.0'
        settings = TouchstoneWriterSettings.from_touchstone(touchstone, **overrides)

    with TouchstoneWriter(file, settings, touchstone) as writer:
        writer.write_touchstone(touchstone)


def collection_2_dataframe(collection: NetworkParametersCollection, attrs: typing.Iterable[str] = ('s_db',),
                           ports: typing.Iterable[tuple[int, int]] | None = None,
                           port_sep: str | None = None) -> DataFrame:
    """
    Convert one or more attributes of a collection to a pandas DataFrame.

    Parameters
    ----------
    collection : :class:`~rfnetworks.networkCollection.NetworkParametersCollection`
        the collection to convert, S-parameters are used
    attrs : list of str
        like ['s_db', 's_deg'], out of 's_re', 's_im', 's_mag', 's_db', 's_deg'
    ports : list of tuples
        1-based (destination, source) port pairs to write, defaults to all
    port_sep : string
        defaults to None, which means a empty string "" is used for
        collections with less than 10 ports. (s_db 11, s_db 21)
        For more ports a "_" is used to avoid ambiguity.
        (s_db 1_1, s_db 2_1)

    Returns
    -------
    df : pandas DataFrame Object
        indexed by frequency in Hz
    """
    nports = collection.nports
    if ports is None:
        ports = [(m, n) for m in range(1, nports + 1) for n in range(1, nports + 1)]
    if port_sep is None:
        port_sep = "_" if nports > 9 else ""

    s = np.array([m.convert_to('s').data for m in collection.matrices()], dtype=complex)
    s = s.reshape(len(collection), nports, nports)

    d = {}
    for attr in attrs:
        try:
            func = _ATTRS[attr]
        except KeyError as err:
            raise ValueError(f"unknown attribute {attr!r}, expected one of {list(_ATTRS)}") from err
        attr_array = func(s)
        for m, n in ports:
            d[f'{attr} {m}{port_sep}{n}'] = attr_array[:, m - 1, n - 1]
    return DataFrame(d, index=collection.frequencies)
