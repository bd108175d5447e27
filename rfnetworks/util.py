"""

.. currentmodule:: rfnetworks.util
========================================
util (:mod:`rfnetworks.util`)
========================================

Holds utility functions that are general conveniences.


General
------------
.. autosummary::
   :toctree: generated/

   get_fid
   get_extn
   basename_noext
   touchstone_nports_from_extn

"""
from __future__ import annotations

import os
import re
import typing
from pathlib import Path


def get_fid(file: str | Path | typing.IO, *args, **kwargs) -> typing.IO:
    r'''
    Returns a file object, given a filename or file object

    Useful when you want to allow the arguments of a function to
    be either files or filenames

    Parameters
    -------------
    file : str, Path or file-object
        file to open
    \*args, \*\*kwargs : arguments and keyword arguments to `open()`

    '''
    if isinstance(file, (str, Path)):
        return open(file, *args, **kwargs)
    else:
        return file


def get_extn(filename: str | Path) -> str | None:
    '''
    Get the extension from a filename.

    The extension is defined as everything passed the last '.'.
    Returns None if it ain't got one

    Parameters
    ------------
    filename : string
        the filename

    Returns
    --------
    ext : string, None
        either the extension (not including '.') or None if there
        isn't one
    '''
    ext = os.path.splitext(str(filename))[-1]
    if len(ext)==0:
        return None
    else:
        return ext[1:]


def basename_noext(filename: str | Path) -> str:
    '''
    gets the basename and strips extension
    '''
    return os.path.splitext(os.path.basename(str(filename)))[0]


def touchstone_nports_from_extn(filename: str | Path) -> int | None:
    '''
    Port count announced by a '.sNp' extension, None for any other extension.
    '''
    extn = get_extn(filename)
    m = re.fullmatch(r'[sS](\d+)[pP]', extn or '')
    return int(m.group(1)) if m else None
