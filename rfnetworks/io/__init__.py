'''
.. module:: rfnetworks.io
========================================
io (:mod:`rfnetworks.io`)
========================================


This Package provides functions and objects for input/output.

Reading and writing touchstone files is supported through the
:class:`~touchstone.Touchstone` document class, the streaming
:class:`~touchstone_reader.TouchstoneReader` and
:class:`~touchstone_writer.TouchstoneWriter`, and the general functions
:func:`~general.read_touchstone` and :func:`~general.write_touchstone`.



.. automodule:: rfnetworks.io.general
.. automodule:: rfnetworks.io.touchstone
.. automodule:: rfnetworks.io.touchstone_reader
.. automodule:: rfnetworks.io.touchstone_writer


'''

from .general import *
from .touchstone import *
from .touchstone_reader import *
from .touchstone_writer import *
