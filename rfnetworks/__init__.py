"""
rfnetworks reads and writes Touchstone files and does the network parameter
algebra (conversion, cascading, de-embedding) on their content.
"""

__version__ = '0.1.0'
## Import all  module names for coherent reference of name-space


from . import (
    constants,
    errors,
    io,
    mathFunctions,
    network,
    networkCollection,
    parameter,
    util,
)
from .constants import *
from .errors import *
from .io import *
from .mathFunctions import *
from .network import *
from .networkCollection import *
from .parameter import *
from .util import *

## Shorthand Names
NPM = NetworkParametersMatrix
NPC = NetworkParametersCollection
