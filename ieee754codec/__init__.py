#
# Bit-exact IEEE-754 binary interchange codec, classification and ordering
#

from .context import *
from .text import *
from .binary import *
from .native import *
from .arrays import *

__all__ = (context.__all__ + text.__all__ + binary.__all__ + native.__all__ +
           arrays.__all__)
