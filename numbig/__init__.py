#
# Arbitrary-precision signed integers
#

from .context import *
from .biguint import *
from .bigint import *

from . import context, biguint, bigint

__all__ = context.__all__ + biguint.__all__ + bigint.__all__

__version__ = '0.1.0'
