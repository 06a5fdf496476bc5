# flake8: noqa
""" Perigrid - control point grids for periodic B-spline registration

Perigrid manages the control point grid of a periodic (cyclic) cubic
B-spline transform in a multi-resolution registration: it computes the
grid of each resolution level, upsamples the coefficients from one level
to the next, and freezes the coefficients at the edge of the grid.
"""

__version__ = '0.1.0'


# Check compat
import sys
if sys.version_info < (3, 6):
    raise RuntimeError('Perigrid requires at least Python 3.6')

# Imports

from ._utils import ParameterMap, Reporter, ConfigurationError, GridLogicError

from .geometry import GridGeometry, ImageGeometry

from .schedule import GridSchedule, resolve_final_spacing

from .scheduler import GridScheduler

from .upsample import GridUpsampler

from .edgemask import build_scales, passive_mask, PASSIVE_SCALE

from .transform import PeriodicGridTransform, LevelSetup

from . import parameterfile

# Clean up
del sys
