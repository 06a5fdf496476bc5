"""
Optimizer scales that freeze the coefficients at the edge of the grid.

With a periodic B-spline basis, the control points at the boundary of
the grid are prone to edge artifacts. By giving the coefficients of the
outer layers of control points a very large optimizer scale, the
optimizer effectively does not move them.
"""

import numpy as np
import numba

from ._utils import ConfigurationError, Reporter


# The scale for coefficients that should not be optimized
PASSIVE_SCALE = 10000.0


@numba.jit(nopython=True, nogil=True)
def _set_passive_scales(scales, size, width, passive_scale):

    ndim = size.shape[0]
    n = scales.shape[0] // ndim

    # For each control point (x fastest) ...
    for offset in range(n):

        # Determine whether it lies in the edge band
        rest = offset
        inside = True
        for d in range(ndim):
            i = rest % size[d]
            rest = rest // size[d]
            if i < width or i >= size[d] - width:
                inside = False

        # Set scales of the coefficient in each dimension
        if not inside:
            for d in range(ndim):
                scales[offset + d * n] = passive_scale


def check_width(passive_edge_width):
    """ check_width(passive_edge_width)

    Get the passive edge width as an int. Raises a ConfigurationError if
    it is not a non-negative integer number (e.g. 2.5 or "a").

    """
    try:
        value = float(passive_edge_width)
    except (TypeError, ValueError):
        raise ConfigurationError('The PassiveEdgeWidth must be an integer, '
                                 'got %r.' % (passive_edge_width, ))
    if not value.is_integer():
        raise ConfigurationError('The PassiveEdgeWidth must be an integer, '
                                 'got %r.' % (passive_edge_width, ))
    width = int(value)
    if width < 0:
        raise ConfigurationError('The PassiveEdgeWidth must not be negative, '
                                 'got %i.' % width)
    return width


def inset_region(grid, passive_edge_width, reporter=None):
    """ inset_region(grid, passive_edge_width, reporter=None)

    Get the region of the grid that is not in the edge band, as a tuple
    (index, size). Raises a ConfigurationError if the edge band leaves
    no control points along some axis.

    """
    width = check_width(passive_edge_width)
    index, size = [], []
    for d in range(grid.ndim):
        inset_size = grid.size[d] - 2 * width
        if inset_size <= 0:
            msg = ('You specified a PassiveEdgeWidth of %i while the total '
                   'grid size in dimension %i is only %i.' %
                   (width, d, grid.size[d]))
            (reporter or Reporter()).error(msg)
            raise ConfigurationError('The PassiveEdgeWidth is too large! ' + msg)
        index.append(grid.index[d] + width)
        size.append(inset_size)
    return tuple(index), tuple(size)


def build_scales(grid, passive_edge_width, reporter=None,
                 passive_scale=PASSIVE_SCALE):
    """ build_scales(grid, passive_edge_width, reporter=None,
                     passive_scale=10000.0)

    Get the optimizer scales for the coefficients of the given grid. The
    result is an array of length grid.number_of_parameters, that is one
    everywhere except for the coefficients of the control points in the
    outer passive_edge_width layers of the grid, which get passive_scale.

    Parameters
    ----------
    grid : GridGeometry
        The current grid.
    passive_edge_width : int
        The number of layers of control points to freeze. Zero means
        all coefficients are optimized.
    reporter : Reporter
        Receives the error message if the width is too large.
    passive_scale : float
        The scale for the frozen coefficients.

    """
    width = check_width(passive_edge_width)
    scales = np.ones((grid.number_of_parameters, ), np.float64)
    if width == 0:
        return scales

    inset_region(grid, width, reporter)  # Check

    size = np.array(grid.size, np.int64)
    _set_passive_scales(scales, size, width, float(passive_scale))
    return scales


def passive_mask(grid, passive_edge_width):
    """ passive_mask(grid, passive_edge_width)

    Get a boolean array (of shape grid.shape, z-y-x order) that is True
    for the control points in the edge band.

    """
    width = check_width(passive_edge_width)
    mask = np.ones(grid.shape, bool)
    if width == 0:
        mask[:] = False
        return mask
    index, size = inset_region(grid, width)
    inset = []
    for d in reversed(range(grid.ndim)):
        start = index[d] - grid.index[d]
        inset.append(slice(start, start + size[d]))
    mask[tuple(inset)] = False
    return mask
