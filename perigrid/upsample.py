"""
Mapping the coefficients of a coarse grid onto a finer grid.
"""

import numpy as np
import scipy.linalg

from ._utils import GridLogicError
from ._bspline import (evaluation_matrix, collocation_circulant,
                       collocation_banded, refine_periodic)
from .scheduler import normalize_periodic_axes


# Tolerance for deciding whether two grids have the same period or knots
TOL = 1e-6


class GridUpsampler:
    """ GridUpsampler(periodic_axes=None)

    Computes the coefficients on a fine grid that represent the same
    field as given coefficients on a coarse grid. The coefficient vectors
    consist of one block of values per dimension (each block in x-fastest
    order), as for a B-spline transform.

    The upsampling is done separately for each axis (the order does not
    matter). Along each axis, the coarse spline is evaluated at the knots
    of the fine grid, after which the fine coefficients are obtained by
    B-spline decomposition of these values. When the fine grid contains
    the coarse spline (e.g. half the spacing along a periodic axis), the
    field is reproduced exactly.

    Along a periodic axis the indices wrap around. Along a normal axis,
    the (absent) knots outside the grid are taken as zero.

    Parameters
    ----------
    periodic_axes : int or tuple of ints
        The axes (x-y-z order) along which the grids are periodic.
        Default the last axis.

    """

    def __init__(self, periodic_axes=None):
        self._periodic_axes = periodic_axes

    def periodic_axes(self, ndim):
        """ periodic_axes(ndim)

        Get the periodic axes for grids with the given dimensionality.

        """
        return normalize_periodic_axes(self._periodic_axes, ndim)

    def upsample(self, coarse, coefficients, fine):
        """ upsample(coarse, coefficients, fine)

        Get the coefficient vector for the fine grid. The given vector
        is not modified; a new array is always returned.

        Parameters
        ----------
        coarse : GridGeometry
            The grid that the coefficients belong to.
        coefficients : 1D array
            The coefficients, of length coarse.number_of_parameters.
        fine : GridGeometry
            The grid to get the coefficients for.

        """
        coefficients = self._check(coarse, coefficients, fine)
        ndim = coarse.ndim

        blocks = coefficients.reshape((ndim, ) + coarse.shape)
        result = np.empty((ndim, ) + fine.shape, np.float64)
        for i in range(ndim):
            block = blocks[i]
            for d in range(ndim):
                block = self._upsample_block(coarse, block, fine, d)
            result[i] = block

        return result.ravel()

    def upsample_axis(self, coarse, coefficients, fine, axis):
        """ upsample_axis(coarse, coefficients, fine, axis)

        Upsample along one axis only. The fine grid must have the same
        size, spacing and first control point as the coarse grid along the
        other axes. Returns a new coefficient vector for the fine grid.

        """
        coefficients = self._check(coarse, coefficients, fine)
        ndim = coarse.ndim
        for d in range(ndim):
            if d != axis and not (
                    coarse.size[d] == fine.size[d] and
                    np.isclose(coarse.spacing[d], fine.spacing[d]) and
                    np.isclose(self._offset(coarse, fine, d), 0.0)):
                raise GridLogicError('Grids differ in dimension %i, can only '
                                     'upsample along dimension %i.' % (d, axis))

        blocks = coefficients.reshape((ndim, ) + coarse.shape)
        result = [self._upsample_block(coarse, blocks[i], fine, axis)
                  for i in range(ndim)]
        return np.array(result, np.float64).ravel()

    def operator(self, coarse, fine, axis):
        """ operator(coarse, fine, axis)

        Get the (fine.size[axis] x coarse.size[axis]) matrix that maps
        the coefficients along the given axis from coarse to fine.

        """
        periodic = axis in self.periodic_axes(coarse.ndim)
        n_coarse, n_fine = coarse.size[axis], fine.size[axis]

        # Position of the fine knots in coarse knot units
        scale = fine.spacing[axis] / coarse.spacing[axis]
        offset = self._offset(coarse, fine, axis) / coarse.spacing[axis]
        positions = offset + scale * np.arange(n_fine)

        # Values of the coarse spline at the fine knots
        E = evaluation_matrix(positions, n_coarse, periodic)

        # Decompose into coefficients of the fine spline
        if periodic:
            return scipy.linalg.solve_circulant(collocation_circulant(n_fine), E)
        else:
            return scipy.linalg.solve_banded((1, 1), collocation_banded(n_fine), E)

    ## Private

    def _check(self, coarse, coefficients, fine):
        if coarse.ndim != fine.ndim:
            raise GridLogicError('Cannot upsample between a %iD and a %iD '
                                 'grid.' % (coarse.ndim, fine.ndim))
        if not coarse.same_frame(fine):
            raise GridLogicError('Cannot upsample between grids with a '
                                 'different direction.')
        for d in self.periodic_axes(coarse.ndim):
            period1 = coarse.size[d] * coarse.spacing[d]
            period2 = fine.size[d] * fine.spacing[d]
            if abs(period1 - period2) > TOL * max(period1, period2):
                raise GridLogicError('Cannot upsample between grids with a '
                                     'different period (%g and %g) in '
                                     'dimension %i.' % (period1, period2, d))

        coefficients = np.asarray(coefficients, dtype=np.float64)
        if coefficients.ndim != 1:
            raise GridLogicError('Coefficients must be a 1D array.')
        if coefficients.size != coarse.number_of_parameters:
            raise GridLogicError('Expected %i coefficients for the coarse '
                                 'grid, got %i.' %
                                 (coarse.number_of_parameters, coefficients.size))
        return coefficients

    def _offset(self, coarse, fine, axis):
        # Distance from the first coarse knot to the first fine knot
        delta = fine.first_point() - coarse.first_point()
        return float(np.dot(coarse.direction[:, axis], delta))

    def _upsample_block(self, coarse, block, fine, d):
        # Numpy axis that corresponds with dimension d (z-y-x order)
        axis = coarse.ndim - d - 1
        if self._is_same_axis(coarse, fine, d):
            return block
        elif self._is_dyadic_periodic(coarse, fine, d):
            return refine_periodic(block, axis)
        else:
            M = self.operator(coarse, fine, d)
            block = np.tensordot(M, block, axes=([1], [axis]))
            return np.moveaxis(block, 0, axis)

    def _is_same_axis(self, coarse, fine, d):
        return (coarse.size[d] == fine.size[d] and
                abs(coarse.spacing[d] - fine.spacing[d]) <= TOL * coarse.spacing[d] and
                abs(self._offset(coarse, fine, d)) <= TOL * coarse.spacing[d])

    def _is_dyadic_periodic(self, coarse, fine, d):
        if d not in self.periodic_axes(coarse.ndim):
            return False
        if fine.size[d] != 2 * coarse.size[d]:
            return False
        # The first fine knot must coincide with the first coarse knot
        offset = self._offset(coarse, fine, d) / coarse.spacing[d]
        return abs(offset) <= TOL
