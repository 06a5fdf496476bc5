""" Low level functions for (cubic) B-spline grids, implemented with Numba.

A note on positions: in this module, positions along an axis are
expressed as continuous knot indices, i.e. in units of the spacing of
the grid that the knots belong to, with zero at the first knot.

A note on periodicity: along a periodic axis the knot at index n (with
n the number of knots) is the same as the knot at index 0. There is no
duplicate knot at the seam.
"""

import numpy as np
import numba


## Spline coefficients


@numba.jit(nopython=True)
def cubicsplinecoef_basis(t, out):
    out[0] = (1-t)**3                     /6.0
    out[1] = ( 3*t**3 - 6*t**2 +       4) /6.0
    out[2] = (-3*t**3 + 3*t**2 + 3*t + 1) /6.0
    out[3] = (  t)**3                     /6.0


def get_bspline_coefs(t):
    """ get_bspline_coefs(t)

    Get the four cubic B-spline coefficients for the ratio t between the
    "left" and "right" knot, as a tuple.

    """
    out = np.zeros((4, ), np.float64)
    cubicsplinecoef_basis(t, out)
    return tuple(out)


## Matrices that express one grid in terms of another


@numba.jit(nopython=True, nogil=True)
def _fill_evaluation_matrix(result, positions, periodic):

    n = result.shape[1]
    cc = np.empty((4, ), np.float64)

    # For each position ...
    for j in range(positions.shape[0]):

        # Calculate what is the reference knot, and the ratio between
        # this knot and the next.
        u = positions[j]
        g = int(np.floor(u))
        t = u - g

        # Get coefficients
        cubicsplinecoef_basis(t, cc)

        # For each knot in the support ...
        ii = g - 1
        for i in range(4):
            if periodic:
                k = ((ii % n) + n) % n
                result[j, k] += cc[i]
            elif ii >= 0 and ii < n:
                result[j, ii] += cc[i]
            ii += 1


def evaluation_matrix(positions, n, periodic=False):
    """ evaluation_matrix(positions, n, periodic=False)

    Get the matrix E (len(positions) x n) such that E @ knots gives the
    value of the 1D spline with n knots at the given positions
    (continuous knot indices). Along a non-periodic axis, knots outside
    the grid count as zero. Along a periodic axis the knot indices wrap.

    """
    positions = np.ascontiguousarray(positions, dtype=np.float64)
    result = np.zeros((positions.shape[0], n), np.float64)
    _fill_evaluation_matrix(result, positions, bool(periodic))
    return result


def collocation_circulant(n):
    """ collocation_circulant(n)

    Get the first column of the circulant matrix that maps the knots of
    a periodic 1D grid with n knots to the values of the spline at the
    knots themselves (weights 1/6, 4/6, 1/6, wrapped).

    """
    column = np.zeros((n, ), np.float64)
    column[0] += 4.0 / 6.0
    column[1 % n] += 1.0 / 6.0
    column[-1 % n] += 1.0 / 6.0
    return column


def collocation_banded(n):
    """ collocation_banded(n)

    Get the tridiagonal matrix, in the banded form of
    scipy.linalg.solve_banded, that maps the knots of a non-periodic 1D
    grid with n knots to the values of the spline at the knots.

    """
    ab = np.zeros((3, n), np.float64)
    ab[0, 1:] = 1.0 / 6.0
    ab[1, :] = 4.0 / 6.0
    ab[2, :-1] = 1.0 / 6.0
    return ab


## Refinement


def refine_periodic(knots, axis):
    """ refine_periodic(knots, axis)

    Refine the knots array along the given (periodic) axis with a factor
    of two, returning a new array that represents the same field. Knot k
    of the original grid coincides with knot 2k of the new grid. Below
    is an illustration of a few knots:

      ( )   ( )   ( )
      (x) x (x) x (x) x      ( ): knots of grid, x : knots of new grid

    The knots on the original knots (vertex knots) are calculated using
    three neighbours, the knots in between (edge knots) using two. The
    neighbour of the last knot is the first knot. Based on what Lee et al.
    (1997, page 7) describe for multilevel B-splines.

    """
    knots = np.asarray(knots)

    # Obtain reference knots
    knots_prev = np.roll(knots, 1, axis)
    knots_next = np.roll(knots, -1, axis)

    # Calculate vertex knots and edge knots
    vknots = 0.125 * (knots_prev + 6 * knots + knots_next)
    eknots = 0.5 * (knots + knots_next)

    # Init new knots array
    shape = list(knots.shape)
    shape[axis] *= 2
    result = np.zeros(shape, dtype=np.float64)

    # Set values by interleaving vknots and eknots
    index_v = [slice(None)] * knots.ndim
    index_e = [slice(None)] * knots.ndim
    index_v[axis] = slice(0, None, 2)
    index_e[axis] = slice(1, None, 2)
    result[tuple(index_v)] = vknots
    result[tuple(index_e)] = eknots

    return result
