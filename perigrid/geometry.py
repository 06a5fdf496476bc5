"""
Descriptions of the image and of the control point grid.

All vectors (size, index, spacing, origin) are in x-y-z order, as in
the transform parameter files. Arrays that hold data on the grid (e.g.
a block of coefficients) are in z-y-x order, like numpy arrays of
images; use the shape property to obtain that shape.
"""

import numpy as np


def _as_direction(direction, ndim):
    if direction is None:
        return np.eye(ndim)
    direction = np.array(direction, dtype=np.float64)
    if direction.shape != (ndim, ndim):
        raise ValueError('Direction must be a %ix%i matrix.' % (ndim, ndim))
    if not np.allclose(np.dot(direction.T, direction), np.eye(ndim), atol=1e-6):
        raise ValueError('Direction must be an orthonormal matrix.')
    return direction


def _as_tuple(values, ndim, cast, name, default):
    if values is None:
        return tuple([cast(default) for i in range(ndim)])
    if isinstance(values, (int, float, np.number)):
        return tuple([cast(values) for i in range(ndim)])
    values = tuple([cast(v) for v in values])
    if len(values) != ndim:
        raise ValueError('%s must have %i elements, not %i.' %
                         (name, ndim, len(values)))
    return values


class GridGeometry:
    """ GridGeometry(size, spacing=None, origin=None, direction=None, index=None)

    Describes the control point grid of a B-spline transform at one
    resolution level: its region (index and size), the spacing between
    the control points, the physical position of the first control point
    (origin), and the orientation (direction cosines, column i is the
    direction of axis i).

    Instances are immutable; the grid of a new level is a new instance.

    Parameters
    ----------
    size : tuple of ints
        The number of control points along each axis (x-y-z order).
    spacing : scalar or tuple of floats
        The distance between control points, in world units. Default 1.
    origin : tuple of floats
        The world coordinate of the control point at index zero. Default 0.
    direction : DxD array
        Orthonormal direction matrix. Default identity.
    index : tuple of ints
        The start index of the grid region. Default 0.

    """

    def __init__(self, size, spacing=None, origin=None, direction=None,
                 index=None):

        if not isinstance(size, (list, tuple, np.ndarray)):
            raise TypeError('Invalid size for GridGeometry.')
        ndim = len(size)
        if ndim < 1:
            raise ValueError('A grid needs at least one dimension.')

        self._size = _as_tuple(size, ndim, int, 'Size', 1)
        self._spacing = _as_tuple(spacing, ndim, float, 'Spacing', 1.0)
        self._origin = _as_tuple(origin, ndim, float, 'Origin', 0.0)
        self._index = _as_tuple(index, ndim, int, 'Index', 0)
        self._direction = _as_direction(direction, ndim)
        self._direction.setflags(write=False)

        for d in range(ndim):
            if self._size[d] < 1:
                raise ValueError('Grid size must be at least 1 in each '
                                 'dimension, got %r.' % (self._size, ))
            if not self._spacing[d] > 0:
                raise ValueError('Grid spacing must be positive, got %r.' %
                                 (self._spacing, ))

    @classmethod
    def placeholder(cls, ndim):
        """ placeholder(ndim)

        Get the minimal grid that is installed before the registration
        starts, so that the number of parameters can be checked before the
        first level. It has one control point along each axis, except for
        the last axis, which has four (to pass checks on the support
        region size).

        """
        size = [1 for i in range(ndim)]
        size[-1] = 4
        return cls(size)

    def __repr__(self):
        return ('<GridGeometry size=%r spacing=%r origin=%r index=%r>' %
                (self._size, self._spacing, self._origin, self._index))

    def __eq__(self, other):
        if not isinstance(other, GridGeometry):
            return NotImplemented
        return (self._size == other._size and self._index == other._index and
                self._spacing == other._spacing and
                self._origin == other._origin and
                np.array_equal(self._direction, other._direction))

    def __ne__(self, other):
        eq = self.__eq__(other)
        return eq if eq is NotImplemented else not eq

    __hash__ = None

    ## Properties

    @property
    def ndim(self):
        """ The number of dimensions of the grid.
        """
        return len(self._size)

    @property
    def size(self):
        """ The number of control points along each axis (x-y-z order).
        """
        return self._size

    @property
    def index(self):
        """ The start index of the grid region (x-y-z order).
        """
        return self._index

    @property
    def end_index(self):
        """ The index one past the last control point, for each axis.
        """
        return tuple([i + s for i, s in zip(self._index, self._size)])

    @property
    def spacing(self):
        """ The distance (in world units) between the control points.
        """
        return self._spacing

    @property
    def origin(self):
        """ The world coordinate of the control point at index zero (which
        is not the first control point if the start index is nonzero).
        """
        return self._origin

    @property
    def direction(self):
        """ The (read-only) direction cosines matrix.
        """
        return self._direction

    @property
    def shape(self):
        """ The numpy shape (z-y-x order) of an array holding one value
        per control point.
        """
        return tuple(reversed(self._size))

    @property
    def number_of_control_points(self):
        """ The total number of control points in the grid.
        """
        return int(np.prod(self._size))

    @property
    def number_of_parameters(self):
        """ The length of the coefficient vector: one value per control
        point per dimension.
        """
        return self.number_of_control_points * self.ndim

    ## Methods

    def same_frame(self, other, tol=1e-6):
        """ same_frame(other, tol=1e-6)

        Whether the other grid lives in the same coordinate frame (same
        dimensionality and direction), so that coefficients can be
        mapped from one grid to the other.

        """
        return (self.ndim == other.ndim and
                np.allclose(self._direction, other._direction, atol=tol))

    def allclose(self, other, rtol=1e-9, atol=1e-12):
        """ allclose(other, rtol=1e-9, atol=1e-12)

        Whether the other grid is equal up to floating point precision.

        """
        return (self._size == other._size and self._index == other._index and
                np.allclose(self._spacing, other._spacing, rtol, atol) and
                np.allclose(self._origin, other._origin, rtol, atol) and
                np.allclose(self._direction, other._direction, rtol, atol))

    def index_to_point(self, index):
        """ index_to_point(index)

        Get the world coordinate of the control point (or continuous
        index) in x-y-z order. As for images, the origin is the point
        at index zero.

        """
        index = np.asarray(index, dtype=np.float64)
        local = index * np.array(self._spacing)
        return np.array(self._origin) + np.dot(self._direction, local)

    def first_point(self):
        """ first_point()

        Get the world coordinate of the first control point of the grid
        region (the one at the start index).

        """
        return self.index_to_point(self._index)


class ImageGeometry:
    """ ImageGeometry(size, spacing=None, origin=None, direction=None, index=None)

    Describes the geometry of the (fixed) image that the grid must cover.
    The image data itself is not stored.

    The size can be given as a tuple (x-y-z order), or any object that
    has a shape attribute (z-y-x order, like a numpy array), in which case
    the sampling and origin attributes are used if present (also z-y-x
    order, as with Pirt's anisotropic arrays).

    Examples
    --------
      * ImageGeometry((64, 64, 20), spacing=(1, 1, 2))
      * ImageGeometry(np.zeros((20, 64, 64)))  # unit spacing, zero origin

    """

    def __init__(self, size, spacing=None, origin=None, direction=None,
                 index=None):

        if hasattr(size, 'shape') and isinstance(size.shape, tuple):
            # Array given
            field = size
            size = tuple(reversed(field.shape))
            if spacing is None and hasattr(field, 'sampling'):
                spacing = tuple(reversed(field.sampling))
            if origin is None and hasattr(field, 'origin'):
                origin = tuple(reversed(field.origin))

        # Use the same checks as for grids
        tmp = GridGeometry(size, spacing, origin, direction, index)
        self._size = tmp.size
        self._spacing = tmp.spacing
        self._origin = tmp.origin
        self._index = tmp.index
        self._direction = tmp.direction

    def __repr__(self):
        return ('<ImageGeometry size=%r spacing=%r origin=%r>' %
                (self._size, self._spacing, self._origin))

    @property
    def ndim(self):
        """ The number of dimensions of the image.
        """
        return len(self._size)

    @property
    def size(self):
        """ The number of voxels along each axis (x-y-z order).
        """
        return self._size

    @property
    def index(self):
        """ The start index of the image region.
        """
        return self._index

    @property
    def spacing(self):
        """ The voxel spacing in world units.
        """
        return self._spacing

    @property
    def origin(self):
        """ The world coordinate of the voxel at index zero.
        """
        return self._origin

    @property
    def direction(self):
        """ The (read-only) direction cosines matrix.
        """
        return self._direction

    def index_to_point(self, index):
        """ index_to_point(index)

        Get the world coordinate of a (continuous) voxel index.

        """
        index = np.asarray(index, dtype=np.float64)
        return (np.array(self._origin) +
                np.dot(self._direction, index * np.array(self._spacing)))

    def point_to_local(self, points):
        """ point_to_local(points)

        Express world points (an (N, D) array) in the image aligned frame,
        relative to the image origin.

        """
        points = np.asarray(points, dtype=np.float64)
        return np.dot(points - np.array(self._origin), self._direction)

    def local_to_point(self, local):
        """ local_to_point(local)

        Map coordinates in the image aligned frame to world coordinates.

        """
        local = np.asarray(local, dtype=np.float64)
        return np.array(self._origin) + np.dot(local, self._direction.T)

    def corner_points(self):
        """ corner_points()

        Get the world coordinates of the centres of the 2**D corner voxels
        of the image region, as an (2**D, D) array.

        """
        first = np.array(self._index, dtype=np.float64)
        last = first + np.array(self._size) - 1
        corners = []
        for i in range(2 ** self.ndim):
            index = [last[d] if (i >> d) & 1 else first[d]
                     for d in range(self.ndim)]
            corners.append(self.index_to_point(index))
        return np.array(corners)

    def local_bounds(self):
        """ local_bounds()

        Get the minimum and maximum coordinate of the voxel centres along
        each axis, in the image aligned frame. Returns two arrays.

        """
        first = np.array(self._index, dtype=np.float64)
        last = first + np.array(self._size) - 1
        spacing = np.array(self._spacing)
        return first * spacing, last * spacing

    def period(self, axis):
        """ period(axis)

        The length of one full cycle along the given axis: the number of
        voxels times the spacing (the last voxel wraps to the first).

        """
        return self._size[axis] * self._spacing[axis]
