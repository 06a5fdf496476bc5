"""
Computation of the B-spline grid for each resolution level.
"""

import numpy as np

from ._utils import GridLogicError, Reporter
from .geometry import GridGeometry, ImageGeometry
from .schedule import GridSchedule, resolve_final_spacing


SPLINE_ORDER = 3

# Tolerance (relative) for rounding the number of grid intervals
EPS = 1e-9


def normalize_periodic_axes(periodic_axes, ndim):
    """ normalize_periodic_axes(periodic_axes, ndim)

    Get a sorted tuple of periodic axes (x-y-z order). None means the
    last axis, which is the cyclic (usually temporal) axis.

    """
    if periodic_axes is None:
        return (ndim - 1, )
    if isinstance(periodic_axes, int):
        periodic_axes = (periodic_axes, )
    axes = []
    for axis in periodic_axes:
        axis = int(axis)
        if axis < 0:
            axis += ndim
        if axis < 0 or axis >= ndim:
            raise ValueError('Invalid periodic axis %r for %iD grid.' %
                             (axis, ndim))
        if axis not in axes:
            axes.append(axis)
    return tuple(sorted(axes))


def map_points(transform, points):
    """ map_points(transform, points)

    Map an (N, D) array of world points with the given transform, which
    is a callable or an object with a transform_points() method.

    """
    if hasattr(transform, 'transform_points'):
        result = transform.transform_points(points)
    elif callable(transform):
        result = transform(points)
    else:
        raise TypeError('The initial transform must be callable or have '
                        'a transform_points() method.')
    result = np.asarray(result, dtype=np.float64)
    if result.shape != points.shape:
        raise ValueError('The initial transform returned an array of shape '
                         '%r, expected %r.' % (result.shape, points.shape))
    return result


class GridScheduler:
    """ GridScheduler(image, periodic_axes=None, reporter=None)

    Computes the geometry of the control point grid for each resolution
    level, given the geometry of the fixed image, a grid spacing schedule
    and the final grid spacing.

    Along a normal axis, the grid covers the image with the smallest
    number of knots that provides full B-spline support, and is centred on
    the image. Along a periodic axis, the spacing is adapted to the nearest
    spacing for which an integer number of knot intervals spans exactly one
    period of the image (the seam knot is not duplicated). Adaptations are
    reported as a warning.

    Parameters
    ----------
    image : ImageGeometry or anything that ImageGeometry accepts
        The geometry of the fixed image.
    periodic_axes : int or tuple of ints
        The axes (x-y-z order) along which the transform is periodic.
        Default the last axis.
    reporter : Reporter
        Receives the warnings. Default a Reporter that prints.

    """

    def __init__(self, image, periodic_axes=None, reporter=None):
        if not isinstance(image, ImageGeometry):
            image = ImageGeometry(image)
        self._image = image
        self._periodic_axes = normalize_periodic_axes(periodic_axes, image.ndim)
        self._reporter = reporter or Reporter()

        self._schedule = None
        self._final_spacing = None
        self._grids = None

    ## Properties

    @property
    def image(self):
        """ The geometry of the fixed image.
        """
        return self._image

    @property
    def ndim(self):
        """ The number of dimensions.
        """
        return self._image.ndim

    @property
    def periodic_axes(self):
        """ The axes (x-y-z order) along which the grid is periodic.
        """
        return self._periodic_axes

    @property
    def reporter(self):
        """ The reporter used for warnings.
        """
        return self._reporter

    @property
    def schedule(self):
        """ The GridSchedule used in precompute() (or None).
        """
        return self._schedule

    @property
    def final_spacing(self):
        """ The requested final grid spacing in physical units (or None).
        """
        return self._final_spacing

    @property
    def number_of_levels(self):
        """ The number of precomputed levels (zero before precompute()).
        """
        return len(self._grids) if self._grids else 0

    @property
    def grids(self):
        """ A tuple with the GridGeometry of each level.
        """
        if self._grids is None:
            raise GridLogicError('The grid schedule has not been computed.')
        return tuple(self._grids)

    ## Computing

    def precompute_from_config(self, config, number_of_levels,
                               initial_transform=None, **kwargs):
        """ precompute_from_config(config, number_of_levels,
                                   initial_transform=None, **kwargs)

        Read the final grid spacing and the grid spacing schedule from the
        given ParameterMap and precompute the grids. Keyword arguments
        are passed to resolve_final_spacing().

        """
        final_spacing = resolve_final_spacing(config, self._image.spacing,
                                              **kwargs)
        schedule = GridSchedule.from_config(config, number_of_levels,
                                            self.ndim)
        return self.precompute(schedule, final_spacing, initial_transform)

    def precompute(self, schedule, final_spacing, initial_transform=None):
        """ precompute(schedule, final_spacing, initial_transform=None)

        Compute the grid for each level in the schedule. Returns a list of
        GridGeometry instances (coarsest first).

        Parameters
        ----------
        schedule : GridSchedule or sequence of sequences
            The grid spacing factors, per level per dimension.
        final_spacing : scalar or tuple of floats
            The grid spacing at factor one, in physical units.
        initial_transform : callable or None
            If given, the image corners are mapped with this transform,
            so that the grid covers the region that it maps to.

        """
        if not isinstance(schedule, GridSchedule):
            schedule = GridSchedule(schedule)
        if schedule.ndim != self.ndim:
            raise ValueError('The schedule has %i dimensions, the image %i.' %
                             (schedule.ndim, self.ndim))

        if isinstance(final_spacing, (int, float)):
            final_spacing = [final_spacing for d in range(self.ndim)]
        final_spacing = tuple([float(s) for s in final_spacing])
        if len(final_spacing) != self.ndim:
            raise ValueError('The final spacing must have %i elements.' %
                             self.ndim)

        # Get bounds of the region to cover, in the image aligned frame
        lo, hi = self._get_bounds(initial_transform)

        grids = []
        for level in range(len(schedule)):
            spacing = schedule.spacing_for_level(level, final_spacing)
            grids.append(self._compute_grid(level, spacing, lo, hi))

        self._schedule = schedule
        self._final_spacing = final_spacing
        self._grids = grids
        return list(grids)

    def get_grid(self, level):
        """ get_grid(level)

        Get the GridGeometry of the given level.

        """
        if self._grids is None:
            raise GridLogicError('The grid schedule has not been computed; '
                                 'call precompute() first.')
        if level < 0 or level >= len(self._grids):
            raise GridLogicError('Invalid level %i, there are %i levels.' %
                                 (level, len(self._grids)))
        return self._grids[level]

    def _get_bounds(self, initial_transform):
        image = self._image
        lo, hi = image.local_bounds()
        if initial_transform is not None:
            corners = map_points(initial_transform, image.corner_points())
            local = image.point_to_local(corners)
            lo, hi = local.min(0), local.max(0)
        return lo, hi

    def _compute_grid(self, level, spacing, lo, hi):
        image = self._image
        first = image.local_bounds()[0]

        size, origin = [], []
        spacing = list(spacing)
        for d in range(self.ndim):
            h = spacing[d]

            if d in self._periodic_axes:
                # Fit an integer number of intervals in one period, using
                # the spacing nearest to the requested one
                period = image.period(d)
                n = max(1, int(np.floor(period / h + EPS)))
                if abs(period / (n + 1) - h) < abs(period / n - h):
                    n += 1
                new_h = period / n
                if abs(new_h - h) > EPS * h:
                    self._reporter.warning(
                        'The grid spacing of level %i in dimension %i was '
                        'adapted from %g to %g to fit the periodic behavior '
                        'of the transform.' % (level, d, h, new_h))
                spacing[d] = new_h
                size.append(n)
                origin.append(first[d])

            else:
                # The number of knots to cover the region, plus the
                # knots needed for the spline support
                extent = hi[d] - lo[d]
                bare_size = int(np.ceil(extent / h - EPS))
                n = max(bare_size, 0) + SPLINE_ORDER
                size.append(n)
                # Center the grid on the region
                origin.append(lo[d] - ((n - 1) * h - extent) / 2.0)

        world_origin = image.local_to_point(np.array(origin))
        return GridGeometry(size, spacing, world_origin, image.direction)
