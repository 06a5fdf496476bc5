"""
The grid spacing schedule, and the final grid spacing.

The schedule is defined by downsampling factors for each resolution
level and each dimension (just like image pyramid schedules). The grid
spacing at a level is the final grid spacing times the factor. So for 2D
images and 3 resolutions the default schedule is::

    (GridSpacingSchedule 4.0 4.0 2.0 2.0 1.0 1.0)

"""

import numpy as np

from ._utils import ConfigurationError


DEFAULT_FINAL_GRID_SPACING_IN_VOXELS = 16.0


class GridSchedule:
    """ GridSchedule(factors)

    An immutable table with, for each resolution level (coarsest first),
    the grid spacing factor for each dimension (x-y-z order).

    Parameters
    ----------
    factors : sequence of sequences
        One entry per level, each with one factor per dimension.

    """

    def __init__(self, factors):
        factors = tuple([tuple([float(f) for f in entry]) for entry in factors])
        if not factors:
            raise ValueError('A grid schedule needs at least one level.')
        ndim = len(factors[0])
        for entry in factors:
            if len(entry) != ndim:
                raise ValueError('All schedule entries must have %i factors.'
                                 % ndim)
            for f in entry:
                if not f > 0:
                    raise ConfigurationError('Grid spacing schedule factors '
                                             'must be positive, got %r.' % f)
        self._factors = factors

    @classmethod
    def default(cls, number_of_levels, ndim, factor=2.0):
        """ default(number_of_levels, ndim, factor=2.0)

        Get the default schedule, in which the grid spacing is multiplied
        with the given factor for each coarser level. The finest level has
        factor one.

        """
        if number_of_levels < 1:
            raise ValueError('Need at least one resolution level.')
        factors = []
        for level in range(number_of_levels):
            f = factor ** (number_of_levels - level - 1)
            factors.append([f for d in range(ndim)])
        return cls(factors)

    @classmethod
    def from_config(cls, config, number_of_levels, ndim,
                    key='GridSpacingSchedule'):
        """ from_config(config, number_of_levels, ndim, key='GridSpacingSchedule')

        Get the schedule from a ParameterMap. The number of entries can be
        zero (use the default schedule), the number of levels (a factor per
        level, for all dimensions), or the number of levels times the number
        of dimensions (a factor per level per dimension).

        """
        count = config.count(key)
        values = config.get(key, ())
        if count == 0:
            return cls.default(number_of_levels, ndim)
        elif count == number_of_levels:
            return cls([[values[level] for d in range(ndim)]
                        for level in range(number_of_levels)])
        elif count == number_of_levels * ndim:
            return cls([values[level * ndim:(level + 1) * ndim]
                        for level in range(number_of_levels)])
        else:
            raise ConfigurationError(
                'Invalid %s: it has %i entries, but the number of entries '
                'should equal the number of resolutions (%i) or the number '
                'of resolutions times the image dimension (%i).' %
                (key, count, number_of_levels, number_of_levels * ndim))

    def __repr__(self):
        return '<GridSchedule %r>' % (self._factors, )

    def __len__(self):
        return len(self._factors)

    def __getitem__(self, level):
        return self._factors[level]

    def __iter__(self):
        return iter(self._factors)

    def __eq__(self, other):
        if not isinstance(other, GridSchedule):
            return NotImplemented
        return self._factors == other._factors

    __hash__ = None

    @property
    def number_of_levels(self):
        """ The number of resolution levels.
        """
        return len(self._factors)

    @property
    def ndim(self):
        """ The number of dimensions.
        """
        return len(self._factors[0])

    def as_array(self):
        """ as_array()

        Get the schedule as a (levels, ndim) numpy array.

        """
        return np.array(self._factors, dtype=np.float64)

    def flat(self):
        """ flat()

        Get the schedule as a flat tuple, as it is written in a parameter
        file.

        """
        return tuple([f for entry in self._factors for f in entry])

    def spacing_for_level(self, level, final_spacing):
        """ spacing_for_level(level, final_spacing)

        Get the requested grid spacing at the given level.

        """
        return tuple([s * f for s, f in zip(final_spacing, self._factors[level])])


def _read_spacing(config, key, ndim):
    count = config.count(key)
    if count not in (1, ndim):
        raise ConfigurationError(
            'Invalid %s: it has %i entries, but should have 1 or %i.' %
            (key, count, ndim))
    spacing = tuple([float(config.read(key, d, None, 0)) for d in range(ndim)])
    for s in spacing:
        if not s > 0:
            raise ConfigurationError('Invalid %s: the spacing must be '
                                     'positive, got %r.' % (key, spacing))
    return spacing


def resolve_final_spacing(config, image_spacing,
                          default_voxels=DEFAULT_FINAL_GRID_SPACING_IN_VOXELS):
    """ resolve_final_spacing(config, image_spacing, default_voxels=16.0)

    Get the final grid spacing in physical units. The user can specify
    either FinalGridSpacingInPhysicalUnits or FinalGridSpacingInVoxels.
    Physical units are used when given; voxel units are converted by
    multiplying with the image spacing. If neither is given, the
    default (in voxels) is used, or a ConfigurationError is raised if
    default_voxels is None.

    Each can be given with one value (for all dimensions) or one value
    per dimension.

    """
    ndim = len(image_spacing)

    if config.count('FinalGridSpacingInPhysicalUnits'):
        return _read_spacing(config, 'FinalGridSpacingInPhysicalUnits', ndim)

    if config.count('FinalGridSpacingInVoxels'):
        voxels = _read_spacing(config, 'FinalGridSpacingInVoxels', ndim)
    elif default_voxels is not None:
        voxels = tuple([float(default_voxels) for d in range(ndim)])
    else:
        raise ConfigurationError('No final grid spacing given: specify '
                                 'FinalGridSpacingInPhysicalUnits or '
                                 'FinalGridSpacingInVoxels.')

    return tuple([v * s for v, s in zip(voxels, image_spacing)])
