"""
The grid of a periodic B-spline transform during a multi-resolution
registration.
"""

from collections import namedtuple

import numpy as np

from ._utils import ParameterMap, ConfigurationError, GridLogicError, Reporter
from .geometry import GridGeometry, ImageGeometry
from .scheduler import GridScheduler
from .upsample import GridUpsampler
from .edgemask import build_scales
from . import parameterfile


TRANSFORM_NAME = 'PeriodicBSplineTransform'


class LevelSetup(namedtuple('LevelSetup', ['level', 'grid', 'parameters', 'scales'])):
    """ LevelSetup(level, grid, parameters, scales)

    What the registration needs to start a resolution level: the grid,
    the initial parameters on that grid, and the optimizer scales. The
    level is -1 for the placeholder grid that is installed before the
    registration starts.

    """
    __slots__ = ()


class PeriodicGridTransform:
    """ PeriodicGridTransform(image, config=None, number_of_levels=None,
                              periodic_axes=None, initial_transform=None,
                              reporter=None)

    Manages the control point grid of a periodic B-spline transform over
    the resolution levels of a registration. The registration (which owns
    the optimizer and decides when a level starts) calls:

      * before_registration(): installs a placeholder grid and precomputes
        the grid of each level.
      * before_each_resolution(level, last_parameters): installs the grid
        of the level, with zero parameters (level 0) or the parameters of
        the previous level upsampled to the new grid. Also computes the
        optimizer scales from the PassiveEdgeWidth.
      * finalize(parameters): after the last level.

    Each call returns a new LevelSetup; previous results are never
    modified. The levels must be visited in order.

    Parameters
    ----------
    image : ImageGeometry or anything that ImageGeometry accepts
        The geometry of the fixed image.
    config : ParameterMap or dict
        The registration parameters. Used are FinalGridSpacingInVoxels,
        FinalGridSpacingInPhysicalUnits, GridSpacingSchedule,
        PassiveEdgeWidth, NumberOfResolutions and UseComposition.
    number_of_levels : int
        The number of resolution levels. Default NumberOfResolutions from
        the config, or 1.
    periodic_axes : int or tuple of ints
        The axes (x-y-z order) along which the transform is periodic.
        Default the last axis.
    initial_transform : callable or None
        The initial transform; its effect on the image corners is taken
        into account when placing the grid, if UseComposition is "true".
    reporter : Reporter
        Receives warnings and errors. Default a Reporter that prints.

    """

    def __init__(self, image, config=None, number_of_levels=None,
                 periodic_axes=None, initial_transform=None, reporter=None):

        if not isinstance(image, ImageGeometry):
            image = ImageGeometry(image)
        if not isinstance(config, ParameterMap):
            config = ParameterMap(config or {})
        if number_of_levels is None:
            number_of_levels = int(config.read('NumberOfResolutions', 0, 1))
        if number_of_levels < 1:
            raise ConfigurationError('The number of resolutions must be at '
                                     'least 1, got %i.' % number_of_levels)

        self._image = image
        self._config = config
        self._number_of_levels = number_of_levels
        self._initial_transform = initial_transform
        self._reporter = reporter or Reporter()

        self._scheduler = GridScheduler(image, periodic_axes, self._reporter)
        self._upsampler = GridUpsampler(self._scheduler.periodic_axes)

        self._state = 'uninitialized'
        self._setup = None
        self._final_parameters = None

    ## Properties

    @property
    def ndim(self):
        """ The number of dimensions of the transform.
        """
        return self._image.ndim

    @property
    def config(self):
        """ The ParameterMap with the registration parameters.
        """
        return self._config

    @property
    def number_of_levels(self):
        """ The number of resolution levels.
        """
        return self._number_of_levels

    @property
    def scheduler(self):
        """ The GridScheduler that holds the grid of each level.
        """
        return self._scheduler

    @property
    def upsampler(self):
        """ The GridUpsampler used between levels.
        """
        return self._upsampler

    @property
    def use_composition(self):
        """ Whether the initial transform is composed with this one.
        """
        return self._config.read_bool('UseComposition', 0, False)

    @property
    def state(self):
        """ One of 'uninitialized', 'placeholder', 'level' or 'finalized'.
        """
        return self._state

    @property
    def level(self):
        """ The current level (-1 before the first level, None before
        before_registration() is called).
        """
        return None if self._setup is None else self._setup.level

    @property
    def grid(self):
        """ The currently installed GridGeometry (or None).
        """
        return None if self._setup is None else self._setup.grid

    @property
    def parameters(self):
        """ The initial parameters of the current level (read-only array),
        or the final parameters after finalize().
        """
        if self._final_parameters is not None:
            return self._final_parameters
        return None if self._setup is None else self._setup.parameters

    @property
    def number_of_parameters(self):
        """ The number of parameters for the installed grid.
        """
        if self._setup is None:
            raise GridLogicError('No grid installed yet.')
        return self._setup.grid.number_of_parameters

    ## Level transitions

    def before_registration(self):
        """ before_registration()

        Install a placeholder grid (so that the number of parameters can
        be checked before the first level starts) and compute the grid
        of each level. Returns the LevelSetup of the placeholder.

        """
        if self._state != 'uninitialized':
            raise GridLogicError('before_registration() can only be '
                                 'called once.')

        grid = GridGeometry.placeholder(self.ndim)
        self._install(-1, grid, np.zeros((grid.number_of_parameters, )),
                      np.ones((grid.number_of_parameters, )))
        self._state = 'placeholder'

        initial_transform = None
        if self.use_composition:
            initial_transform = self._initial_transform
        self._scheduler.precompute_from_config(self._config,
                                               self._number_of_levels,
                                               initial_transform)
        return self._setup

    def before_each_resolution(self, level, last_parameters=None):
        """ before_each_resolution(level, last_parameters=None)

        Install the grid of the given level. For level 0 the parameters
        are zero. For higher levels, last_parameters (the final parameters
        of the previous level) are upsampled to the new grid. Returns a
        LevelSetup.

        """
        if self._state not in ('placeholder', 'level'):
            raise GridLogicError('Cannot start level %i in state %r.' %
                                 (level, self._state))
        expected = self._setup.level + 1
        if level != expected:
            raise GridLogicError('Levels must be started in order: expected '
                                 'level %i, got %i.' % (expected, level))
        if level >= self._number_of_levels:
            raise GridLogicError('Level %i does not exist, there are %i '
                                 'levels.' % (level, self._number_of_levels))

        grid = self._scheduler.get_grid(level)
        if level == 0:
            parameters = np.zeros((grid.number_of_parameters, ), np.float64)
        else:
            if last_parameters is None:
                raise GridLogicError('The parameters of level %i are needed '
                                     'to start level %i.' % (level - 1, level))
            parameters = self._upsampler.upsample(self._setup.grid,
                                                  last_parameters, grid)

        width = self._config.read_for_level('PassiveEdgeWidth', level, 0)
        scales = build_scales(grid, width, self._reporter)

        self._install(level, grid, parameters, scales)
        self._state = 'level'
        return self._setup

    def finalize(self, parameters=None):
        """ finalize(parameters=None)

        Mark the registration as done, optionally storing the final
        parameters (as obtained by the optimizer in the last level).

        """
        if self._state != 'level':
            raise GridLogicError('Cannot finalize in state %r.' % self._state)
        if parameters is not None:
            self._final_parameters = self._check_parameters(parameters)
        self._state = 'finalized'

    def _install(self, level, grid, parameters, scales):
        parameters = np.array(parameters, np.float64)
        scales = np.array(scales, np.float64)
        parameters.setflags(write=False)
        scales.setflags(write=False)
        self._setup = LevelSetup(level, grid, parameters, scales)

    def _check_parameters(self, parameters):
        parameters = np.array(parameters, np.float64).ravel()
        if parameters.size != self.number_of_parameters:
            raise ConfigurationError('Expected %i transform parameters for '
                                     'the grid, got %i.' %
                                     (self.number_of_parameters, parameters.size))
        parameters.setflags(write=False)
        return parameters

    ## Storing

    def write_to_file(self, parameters=None, precision=10):
        """ write_to_file(parameters=None, precision=10)

        Get the text of the transform parameter file, with the given
        parameters (default the current/final parameters) and the grid.

        """
        if parameters is None:
            parameters = self.parameters
        parameters = self._check_parameters(parameters)

        use_composition = 'true' if self.use_composition else 'false'
        lines = [parameterfile.format_line('Transform', TRANSFORM_NAME),
                 parameterfile.format_line('NumberOfParameters',
                                           parameters.size),
                 parameterfile.format_line('TransformParameters',
                                           parameters, precision),
                 parameterfile.format_line('InitialTransformParametersFileName',
                                           'NoInitialTransform'),
                 parameterfile.format_line('UseComposition', use_composition),
                 '',
                 '// BSplineTransform specific']
        lines.extend(parameterfile.write_grid_lines(self.grid, precision))
        return '\n'.join(lines) + '\n'

    @classmethod
    def read_from_file(cls, text, image=None, reporter=None):
        """ read_from_file(text, image=None, reporter=None)

        Restore a transform from the text of a parameter file. The grid
        is read first, since the number of parameters depends on it; grid
        entries that are absent get their default values. Returns a
        finalized PeriodicGridTransform. If the image is not given, the
        grid is used to describe it, and the dimensionality is taken from
        the grid entries.

        """
        params = parameterfile.parse(text)
        transform = params.read('Transform', 0, TRANSFORM_NAME)
        if transform != TRANSFORM_NAME:
            raise ConfigurationError('Cannot read a %r transform.' % transform)

        if image is not None:
            if not isinstance(image, ImageGeometry):
                image = ImageGeometry(image)
            ndim = image.ndim
        else:
            ndim = parameterfile.grid_ndim(params)
            if ndim == 0:
                raise ConfigurationError('The parameter file has no grid '
                                         'entries, and no image is given.')
        grid = parameterfile.read_grid(params, ndim)

        if image is None:
            image = ImageGeometry(grid.size, grid.spacing, grid.origin,
                                  grid.direction, grid.index)

        result = cls(image, params, 1, reporter=reporter)
        result._install(0, grid, np.zeros((grid.number_of_parameters, )),
                        np.ones((grid.number_of_parameters, )))
        result._state = 'level'

        # Now that the grid is set, the parameters can be checked
        count = params.count('TransformParameters')
        expected = params.read('NumberOfParameters', 0, count)
        if count != expected:
            raise ConfigurationError('NumberOfParameters is %i, but %i '
                                     'TransformParameters are given.' %
                                     (expected, count))
        result.finalize(params.get('TransformParameters', ()))
        return result
