"""
Reading and writing of (transform) parameter files.

A parameter file is line oriented. Each parameter is written as
``(Name value1 value2 ...)``, where strings are double quoted. Text
after ``//`` is a comment. The grid of a B-spline transform is stored as::

    (GridSize 10 10 4)
    (GridIndex 0 0 0)
    (GridSpacing 16 16 2.5)
    (GridOrigin -8 -8 0)
    (GridDirection 1 0 0 0 1 0 0 0 1)

where the direction matrix is written column by column.
"""

import re

import numpy as np

from ._utils import ParameterMap, ConfigurationError
from .geometry import GridGeometry


GRID_KEYS = ('GridSize', 'GridIndex', 'GridSpacing', 'GridOrigin',
             'GridDirection')

_LINE_RE = re.compile(r'^\((\w+)\s*(.*)\)$')
_TOKEN_RE = re.compile(r'"[^"]*"|[^\s"]+')


## Writing


def format_value(value, precision=10):
    """ format_value(value, precision=10)

    Format a single value. Floats are written with the given number of
    significant digits, strings are quoted.

    """
    if isinstance(value, (bool, np.bool_)):
        return '"true"' if value else '"false"'
    elif isinstance(value, (int, np.integer)):
        return '%i' % value
    elif isinstance(value, (float, np.floating)):
        return '%.*g' % (precision, value)
    elif isinstance(value, str):
        return '"%s"' % value
    else:
        raise TypeError('Cannot write value of type %s.' % type(value).__name__)


def format_line(key, values, precision=10):
    """ format_line(key, values, precision=10)

    Format one parameter line, e.g. "(GridSize 10 10 4)".

    """
    if not isinstance(values, (list, tuple, np.ndarray)):
        values = [values]
    parts = [key] + [format_value(v, precision) for v in values]
    return '(%s)' % ' '.join(parts)


def write_grid_lines(grid, precision=10):
    """ write_grid_lines(grid, precision=10)

    Get the lines (a list of strings) that describe the given grid.
    GridSpacing and GridOrigin are written with (at least) the given
    number of significant digits.

    """
    return [format_line('GridSize', grid.size),
            format_line('GridIndex', grid.index),
            format_line('GridSpacing', grid.spacing, precision),
            format_line('GridOrigin', grid.origin, precision),
            format_line('GridDirection', grid.direction.T.ravel(), precision)]


## Reading


def parse_value(token):
    """ parse_value(token)

    Parse a single token into a str, int or float.

    """
    if token.startswith('"') and token.endswith('"') and len(token) >= 2:
        return token[1:-1]
    try:
        return int(token)
    except ValueError:
        pass
    try:
        return float(token)
    except ValueError:
        return token


def parse(text):
    """ parse(text)

    Parse the text of a parameter file into a ParameterMap.

    """
    params = ParameterMap()
    for linenr, line in enumerate(text.splitlines()):
        # Strip comments, but not inside strings
        line = re.sub(r'//[^"]*$', '', line).strip()
        if not line:
            continue
        m = _LINE_RE.match(line)
        if m is None:
            raise ConfigurationError('Invalid parameter file line %i: %r' %
                                     (linenr + 1, line))
        key, rest = m.group(1), m.group(2)
        params[key] = [parse_value(t) for t in _TOKEN_RE.findall(rest)]
    return params


def grid_ndim(params):
    """ grid_ndim(params)

    Get the number of dimensions of the grid described in a ParameterMap,
    derived from the grid entries that are present. Returns zero if there
    are none.

    """
    ndim = 0
    for key in GRID_KEYS[:-1]:
        ndim = max(ndim, params.count(key))
    if not ndim:
        ndim = int(round(params.count('GridDirection') ** 0.5))
    return ndim


def read_grid(params, ndim):
    """ read_grid(params, ndim)

    Get the GridGeometry from a ParameterMap. Missing entries get default
    values: size 1, index 0, spacing 1.0, origin 0.0 and the identity
    direction. Entries that are present must have a value for each
    dimension (ndim*ndim values for the direction).

    """
    for key in GRID_KEYS:
        count = params.count(key)
        expected = ndim * ndim if key == 'GridDirection' else ndim
        if count not in (0, expected):
            raise ConfigurationError('Invalid %s in parameter file: it has %i '
                                     'entries, expected %i for a %iD grid.' %
                                     (key, count, expected, ndim))

    size, index, spacing, origin = [], [], [], []
    direction = np.eye(ndim)
    try:
        for i in range(ndim):
            size.append(int(params.read('GridSize', i, 1)))
            index.append(int(params.read('GridIndex', i, 0)))
            spacing.append(float(params.read('GridSpacing', i, 1.0)))
            origin.append(float(params.read('GridOrigin', i, 0.0)))
            for j in range(ndim):
                direction[j, i] = float(params.read('GridDirection',
                                                    i * ndim + j,
                                                    direction[j, i]))
        return GridGeometry(size, spacing, origin, direction, index)
    except (TypeError, ValueError) as err:
        raise ConfigurationError('Invalid grid in parameter file: %s' % err)
