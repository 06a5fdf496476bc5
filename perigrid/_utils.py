"""
Small utility classes: the parameter map, the reporter and the errors.
"""

import re


class ConfigurationError(ValueError):
    """ Raised when the configuration asks for something that cannot be
    done, e.g. an invalid grid spacing schedule. This is a user error.
    """
    pass


class GridLogicError(RuntimeError):
    """ Raised when the grid machinery is used in the wrong order or with
    incompatible grids. This indicates a bug in the calling code.
    """
    pass


def isidentifier(s):
    # http://stackoverflow.com/questions/2544972/
    if not isinstance(s, str):
        return False
    return re.match(r'^\w+$', s, re.UNICODE) and re.match(r'^[0-9]', s) is None


class ParameterMap(dict):
    """ ParameterMap(*args, **kwargs)

    A dict that maps parameter names to tuples of values, like the
    parameter files of elastix. Scalars are stored as 1-tuples. Items can
    also be get/set as attributes.

    Besides the normal dict interface, values can be looked up per
    entry, with a fallback entry, which is how per-dimension and
    per-resolution parameters are specified.

    Examples
    --------
      * ParameterMap(GridSpacingSchedule=(4, 2, 1), PassiveEdgeWidth=1)
      * ParameterMap.from_text('(PassiveEdgeWidth 1)')

    """

    __reserved_names__ = dir(dict())

    __slots__ = []

    def __init__(self, *args, **kwargs):
        dict.__init__(self)
        for key, val in dict(*args, **kwargs).items():
            self[key] = val

    def __repr__(self):
        items = ['%s=%r' % (key, val) for key, val in self.items()]
        return 'ParameterMap(%s)' % ', '.join(items)

    def __setitem__(self, key, val):
        if not isidentifier(key):
            raise ValueError('Invalid parameter name: %r' % key)
        if isinstance(val, (list, tuple)):
            val = tuple(val)
        elif hasattr(val, 'tolist') and hasattr(val, 'ndim'):
            val = tuple(val.ravel().tolist()) if val.ndim else (val.tolist(), )
        else:
            val = (val, )
        dict.__setitem__(self, key, val)

    def __getattr__(self, key):
        try:
            return self[key]
        except KeyError:
            raise AttributeError(key)

    def __setattr__(self, key, val):
        if key in self.__class__.__reserved_names__:
            raise AttributeError('Reserved name, this key can only ' +
                                 'be set via ``d[%r] = X``' % key)
        self[key] = val

    def __dir__(self):
        names = [k for k in self.keys() if isidentifier(k)]
        return self.__class__.__reserved_names__ + names

    def update(self, *args, **kwargs):
        for key, val in dict(*args, **kwargs).items():
            self[key] = val

    ## Lookup

    def count(self, key):
        """ count(key)

        The number of entries for the given parameter (zero if the
        parameter is not present).

        """
        return len(self.get(key, ()))

    def read(self, key, entry=0, default=None, default_entry=None):
        """ read(key, entry=0, default=None, default_entry=None)

        Read a single entry of a parameter. If the entry does not exist,
        the value at default_entry is used (if given and present). If that
        does not exist either, the default is returned.

        """
        values = self.get(key, ())
        if entry < len(values):
            return values[entry]
        elif default_entry is not None and default_entry < len(values):
            return values[default_entry]
        else:
            return default

    def read_for_level(self, key, level, default=None):
        """ read_for_level(key, level, default=None)

        Read the value of a parameter for the given resolution level,
        falling back to the first entry (and then to the default).

        """
        return self.read(key, level, default, 0)

    def read_bool(self, key, entry=0, default=False):
        """ read_bool(key, entry=0, default=False)

        Read a boolean, given as "true"/"false" (as elastix does) or as
        a Python bool.

        """
        val = self.read(key, entry, None)
        if val is None:
            return default
        elif isinstance(val, str):
            if val.lower() in ('true', 'false'):
                return val.lower() == 'true'
            raise ConfigurationError('Parameter %s should be "true" or '
                                     '"false", not %r.' % (key, val))
        return bool(val)

    ## Text

    @classmethod
    def from_text(cls, text):
        """ from_text(text)

        Create a ParameterMap from the text of a parameter file.

        """
        from .parameterfile import parse
        return parse(text)

    def to_text(self, precision=10):
        """ to_text(precision=10)

        Get the text of a parameter file representing this map.

        """
        from .parameterfile import format_line
        return ''.join(format_line(key, val, precision) + '\n'
                       for key, val in self.items())


class Reporter:
    """ Reporter(callback=None)

    Sink for the messages that are meant for the user, such as the notice
    that the grid spacing was adapted. The grid components get a reporter
    injected, so that they can be used (and tested) without capturing
    what is printed.

    If a callback is given, it is called with (level, message) for each
    message, where level is 'info', 'warning' or 'error'. Otherwise
    warnings and errors are printed with a prefix, and info messages are
    printed as is.

    """

    def __init__(self, callback=None):
        self._callback = callback

    def info(self, message):
        self._report('info', message)

    def warning(self, message):
        self._report('warning', message)

    def error(self, message):
        self._report('error', message)

    def _report(self, level, message):
        if self._callback is not None:
            self._callback(level, message)
        elif level == 'info':
            print(message)
        else:
            print('%s: %s' % (level.upper(), message))
