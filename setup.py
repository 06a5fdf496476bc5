""" Perigrid setup script.

"""

import os
from setuptools import setup


name = 'perigrid'
description = 'Control point grids for periodic B-spline registration'

# Get version and docstring
__version__ = None
__doc__ = ''
docStatus = 0 # Not started, in progress, done
initFile = os.path.join(os.path.dirname(__file__), name, '__init__.py')
for line in open(initFile).readlines():
    if (line.startswith('__version__')):
        exec(line.strip())
    elif line.startswith('"""'):
        if docStatus == 0:
            docStatus = 1
            line = line.lstrip('"').lstrip()
        elif docStatus == 1:
            docStatus = 2
    if docStatus == 1:
        __doc__ += line


setup(
    name = name,
    version = __version__,
    license = '(new) BSD',

    keywords = "B-spline registration periodic cyclic motion elastix",
    description = description,
    long_description = __doc__,

    platforms = 'any',
    provides = ['perigrid'],
    python_requires = '>=3.6',
    install_requires = ['numpy', 'scipy', 'numba'],
    extras_require = {'test': ['pytest']},

    packages = ['perigrid'],
    package_dir = {'perigrid': 'perigrid'},
    zip_safe = False,

    classifiers=[
          'Development Status :: 3 - Alpha',
          'Intended Audience :: Science/Research',
          'License :: OSI Approved :: BSD License',
          'Operating System :: MacOS :: MacOS X',
          'Operating System :: Microsoft :: Windows',
          'Operating System :: POSIX',
          'Programming Language :: Python',
          'Programming Language :: Python :: 3',
          ],
    )
