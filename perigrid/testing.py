"""
Helpers for the test modules.
"""

import sys
import inspect

import pytest


raises = pytest.raises


def run_tests_if_main():
    """ run_tests_if_main()

    Run the tests in the calling module with pytest, if that module is
    run as a script.

    """
    local_vars = inspect.currentframe().f_back.f_locals
    if local_vars.get('__name__', '') != '__main__':
        return
    fname = local_vars['__file__']
    sys.exit(pytest.main(['-v', '-x', fname]))
