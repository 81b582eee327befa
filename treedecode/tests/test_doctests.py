# Copyright (c) 2025-2026 NASK. All rights reserved.

# doctests of all *treedecode* submodules are collected by *pytest*
# (see the `--doctest-modules` option in `pytest.ini`); the standard
# *unittest*'s discovery machinery is not supported for them

def load_tests(loader, tests, *args):  # noqa
    raise RuntimeError(
        '*unittest*-specific discovery mechanism is '
        'no longer supported, use *pytest* instead!')


# dissuade *pytest* from using that function
# (note that pytest has its own ways to discover doctests)

load_tests.__test__ = False
