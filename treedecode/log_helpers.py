# Copyright (c) 2025-2026 NASK. All rights reserved.

import collections
import logging
import logging.config
import os
import os.path
import sys
import traceback


ETC_DIR = '/etc/treedecode'
USER_DIR = os.path.expanduser('~/.treedecode')

TOPLEVEL_PACKAGES = frozenset({'treedecode'})


def get_logger(name=None):
    """
    Like logging.getLogger(...) but replacing '__main__' with a sensible name.

    For example, if the script path is '/whatever/treedecode/tools/foo.py'
    get_logger('__main__') is equivalent to logging.getLogger('treedecode.tools.foo').
    """
    if name == '__main__':
        # try to get the script path from __main__.__file__
        script_path = getattr(sys.modules['__main__'], '__file__', None)
        if not script_path:
            script_path = sys.argv[0]
        remaining = os.path.splitext(script_path)[0]
        aggregated_segments = collections.deque()
        while True:
            remaining, segment = os.path.split(remaining)
            segment = segment.replace('.', 'D')  # just in case of '.' or '..'
            aggregated_segments.appendleft(segment)
            if segment in TOPLEVEL_PACKAGES or remaining in ('', '/'):
                break
        name = '.'.join(aggregated_segments)
    return logging.getLogger(name)


LOGGER = get_logger(__name__)

_loaded_configuration_paths = set()


def configure_logging(suffix=None, config_dirs=(ETC_DIR, USER_DIR)):
    """
    Configure logging using `logging.conf` (or `logging-<suffix>.conf`)
    files found in the given config directories.

    Files that do not exist are skipped; files that have already been
    loaded are skipped with a warning.  Any error while applying a file
    is reported as RuntimeError.

    Returns:
        A list of paths of the files loaded by this call.
    """
    file_name = ('logging.conf' if suffix is None
                 else 'logging-{0}.conf'.format(suffix))
    file_paths = [os.path.join(config_dir, file_name)
                  for config_dir in config_dirs]
    loaded_now = []
    for path in file_paths:
        if path in _loaded_configuration_paths:
            LOGGER.warning('ignored attempt to load logging configuration '
                           'file %a that has already been used', path)
            continue
        if not os.path.isfile(path):
            continue
        try:
            logging.config.fileConfig(path, disable_existing_loggers=False)
        except Exception:
            raise RuntimeError('error while configuring logging, '
                               'using settings from configuration file {0!a}:\n{1}'
                               .format(path, traceback.format_exc()))
        LOGGER.info('logging configuration loaded from %a', path)
        _loaded_configuration_paths.add(path)
        loaded_now.append(path)
    return loaded_now
