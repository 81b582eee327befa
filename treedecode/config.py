# Copyright (c) 2025-2026 NASK. All rights reserved.

"""
Configuration based on *config specs*.

A config spec is a string in a format similar to the one of the
config files themselves (sections and options), but where each option
may specify its default value and the name of the *converter* to be
applied to the value, separated with `::`:

>>> config_spec = '''
...     [tree_decoding]
...     max_depth = 0 :: int
...     strict :: bool          ; (no default value => the option is required)
...     label = some text       ; (no converter name => 'str')
... '''
>>> section = Config.section(config_spec, settings={'tree_decoding.strict': 'yes'},
...                          config_dirs=())
>>> section == {'max_depth': 0, 'strict': True, 'label': 'some text'}
True
>>> section['max_depth']
0

Option values are taken from (in the order of increasing precedence):
the defaults specified in the config spec, the config files (those whose
names match `Config.DEFAULT_CONFIG_FILENAME_REGEX`, found in the config
directories, by default `/etc/treedecode` and `~/.treedecode`), and the
`settings` mapping (with keys in the `<section>.<option>` format).
"""

import configparser
import os
import os.path as osp
import re

from treedecode.common_helpers import (
    ascii_str,
    str_to_bool,
)
from treedecode.log_helpers import (
    ETC_DIR,
    USER_DIR,
    get_logger,
)


LOGGER = get_logger(__name__)


class ConfigError(Exception):

    """
    A generic, `Config`-related, exception class.

    >>> print(ConfigError('Some Message'))
    [configuration-related error] Some Message
    """

    def __str__(self):
        return '[configuration-related error] ' + super().__str__()


class _KeyErrorSubclassMixin(KeyError):

    def __str__(self):
        # skipping `KeyError.__str__()` which applies `repr()` to the message
        return super(KeyError, self).__str__()


class NoConfigSectionError(_KeyErrorSubclassMixin, ConfigError):

    """
    Raised by `Config.__getitem__()` when the specified section is missing.

    >>> exc = NoConfigSectionError('some_sect')
    >>> isinstance(exc, ConfigError) and isinstance(exc, KeyError)
    True
    >>> print(exc)
    [configuration-related error] no config section `some_sect`
    """

    def __init__(self, sect_name=None, *args):
        sect_ref = f'`{sect_name}`' if sect_name is not None else '<unspecified>'
        super().__init__(f'no config section {sect_ref}', *args)
        self.sect_name = sect_name


class NoConfigOptionError(_KeyErrorSubclassMixin, ConfigError):

    """
    Raised by `ConfigSection.__getitem__()` when the specified option is missing.

    >>> print(NoConfigOptionError('mysect', 'myopt'))
    [configuration-related error] no config option `myopt` in section `mysect`
    """

    def __init__(self, sect_name=None, opt_name=None, *args):
        sect_ref = f'`{sect_name}`' if sect_name is not None else '<unspecified>'
        opt_ref = f'`{opt_name}`' if opt_name is not None else '<unspecified>'
        super().__init__(f'no config option {opt_ref} in section {sect_ref}', *args)
        self.sect_name = sect_name
        self.opt_name = opt_name


class ConfigSection(dict):

    """
    A `dict` of (converted) option values of a config section.

    >>> s = ConfigSection('sect', {'a': 1})
    >>> s['a']
    1
    >>> s['b']
    Traceback (most recent call last):
      ...
    treedecode.config.NoConfigOptionError: [configuration-related error] no config option `b` in section `sect`
    """

    def __init__(self, sect_name, opt_name_to_value=None):
        super().__init__(opt_name_to_value or {})
        self.sect_name = sect_name

    def __missing__(self, key):
        raise NoConfigOptionError(self.sect_name, key)

    def __repr__(self):
        return '{}({!r}, {})'.format(type(self).__qualname__,
                                     self.sect_name,
                                     super().__repr__())


class Config(dict):

    """
    A `dict` that maps section names to `ConfigSection` instances.

    Args:
        `config_spec` (a `str`):
            The config spec (see the module docs).

    Kwargs (all optional):
        `settings` (a mapping or `None`):
            Option values overriding those from the config files; keys
            are in the `<section>.<option>` format, values are `str`.
        `custom_converters` (a mapping or `None`):
            Additional converters (converter names mapped to callables
            taking a `str`).
        `config_dirs` (an iterable of `str`, or `None`):
            The directories to search for the config files in (`None`
            means `/etc/treedecode` and `~/.treedecode`).

    Raises:
        `ConfigError` -- if the config spec is malformed, a required
        option is missing or a value cannot be converted.
    """

    DEFAULT_CONVERTER_SPEC = 'str'
    BASIC_CONVERTERS = {
        'str': str,
        'bool': str_to_bool,
        'int': int,
        'float': float,
    }

    DEFAULT_CONFIG_FILENAME_REGEX = r'\A[0-9][0-9]_.*\.conf\Z'
    DEFAULT_CONFIG_DIRS = (ETC_DIR, USER_DIR)

    def __init__(self, config_spec, *, settings=None, custom_converters=None,
                 config_dirs=None):
        super().__init__()
        converters = dict(self.BASIC_CONVERTERS)
        if custom_converters:
            converters.update(custom_converters)
        parsed_spec = parse_config_spec(config_spec)
        if config_dirs is None:
            config_dirs = self.DEFAULT_CONFIG_DIRS
        file_values = self._load_config_files(config_dirs, parsed_spec)
        self._apply_settings(file_values, settings or {})
        self._make_config_sections(parsed_spec, file_values, converters)

    @classmethod
    def section(cls, config_spec, **kwargs):
        """
        Get the `ConfigSection` of a config spec that declares exactly one section.
        """
        config = cls(config_spec, **kwargs)
        if len(config) != 1:
            raise ConfigError('the config spec should declare exactly one section '
                              '(declared: {})'.format(', '.join(map(ascii, config)) or '<none>'))
        [section] = config.values()
        return section

    def __missing__(self, key):
        raise NoConfigSectionError(key)

    def _load_config_files(self, config_dirs, parsed_spec):
        config_files = []
        for config_dir in config_dirs:
            config_files.extend(self._get_config_file_paths(config_dir))
        file_values = {sect_name: {} for sect_name in parsed_spec}
        if not config_files:
            LOGGER.debug('no config files to read')
            return file_values
        config_parser = configparser.ConfigParser(interpolation=None)
        try:
            ok_config_files = config_parser.read(config_files, encoding='utf-8')
        except configparser.Error as exc:
            raise ConfigError('cannot parse config files: {}'.format(ascii_str(exc))) from exc
        err_config_files = set(config_files).difference(ok_config_files)
        if err_config_files:
            LOGGER.warning('config files that could not be read: %s',
                           ', '.join(map(ascii, sorted(err_config_files))))
        for sect_name, opt_name_to_value in file_values.items():
            if config_parser.has_section(sect_name):
                opt_name_to_value.update(config_parser.items(sect_name))
        return file_values

    @classmethod
    def _get_config_file_paths(cls, path):
        filename_regex = re.compile(cls.DEFAULT_CONFIG_FILENAME_REGEX)
        config_files = []
        for directory, _, fnames in os.walk(path):
            for fname in fnames:
                if filename_regex.search(fname):
                    config_files.append(osp.join(directory, fname))
        return sorted(config_files)

    def _apply_settings(self, file_values, settings):
        for key, value in settings.items():
            sect_name, dot, opt_name = key.partition('.')
            if not dot or not opt_name:
                raise ConfigError('illegal settings key {!a} (should be in the '
                                  '`<section>.<option>` format)'.format(key))
            if sect_name not in file_values:
                continue
            if not isinstance(value, str):
                raise ConfigError('the value of setting {!a} is not a str '
                                  '(got: {!a})'.format(key, value))
            file_values[sect_name][opt_name] = value

    def _make_config_sections(self, parsed_spec, file_values, converters):
        missing = []
        for sect_name, opt_specs in parsed_spec.items():
            opt_name_to_value = {}
            raw_values = file_values[sect_name]
            for opt_name in sorted(raw_values.keys() - opt_specs.keys()):
                LOGGER.warning('ignoring config option `%s.%s` (not declared '
                               'in the config spec)', sect_name, opt_name)
            for opt_name, (default, converter_spec) in opt_specs.items():
                if opt_name in raw_values:
                    raw_value = raw_values[opt_name]
                elif default is not None:
                    raw_value = default
                else:
                    missing.append('{}.{}'.format(sect_name, opt_name))
                    continue
                converter = converters.get(converter_spec)
                if converter is None:
                    raise ConfigError('unknown converter {!a} (for option `{}.{}`)'
                                      .format(converter_spec, sect_name, opt_name))
                try:
                    opt_name_to_value[opt_name] = converter(raw_value)
                except (ValueError, TypeError) as exc:
                    raise ConfigError('error when converting option `{}.{}` '
                                      'value {!a} using converter {!a}: {}'.format(
                                          sect_name, opt_name, raw_value,
                                          converter_spec, ascii_str(exc))) from exc
            self[sect_name] = ConfigSection(sect_name, opt_name_to_value)
        if missing:
            raise ConfigError('missing required config options: {}'.format(
                ', '.join(missing)))


_SECT_DECL_REGEX = re.compile(r'\A\[(?P<sect_name>[^\]]+)\]\Z')
_OPT_SPEC_REGEX = re.compile(r'''
    \A
    (?P<opt_name> [^=:\s]+ )
    \s*
    (?:
        = \s* (?P<default> (?: (?!::) . )*? )
    )?
    \s*
    (?:
        :: \s* (?P<converter_spec> \w+ )
    )?
    \s*
    \Z
''', re.VERBOSE)


def parse_config_spec(config_spec):
    """
    Parse a config spec.

    Returns:
        A dict that maps section names to dicts that map option names
        to pairs: (<default raw value or None>, <converter name>).

    >>> parse_config_spec('''
    ...     [foo]
    ...     a = 42 :: int     ; comment
    ...     b :: bool
    ...     c = xyz
    ...     # another comment
    ... ''') == {'foo': {'a': ('42', 'int'), 'b': (None, 'bool'), 'c': ('xyz', 'str')}}
    True
    """
    parsed_spec = {}
    current_section = None
    for line_no, raw_line in enumerate(config_spec.splitlines(), start=1):
        line = _strip_comment(raw_line).strip()
        if not line:
            continue
        sect_match = _SECT_DECL_REGEX.search(line)
        if sect_match:
            sect_name = sect_match.group('sect_name').strip()
            if sect_name in parsed_spec:
                raise ConfigError('config spec line #{}: duplicate section '
                                  '`{}`'.format(line_no, sect_name))
            current_section = parsed_spec[sect_name] = {}
            continue
        opt_match = _OPT_SPEC_REGEX.search(line)
        if opt_match is None or current_section is None:
            raise ConfigError('config spec line #{}: cannot parse {!a}'.format(
                line_no, raw_line.strip()))
        opt_name = opt_match.group('opt_name')
        converter_spec = opt_match.group('converter_spec') or Config.DEFAULT_CONVERTER_SPEC
        current_section[opt_name] = (opt_match.group('default'), converter_spec)
    return parsed_spec


def _strip_comment(line):
    stripped = line.strip()
    if stripped.startswith(('#', ';')):
        return ''
    return re.split(r'\s;', line, maxsplit=1)[0]
