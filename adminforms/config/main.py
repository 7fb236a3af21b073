"""Get configuration settings"""
import os
import sys
import json
import base64
import secrets
import datetime
import contextlib
import pathlib
from collections.abc import Mapping
import typing as T

import yaml

from .validation import validator

CONFIG_FILE_ENV = 'ADMINFORMS_CONFIG'
MODULE_DIR = os.path.dirname(__file__)
INCLUDE_NAME = 'include'
SCHEMA_FILE = os.path.join(MODULE_DIR, 'configschema.yaml')
ExceptSpec = T.Union[T.Type[BaseException], T.Tuple[T.Type[BaseException], ...]]
ActuallyPathLike = T.Union[bytes, str, os.PathLike]


class ConfigError(Exception):
    """configuration error"""


class DummyErrorFile:
    """Revert errors to log.

    Attributes:
        error_happened: True if write() was called
        error_file: the log file name
        error_texts: list of the error messages wrote to the log file for later use
    """

    def __init__(self, error_file='error.log'):
        self.error_happened = False
        self.error_texts = []
        self.error_file = error_file
        with open(error_file, 'a', encoding='UTF-8') as f:
            f.write('\n\nSTART: ' + str(datetime.datetime.now()) + '\n')

    def write(self, msg):
        self.error_happened = True
        self.error_texts.append(msg)
        try:
            with open(self.error_file, 'a', encoding='UTF-8') as f:
                f.write(msg)
        except OSError:
            pass

    def flush(self):
        pass


class AttrAccess:
    """Provide attribute access to mappings, supporting nesting"""
    EMPTY_INST = type('', (), {'__repr__': lambda s: 'AttrAccess.EMPTY_INST'})()

    def __init__(self, mapping):
        self.mapping = mapping

    def get(self, item, fallback=EMPTY_INST):
        """return ``item`` if present, otherwise the given fallback
            (an empty AttrAccess instance by default)"""
        if fallback is self.EMPTY_INST:
            fallback = type(self)({})
        val = self.mapping.get(item, fallback)
        if isinstance(val, Mapping):
            val = type(self)(val)
        return val

    def __getitem__(self, item):
        return self.mapping[item]

    def __getattr__(self, item):
        try:
            val = self.mapping[item.replace('_', ' ')]
        except KeyError:
            raise AttributeError(item) from None
        if isinstance(val, Mapping):
            val = type(self)(val)
        return val


def merge(dest: dict, src: Mapping):
    """recursively merge ``src`` into ``dest``, ``src`` taking precedence"""
    for k, v in src.items():
        if isinstance(v, Mapping) and isinstance(dest.get(k), dict):
            merge(dest[k], v)
        else:
            dest[k] = v
    return dest


def load_file(path: ActuallyPathLike,
              loader: T.Callable[[T.TextIO], T.Any] = yaml.safe_load,
              load_error: ExceptSpec = yaml.YAMLError,
              ) -> T.Tuple[dict, T.Set[ActuallyPathLike]]:
    """recursively load a file as dict. Return (<dict>, <set of invalid paths>)

        The invalid paths returned may be nonexistent or unparseable
        ``loader`` specifies how to load the file
        ``load_error`` is used to catch exceptions while loading the file
        Files named under an ``include`` key are loaded relative to the
        including file and merged into the section they're mentioned in,
        the including section taking precedence.
    """
    def include_config(section: dict):
        """recursively read included files and merge"""
        for k, v in list(section.items()):
            if k == INCLUDE_NAME:
                if isinstance(v, str):
                    v = [v]
                elif not isinstance(v, list):
                    continue
                del section[k]
                included = {}
                for new_file in v:
                    new_section, new_errors = load_file(file_dir / new_file, loader, load_error)
                    merge(included, new_section)
                    errors.update(new_errors)
                own = dict(section)
                section.clear()
                section.update(merge(included, own))
            elif isinstance(v, dict):
                include_config(v)

    file_dir = pathlib.Path(os.fsdecode(path)).parent
    errors = set()
    try:
        f = open(path, encoding='UTF-8')
    except OSError:
        return {}, {path}
    try:
        config = loader(f)
    except load_error:
        return {}, {path}
    finally:
        f.close()
    if config is None:
        config = {}
    elif not isinstance(config, dict):
        return {}, {path}
    include_config(config)
    return config, errors


def load_names(name_file: ActuallyPathLike, name_format: str) -> dict:
    """Load the name file with inclusions ignoring errors"""
    def convert_name_data(data):
        if isinstance(data, str):
            return data
        elif isinstance(data, Mapping):
            return {str(k).lower(): convert_name_data(v) for k, v in data.items()}
        else:
            return ''

    loaders = {
        'json': (json.load, json.JSONDecodeError),
        'yaml': (yaml.safe_load, yaml.YAMLError),
    }
    name_data, __ = load_file(name_file, *loaders[name_format])
    return convert_name_data(name_data)


def load_schema():
    with open(SCHEMA_FILE, encoding='UTF-8') as f:
        return yaml.safe_load(f)


def get_config(filename=None):
    """get configuration data as an AttrAccess object"""
    if filename is None:
        try:
            filename = os.environ[CONFIG_FILE_ENV]
        except KeyError:
            raise ConfigError(
                f'environment variable {CONFIG_FILE_ENV} not found') from None

    config, invalid_files = load_file(filename)
    for f in pre_validation:
        f(config)
    errors = list(validator(load_schema()).iter_errors(config))
    if errors:
        config_error(errors, invalid_files)
        sys.exit(1)
    if invalid_files:
        with contextlib.redirect_stdout(sys.stderr):
            print('\nThe following configuration files could not be loaded:')
            print('\n'.join(map(os.fsdecode, invalid_files)))
            print()
    for f in post_validation:
        f(config)
    return AttrAccess(config)


def config_error(errors, invalid_files):
    """print error information to STDERR"""
    with contextlib.redirect_stdout(sys.stderr):
        print('--- ERROR IN CONFIG FILE FORMAT ---\n')
        for error in sorted(errors, key=lambda e: list(map(str, e.absolute_path))):
            location = ' -> '.join(map(str, error.absolute_path)) or '<top level>'
            print(' ', location, 'INVALID:', error.message)
        print('\n\nSee the configschema.yaml file for information on how the data has to be structured')
        if invalid_files:
            print('\nThe following configuration files could not be loaded:')
            print('\n'.join(map(os.fsdecode, invalid_files)))


def expand_entity_shorthands(config):
    """allow ``Entity: module:Class`` as shorthand for ``Entity: {class: module:Class}``"""
    entities = config.get('entities')
    if not isinstance(entities, dict):
        return
    for name, entity in entities.items():
        if isinstance(entity, str):
            entities[name] = {'class': entity}
        elif entity is None:
            entities[name] = {}


def insert_name_data(config):
    """load name data into [utils][names][data]"""
    names = config['utils']['names']
    if names['file'] is None:
        names['data'] = {}
    else:
        names['data'] = load_names(names['file'], names['format'])


def decode_secret_key(config):
    """decode the base64 web secret key, generating one when debugging"""
    web = config['web']
    if web['secret key'] is not None:
        web['secret key'] = base64.b64decode(web['secret key'])
    elif config['debug']:
        sys.stderr.write('ATTENTION: using a random secret key\n')
        web['secret key'] = secrets.token_bytes(32)
    else:
        raise ConfigError('web.secret key must be given when not debugging')


def redirect_stderr(config):
    """redirect STDERR to error.log when not debugging"""
    if not config['debug']:
        sys.stderr = DummyErrorFile()


pre_validation = (
    expand_entity_shorthands,
)
post_validation = (
    insert_name_data,
    decode_secret_key,
    redirect_stderr,
)
