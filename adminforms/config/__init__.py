"""Provide attribute access to configuration settings"""
import pprint as _pprint
from . import main as _main

_config_data = _main.get_config()


def start():
    """report the configured entities and optionally the settings to STDOUT"""
    print('No configuration errors found.')
    entities = _config_data.entities.mapping
    print(f'{len(entities)} entities configured:')
    for name, entity in entities.items():
        views = [v for v in ('form', 'new', 'edit') if v in entity]
        print(f'  {name} ({entity["class"] or "dict"}):', ', '.join(views) or '<no views>')
    if (_config_data.debug
            and input('Do you want to see the current settings? ')
            .lower().startswith('y')):
        _pprint.pprint(_config_data.mapping)


def __getattr__(name):
    val = getattr(_config_data, name)
    globals()[name] = val
    return val
