"""Abstract (UI-agnostic) admin form definitions"""

import logging

from .defs import FieldType, FieldKind, resolve_type
from .lib import Form, FormEvents, ValidationError, OptionsError
from .assembler import FormAssembler, assemble, route_errors

__all__ = [
    'FieldType',
    'FieldKind',
    'Form',
    'FormEvents',
    'FormAssembler',
    'TypeRegistry',
    'ValidationError',
    'OptionsError',
    'assemble',
    'instantiate',
    'resolve_type',
    'route_errors',
]

LEGACY_TYPE_NAMES = {'easyadmin': 'admin'}


class TypeRegistry:
    """Look up form types by name, accepting deprecated names"""

    def __init__(self, legacy_names=None):
        self.types = {}
        self.legacy_names = dict(LEGACY_TYPE_NAMES if legacy_names is None else legacy_names)

    def register(self, form_type, name=None):
        self.types[name or form_type.block_prefix] = form_type
        return form_type

    def get(self, name):
        """return the form type registered as ``name`` or under its new name

        :raise KeyError: if no form type is found
        """
        try:
            return self.types[name]
        except KeyError:
            if name not in self.legacy_names:
                raise
        new_name = self.legacy_names[name]
        logging.warning(f'form type name {name!r} is deprecated, use {new_name!r}')
        return self.types[new_name]

    def __contains__(self, name):
        return name in self.types or self.legacy_names.get(name) in self.types


def instantiate(config_manager, configurators=None):
    """create a registry holding a FormAssembler for ``config_manager``"""
    registry = TypeRegistry()
    registry.register(FormAssembler(config_manager, configurators))
    return registry
