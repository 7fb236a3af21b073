"""Core functionalities of the application.

Sets up logging and provides access to the entity configuration.
__all__ exports:
    - AdminFormsBaseError: the base of all errors raised in this package.
        Instances come with a nice description of what exactly failed.
    - AdminFormsError: an AdminFormsBaseError looking up pretty names
    - EntityNotFoundError: raised when an unconfigured entity is requested
    - ConfigManager: normalized access to the entity configuration
    - resolve_data_class: import the class form data is bound to
"""
import sys
import copy
import logging
import logging.handlers
import importlib
import warnings
import typing as T

from . import config
from . import utils

__all__ = [
    'AdminFormsBaseError', 'AdminFormsError', 'EntityNotFoundError',
    'ConfigManager', 'resolve_data_class', 'DESIGN_ELEMENT_TYPES',
]

log_conf = config.core.log
if log_conf.file:
    if log_conf.rotate.how == 'none':
        handler = logging.FileHandler(log_conf.file)
    elif log_conf.rotate.how == 'size':
        handler = logging.handlers.RotatingFileHandler(
            log_conf.file,
            maxBytes=2 ** 10 * log_conf.rotate.size,
            backupCount=log_conf.rotate.copy_count,
        )
    elif log_conf.rotate.how == 'time':
        handler = logging.handlers.TimedRotatingFileHandler(
            log_conf.file,
            when=log_conf.rotate.interval_unit,
            interval=log_conf.rotate.interval_value,
        )
    else:
        raise ValueError('config.core.log.rotate.how had an invalid value')
else:
    handler = logging.StreamHandler(sys.stdout)
# noinspection PyArgumentList
logging.basicConfig(level=getattr(logging, log_conf.level),
                    format='{asctime} - {levelname}: {msg}',
                    datefmt='%Y-%m-%d %H:%M:%S',
                    style='{',
                    handlers=[handler],
                    )
del handler, log_conf

DESIGN_ELEMENT_TYPES = ('divider', 'section', 'group', 'tab')
INHERITING_VIEWS = ('new', 'edit')


class AdminFormsBaseError(Exception):
    """Error raised in this package"""

    def __init__(self, title, message, *sink):
        if sink:
            warnings.warn('AdminFormsBaseError.__init__ got unexpected arguments')
        super().__init__(title, message)
        self.title = title
        self.message = message

    def __str__(self):
        return '{0.title}: {0.message}'.format(self)

    @classmethod
    def template_title(cls, template_title):
        """return a subclass that will %-format the given template title
            with the one given at creation

            *args are passed along, making this work well with AdminFormsError
        """

        class AdminFormsTemplateTitleError(cls):
            def __init__(self, title, message, *args):
                super().__init__(template_title % title, message, *args)

        return AdminFormsTemplateTitleError

    @classmethod
    def template_message(cls, template_message):
        """return a subclass that will %-format the given template message
            with the one given at creation

            *args are passed, making this work well with AdminFormsError
        """

        class AdminFormsTemplateMessageError(cls):
            def __init__(self, title, message, *args):
                super().__init__(title, template_message % message, *args)

        return AdminFormsTemplateMessageError


class AdminFormsError(AdminFormsBaseError):
    """a subclass that will use utils.get_name

        The title will be passed through utils.get_name normally

        The message will be passed through utils.get_name and .format will
        be called with an optional tuple (unpacked) given

        'error::' will be prepended to both title and message
    """

    def __init__(self, title, message, *message_args, **message_kwargs):
        super().__init__(utils.get_name('error::' + title),
                         utils.get_name('error::' + message)
                         .format(*message_args, **message_kwargs))


class EntityNotFoundError(AdminFormsError.template_title('%s_not_found')
                          .template_message('no_%s_named_{}')):
    def __init__(self, entity: str):
        super().__init__('entity', 'entity', entity)
        self.entity = entity


def resolve_data_class(path: T.Optional[str]):
    """import the object named by ``'package.module:attr'`` or ``'package.module.attr'``

    ``None`` is passed through (form data is then returned as dict)
    """
    if path is None:
        return None
    if ':' in path:
        module_name, attr = path.split(':', 1)
    else:
        module_name, __, attr = path.rpartition('.')
    return getattr(importlib.import_module(module_name), attr)


class ConfigManager:
    """Normalized access to the entity configuration

    The raw configuration maps entity names to::

        {
            'class': 'package.module:DataClass',  # optional
            'label': 'Pretty Name',  # optional
            'form': {'fields': [...]},  # shared by 'new' and 'edit'
            'new': {'fields': [...]},
            'edit': {'fields': [...]},
        }

    Each field is either a property name or a mapping with the keys
    ``property``, ``id``, ``type``, ``label``, ``help``, ``nullable``,
    ``choices`` and ``type_options``.
    Design elements (``divider``, ``section``, ``group`` and ``tab``) have no
    property; they get one starting with ``design_element_prefix``.
    """

    def __init__(self, entities: T.Mapping[str, T.Mapping],
                 design_element_prefix: str = '_form_design_element_'):
        self.raw_entities = entities
        self.design_element_prefix = design_element_prefix
        self._cache = {}

    @property
    def entity_names(self):
        return list(self.raw_entities)

    def get_entity_config(self, entity: str) -> dict:
        """return the normalized configuration of ``entity``

        :raise EntityNotFoundError: if the entity isn't configured
        """
        try:
            return self._cache[entity]
        except KeyError:
            pass
        try:
            raw = self.raw_entities[entity]
        except KeyError:
            logging.warning(f'requested configuration of unknown entity {entity!r}')
            raise EntityNotFoundError(entity) from None
        raw = raw or {}
        normalized = {
            'name': entity,
            'class': raw.get('class'),
            'label': raw.get('label') or utils.humanize(entity),
        }
        for view in ('form', *INHERITING_VIEWS):
            view_config = raw.get(view) or {}
            fields = view_config.get('fields')
            if fields is None and view in INHERITING_VIEWS:
                normalized[view] = copy.deepcopy(normalized['form'])
                normalized[view]['title'] = view_config.get('title')
                continue
            normalized[view] = {
                'title': view_config.get('title'),
                'fields': self.normalize_fields(fields or ()),
            }
        self._cache[entity] = normalized
        return normalized

    def normalize_fields(self, fields: T.Iterable) -> dict:
        """convert a list of raw field definitions into ``{name: metadata}``

        Legacy type names count as their current equivalents.

        :raise UnknownFieldTypeError: if a field type is unknown
        """
        from .forms import defs

        r = {}
        for i, raw in enumerate(fields):
            if isinstance(raw, str):
                raw = {'property': raw}
            field_type = raw.get('type', 'text')
            design_element = defs.resolve_type(field_type).value in DESIGN_ELEMENT_TYPES
            if design_element:
                prop = f'{self.design_element_prefix}{i}'
                name = raw.get('id', prop)
            else:
                try:
                    prop = raw['property']
                except KeyError:
                    raise ValueError(
                        f'field #{i} of type {field_type!r} has no property') from None
                name = prop
            if name in r:
                raise ValueError(f'duplicate field name {name!r}')
            if design_element:
                label = raw.get('label')
            else:
                label = raw.get('label', utils.humanize(name))
            r[name] = {
                'fieldName': name,
                'property': prop,
                'fieldType': field_type,
                'label': label,
                'help': raw.get('help'),
                'nullable': raw.get('nullable', False),
                'choices': copy.deepcopy(raw.get('choices')),
                'type_options': dict(raw.get('type_options') or {}),
            }
        return r
