"""Field types and the default option configurators"""

import enum
import typing as T

from .. import core

LEGACY_PREFIX = 'easyadmin_'


class FieldType(enum.Enum):
    """Enum for renderer (field) types"""
    TEXT = 'text'
    TEXTAREA = 'textarea'
    EMAIL = 'email'
    PASSWORD = 'password'
    INTEGER = 'integer'
    NUMBER = 'number'
    CHECKBOX = 'checkbox'
    CHOICE = 'choice'
    DATE = 'date'
    DIVIDER = 'divider'
    SECTION = 'section'
    GROUP = 'group'
    TAB = 'tab'


class FieldKind(enum.Enum):
    """What a field descriptor stands for in an assembled form"""
    REAL = 'real'
    GROUP = 'group'
    TAB = 'tab'


LEGACY_TYPES = {
    LEGACY_PREFIX + 'group': FieldType.GROUP,
    LEGACY_PREFIX + 'tab': FieldType.TAB,
    LEGACY_PREFIX + 'divider': FieldType.DIVIDER,
    LEGACY_PREFIX + 'section': FieldType.SECTION,
    'string': FieldType.TEXT,
    'guid': FieldType.TEXT,
    'boolean': FieldType.CHECKBOX,
    'smallint': FieldType.INTEGER,
    'bigint': FieldType.INTEGER,
    'float': FieldType.NUMBER,
    'decimal': FieldType.NUMBER,
    'select': FieldType.CHOICE,
}


class UnknownFieldTypeError(core.AdminFormsError, ValueError):
    def __init__(self, field_type):
        super().__init__('unknown_field_type', 'unknown_field_type_{}', field_type)
        self.field_type = field_type


def resolve_type(declared: T.Union[str, FieldType]) -> FieldType:
    """map a declared (possibly legacy) type name to the renderer type

    :raise UnknownFieldTypeError: if the name is unknown
    """
    if isinstance(declared, FieldType):
        return declared
    try:
        return FieldType(declared)
    except ValueError:
        pass
    try:
        return LEGACY_TYPES[declared]
    except KeyError:
        raise UnknownFieldTypeError(declared) from None


def is_legacy(declared: T.Union[str, FieldType]) -> bool:
    return not isinstance(declared, FieldType) and declared in LEGACY_TYPES


def classify(field_type: FieldType) -> FieldKind:
    if field_type is FieldType.GROUP:
        return FieldKind.GROUP
    elif field_type is FieldType.TAB:
        return FieldKind.TAB
    return FieldKind.REAL


class Configurator(T.Protocol):
    """Inspect a field and possibly rewrite its options before it is created"""

    def supports(self, field_type: str, options: dict, metadata: dict) -> bool:
        ...

    def configure(self, name: str, options: dict, metadata: dict, builder) -> dict:
        ...


class LabelConfigurator:
    """take ``label`` and ``help`` from the field metadata"""

    def supports(self, field_type, options, metadata):
        return True

    def configure(self, name, options, metadata, builder):
        if 'label' not in options and metadata.get('label') is not None:
            options['label'] = metadata['label']
        if 'help' not in options and metadata.get('help'):
            options['help'] = metadata['help']
        return options


class RequiredConfigurator:
    """nullable properties aren't required"""

    def supports(self, field_type, options, metadata):
        return 'required' not in options

    def configure(self, name, options, metadata, builder):
        options['required'] = not metadata.get('nullable', False)
        return options


class CheckboxConfigurator:
    """unchecked checkboxes are valid unless explicitly required

    Runs before ``RequiredConfigurator``, so only a ``required`` option
    given by the caller or the ``type_options`` counts as explicit.
    """

    def supports(self, field_type, options, metadata):
        return resolve_type(field_type) is FieldType.CHECKBOX

    def configure(self, name, options, metadata, builder):
        options.setdefault('required', False)
        return options


class ChoiceConfigurator:
    """move ``choices`` from the metadata into the options

    Choices are normalized to a list of ``(value, label)`` pairs.
    Choices may be given as a list of values, a list of pairs
    or a mapping of values to labels.
    Optional fields get an empty placeholder choice.
    """

    def supports(self, field_type, options, metadata):
        return resolve_type(field_type) is FieldType.CHOICE

    def configure(self, name, options, metadata, builder):
        choices = options.get('choices', metadata.get('choices')) or ()
        if isinstance(choices, T.Mapping):
            choices = list(choices.items())
        options['choices'] = [
            tuple(c) if isinstance(c, (list, tuple)) else (c, c) for c in choices]
        options.setdefault('expanded', False)
        if not options.get('required', True):
            options.setdefault('placeholder', '')
        return options


class DesignElementConfigurator:
    """mark dividers and sections for styling"""

    def supports(self, field_type, options, metadata):
        return resolve_type(field_type) in (FieldType.DIVIDER, FieldType.SECTION)

    def configure(self, name, options, metadata, builder):
        attr = dict(options.get('attr') or {})
        css_class = 'form-design-element form-' + resolve_type(metadata['fieldType']).value
        attr['class'] = ' '.join(filter(None, (attr.get('class'), css_class)))
        options['attr'] = attr
        return options


def default_configurators() -> 'list[Configurator]':
    """new instances of the default configurator chain, in order"""
    return [
        LabelConfigurator(),
        CheckboxConfigurator(),
        RequiredConfigurator(),
        ChoiceConfigurator(),
        DesignElementConfigurator(),
    ]
