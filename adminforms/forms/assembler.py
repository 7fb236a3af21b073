"""Assemble the forms used to create and edit configured entities

Field descriptors are taken in order. Tab and group markers don't become
fields; instead they are recorded and apply to the fields declared after them.
After submission, the errors of each field are counted into its tab and the
tab with the first erroneous field becomes the active one.
"""

import dataclasses
import logging
import typing as T

from .. import core
from . import defs, lib

TAB_ATTRIBUTE = 'form_tab'
GROUP_ATTRIBUTE = 'form_group'
METADATA_ATTRIBUTE = 'form_metadata'
TABS_ATTRIBUTE = 'form_tabs'
GROUPS_ATTRIBUTE = 'form_groups'
DEFAULT_DESIGN_ELEMENT_PREFIX = '_form_design_element_'


@dataclasses.dataclass
class FieldDescriptor:
    name: str
    field_type: str
    options: dict
    metadata: dict

    @classmethod
    def from_metadata(cls, name, metadata):
        """create a descriptor from normalized entity configuration"""
        return cls(
            name,
            metadata['fieldType'],
            dict(metadata.get('type_options') or {}),
            dict(metadata),
        )


@dataclasses.dataclass
class TabDescriptor:
    """A tab. ``active`` and ``errors`` change after submission"""
    id: str
    label: T.Optional[str]
    active: bool = False
    errors: int = 0
    metadata: dict = dataclasses.field(default_factory=dict, compare=False)


@dataclasses.dataclass
class GroupDescriptor:
    id: str
    label: T.Optional[str]
    tab: T.Optional[str]
    metadata: dict = dataclasses.field(default_factory=dict, compare=False)


@dataclasses.dataclass
class AssembledField:
    name: str
    type: defs.FieldType
    options: dict
    tab: T.Optional[str]
    group: T.Optional[str]
    metadata: dict = dataclasses.field(default_factory=dict, compare=False)


@dataclasses.dataclass
class AssembledForm:
    fields: 'list[AssembledField]'
    tabs: 'dict[str, TabDescriptor]'
    groups: 'dict[str, GroupDescriptor]'

    @property
    def active_tab(self) -> T.Optional[TabDescriptor]:
        return next((t for t in self.tabs.values() if t.active), None)


def assemble(descriptors: T.Iterable[FieldDescriptor],
             configurators: T.Iterable[defs.Configurator],
             *,
             design_element_prefix: str = DEFAULT_DESIGN_ELEMENT_PREFIX,
             builder=None,
             ) -> AssembledForm:
    """turn ordered field descriptors into fields, tabs and groups

    Every configurator supporting a descriptor may rewrite its options,
    each seeing the result of the ones before it.
    Fields whose property starts with ``design_element_prefix`` are
    never mapped or required.
    """
    configurators = list(configurators)
    fields = []
    tabs = {}
    groups = {}
    current_tab = None
    current_group = None

    for descriptor in descriptors:
        options = dict(descriptor.options)
        metadata = dict(descriptor.metadata)
        metadata.setdefault('fieldName', descriptor.name)
        metadata.setdefault('fieldType', descriptor.field_type)
        for configurator in configurators:
            if configurator.supports(descriptor.field_type, options, metadata):
                options = configurator.configure(descriptor.name, options, metadata, builder)

        field_type = defs.resolve_type(descriptor.field_type)
        if defs.is_legacy(descriptor.field_type):
            logging.debug(f'legacy field type {descriptor.field_type!r} used for '
                          f'{descriptor.name!r}, assembled as {field_type.value!r}')
        kind = defs.classify(field_type)
        label = options.get('label', metadata.get('label'))
        if kind is defs.FieldKind.GROUP:
            metadata[TAB_ATTRIBUTE] = current_tab
            current_group = metadata['fieldName']
            groups[current_group] = GroupDescriptor(current_group, label, current_tab, metadata)
            continue
        elif kind is defs.FieldKind.TAB:
            # the group is kept when a new tab starts
            current_tab = metadata['fieldName']
            tabs[current_tab] = TabDescriptor(current_tab, label, not tabs, 0, metadata)
            continue

        if (metadata.get('property') or '').startswith(design_element_prefix):
            options['mapped'] = False
            options['required'] = False
        fields.append(AssembledField(
            descriptor.name, field_type, options, current_tab, current_group, metadata))

    return AssembledForm(fields, tabs, groups)


def route_errors(tabs: 'dict[str, TabDescriptor]', fields: T.Iterable[lib.Field]):
    """count field errors into their tabs and activate the first erroneous tab

    Return the id of the tab with the first erroneous field, if any.
    Fields outside of any tab don't count.
    """
    active_tab = None
    for field in fields:
        errors = field.get_errors()
        tab = field.config.get_attribute(TAB_ATTRIBUTE)
        if not errors or tab is None:
            continue
        tabs[tab].errors += len(errors)
        if active_tab is None:
            active_tab = tab
    first_tab = next(iter(tabs), None)
    if active_tab is not None and active_tab != first_tab:
        tabs[first_tab].active = False
        tabs[active_tab].active = True
    return active_tab


class FormAssembler:
    """Form type building the forms of configured entities

    Options:
        - entity (required): the entity name
        - view (required): the view name, usually ``'new'`` or ``'edit'``
        - allow_extra_fields: defaults to True
        - data_class: defaults to the configured class of the entity
        - attr: HTML attributes, ``id`` defaults to ``<view>-<entity>-form``
    """
    block_prefix = 'admin'

    def __init__(self, config_manager: core.ConfigManager,
                 configurators: T.Optional[T.Iterable[defs.Configurator]] = None):
        self.config_manager = config_manager
        if configurators is None:
            configurators = defs.default_configurators()
        self.configurators = list(configurators)

    def get_descriptors(self, entity, view) -> 'list[FieldDescriptor]':
        entity_config = self.config_manager.get_entity_config(entity)
        fields = (entity_config.get(view) or {}).get('fields') or {}
        return [FieldDescriptor.from_metadata(name, m) for name, m in fields.items()]

    def build_form(self, builder: lib.FormBuilder, options: dict):
        assembled = assemble(
            self.get_descriptors(options['entity'], options['view']),
            self.configurators,
            design_element_prefix=self.config_manager.design_element_prefix,
            builder=builder,
        )
        for field in assembled.fields:
            field_builder = builder.create_named_builder(field.name, field.type, field.options)
            field_builder.set_attribute(TAB_ATTRIBUTE, field.tab)
            field_builder.set_attribute(GROUP_ATTRIBUTE, field.group)
            field_builder.set_attribute(METADATA_ATTRIBUTE, field.metadata)
            builder.add(field_builder)
        builder.set_attribute(TABS_ATTRIBUTE, assembled.tabs)
        builder.set_attribute(GROUPS_ATTRIBUTE, assembled.groups)

        if assembled.tabs:
            tabs = assembled.tabs

            def route_tab_errors(event: lib.FormEvent):
                active_tab = route_errors(tabs, event.form)
                if active_tab is not None:
                    logging.debug(f'form {builder.name}: showing tab {active_tab!r} first')

            builder.add_event_listener(lib.FormEvents.POST_SUBMIT, route_tab_errors, -1)
        logging.debug(f'assembled {options["view"]} form of {options["entity"]}: '
                      f'{len(assembled.fields)} field(s), {len(assembled.tabs)} tab(s), '
                      f'{len(assembled.groups)} group(s)')
        return assembled

    def finish_view(self, view: lib.FormView, form: lib.Form, options: dict):
        view.vars['tabs'] = form.config.get_attribute(TABS_ATTRIBUTE)
        view.vars['groups'] = form.config.get_attribute(GROUPS_ATTRIBUTE)

    def configure_options(self, resolver: lib.OptionsResolver):
        resolver.set_defaults({
            'allow_extra_fields': True,
            'data_class': lib.Lazy(self.get_data_class),
        }).set_required(['entity', 'view'])
        resolver.set_normalizer('attr', self.normalize_attributes)

    def get_data_class(self, options):
        entity_config = self.config_manager.get_entity_config(options['entity'])
        return core.resolve_data_class(entity_config['class'])

    @staticmethod
    def normalize_attributes(options, value):
        return {
            'id': '{}-{}-form'.format(options['view'], options['entity'].lower()),
            **(value or {}),
        }

    def create_builder(self, entity, view, **options) -> lib.FormBuilder:
        return lib.create_builder(self, {'entity': entity, 'view': view, **options})
