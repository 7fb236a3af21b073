"""Test form assembly and tab error routing"""
import logging
import types

import pytest

from adminforms import core, forms
from adminforms.forms import assembler, defs, lib

from conftest import StubForm

PREFIX = assembler.DEFAULT_DESIGN_ELEMENT_PREFIX


def desc(name, field_type='text', prop=None, **options):
    """create a FieldDescriptor with plausible metadata"""
    if prop is None:
        prop = PREFIX + name if field_type in core.DESIGN_ELEMENT_TYPES else name
    return assembler.FieldDescriptor(name, field_type, options, {
        'fieldName': name,
        'property': prop,
        'fieldType': field_type,
        'label': name.upper(),
    })


def build(form_type, entity='Book', view='new', **options):
    return form_type.create_builder(entity, view, **options).get_form(StubForm)


def test_no_markers():
    result = assembler.assemble([desc('a'), desc('b'), desc('c', 'integer')], [])
    assert [f.name for f in result.fields] == ['a', 'b', 'c']
    assert result.tabs == {}
    assert result.groups == {}
    assert all(f.tab is None and f.group is None for f in result.fields)


def test_no_listener_without_tabs(form_type):
    builder = form_type.create_builder('Plain', 'new')
    assert builder.get_listeners(lib.FormEvents.POST_SUBMIT) == []
    assert list(builder.fields) == ['a', 'b', 'c']
    builder = form_type.create_builder('Book', 'new')
    assert len(builder.get_listeners(lib.FormEvents.POST_SUBMIT)) == 1


def test_first_tab_active():
    result = assembler.assemble(
        [desc('t1', 'tab'), desc('a'), desc('t2', 'tab'), desc('t3', 'tab'), desc('b')], [])
    assert [(t.id, t.active, t.errors) for t in result.tabs.values()] == [
        ('t1', True, 0), ('t2', False, 0), ('t3', False, 0)]
    assert result.active_tab.id == 't1'


def test_markers_not_rendered_and_order_kept():
    result = assembler.assemble([
        desc('a'),
        desc('t1', 'tab'),
        desc('b'),
        desc('g1', 'group'),
        desc('c'),
        desc('d'),
        desc('t2', 'tab'),
        desc('e'),
    ], [])
    assert [f.name for f in result.fields] == ['a', 'b', 'c', 'd', 'e']
    assert [(f.tab, f.group) for f in result.fields] == [
        (None, None),
        ('t1', None),
        ('t1', 'g1'),
        ('t1', 'g1'),
        ('t2', 'g1'),
    ]
    for f in result.fields:
        assert f.tab is None or f.tab in result.tabs
        assert f.group is None or f.group in result.groups


def test_group_owning_tab():
    result = assembler.assemble(
        [desc('g0', 'group'), desc('t1', 'tab'), desc('g1', 'group'), desc('a')], [])
    assert result.groups['g0'].tab is None
    assert result.groups['g1'].tab == 't1'
    assert result.groups['g1'].metadata['form_tab'] == 't1'
    assert result.groups['g1'].label == 'G1'
    assert result.fields[0].group == 'g1'


def test_group_survives_new_tab():
    """documented behaviour: a new tab does not end the current group"""
    result = assembler.assemble(
        [desc('t1', 'tab'), desc('g1', 'group'), desc('a'), desc('t2', 'tab'), desc('b')], [])
    assert result.fields[1].tab == 't2'
    assert result.fields[1].group == 'g1'
    assert result.groups['g1'].tab == 't1'


def test_design_elements_unmapped():
    result = assembler.assemble([
        desc('line', 'divider', mapped=True, required=True),
        desc('title', 'section'),
        desc('fake', 'text', prop=PREFIX + 'x', required=True),
        desc('real', 'text', required=True),
    ], defs.default_configurators())
    by_name = {f.name: f for f in result.fields}
    for name in ('line', 'title', 'fake'):
        assert by_name[name].options['mapped'] is False
        assert by_name[name].options['required'] is False
    assert 'mapped' not in by_name['real'].options
    assert by_name['real'].options['required'] is True


def test_custom_design_element_prefix():
    result = assembler.assemble(
        [desc('x', prop='~x'), desc('y')], [], design_element_prefix='~')
    assert result.fields[0].options == {'mapped': False, 'required': False}
    assert result.fields[1].options == {}


def test_idempotent():
    descriptors = [
        desc('t1', 'tab'), desc('a', required=False), desc('g', 'group'),
        desc('t2', 'tab'), desc('b', 'checkbox'), desc('c', 'divider'),
    ]
    first = assembler.assemble(descriptors, defs.default_configurators())
    second = assembler.assemble(descriptors, defs.default_configurators())
    assert first == second
    assert list(first.tabs) == list(second.tabs) == ['t1', 't2']
    # the input isn't modified
    assert descriptors[1].options == {'required': False}


def test_configurator_chain():
    calls = []

    class Prefixer:
        def __init__(self, prefix, types_=('text',)):
            self.prefix = prefix
            self.types = types_

        def supports(self, field_type, options, metadata):
            return field_type in self.types

        def configure(self, name, options, metadata, builder):
            calls.append((self.prefix, name))
            options['label'] = self.prefix + options.get('label', '')
            return options

    result = assembler.assemble(
        [desc('a'), desc('b', 'integer')],
        [Prefixer('1'), Prefixer('2', ('text', 'integer')), Prefixer('3')],
    )
    assert calls == [('1', 'a'), ('2', 'a'), ('3', 'a'), ('2', 'b')]
    assert result.fields[0].options['label'] == '321'
    assert result.fields[1].options['label'] == '2'


def test_default_configurators():
    result = assembler.assemble([
        desc('name'),
        assembler.FieldDescriptor('note', 'text', {}, {
            'fieldName': 'note', 'property': 'note', 'fieldType': 'text',
            'label': 'Note', 'help': 'optional', 'nullable': True}),
        desc('flag', 'boolean'),
        assembler.FieldDescriptor('kind', 'choice', {'required': False}, {
            'fieldName': 'kind', 'property': 'kind', 'fieldType': 'choice',
            'choices': {'a': 'A', 'b': 'B'}}),
    ], defs.default_configurators())
    name, note, flag, kind = result.fields
    assert name.options == {'label': 'NAME', 'required': True}
    assert note.options == {'label': 'Note', 'help': 'optional', 'required': False}
    assert flag.type is forms.FieldType.CHECKBOX
    assert flag.options['required'] is False
    assert kind.options['choices'] == [('a', 'A'), ('b', 'B')]
    assert kind.options['expanded'] is False
    assert kind.options['placeholder'] == ''


def test_legacy_types():
    result = assembler.assemble(
        [desc('t', 'easyadmin_tab'), desc('g', 'easyadmin_group'), desc('s', 'string')], [])
    assert list(result.tabs) == ['t']
    assert list(result.groups) == ['g']
    assert result.fields[0].type is forms.FieldType.TEXT


def test_unknown_type():
    with pytest.raises(defs.UnknownFieldTypeError) as info:
        assembler.assemble([desc('a', 'no such type')], [])
    assert isinstance(info.value, ValueError)
    assert info.value.field_type == 'no such type'


def test_error_routing(form_type):
    form = build(form_type)
    form.submit({'title': 'x', 'author': 'y', 'isbn': ['bad checksum', 'too short']})
    tabs = form.create_view().vars['tabs']
    assert tabs['t3'].errors == 2
    assert tabs['t3'].active
    assert not tabs['t1'].active
    assert (tabs['t2'].errors, tabs['t2'].active) == (0, False)
    assert tabs['t1'].errors == 0
    assert not form.is_valid()


def test_error_routing_first_erroneous_tab_wins(form_type):
    form = build(form_type)
    form.submit({'title': ['e'], 'author': ['e1', 'e2', 'e3'], 'isbn': ['e']})
    tabs = form.create_view().vars['tabs']
    assert [(t.errors, t.active) for t in tabs.values()] == [(1, True), (3, False), (1, False)]
    form = build(form_type)
    form.submit({'author': ['e1'], 'isbn': ['e']})
    tabs = form.create_view().vars['tabs']
    assert [(t.errors, t.active) for t in tabs.values()] == [(0, False), (1, True), (1, False)]


def test_error_routing_no_errors(form_type):
    form = build(form_type)
    form.submit({'title': 'x', 'author': 'y', 'isbn': 'z'})
    tabs = form.create_view().vars['tabs']
    assert [(t.errors, t.active) for t in tabs.values()] == [(0, True), (0, False), (0, False)]
    assert form.is_valid()
    assert form.get_data() == types.SimpleNamespace(title='x', author='y', isbn='z')


def test_route_errors_ignores_fields_outside_tabs():
    builder = lib.FormBuilder('f', {'allow_extra_fields': True, 'data_class': None, 'attr': {}})
    for name, tab in (('outside', None), ('inside', 't2')):
        builder.add(builder.create_named_builder(name, forms.FieldType.TEXT)
                    .set_attribute(assembler.TAB_ATTRIBUTE, tab))
    form = builder.get_form(StubForm)
    form.submit({'outside': ['e'], 'inside': ['e']})
    tabs = {
        't1': assembler.TabDescriptor('t1', None, active=True),
        't2': assembler.TabDescriptor('t2', None),
    }
    assert assembler.route_errors(tabs, form) == 't2'
    assert (tabs['t1'].active, tabs['t1'].errors) == (False, 0)
    assert (tabs['t2'].active, tabs['t2'].errors) == (True, 1)


def test_finish_view(form_type):
    view = build(form_type).create_view()
    assert list(view.vars['tabs']) == ['t1', 't2', 't3']
    assert list(view.vars['groups']) == ['g1']
    assert view.vars['groups']['g1'].tab == 't2'
    assert view.vars['attr'] == {'id': 'new-book-form'}


def test_options(form_type):
    options = form_type.create_builder('Book', 'edit').options
    assert options['allow_extra_fields'] is True
    assert options['data_class'] is types.SimpleNamespace
    assert options['attr'] == {'id': 'edit-book-form'}
    options = form_type.create_builder(
        'Plain', 'new', attr={'id': 'mine', 'class': 'x'}, allow_extra_fields=False).options
    assert options['attr'] == {'id': 'mine', 'class': 'x'}
    assert options['allow_extra_fields'] is False
    assert options['data_class'] is None
    with pytest.raises(lib.OptionsError):
        lib.create_builder(form_type, {'entity': 'Book'})
    with pytest.raises(lib.OptionsError):
        form_type.create_builder('Book', 'new', colour='red')


def test_unknown_entity(form_type):
    with pytest.raises(core.EntityNotFoundError):
        form_type.create_builder('Nothing', 'new')


def test_registry(config_manager):
    registry = forms.instantiate(config_manager)
    form_type = registry.get('admin')
    assert isinstance(form_type, forms.FormAssembler)
    assert registry.get('easyadmin') is form_type
    assert 'easyadmin' in registry
    assert 'other' not in registry
    with pytest.raises(KeyError):
        registry.get('other')


def test_legacy_entity_config():
    manager = core.ConfigManager({'Legacy': {
        'class': 'types:SimpleNamespace',
        'form': {'fields': [
            {'type': 'easyadmin_tab', 'id': 't1'},
            'a',
            {'type': 'easyadmin_divider', 'property': 'sep'},
            {'type': 'easyadmin_group', 'id': 'g'},
            {'property': 'b', 'type': 'boolean'},
        ]},
    }})
    builder = forms.FormAssembler(manager).create_builder('Legacy', 'new')
    assert list(builder.fields) == ['a', PREFIX + '2', 'b']
    divider = builder.get(PREFIX + '2')
    assert divider.options['mapped'] is False
    assert divider.options['required'] is False
    assert 'label' not in divider.options
    form = builder.get_form(StubForm).submit({'a': 'x'})
    assert form.get_data() == types.SimpleNamespace(a='x', b=None)
    view = form.create_view()
    assert list(view.vars['tabs']) == ['t1']
    assert list(view.vars['groups']) == ['g']


def test_legacy_type_logged_once(caplog):
    with caplog.at_level(logging.DEBUG):
        assembler.assemble(
            [desc('t', 'easyadmin_tab'), desc('flag', 'boolean'), desc('x', 'easyadmin_divider')],
            defs.default_configurators(),
        )
    messages = [r.getMessage() for r in caplog.records if 'legacy field type' in r.getMessage()]
    assert len(messages) == 3
    assert "'flag'" in messages[1]


def test_explicit_checkbox_required():
    def checkbox(name, options, field_type='checkbox'):
        return assembler.FieldDescriptor(name, field_type, options, {
            'fieldName': name, 'property': name, 'fieldType': field_type})

    result = assembler.assemble([
        checkbox('agree', {'required': True}),
        checkbox('news', {}),
        checkbox('terms', {'required': True}, 'boolean'),
    ], defs.default_configurators())
    assert [f.options['required'] for f in result.fields] == [True, False, True]
