"""common fixtures"""
import os
import pathlib

import pytest

os.environ['ADMINFORMS_CONFIG'] = str(pathlib.Path(__file__).with_name('test_config.yaml'))

from adminforms import core, forms  # noqa
from adminforms.forms import lib  # noqa

ENTITIES = {
    'Book': {
        'class': 'types:SimpleNamespace',
        'form': {'fields': [
            {'type': 'tab', 'id': 't1', 'label': 'T1'},
            'title',
            {'type': 'tab', 'id': 't2', 'label': 'T2'},
            {'type': 'group', 'id': 'g1', 'label': 'G1'},
            'author',
            {'type': 'tab', 'id': 't3', 'label': 'T3'},
            'isbn',
        ]},
    },
    'Plain': {
        'form': {'fields': ['a', 'b', 'c']},
    },
}


class StubWidget:
    """values given as lists are taken as error messages"""
    def __init__(self, field):
        self.field = field

    def validate(self, data):
        value = data.get(self.field.name)
        if isinstance(value, list):
            raise lib.ValidationError(*value)
        return value


class StubForm(lib.Form):
    def make_widget(self, field):
        return StubWidget(field)


@pytest.fixture
def config_manager():
    return core.ConfigManager(ENTITIES)


@pytest.fixture
def form_type(config_manager):
    return forms.FormAssembler(config_manager)
