"""Widget definitions for forms"""

import re
import datetime

from markupsafe import Markup, escape

from ..forms import FieldType
from ..forms.lib import ValidationError

EMAIL_REGEX = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def render_attributes(attr):
    return ''.join(
        f' {escape(k)}' if v is True else f' {escape(k)}="{escape(v)}"'
        for k, v in attr.items() if v is not None and v is not False
    )


class BaseWidget:
    def __init__(self, form, field):
        self.form = form
        self.field = field
        self.name = field.name
        self.options = field.options

    @property
    def required(self):
        return self.field.required

    @property
    def label(self):
        label = self.options.get('label')
        if label is None:
            return self.form.get_name(self.name)
        return label

    @property
    def attr(self):
        return {'id': self.dom_id, **(self.options.get('attr') or {})}

    @property
    def dom_id(self):
        return f'{self.form.name}_{self.name}'

    def _error(self, reason):
        raise ValidationError(self.form.get_name(f'{self.name}::error::{reason}'))

    def validate(self, data):
        return self._simple_validate(data.get(self.name))

    def _simple_validate(self, value):
        if not value:
            if self.required:
                self._error('empty')
            return None
        return value

    def render(self, data):
        help_text = self.options.get('help')
        return Markup(
            f'<div class="form-field{" has-error" if self.field.errors else ""}">'
            f'<label for="{escape(self.dom_id)}">{escape(self.label)}'
            f'{"*" if self.required else ""}</label>'
            f'<div>{self._simple_render(data.get(self.name))}</div>'
            + (f'<small class="help">{escape(help_text)}</small>' if help_text else '')
            + ''.join(f'<span class="error">{escape(e)}</span>' for e in self.field.errors)
            + '</div>'
        )

    def _simple_render(self, value):
        raise NotImplementedError


class Entry(BaseWidget):
    input_type = 'text'

    def _simple_render(self, value):
        return (
            f'<input name="{escape(self.name)}" type="{self.input_type}"'
            f' value="{escape(value if value is not None else "")}"'
            + render_attributes({'required': self.required, **self.attr}) + '>'
        )


class EmailEntry(Entry):
    input_type = 'email'

    def _simple_validate(self, value):
        value = super()._simple_validate(value)
        if value is not None and EMAIL_REGEX.match(value) is None:
            self._error('email')
        return value


class PasswordEntry(Entry):
    input_type = 'password'

    def _simple_render(self, value):
        return super()._simple_render(None)


class IntegerEntry(Entry):
    input_type = 'number'
    transform = int

    def _simple_validate(self, value):
        value = super()._simple_validate(value)
        if value is None:
            return None
        try:
            return self.transform(value)
        except ValueError:
            self._error('transform')


class NumberEntry(IntegerEntry):
    transform = float


class DateEntry(IntegerEntry):
    input_type = 'date'
    transform = datetime.date.fromisoformat


class Textarea(BaseWidget):
    def _simple_render(self, value):
        return (
            f'<textarea name="{escape(self.name)}"'
            + render_attributes({'required': self.required, **self.attr})
            + f'>{escape(value or "")}</textarea>'
        )


class Checkbox(BaseWidget):
    def validate(self, data):
        checked = self.name in data
        if self.required and not checked:
            self._error('unchecked')
        return checked

    def _simple_render(self, value=False):
        return (
            f'<input name="{escape(self.name)}" type="checkbox"'
            + render_attributes({'checked': bool(value), 'required': self.required, **self.attr})
            + '>'
        )


class ChoiceWidget(BaseWidget):
    def __init__(self, form, field):
        super().__init__(form, field)
        self.choices = list(self.options.get('choices') or ())

    def _simple_validate(self, value):
        value = super()._simple_validate(value)
        if value is None:
            return None
        try:
            return next(v for v, _ in self.choices if str(v) == value)
        except StopIteration:
            self._error('invalid_choice')

    def _simple_render(self, value=None):
        if self.options.get('expanded'):
            return ''.join(
                f'<label><input type="radio" name="{escape(self.name)}" value="{escape(val)}"'
                + render_attributes({
                    'checked': value is not None and str(val) == str(value),
                    'required': self.required,
                })
                + f'>{escape(display)}</label>'
                for val, display in self.choices
            )
        choices = list(self.choices)
        if 'placeholder' in self.options:
            choices.insert(0, ('', self.options['placeholder']))
        options = ''.join(
            f'<option value="{escape(val)}"'
            + render_attributes({'selected': value is not None and str(val) == str(value)})
            + f'>{escape(display)}</option>'
            for val, display in choices
        )
        return (
            f'<select name="{escape(self.name)}"'
            + render_attributes({'required': self.required, **self.attr})
            + f'>{options}</select>'
        )


class DesignElement(BaseWidget):
    """Cosmetic elements. They never have a value"""

    def validate(self, data):
        return None

    def render(self, data):
        return Markup(self._simple_render(None))


class Divider(DesignElement):
    def _simple_render(self, value):
        return f'<hr{render_attributes(self.attr)}>'


class Section(DesignElement):
    def _simple_render(self, value):
        label = self.options.get('label')
        help_text = self.options.get('help')
        return (
            f'<div{render_attributes(self.attr)}>'
            + (f'<h3>{escape(label)}</h3>' if label else '')
            + (f'<p class="help">{escape(help_text)}</p>' if help_text else '')
            + '</div>'
        )


by_type = {
    FieldType.TEXT: Entry,
    FieldType.EMAIL: EmailEntry,
    FieldType.PASSWORD: PasswordEntry,
    FieldType.INTEGER: IntegerEntry,
    FieldType.NUMBER: NumberEntry,
    FieldType.DATE: DateEntry,
    FieldType.TEXTAREA: Textarea,
    FieldType.CHECKBOX: Checkbox,
    FieldType.CHOICE: ChoiceWidget,
    FieldType.DIVIDER: Divider,
    FieldType.SECTION: Section,
}
