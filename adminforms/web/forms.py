"""Form handling"""

import itertools

import markupsafe
from markupsafe import escape

from .. import forms, utils
from ..forms import assembler
from . import widgets


class FormTmpl(forms.Form):
    def make_widget(self, field):
        return widgets.by_type[field.type](self, field)

    def get_name(self, name):
        """redirect to utils.get_name inserting a form-specific prefix"""
        return utils.get_name('::'.join(
            ('form', self.options['entity'], self.options['view'], name)))

    def render_fields(self, fields, data, groups):
        """render fields, wrapping consecutive ones of the same group in a fieldset"""
        parts = []
        for group_id, group_fields in itertools.groupby(
                fields, lambda f: f.config.get_attribute(assembler.GROUP_ATTRIBUTE)):
            rendered = ''.join(f.widget.render(data) for f in group_fields)
            if group_id is None:
                parts.append(rendered)
                continue
            group = groups[group_id]
            parts.append(
                f'<fieldset class="form-group" id="{escape(self.name)}-group-{escape(group_id)}">'
                + (f'<legend>{escape(group.label)}</legend>' if group.label else '')
                + rendered + '</fieldset>'
            )
        return ''.join(parts)

    def render_tabs(self, tabs, data, groups):
        by_tab = {}
        for field in self:
            by_tab.setdefault(field.config.get_attribute(assembler.TAB_ATTRIBUTE), []).append(field)
        nav = ''.join(
            f'<li class="{"active" if tab.active else ""}">'
            f'<a href="#{escape(self.name)}-tab-{escape(tab_id)}" data-tab="{escape(tab_id)}">'
            f'{escape(tab.label or self.get_name(tab_id))}'
            + (f' <span class="badge error-count">{tab.errors}</span>' if tab.errors else '')
            + '</a></li>'
            for tab_id, tab in tabs.items()
        )
        panes = ''.join(
            f'<div class="tab-pane{" active" if tab.active else ""}"'
            f' id="{escape(self.name)}-tab-{escape(tab_id)}">'
            + self.render_fields(by_tab.get(tab_id, ()), data, groups)
            + '</div>'
            for tab_id, tab in tabs.items()
        )
        return (
            self.render_fields(by_tab.get(None, ()), data, groups)
            + f'<ul class="nav-tabs">{nav}</ul><div class="tab-content">{panes}</div>'
        )

    def render(self):
        view = self.create_view()
        tabs = view.vars['tabs']
        groups = view.vars['groups']
        data = self.raw_data
        if tabs:
            body = self.render_tabs(tabs, data, groups)
        else:
            body = self.render_fields(self, data, groups)
        return markupsafe.Markup(''.join((
            '<form method="POST"',
            widgets.render_attributes(view.vars['attr']),
            '>',
            *(f'<p class="form-error">{escape(e)}</p>' for e in view.vars['errors']),
            body,
            '<input type="submit">',
            '</form>'
        )))


def create(registry, entity, view, data=None):
    """build the form for ``view`` of ``entity``, optionally with initial data"""
    builder = registry.get('admin').create_builder(entity, view, attr={'novalidate': True})
    form = builder.get_form(FormTmpl)
    if data is not None:
        form.set_data(data)
    return form
