"""Main application entry point"""

import logging

import flask
from flask import request

from .. import core, forms as form_types, utils, config
from . import forms

app = flask.Flask('adminforms.web')
app.secret_key = config.web.secret_key
config_manager = core.ConfigManager(config.entities.mapping, config.core.design_element_prefix)
registry = form_types.instantiate(config_manager)


def render_tmpl(form, tmpl='base.html', **kwargs):
    return flask.render_template(tmpl, form=form, get_name=utils.get_name, **kwargs)


@app.route('/')
def index():
    entities = [(name, config_manager.get_entity_config(name)['label'])
                for name in config_manager.entity_names]
    return render_tmpl(None, 'index.html', entities=entities)


@app.route('/<entity>/<any("new", "edit"):view>', methods=('GET', 'POST'))
def entity_form(entity, view):
    try:
        form = forms.create(registry, entity, view, request.args)
    except core.AdminFormsBaseError as e:
        flask.flash(e.message, 'error')
        return flask.redirect(flask.url_for('index'))
    msgs = []
    if request.method == 'POST':
        form.submit(request.form)
        if form.is_valid():
            result = form.get_data()
            logging.info(f'{view} {entity} submitted: {result!r}')
            flask.flash(utils.get_name('{}_saved').format(
                config_manager.get_entity_config(entity)['label']), 'success')
            return flask.redirect(flask.url_for('index'))
        msgs = [('error', msg) for msg in form.get_errors()]
        msgs.append(('error', utils.get_name('form_has_{}_errors').format(form.count_errors())))
    entity_config = config_manager.get_entity_config(entity)
    title = entity_config[view]['title'] or f'{entity_config["label"]}: {utils.get_name(view)}'
    return render_tmpl(form.render(), title=title, messages=msgs)
