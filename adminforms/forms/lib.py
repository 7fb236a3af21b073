"""Form component: builders, built forms, events and option resolution

Forms are described by a form type (see ``assembler.FormAssembler``),
which contributes options to an ``OptionsResolver`` and adds fields to a
``FormBuilder``. A ``Form`` is then created from the builder.

To actually use the forms, you need to override the ``make_widget`` method
specifying how widget instances are actually constructed.
Widgets must provide ``validate(data)``, returning the field value or raising
``ValidationError`` with one message per argument.
"""

import copy
import enum
import logging
import typing as T


class ValidationError(Exception):
    """A submitted value is invalid. ``.args`` are the error messages"""


class OptionsError(ValueError):
    """Invalid options were passed to a form type"""


class FormEvents(enum.Enum):
    PRE_SUBMIT = 'form.pre_submit'
    SUBMIT = 'form.submit'
    POST_SUBMIT = 'form.post_submit'


class FormEvent:
    """Passed to event listeners. Listeners may replace ``.data``"""

    def __init__(self, form, data):
        self.form = form
        self.data = data


class Lazy:
    """Mark an option default as computed from the other resolved options"""

    def __init__(self, func: T.Callable[[dict], T.Any]):
        self.func = func


class OptionsResolver:
    """Check given options, apply defaults and normalize values

    Defaults wrapped in ``Lazy`` are computed after all other options
    are known, normalizers run last and receive ``(options, value)``.
    """

    def __init__(self):
        self.defaults = {}
        self.required = []
        self.normalizers = {}

    @property
    def defined(self):
        return set(self.defaults) | set(self.required)

    def set_defaults(self, defaults: T.Mapping[str, T.Any]):
        self.defaults.update(defaults)
        return self

    def set_required(self, names: T.Iterable[str]):
        for name in names:
            if name not in self.required:
                self.required.append(name)
        return self

    def set_normalizer(self, name: str, normalizer: T.Callable[[dict, T.Any], T.Any]):
        if name not in self.defined:
            raise OptionsError(f'cannot normalize undefined option {name!r}')
        self.normalizers[name] = normalizer
        return self

    def resolve(self, options: T.Mapping[str, T.Any]) -> dict:
        """return the complete options

        :raise OptionsError: on unknown or missing options
        """
        unknown = set(options) - self.defined
        if unknown:
            raise OptionsError('unknown options: ' + ', '.join(sorted(unknown)))
        missing = [n for n in self.required if n not in options]
        if missing:
            raise OptionsError('missing required options: ' + ', '.join(missing))
        resolved = dict(options)
        lazy = {}
        for name, default in self.defaults.items():
            if name in resolved:
                continue
            if isinstance(default, Lazy):
                lazy[name] = default
            else:
                resolved[name] = copy.deepcopy(default)
        for name, default in lazy.items():
            resolved[name] = default.func(resolved)
        for name, normalizer in self.normalizers.items():
            resolved[name] = normalizer(resolved, resolved.get(name))
        return resolved


def configure_base_options(resolver: OptionsResolver):
    """options every form has"""
    resolver.set_defaults({
        'attr': {},
        'allow_extra_fields': False,
        'data_class': None,
    })


class FieldBuilder:
    """Configuration of a single field, including arbitrary attributes"""

    def __init__(self, name: str, field_type, options: T.Optional[dict] = None):
        self.name = name
        self.type = field_type
        self.options = dict(options or {})
        self.attributes = {}

    def set_attribute(self, name, value):
        self.attributes[name] = value
        return self

    def get_attribute(self, name, default=None):
        return self.attributes.get(name, default)

    def has_attribute(self, name):
        return name in self.attributes

    def __repr__(self):
        return f'<{type(self).__name__} {self.name!r} ({self.type})>'


class FormBuilder(FieldBuilder):
    """Collect fields, attributes and event listeners of a form"""

    def __init__(self, name: str, options: T.Optional[dict] = None, form_type=None):
        super().__init__(name, form_type, options)
        self.fields: 'dict[str, FieldBuilder]' = {}
        self.listeners: 'dict[FormEvents, list[tuple[int, int, T.Callable]]]' = {
            e: [] for e in FormEvents}

    def create_named_builder(self, name, field_type, options=None) -> FieldBuilder:
        return FieldBuilder(name, field_type, options)

    def add(self, field: FieldBuilder):
        self.fields[field.name] = field
        return self

    def get(self, name) -> FieldBuilder:
        return self.fields[name]

    def has(self, name):
        return name in self.fields

    def remove(self, name):
        del self.fields[name]
        return self

    def add_event_listener(self, event: FormEvents, listener: T.Callable[[FormEvent], None],
                           priority: int = 0):
        """register ``listener`` for ``event``

        Listeners with a higher priority are called first,
        listeners with equal priorities in order of registration.
        """
        listeners = self.listeners[event]
        listeners.append((-priority, len(listeners), listener))
        listeners.sort(key=lambda x: x[:2])
        return self

    def get_listeners(self, event: FormEvents):
        return [listener for *__, listener in self.listeners[event]]

    def get_form(self, form_cls=None):
        if form_cls is None:
            form_cls = Form
        return form_cls(self)


def create_builder(form_type, options: T.Mapping[str, T.Any], name=None) -> FormBuilder:
    """resolve ``options`` for ``form_type`` and let it build a form"""
    resolver = OptionsResolver()
    configure_base_options(resolver)
    form_type.configure_options(resolver)
    options = resolver.resolve(options)
    builder = FormBuilder(name or form_type.block_prefix, options, form_type)
    form_type.build_form(builder, options)
    return builder


class FormView:
    """Variables passed on to rendering"""

    def __init__(self, form, variables):
        self.form = form
        self.vars = variables


class Field:
    """A field of a built form"""

    def __init__(self, form, config: FieldBuilder):
        self.form = form
        self.config = config
        self.name = config.name
        self.type = config.type
        self.options = config.options
        self.errors = []
        self.value = None
        self.widget = form.make_widget(self)

    @property
    def mapped(self):
        return self.options.get('mapped', True)

    @property
    def required(self):
        return self.options.get('required', True)

    def get_errors(self):
        return list(self.errors)

    def submit(self, data):
        try:
            self.value = self.widget.validate(data)
        except ValidationError as e:
            self.errors.extend(e.args)

    def __repr__(self):
        return f'<{type(self).__name__} {self.name!r} ({self.type})>'


class Form:
    """A form built from a ``FormBuilder``

    Iterating over a form yields its fields in order.
    """

    def __init__(self, config: FormBuilder):
        self.config = config
        self.name = config.name
        self.options = config.options
        self.children: 'dict[str, Field]' = {}
        for name, field_config in config.fields.items():
            self.children[name] = Field(self, field_config)
        self.errors = []
        self.submitted = False
        self.raw_data = {}
        self.data = None

    def make_widget(self, field: Field):
        """Override this method to actually create widgets"""
        raise NotImplementedError

    def __iter__(self):
        return iter(self.children.values())

    def __getitem__(self, item) -> Field:
        return self.children[item]

    def __len__(self):
        return len(self.children)

    def set_data(self, data):
        """set initial (raw) data"""
        if self.submitted:
            raise RuntimeError('cannot set data of a submitted form')
        self.raw_data = data
        return self

    def dispatch(self, event_name: FormEvents, data):
        event = FormEvent(self, data)
        for listener in self.config.get_listeners(event_name):
            listener(event)
        return event

    def submit(self, data):
        """validate all fields with ``data`` and call event listeners"""
        if self.submitted:
            raise RuntimeError('a form can only be submitted once')
        self.submitted = True
        data = self.dispatch(FormEvents.PRE_SUBMIT, data).data
        self.raw_data = data
        for field in self:
            field.submit(data)
        if not self.options['allow_extra_fields']:
            extra = [k for k in data if k not in self.children]
            if extra:
                self.errors.append('This form should not contain extra fields: '
                                   + ', '.join(map(str, extra)))
        self.data = {field.name: field.value for field in self if field.mapped}
        self.data = self.dispatch(FormEvents.SUBMIT, self.data).data
        self.dispatch(FormEvents.POST_SUBMIT, self.data)
        logging.debug(f'form {self.name} submitted with {self.count_errors()} error(s)')
        return self

    def get_errors(self, deep=False):
        """form-level errors, with ``deep`` also the errors of all fields"""
        errors = list(self.errors)
        if deep:
            for field in self:
                errors.extend(field.get_errors())
        return errors

    def count_errors(self):
        return len(self.get_errors(deep=True))

    def is_valid(self):
        return self.submitted and not self.count_errors()

    def get_data(self):
        """submitted mapped data, an instance of the ``data_class`` option if given"""
        if not self.submitted:
            raise RuntimeError('form has not been submitted')
        data_class = self.options['data_class']
        if data_class is None:
            return dict(self.data)
        return data_class(**self.data)

    def create_view(self) -> FormView:
        view = FormView(self, {
            'name': self.name,
            'attr': self.options['attr'],
            'errors': self.get_errors(),
            'submitted': self.submitted,
            'valid': self.is_valid(),
        })
        form_type = self.config.type
        if form_type is not None:
            form_type.finish_view(view, self, self.options)
        return view
