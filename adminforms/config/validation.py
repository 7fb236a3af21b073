"""Validation extensions"""

import re
import copy
import base64
import binascii
import os

import jsonschema
from jsonschema import validators

format_checker = jsonschema.FormatChecker()
PYTHON_PATH_REGEX = re.compile(r'^[A-Za-z_]\w*(\.[A-Za-z_]\w*)*([:.][A-Za-z_]\w*)?$')


@format_checker.checks('base64bytes', raises=(binascii.Error, ValueError))
def is_base64bytes(value):
    """check whether the value is base64-encoded data"""
    if not isinstance(value, str):
        return True
    base64.b64decode(value, validate=True)
    return True


@format_checker.checks('regex', raises=re.error)
def is_regex(value):
    """check whether the value is a valid regex"""
    if not isinstance(value, str):
        return True
    re.compile(value)
    return True


@format_checker.checks('python-path')
def is_python_path(value):
    """check whether the value looks like ``package.module:attribute``"""
    if not isinstance(value, str):
        return True
    return PYTHON_PATH_REGEX.match(value) is not None


@format_checker.checks('log-file')
def is_log_file(value):
    """check whether the log file's directory exists (empty means STDOUT)"""
    if not isinstance(value, str) or not value:
        return True
    return os.path.isdir(os.path.dirname(value) or os.curdir)


def extend_with_default(validator_class):
    """insert ``default`` values of missing properties while validating"""
    validate_properties = validator_class.VALIDATORS['properties']

    def set_defaults(validator, properties, instance, schema):
        if validator.is_type(instance, 'object'):
            for prop, subschema in properties.items():
                if 'default' in subschema:
                    instance.setdefault(prop, copy.deepcopy(subschema['default']))
        yield from validate_properties(validator, properties, instance, schema)

    return validators.extend(validator_class, {'properties': set_defaults})


_DefaultingValidator = extend_with_default(jsonschema.Draft7Validator)


def validator(schema):
    """return a validator for ``schema`` filling defaults and checking formats"""
    return _DefaultingValidator(schema, format_checker=format_checker)
