"""Utilities. Everything that is neither core nor forms

contents (for use):
    - get_name() -- get a pretty name
    - humanize() -- make a pretty name out of an internal one
"""

import re
import functools
import operator
import logging

from . import config


def humanize(internal: str) -> str:
    """turn ``"some_fieldName"`` into ``"Some field name"``"""
    words = re.sub(r'(?<=[a-z0-9])(?=[A-Z])', ' ', internal.strip('_')).replace('_', ' ')
    words = ' '.join(words.split()).lower()
    return words[:1].upper() + words[1:]


def get_name(internal: str):
    """Get an end-user suitable name.

    Try lookup in the loaded name data (config.utils.names.data).
    "<namespace>::<name>" may specify a namespace in which lookups are performed first,
        falling back to the global names if nothing is found.
        Namespaces may be nested.
    If a name isn't found, it is logged (unless debugging) and
        the humanized last component returned
    """
    internal = internal.lower()
    *path, name = internal.split('::')
    names = config.utils.names.data.mapping
    components = 2**len(path)
    look_in = []
    while components:
        components -= 1
        try:
            look_in.append(functools.reduce(
                operator.getitem,
                (ns for i, ns in enumerate(path, 1) if components & (1 << (len(path) - i))),
                names))
        except (KeyError, TypeError):
            pass
    for ns in look_in:
        if isinstance(ns, str):
            continue
        try:
            val = ns[name]
            if isinstance(val, str):
                return val
            elif isinstance(val, dict):
                return val['*this*']
            else:
                raise TypeError('{!r} is neither dict nor str'.format(val))
        except KeyError:
            pass
    if not config.debug:
        logging.warning('Name "{}" was not found in the namefile'.format(internal))
    return humanize(name)
