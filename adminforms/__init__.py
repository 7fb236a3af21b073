"""Build admin panel forms from declarative entity configuration.

Fields are grouped into tabs and groups; after submission the tab holding
the first invalid field is shown first.
"""
