"""Spring Legal Consultancy site backend."""

__version__ = "1.0.0"
