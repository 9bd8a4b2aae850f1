# dirmatrix/__init__.py
"""Build CI matrix descriptors from the subdirectories of a project tree."""

__version__ = "0.3.0"
