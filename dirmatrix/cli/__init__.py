# dirmatrix/cli/__init__.py
from .interface import main_cli

__all__ = ["main_cli"]
