# dirmatrix/config/__init__.py
"""Run configuration: the settings dataclass and the toml file loader."""
from .settings import MatrixConfig, ChangeBackend

__all__ = ["MatrixConfig", "ChangeBackend"]
