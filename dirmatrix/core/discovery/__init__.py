# dirmatrix/core/discovery/__init__.py
"""
Directory discovery for dirmatrix.

Lists the immediate subdirectories of the scan root and applies the static
filters (hidden names, exclude list, regex pattern) to them.
"""
from .enumerator import list_subdirectories
from .filters import StaticFilterChain, RejectReason, compile_filter_pattern

__all__ = ["list_subdirectories", "StaticFilterChain", "RejectReason", "compile_filter_pattern"]
