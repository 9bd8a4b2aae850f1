# dirmatrix/core/changes/__init__.py
"""
Change detection for dirmatrix.

Narrows the candidate directories to those touched by the triggering push or
pull request, using either the GitHub REST api or a local `git diff`.
"""
from .context import EventContext, EventKind
from .scope import ChangeScopeFilter, directory_has_changes

__all__ = ["EventContext", "EventKind", "ChangeScopeFilter", "directory_has_changes"]
