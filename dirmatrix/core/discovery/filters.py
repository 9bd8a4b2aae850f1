# dirmatrix/core/discovery/filters.py
import re
from enum import Enum
from typing import Iterable, List, Optional, Pattern
import structlog

from dirmatrix.config.settings import MatrixConfig, HIDDEN_NAME_MARKER
from dirmatrix.exceptions import ConfigError

log = structlog.get_logger(__name__)


class RejectReason(Enum):
    # the single rule responsible for dropping a candidate directory.
    HIDDEN = "hidden directory"
    EXCLUDED = "excluded by exclude list"
    PATTERN_MISMATCH = "does not match filter pattern"
    UNCHANGED = "no changes detected"


def compile_filter_pattern(pattern: Optional[str]) -> Optional[Pattern[str]]:
    # compiles the user's regex filter; an invalid pattern is a configuration error.
    if pattern is None or not pattern.strip():
        return None
    pattern = pattern.strip()
    try:
        compiled = re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"Invalid regex pattern in filter: {pattern}. Error: {e}") from e
    log.debug("compiled_regex_filter", pattern=pattern)
    return compiled


def is_hidden_name(name: str) -> bool:
    return name.startswith(HIDDEN_NAME_MARKER)


class StaticFilterChain:
    """
    Hidden-name, exclude-list and pattern filters, applied in that order.
    The pattern is compiled on construction so a bad regex fails before any
    directory is looked at.
    """

    def __init__(self, config: MatrixConfig):
        self.include_hidden = config.include_hidden
        self.exclude_names = frozenset(config.exclude)
        self.pattern = compile_filter_pattern(config.filter_pattern)

    def rejection_reason(self, name: str) -> Optional[RejectReason]:
        if not self.include_hidden and is_hidden_name(name):
            return RejectReason.HIDDEN
        if name in self.exclude_names:
            return RejectReason.EXCLUDED
        if self.pattern is not None and not self.pattern.search(name):
            return RejectReason.PATTERN_MISMATCH
        return None

    def apply(self, names: Iterable[str]) -> List[str]:
        kept: List[str] = []
        for name in names:
            reason = self.rejection_reason(name)
            if reason is not None:
                log.info("skipping_directory", directory=name, reason=reason.value)
                continue
            kept.append(name)
        return kept
