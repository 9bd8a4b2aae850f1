from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional
import structlog

from dirmatrix.util import split_comma_list

log = structlog.get_logger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_REQUEST_TIMEOUT = 30.0
HIDDEN_NAME_MARKER = "."
TRUE_STRINGS = {"true", "yes", "on", "1"}
FALSE_STRINGS = {"false", "no", "off", "0", ""}

def _coerce_flag(name: str, value) -> bool:
    # toml files may carry "false" and similar strings where a bool is expected.
    if not isinstance(value, str):
        return bool(value)
    lowered = value.strip().lower()
    if lowered in TRUE_STRINGS:
        return True
    if lowered not in FALSE_STRINGS:
        log.warning("invalid_boolean_string_treated_as_false", option=name, input_string=value)
    return False

class ChangeBackend(Enum):
    # where the change set comes from when changed-only is enabled.
    API = "api"
    GIT = "git"

    @classmethod
    def from_string(cls, s: Optional[str]) -> Optional["ChangeBackend"]:
        if not s:
            return None
        try:
            return cls(s.lower())
        except ValueError:
            log.warning("invalid_change_backend_string", input_string=s)
            return None

@dataclass
class MatrixConfig:
    # holds all configuration parameters for a single run.
    root_path: Optional[Path] = None
    include_hidden: bool = False
    exclude: List[str] = field(default_factory=list)
    filter_pattern: Optional[str] = None
    metadata_file: Optional[str] = None
    changed_only: bool = False
    change_backend: ChangeBackend = ChangeBackend.API
    token: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    # event context overrides; unset values fall back to the GITHUB_* environment.
    event_name: Optional[str] = None
    repository: Optional[str] = None
    sha: Optional[str] = None
    before: Optional[str] = None
    pr_number: Optional[int] = None
    base_ref: Optional[str] = None

    output_file: Optional[Path] = None

    def __post_init__(self):
        # normalizes values that may arrive as strings from toml files.
        self.include_hidden = _coerce_flag("include_hidden", self.include_hidden)
        self.changed_only = _coerce_flag("changed_only", self.changed_only)
        self.exclude = split_comma_list(self.exclude)
        if isinstance(self.root_path, str):
            self.root_path = Path(self.root_path) if self.root_path.strip() else None
        if isinstance(self.output_file, str):
            self.output_file = Path(self.output_file) if self.output_file.strip() else None
        if isinstance(self.change_backend, str):
            self.change_backend = ChangeBackend.from_string(self.change_backend) or ChangeBackend.API
        if self.filter_pattern is not None and not self.filter_pattern.strip():
            self.filter_pattern = None
        if self.metadata_file is not None and not self.metadata_file.strip():
            self.metadata_file = None

    @property
    def uses_api_backend(self) -> bool:
        return self.changed_only and self.change_backend == ChangeBackend.API
