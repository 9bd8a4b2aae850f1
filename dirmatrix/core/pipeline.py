# dirmatrix/core/pipeline.py
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn
from rich.console import Console as RichConsole
import structlog
import logging as stdlib_logging

from dirmatrix.config.settings import MatrixConfig
from dirmatrix.core.changes.context import EventContext
from dirmatrix.core.changes.github import GitHubClient
from dirmatrix.core.changes.scope import ChangeScopeFilter, GitDiffRunner
from dirmatrix.core.changes.git_utils import get_changed_paths
from dirmatrix.core.discovery.enumerator import list_subdirectories
from dirmatrix.core.discovery.filters import StaticFilterChain
from dirmatrix.core.metadata import MatrixEntry, enrich_directories
from dirmatrix.core.output import build_matrix, serialize_matrix
from dirmatrix.exceptions import ConfigError, DirMatrixError

log = structlog.get_logger(__name__)


@dataclass
class MatrixResult:
    matrix: Dict[str, Any]
    directories: List[str]
    entries: Optional[List[MatrixEntry]] = None

    def to_json(self) -> str:
        return serialize_matrix(self.matrix)


class MatrixGenerator:
    # orchestrates enumerate -> static filter -> change scope -> enrich -> matrix.
    def __init__(
        self,
        config: MatrixConfig,
        context: Optional[EventContext] = None,
        client: Optional[GitHubClient] = None,
        git_runner: GitDiffRunner = get_changed_paths,
    ):
        self.config: MatrixConfig = config
        self.context = context
        self.client = client
        self.git_runner = git_runner
        self.log = structlog.get_logger(f"{__name__}.{self.__class__.__name__}")

    def _validate(self) -> StaticFilterChain:
        # configuration errors surface here, before the filesystem is touched.
        if self.config.root_path is None:
            raise ConfigError("Input required and not supplied: path")

        filter_chain = StaticFilterChain(self.config)

        if self.config.changed_only:
            if self.config.uses_api_backend and not self.config.token:
                raise ConfigError("GITHUB_TOKEN is required when changed-only is set to true")
            if self.context is None:
                self.context = EventContext.from_environment(self.config)
        return filter_chain

    def _log_configuration(self):
        self.log.info(
            "configuration",
            path=str(self.config.root_path),
            include_hidden=self.config.include_hidden,
            exclude=", ".join(self.config.exclude) or "none",
            filter=self.config.filter_pattern or "none",
            metadata_file=self.config.metadata_file or "none",
            changed_only=self.config.changed_only,
            change_backend=self.config.change_backend.value if self.config.changed_only else None,
        )

    def _apply_change_scope(self, candidates: List[str]) -> List[str]:
        scope_filter = ChangeScopeFilter(self.config, self.context, client=self.client, git_runner=self.git_runner)
        if not candidates:
            # the change set is still resolved so an empty or failed fetch is reported.
            if self.config.uses_api_backend:
                scope_filter.change_set()
            return []

        app_log_level = stdlib_logging.getLogger("dirmatrix").getEffectiveLevel()
        progress_disabled = app_log_level > stdlib_logging.INFO or not sys.stderr.isatty()
        stderr_console = RichConsole(file=sys.stderr)

        with Progress(
            SpinnerColumn(), TextColumn("[bold blue]{task.description}"), BarColumn(),
            transient=True, disable=progress_disabled, console=stderr_console
        ) as progress:
            scope_task = progress.add_task("checking for changes...", total=len(candidates))
            kept = scope_filter.apply(
                candidates,
                on_checked=lambda name: progress.update(scope_task, advance=1, description=f"checked {name}"),
            )
        return kept

    def _generate(self) -> MatrixResult:
        filter_chain = self._validate()
        self._log_configuration()

        all_directories = list_subdirectories(self.config.root_path)
        candidates = filter_chain.apply(all_directories)

        if self.config.changed_only:
            self.log.debug("changed_only_mode_enabled", **self.context.describe())
            candidates = self._apply_change_scope(candidates)

        self.log.debug("directories_after_filtering", count=len(candidates))

        entries: Optional[List[MatrixEntry]] = None
        if self.config.metadata_file:
            entries = enrich_directories(self.config.root_path, candidates, self.config.metadata_file)

        matrix = build_matrix(candidates, entries)
        self.log.debug("matrix_created", matrix=matrix)

        if not candidates:
            if self.config.changed_only:
                self.log.warning("empty_matrix", note="No directories with changes were found. Matrix will be empty.")
            else:
                self.log.warning("empty_matrix", note="No directories were found after filtering. Matrix will be empty.")
        else:
            self.log.info("matrix_created_successfully", directories=len(candidates))

        return MatrixResult(matrix=matrix, directories=candidates, entries=entries)

    def generate(self) -> MatrixResult:
        # runs the full pipeline; fatal errors are logged and re-raised to the caller.
        try:
            return self._generate()
        except DirMatrixError as e:
            self.log.error("matrix_generation_failed", error_type=type(e).__name__, message=str(e))
            raise
