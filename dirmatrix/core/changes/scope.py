# dirmatrix/core/changes/scope.py
"""
Change-scope filtering.

Failure policies differ per backend and are kept apart on purpose:
  * api backend: a failed call yields an empty change set, so nothing is in
    scope (fail closed).
  * git backend: a failed diff marks the directory as changed (fail open).
An unsupported event type yields no changes with either backend.
"""
from pathlib import Path
from typing import Callable, FrozenSet, Iterable, List, Optional
import structlog

from dirmatrix.config.settings import ChangeBackend, MatrixConfig
from dirmatrix.core.changes.context import EventContext, EventKind
from dirmatrix.core.changes.git_utils import get_changed_paths
from dirmatrix.core.changes.github import GitHubClient
from dirmatrix.core.discovery.filters import RejectReason
from dirmatrix.core.outcome import Outcome
from dirmatrix.exceptions import ChangeDetectionError, GitError
from dirmatrix.util import normalize_repo_path

log = structlog.get_logger(__name__)

ChangeSet = FrozenSet[str]
GitDiffRunner = Callable[[EventContext, str], List[str]]


def repo_relative_dir(root_path: Path, dir_name: str) -> str:
    # normalized "root/dir" as it appears in change sets (relative to the checkout).
    dir_path = Path(root_path, dir_name)
    if dir_path.is_absolute():
        try:
            dir_path = dir_path.relative_to(Path.cwd())
        except ValueError:
            pass
    return normalize_repo_path(dir_path.as_posix())


def directory_has_changes(root_path: Path, dir_name: str, changed_files: Iterable[str]) -> bool:
    """
    True if any changed path equals `root/dir` or lies beneath it.
    The separator-suffixed prefix keeps `dir10/x` from matching `dir1`.
    """
    changed_files = list(changed_files or [])
    if not changed_files:
        log.debug("no_changed_files_directory_excluded", directory=dir_name)
        return False

    dir_path = repo_relative_dir(root_path, dir_name)
    dir_prefix = f"{dir_path}/" if dir_path else ""
    for changed in changed_files:
        normalized = normalize_repo_path(changed)
        if normalized == dir_path or normalized.startswith(dir_prefix):
            log.debug("change_found_in_directory", directory=dir_name, file=normalized)
            return True
    log.debug("no_changes_found_in_directory", directory=dir_name)
    return False


def fetch_change_set(client: GitHubClient, context: EventContext) -> Outcome[ChangeSet]:
    """Asks the api for the files touched by the triggering push or pull request."""
    log.debug("getting_changed_files", event_name=context.event_name)
    if context.kind != EventKind.UNSUPPORTED and not context.has_repository:
        return Outcome.failure("No repository (owner/name) available to query for changed files")
    if context.kind == EventKind.PUSH:
        if not context.sha:
            return Outcome.failure("push event without a commit sha")
        try:
            files = client.get_commit_files(context.owner, context.repo, context.sha)
        except ChangeDetectionError as e:
            return Outcome.failure(f"Error getting commit details: {e}")
        return Outcome.success(frozenset(files))

    if context.kind == EventKind.PULL_REQUEST:
        if context.pr_number is None:
            return Outcome.failure("pull request event without a pull request number")
        try:
            files = client.list_pull_request_files(context.owner, context.repo, context.pr_number)
        except ChangeDetectionError as e:
            return Outcome.failure(f"Error getting PR files: {e}")
        return Outcome.success(frozenset(files))

    return Outcome.failure(
        f"Unsupported event type: {context.event_name or '(none)'}. No changed files will be considered."
    )


class ChangeScopeFilter:
    """Keeps only the candidate directories whose subtree intersects the change set."""

    def __init__(
        self,
        config: MatrixConfig,
        context: EventContext,
        client: Optional[GitHubClient] = None,
        git_runner: GitDiffRunner = get_changed_paths,
    ):
        self.root_path = config.root_path or Path(".")
        self.backend = config.change_backend
        self.context = context
        self.git_runner = git_runner
        self.client = client
        if self.backend == ChangeBackend.API and self.client is None:
            self.client = GitHubClient(config.token or "", api_url=config.api_url, timeout=config.request_timeout)
        self._change_set: Optional[ChangeSet] = None
        self._warned_unsupported = False

    def change_set(self) -> ChangeSet:
        # fetched once per run, on first use.
        if self._change_set is None:
            outcome = fetch_change_set(self.client, self.context)
            self._change_set = outcome.unwrap_or(frozenset(), log, "change_set_unavailable")
            log.debug("changed_files_found", count=len(self._change_set))
            if not self._change_set:
                log.warning("no_changed_files_found", note="all directories will be excluded in changed-only mode")
        return self._change_set

    def has_changes(self, dir_name: str) -> bool:
        if self.backend == ChangeBackend.API:
            return directory_has_changes(self.root_path, dir_name, self.change_set())
        return self._git_has_changes(dir_name)

    def _git_has_changes(self, dir_name: str) -> bool:
        if self.context.kind == EventKind.UNSUPPORTED:
            if not self._warned_unsupported:
                log.warning(
                    "unsupported_event_type",
                    event_name=self.context.event_name or None,
                    note="no changed files will be considered",
                )
                self._warned_unsupported = True
            return False
        subdir_path = repo_relative_dir(self.root_path, dir_name)
        try:
            changed = self.git_runner(self.context, subdir_path)
        except GitError as e:
            log.warning("git_diff_failed_assuming_changed", directory=dir_name, error=str(e))
            return True
        return bool(changed)

    def apply(self, names: Iterable[str], on_checked: Optional[Callable[[str], None]] = None) -> List[str]:
        kept: List[str] = []
        for name in names:
            if self.has_changes(name):
                log.info("including_directory", directory=name, reason="changes detected")
                kept.append(name)
            else:
                log.info("skipping_directory", directory=name, reason=RejectReason.UNCHANGED.value)
            if on_checked is not None:
                on_checked(name)
        return kept
