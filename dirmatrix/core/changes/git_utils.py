# dirmatrix/core/changes/git_utils.py
"""
utility functions for asking the local git checkout which paths changed.
abstracts git command execution and error handling.
"""
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple
import structlog

from dirmatrix.core.changes.context import EventContext, EventKind
from dirmatrix.exceptions import GitError

log = structlog.get_logger(__name__)


def _run_git_command(
    args: list[str], repo_path: Path, check_exit_code: bool = True
) -> Tuple[bool, str, str]:
    """
    runs a git command via subprocess.
    returns a tuple: (success_flag, stdout_str, stderr_str).
    if `check_exit_code` is true, raises `GitError` on non-zero exit.
    """
    command_parts = ["git"] + [str(arg) for arg in args]
    log.debug("executing_git_command", command=" ".join(command_parts), cwd=str(repo_path))
    try:
        process = subprocess.run(
            command_parts,
            capture_output=True,
            text=True,
            check=False,
            cwd=repo_path,
            encoding="utf-8",
            errors="replace",
        )
    except FileNotFoundError:  # 'git' executable not found
        log.error("git_executable_not_found", note="ensure git is installed and in your system's path.")
        raise GitError("git command not found. is git installed and in path?") from None
    except OSError as e:
        raise GitError(f"failed to run git command {' '.join(args)}: {e}") from e

    was_successful = process.returncode == 0
    stdout_content = (process.stdout or "").strip()
    stderr_content = (process.stderr or "").strip()

    if not was_successful:
        error_details = {
            "command": " ".join(command_parts),
            "exit_code": process.returncode,
            "repo_path": str(repo_path),
            "stderr": stderr_content if stderr_content else "(empty)",
        }
        log.warning("git_command_failed", **error_details)
        if check_exit_code:
            raise GitError(f"git command failed: {stderr_content or 'exit code ' + str(process.returncode)}")

    return was_successful, stdout_content, stderr_content


def diff_range_for_event(context: EventContext) -> Optional[List[str]]:
    """
    the revision arguments for `git diff` matching the trigger:
    push -> `before..sha` (or `sha~1 sha` when no usable before sha exists),
    pull request -> `origin/<base>...HEAD` (changes since the merge base).
    returns none for unsupported events.
    """
    if context.kind == EventKind.PUSH:
        head = context.sha or "HEAD"
        if context.before:
            return [f"{context.before}..{head}"]
        return [f"{head}~1", head]
    if context.kind == EventKind.PULL_REQUEST:
        if not context.base_ref:
            raise GitError("pull request event without a base ref; cannot compute merge-base diff")
        return [f"origin/{context.base_ref}...HEAD"]
    return None


def get_changed_paths(context: EventContext, subdir_path: str, repo_path: Optional[Path] = None) -> List[str]:
    """
    lists the paths under `subdir_path` changed by the triggering event.
    raises `GitError` if the diff cannot be computed; callers decide the fallback.
    """
    revisions = diff_range_for_event(context)
    if revisions is None:
        raise GitError(f"no diff range for event type '{context.event_name}'")

    _, stdout_str, _ = _run_git_command(
        ["diff", "--name-only", "--no-color", *revisions, "--", subdir_path],
        repo_path or Path.cwd(),
    )
    changed = [line.strip() for line in stdout_str.splitlines() if line.strip()]
    log.debug("git_changed_paths", subdir=subdir_path, count=len(changed))
    return changed
