"""Tests for the local git diff backend."""

import pytest
from pathlib import Path
from unittest.mock import patch, MagicMock

from dirmatrix.core.changes.context import EventContext
from dirmatrix.core.changes.git_utils import diff_range_for_event, get_changed_paths
from dirmatrix.exceptions import GitError


class TestDiffRangeForEvent:

    def test_push_with_before_sha(self):
        context = EventContext(event_name="push", sha="def456", before="abc123")
        assert diff_range_for_event(context) == ["abc123..def456"]

    def test_push_without_before_diffs_against_parent(self):
        context = EventContext(event_name="push", sha="def456")
        assert diff_range_for_event(context) == ["def456~1", "def456"]

    def test_pull_request_diffs_against_merge_base(self):
        context = EventContext(event_name="pull_request", pr_number=3, base_ref="main")
        assert diff_range_for_event(context) == ["origin/main...HEAD"]

    def test_pull_request_without_base_ref_raises(self):
        with pytest.raises(GitError):
            diff_range_for_event(EventContext(event_name="pull_request_target", pr_number=3))

    def test_unsupported_event(self):
        assert diff_range_for_event(EventContext(event_name="workflow_dispatch")) is None


class TestGetChangedPaths:

    @patch("dirmatrix.core.changes.git_utils.subprocess.run")
    def test_runs_diff_limited_to_subdirectory(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout="packages/dir1/a.txt\npackages/dir1/b.txt\n", stderr="")
        context = EventContext(event_name="push", sha="def456", before="abc123")

        changed = get_changed_paths(context, "packages/dir1", tmp_path)

        assert changed == ["packages/dir1/a.txt", "packages/dir1/b.txt"]
        command = mock_run.call_args[0][0]
        assert command[:3] == ["git", "diff", "--name-only"]
        assert "abc123..def456" in command
        assert command[-2:] == ["--", "packages/dir1"]
        assert mock_run.call_args[1]["cwd"] == tmp_path

    @patch("dirmatrix.core.changes.git_utils.subprocess.run")
    def test_no_output_means_no_changes(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        context = EventContext(event_name="push", sha="def456")

        assert get_changed_paths(context, "dir1", tmp_path) == []

    @patch("dirmatrix.core.changes.git_utils.subprocess.run")
    def test_failed_diff_raises_git_error(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=128, stdout="", stderr="fatal: bad revision 'abc123..def456'")
        context = EventContext(event_name="push", sha="def456", before="abc123")

        with pytest.raises(GitError) as exc_info:
            get_changed_paths(context, "dir1", tmp_path)

        assert "bad revision" in str(exc_info.value)

    @patch("dirmatrix.core.changes.git_utils.subprocess.run")
    def test_git_not_found_raises_git_error(self, mock_run, tmp_path):
        mock_run.side_effect = FileNotFoundError()
        context = EventContext(event_name="push", sha="def456")

        with pytest.raises(GitError) as exc_info:
            get_changed_paths(context, "dir1", tmp_path)

        assert "git command not found" in str(exc_info.value)

    def test_unsupported_event_raises(self, tmp_path):
        with pytest.raises(GitError):
            get_changed_paths(EventContext(event_name="schedule"), "dir1", tmp_path)

    @patch("dirmatrix.core.changes.git_utils.subprocess.run")
    def test_defaults_to_current_directory(self, mock_run, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")

        get_changed_paths(EventContext(event_name="push", sha="def456"), "dir1")

        assert Path(mock_run.call_args[1]["cwd"]) == Path.cwd()
