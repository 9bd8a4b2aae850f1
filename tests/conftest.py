import logging
from pathlib import Path
from typing import Dict, Optional

import pytest
import structlog

from dirmatrix.config import loader


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keeps real CI variables and user config files out of every test."""
    for var in (
        "GITHUB_OUTPUT", "GITHUB_ACTIONS", "GITHUB_TOKEN", "GITHUB_API_URL", "GITHUB_EVENT_NAME",
        "GITHUB_EVENT_PATH", "GITHUB_REPOSITORY", "GITHUB_SHA", "GITHUB_BASE_REF",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(loader, "USER_CONFIG_FILE", tmp_path / "no-user-config" / "config.toml")
    yield
    logging.getLogger("dirmatrix").handlers.clear()
    structlog.reset_defaults()


def create_tree(root: Path, layout: Dict[str, Optional[str]]) -> Path:
    """
    Builds a directory tree. Keys ending in "/" are directories; other keys
    are files whose value is their text content.
    """
    root.mkdir(parents=True, exist_ok=True)
    for rel_path, content in layout.items():
        target = root / rel_path
        if rel_path.endswith("/"):
            target.mkdir(parents=True, exist_ok=True)
        else:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content or "", encoding="utf-8")
    return root


@pytest.fixture
def make_tree(tmp_path):
    def _make(layout: Dict[str, Optional[str]], name: str = "repo") -> Path:
        return create_tree(tmp_path / name, layout)
    return _make
