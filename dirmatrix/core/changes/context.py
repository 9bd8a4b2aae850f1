# dirmatrix/core/changes/context.py
"""
The triggering event, as an explicit value.

Built once from CLI overrides and the GITHUB_* environment (plus the event
payload file the runner writes), then handed to the change-scope filter so
nothing downstream reads process-wide state.
"""
import json
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import structlog

from dirmatrix.config.settings import MatrixConfig

log = structlog.get_logger(__name__)

PUSH_EVENTS = frozenset({"push"})
PULL_REQUEST_EVENTS = frozenset({"pull_request", "pull_request_target"})
NULL_SHA = "0" * 40


class EventKind(Enum):
    PUSH = "push"
    PULL_REQUEST = "pull_request"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class EventContext:
    event_name: str = ""
    owner: str = ""
    repo: str = ""
    sha: Optional[str] = None
    before: Optional[str] = None
    pr_number: Optional[int] = None
    base_ref: Optional[str] = None

    @property
    def kind(self) -> EventKind:
        if self.event_name in PUSH_EVENTS:
            return EventKind.PUSH
        if self.event_name in PULL_REQUEST_EVENTS:
            return EventKind.PULL_REQUEST
        return EventKind.UNSUPPORTED

    @property
    def has_repository(self) -> bool:
        return bool(self.owner and self.repo)

    @classmethod
    def from_environment(cls, config: MatrixConfig, environ: Optional[Mapping[str, str]] = None) -> "EventContext":
        """Explicit config values win; anything unset is read from `environ` (default os.environ)."""
        env = os.environ if environ is None else environ
        payload = _load_event_payload(env.get("GITHUB_EVENT_PATH"))

        event_name = config.event_name or env.get("GITHUB_EVENT_NAME", "")
        owner, repo = _split_repository(config.repository or env.get("GITHUB_REPOSITORY", ""))
        sha = config.sha or env.get("GITHUB_SHA") or None

        before = config.before or payload.get("before") or None
        if before == NULL_SHA:
            before = None

        pull_request = payload.get("pull_request") or {}
        pr_number = config.pr_number
        if pr_number is None and isinstance(pull_request.get("number"), int):
            pr_number = pull_request["number"]

        base_ref = config.base_ref or env.get("GITHUB_BASE_REF") or None
        if base_ref is None and isinstance(pull_request.get("base"), dict):
            base_ref = pull_request["base"].get("ref") or None

        context = cls(
            event_name=event_name,
            owner=owner,
            repo=repo,
            sha=sha,
            before=before,
            pr_number=pr_number,
            base_ref=base_ref,
        )
        log.debug("event_context_resolved", **context.describe())
        return context

    def describe(self) -> Dict[str, Any]:
        return {
            "event_name": self.event_name,
            "repository": f"{self.owner}/{self.repo}" if self.has_repository else None,
            "sha": self.sha,
            "before": self.before,
            "pr_number": self.pr_number,
            "base_ref": self.base_ref,
        }


def _split_repository(full_name: str) -> tuple[str, str]:
    owner, sep, repo = full_name.strip().partition("/")
    if not sep or not owner or not repo or "/" in repo:
        if full_name.strip():
            log.warning("invalid_repository_name", repository=full_name)
        return "", ""
    return owner, repo


def _load_event_payload(event_path: Optional[str]) -> Dict[str, Any]:
    # the runner's webhook payload; absent or unreadable payloads yield {}.
    if not event_path:
        return {}
    try:
        data = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning("event_payload_unreadable", path=event_path, error=str(e))
        return {}
    if not isinstance(data, dict):
        log.warning("event_payload_not_an_object", path=event_path)
        return {}
    return data
