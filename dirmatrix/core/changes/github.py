# dirmatrix/core/changes/github.py
"""GitHub REST api access for change detection.

Lists the files touched by a commit or by a pull request. Both endpoints are
paginated; every page is fetched, one after another, before the file list is
returned.
"""

from typing import Any, Dict, Iterator, List, Optional

import requests
import structlog

from dirmatrix import __version__
from dirmatrix.config.settings import DEFAULT_API_URL, DEFAULT_REQUEST_TIMEOUT
from dirmatrix.exceptions import ChangeDetectionError

log = structlog.get_logger(__name__)

PAGE_SIZE = 100


class GitHubClient:
    """Thin wrapper over a `requests.Session` carrying the bearer token."""

    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": f"dirmatrix/{__version__}",
            }
        )

    def get_commit_files(self, owner: str, repo: str, sha: str) -> List[str]:
        """Return the paths touched by commit `sha`.

        Raises:
            ChangeDetectionError: on any http or payload error.
        """
        url = f"{self.api_url}/repos/{owner}/{repo}/commits/{sha}"
        log.debug("fetching_commit_files", owner=owner, repo=repo, sha=sha)
        files: List[str] = []
        for page in self._iter_pages(url, {"per_page": PAGE_SIZE}):
            if not isinstance(page, dict) or not isinstance(page.get("files"), list):
                raise ChangeDetectionError(f"unexpected commit payload for {sha}")
            files.extend(_filenames(page["files"]))
        log.debug("commit_files_fetched", sha=sha, count=len(files))
        return files

    def list_pull_request_files(self, owner: str, repo: str, number: int) -> List[str]:
        """Return the paths changed by pull request `number`, draining every page.

        Raises:
            ChangeDetectionError: on any http or payload error.
        """
        url = f"{self.api_url}/repos/{owner}/{repo}/pulls/{number}/files"
        log.debug("fetching_pull_request_files", owner=owner, repo=repo, number=number)
        files: List[str] = []
        for page in self._iter_pages(url, {"per_page": PAGE_SIZE}):
            if not isinstance(page, list):
                raise ChangeDetectionError(f"unexpected pull request files payload for #{number}")
            files.extend(_filenames(page))
        log.debug("pull_request_files_fetched", number=number, count=len(files))
        return files

    def _iter_pages(self, url: str, params: Optional[Dict[str, Any]]) -> Iterator[Any]:
        # follows rel="next" links; the next url already carries the query string.
        next_url: Optional[str] = url
        page_params = params
        while next_url:
            response = self._get(next_url, page_params)
            try:
                yield response.json()
            except ValueError as e:
                raise ChangeDetectionError(f"invalid json from {next_url}: {e}") from e
            next_url = response.links.get("next", {}).get("url")
            page_params = None

    def _get(self, url: str, params: Optional[Dict[str, Any]]) -> requests.Response:
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ChangeDetectionError(f"GitHub api request failed for {url}: {e}") from e
        return response


def _filenames(file_entries: List[Any]) -> List[str]:
    names = []
    for entry in file_entries:
        if not isinstance(entry, dict) or not isinstance(entry.get("filename"), str):
            raise ChangeDetectionError("file entry without a filename in api payload")
        names.append(entry["filename"])
    return names
