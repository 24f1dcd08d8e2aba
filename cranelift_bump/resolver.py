"""Latest-version lookups for the backend crate.

Two independent read-only requests:
1. the crates.io registry, for the newest published version of the crate;
2. the GitHub API, for the head commit of the upstream project.

They share nothing, so resolve() issues both at once.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any

import requests

from .config import BumpConfig
from .errors import NetworkError
from .versions import is_valid_version


def make_session(config: BumpConfig) -> requests.Session:
    """Create an HTTP session with the headers both endpoints expect."""
    session = requests.Session()
    # crates.io turns away requests without a plausible user agent
    session.headers["User-Agent"] = config.user_agent
    return session


class VersionResolver:
    """Fetches the latest published version and upstream commit.

    Args:
        config: Crate name, endpoints and timeout to use.
        session: HTTP session; a new one is created when omitted.
    """

    def __init__(
        self, config: BumpConfig, session: requests.Session | None = None
    ) -> None:
        self.config = config
        self.session = session or make_session(config)

    def _get_json(self, url: str) -> Any:
        try:
            resp = self.session.get(url, timeout=self.config.http_timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as exc:
            raise NetworkError(f"request to {url} failed: {exc}") from exc
        except ValueError as exc:
            raise NetworkError(f"{url} did not return JSON: {exc}") from exc

    def latest_published_version(self) -> str:
        """Return the newest version of the primary crate on the registry.

        Raises:
            NetworkError: On transport errors, or if the response has no
                valid ``crate.newest_version`` field.
        """
        url = self.config.registry_url.format(crate=self.config.primary_crate)
        data = self._get_json(url)
        crate = data.get("crate") if isinstance(data, dict) else None
        version = crate.get("newest_version") if isinstance(crate, dict) else None
        if not isinstance(version, str) or not is_valid_version(version):
            raise NetworkError(f"{url} returned no usable newest_version: {version!r}")
        return version

    def latest_upstream_commit(self) -> str:
        """Return the commit id at the head of the upstream default branch.

        Raises:
            NetworkError: On transport errors, or if the response has no
                ``sha`` field.
        """
        url = self.config.commit_url.format(project=self.config.upstream_project)
        data = self._get_json(url)
        sha = data.get("sha") if isinstance(data, dict) else None
        if not isinstance(sha, str) or not sha:
            raise NetworkError(f"{url} returned no commit sha")
        return sha

    def resolve(self) -> tuple[str, str]:
        """Fetch the version and the commit concurrently.

        Returns:
            Tuple of (version, commit sha). Both lookups must succeed.
        """
        with ThreadPoolExecutor(max_workers=2) as executor:
            version = executor.submit(self.latest_published_version)
            commit = executor.submit(self.latest_upstream_commit)
            return version.result(), commit.result()
