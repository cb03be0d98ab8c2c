"""GitHub REST calls around the runner: registration token and removal."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger

from .constants import GITHUB_API_URL, GITHUB_API_VERSION, GITHUB_SERVER_URL
from .exceptions import ConfigurationError, GitHubError

log = logger.bind(component="github")

_PER_PAGE = 100


@dataclass(frozen=True, slots=True)
class GitHubConfig:
    """GitHub repository the runner belongs to.

    Args:
        token: Token allowed to administer the repository's runners.
        repository: ``owner/repo``.
        api_url: REST API base URL (GitHub Enterprise uses its own).
        server_url: Web URL the runner registers against.
    """

    token: str
    repository: str
    api_url: str = GITHUB_API_URL
    server_url: str = GITHUB_SERVER_URL

    def __post_init__(self) -> None:
        if not self.token:
            raise ConfigurationError("A GitHub token is required")
        owner, _, repo = self.repository.partition("/")
        if not owner or not repo:
            raise ConfigurationError(f"Repository must be 'owner/repo', got '{self.repository}'")

    @property
    def repository_url(self) -> str:
        return f"{self.server_url.rstrip('/')}/{self.repository}"


class GitHub:
    def __init__(self, config: GitHubConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.config = config
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.api_url,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {self.config.token}",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            },
            transport=self._transport,
            timeout=30,
        )

    async def _request(self, client: httpx.AsyncClient, method: str, path: str, **kwargs: Any) -> httpx.Response:
        response = await client.request(method, path, **kwargs)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.error("GitHub {method} {path} failed with {status}", method=method, path=path, status=response.status_code)
            raise GitHubError(f"GitHub {method} {path} failed: {response.status_code} {response.text}") from e
        return response

    async def registration_token(self) -> str:
        """Fetch a one-time runner registration token."""
        path = f"/repos/{self.config.repository}/actions/runners/registration-token"
        async with self._client() as client:
            response = await self._request(client, "POST", path)

        token = response.json().get("token")
        if not token:
            raise GitHubError("GitHub returned no registration token")

        log.info("GitHub registration token is received")
        return token

    async def runner(self, label: str) -> dict[str, Any] | None:
        """Find the runner carrying ``label``."""
        path = f"/repos/{self.config.repository}/actions/runners"
        page = 1
        async with self._client() as client:
            while True:
                response = await self._request(client, "GET", path, params={"per_page": _PER_PAGE, "page": page})
                runners = response.json().get("runners", [])
                for runner in runners:
                    if any(lbl.get("name") == label for lbl in runner.get("labels", [])):
                        return runner
                if len(runners) < _PER_PAGE:
                    return None
                page += 1

    async def remove_runner(self, label: str) -> None:
        """Remove the runner carrying ``label``. A missing runner is a no-op."""
        runner = await self.runner(label)
        if runner is None:
            log.warning("GitHub self-hosted runner with label {label} is not found, nothing to remove", label=label)
            return

        path = f"/repos/{self.config.repository}/actions/runners/{runner['id']}"
        async with self._client() as client:
            await self._request(client, "DELETE", path)

        log.info("GitHub self-hosted runner {name} is removed", name=runner.get("name"))
