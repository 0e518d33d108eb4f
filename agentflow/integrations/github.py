# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
GitHub Client — REST v3 access to the repository a project ships into.

Used by the dashboard code view: browse the tree, read and write files,
branch, open pull requests and issues.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Optional

import httpx

from agentflow.api.errors import GitHubAPIError, GitHubNotConfiguredError
from agentflow.core.config import settings

logger = logging.getLogger("agentflow.github")


class GitHubIntegration:
    """
    GitHub REST API client bound to one repository.

    Usage:
        async with GitHubIntegration(token, "acme", "webapp") as gh:
            file = await gh.get_file("README.md")
    """

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        base_url: str = "https://api.github.com",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=30.0,
            transport=transport,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
        )

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error("GitHub %s %s failed: %s", method, url, e)
            raise GitHubAPIError(f"GitHub request failed: {e}") from e

        if resp.status_code >= 400:
            try:
                message = resp.json().get("message") or resp.text
            except ValueError:
                message = resp.text
            logger.warning("GitHub %s %s -> %d: %s", method, url, resp.status_code, message)
            raise GitHubAPIError(message or f"GitHub returned {resp.status_code}", resp.status_code)

        return resp.json() if resp.content else None

    # ── Contents ──────────────────────────────────────────────

    async def get_repo_tree(self, path: str = "", ref: str = "main") -> Any:
        """Directory listing (a list) or file entry (a dict) at `path`."""
        return await self._request("GET", f"{self._repo_path}/contents/{path}", params={"ref": ref})

    async def get_file(self, path: str, ref: str = "main") -> Dict[str, Any]:
        data = await self._request("GET", f"{self._repo_path}/contents/{path}", params={"ref": ref})
        if not isinstance(data, dict) or "content" not in data:
            raise GitHubAPIError("Not a file")
        return {
            "content": base64.b64decode(data["content"]).decode("utf-8", errors="replace"),
            "sha": data.get("sha"),
            "path": data.get("path"),
            "name": data.get("name"),
        }

    async def update_file(
        self,
        path: str,
        content: str,
        message: str,
        sha: str,
        branch: str = "main",
    ) -> Dict[str, Any]:
        return await self._put_contents(path, content, message, branch, sha=sha)

    async def create_file(
        self,
        path: str,
        content: str,
        message: str,
        branch: str = "main",
    ) -> Dict[str, Any]:
        return await self._put_contents(path, content, message, branch)

    async def _put_contents(
        self,
        path: str,
        content: str,
        message: str,
        branch: str,
        sha: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
        }
        if sha:
            body["sha"] = sha
        return await self._request("PUT", f"{self._repo_path}/contents/{path}", json=body)

    # ── Branches & pull requests ──────────────────────────────

    async def create_branch(self, branch_name: str, from_branch: str = "main") -> Dict[str, Any]:
        ref = await self._request("GET", f"{self._repo_path}/git/ref/heads/{from_branch}")
        return await self._request(
            "POST",
            f"{self._repo_path}/git/refs",
            json={"ref": f"refs/heads/{branch_name}", "sha": ref["object"]["sha"]},
        )

    async def get_branches(self) -> List[Dict[str, Any]]:
        return await self._request("GET", f"{self._repo_path}/branches")

    async def create_pull_request(
        self,
        title: str,
        head: str,
        base: str = "main",
        body: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = {"title": title, "head": head, "base": base}
        if body is not None:
            payload["body"] = body
        return await self._request("POST", f"{self._repo_path}/pulls", json=payload)

    async def get_pull_requests(self, state: str = "open") -> List[Dict[str, Any]]:
        return await self._request("GET", f"{self._repo_path}/pulls", params={"state": state})

    # ── Commits ───────────────────────────────────────────────

    async def get_recent_commits(self, limit: int = 10) -> List[Dict[str, Any]]:
        return await self._request("GET", f"{self._repo_path}/commits", params={"per_page": limit})

    async def get_commit_diff(self, ref: str) -> Dict[str, Any]:
        return await self._request("GET", f"{self._repo_path}/commits/{ref}")

    # ── Repository, issues, search ────────────────────────────

    async def get_repo_info(self) -> Dict[str, Any]:
        return await self._request("GET", self._repo_path)

    async def create_issue(
        self,
        title: str,
        body: Optional[str] = None,
        labels: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"title": title}
        if body is not None:
            payload["body"] = body
        if labels:
            payload["labels"] = labels
        return await self._request("POST", f"{self._repo_path}/issues", json=payload)

    async def search_code(self, query: str) -> Dict[str, Any]:
        """Code search scoped to this repository."""
        return await self._request(
            "GET", "/search/code", params={"q": f"{query} repo:{self.owner}/{self.repo}"},
        )

    # ── Lifecycle ─────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GitHubIntegration":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


def create_github_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> GitHubIntegration:
    """Client for the configured repository, or GitHubNotConfiguredError."""
    if not (settings.GITHUB_TOKEN and settings.GITHUB_OWNER and settings.GITHUB_REPO):
        raise GitHubNotConfiguredError()
    return GitHubIntegration(
        settings.GITHUB_TOKEN,
        settings.GITHUB_OWNER,
        settings.GITHUB_REPO,
        base_url=settings.GITHUB_API_URL,
        transport=transport,
    )
