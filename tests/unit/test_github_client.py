# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.
"""Unit tests for GitHubIntegration (httpx.MockTransport)."""

import base64
import json

import httpx
import pytest

from agentflow.api.errors import GitHubAPIError, GitHubNotConfiguredError
from agentflow.core.config import settings
from agentflow.integrations.github import GitHubIntegration, create_github_client


class Recorder:
    """MockTransport handler that records requests and replays canned routes."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"message": "Not Found"})
        status, body = self.routes[key]
        return httpx.Response(status, json=body)


def _client(routes):
    recorder = Recorder(routes)
    gh = GitHubIntegration("tok", "acme", "webapp", transport=httpx.MockTransport(recorder))
    return gh, recorder


def _b64(text):
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class TestGitHubIntegration:
    @pytest.mark.asyncio
    async def test_auth_headers(self):
        gh, rec = _client({("GET", "/repos/acme/webapp"): (200, {"full_name": "acme/webapp"})})
        async with gh:
            info = await gh.get_repo_info()
        assert info["full_name"] == "acme/webapp"
        assert rec.requests[0].headers["Authorization"] == "Bearer tok"
        assert rec.requests[0].headers["Accept"] == "application/vnd.github+json"

    @pytest.mark.asyncio
    async def test_get_file_decodes_content(self):
        gh, rec = _client({
            ("GET", "/repos/acme/webapp/contents/src/app.py"): (
                200, {"content": _b64("print('hi')\n"), "sha": "abc", "path": "src/app.py", "name": "app.py"},
            ),
        })
        async with gh:
            data = await gh.get_file("src/app.py", ref="dev")
        assert data == {"content": "print('hi')\n", "sha": "abc", "path": "src/app.py", "name": "app.py"}
        assert rec.requests[0].url.params["ref"] == "dev"

    @pytest.mark.asyncio
    async def test_get_file_binary_content(self):
        raw = base64.b64encode(b"\x89PNG\xff\xfe").decode("ascii")
        gh, _ = _client({
            ("GET", "/repos/acme/webapp/contents/logo.png"): (
                200, {"content": raw, "sha": "img", "path": "logo.png", "name": "logo.png"},
            ),
        })
        async with gh:
            data = await gh.get_file("logo.png")
        assert data["content"] == "\ufffdPNG\ufffd\ufffd"
        assert data["sha"] == "img"

    @pytest.mark.asyncio
    async def test_get_file_on_directory(self):
        gh, _ = _client({("GET", "/repos/acme/webapp/contents/src"): (200, [{"name": "app.py"}])})
        async with gh:
            with pytest.raises(GitHubAPIError, match="Not a file"):
                await gh.get_file("src")

    @pytest.mark.asyncio
    async def test_update_file_sends_sha(self):
        gh, rec = _client({("PUT", "/repos/acme/webapp/contents/README.md"): (200, {"commit": {"sha": "new"}})})
        async with gh:
            await gh.update_file("README.md", "# Hi", "docs: update", sha="old", branch="dev")
        body = json.loads(rec.requests[0].content)
        assert body == {"message": "docs: update", "content": _b64("# Hi"), "branch": "dev", "sha": "old"}

    @pytest.mark.asyncio
    async def test_create_file_has_no_sha(self):
        gh, rec = _client({("PUT", "/repos/acme/webapp/contents/NEW.md"): (201, {"content": {}})})
        async with gh:
            await gh.create_file("NEW.md", "x", "add")
        assert "sha" not in json.loads(rec.requests[0].content)

    @pytest.mark.asyncio
    async def test_create_branch_from_ref(self):
        gh, rec = _client({
            ("GET", "/repos/acme/webapp/git/ref/heads/main"): (200, {"object": {"sha": "base-sha"}}),
            ("POST", "/repos/acme/webapp/git/refs"): (201, {"ref": "refs/heads/feature"}),
        })
        async with gh:
            result = await gh.create_branch("feature")
        assert result == {"ref": "refs/heads/feature"}
        assert json.loads(rec.requests[1].content) == {"ref": "refs/heads/feature", "sha": "base-sha"}

    @pytest.mark.asyncio
    async def test_search_scoped_to_repo(self):
        gh, rec = _client({("GET", "/search/code"): (200, {"total_count": 0, "items": []})})
        async with gh:
            await gh.search_code("TODO")
        assert rec.requests[0].url.params["q"] == "TODO repo:acme/webapp"

    @pytest.mark.asyncio
    async def test_commits_limit(self):
        gh, rec = _client({("GET", "/repos/acme/webapp/commits"): (200, [])})
        async with gh:
            await gh.get_recent_commits(limit=5)
        assert rec.requests[0].url.params["per_page"] == "5"

    @pytest.mark.asyncio
    async def test_upstream_client_error_passes_status(self):
        gh, _ = _client({("GET", "/repos/acme/webapp/branches"): (403, {"message": "Bad credentials"})})
        async with gh:
            with pytest.raises(GitHubAPIError) as exc_info:
                await gh.get_branches()
        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Bad credentials"

    @pytest.mark.asyncio
    async def test_upstream_server_error_is_502(self):
        gh, _ = _client({("GET", "/repos/acme/webapp/branches"): (503, {"message": "unavailable"})})
        async with gh:
            with pytest.raises(GitHubAPIError) as exc_info:
                await gh.get_branches()
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_transport_error_is_502(self):
        def explode(request):
            raise httpx.ConnectError("no route", request=request)

        gh = GitHubIntegration("tok", "acme", "webapp", transport=httpx.MockTransport(explode))
        async with gh:
            with pytest.raises(GitHubAPIError) as exc_info:
                await gh.get_repo_info()
        assert exc_info.value.status_code == 502


class TestCreateGitHubClient:
    def test_not_configured(self, monkeypatch):
        monkeypatch.setattr(settings, "GITHUB_TOKEN", "")
        with pytest.raises(GitHubNotConfiguredError):
            create_github_client()

    @pytest.mark.asyncio
    async def test_configured(self, monkeypatch):
        monkeypatch.setattr(settings, "GITHUB_TOKEN", "tok")
        monkeypatch.setattr(settings, "GITHUB_OWNER", "acme")
        monkeypatch.setattr(settings, "GITHUB_REPO", "webapp")
        gh = create_github_client()
        assert (gh.owner, gh.repo) == ("acme", "webapp")
        await gh.close()
