# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
GitHub API — Proxy routes to the configured repository.
"""

from __future__ import annotations

from typing import AsyncIterator, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from agentflow.api.errors import MissingFieldError
from agentflow.integrations.github import GitHubIntegration, create_github_client

router = APIRouter(prefix="/api/github", tags=["github"])


async def get_github_client() -> AsyncIterator[GitHubIntegration]:
    """One client per request, closed afterwards."""
    client = create_github_client()
    try:
        yield client
    finally:
        await client.close()


def _require(error: str, **values) -> None:
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise MissingFieldError(error, missing)


# ── Request models ───────────────────────────────────────────

class FileUpdateRequest(BaseModel):
    path: Optional[str] = None
    content: Optional[str] = None
    message: Optional[str] = None
    sha: Optional[str] = None
    branch: str = "main"


class FileCreateRequest(BaseModel):
    path: Optional[str] = None
    content: Optional[str] = None
    message: Optional[str] = None
    branch: str = "main"


class BranchCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    branch_name: Optional[str] = Field(None, alias="branchName")
    from_branch: str = Field("main", alias="fromBranch")


class PullRequestCreateRequest(BaseModel):
    title: Optional[str] = None
    head: Optional[str] = None
    base: str = "main"
    body: Optional[str] = None


class IssueCreateRequest(BaseModel):
    title: Optional[str] = None
    body: Optional[str] = None
    labels: Optional[List[str]] = None


# ── Contents ─────────────────────────────────────────────────

@router.get("/tree")
async def get_tree(path: str = "", ref: str = "main", github: GitHubIntegration = Depends(get_github_client)):
    return await github.get_repo_tree(path, ref)


@router.get("/file")
async def get_file(
    path: Optional[str] = None,
    ref: str = "main",
    github: GitHubIntegration = Depends(get_github_client),
):
    _require("Path is required", path=path)
    return await github.get_file(path, ref)


@router.put("/file")
async def update_file(req: FileUpdateRequest, github: GitHubIntegration = Depends(get_github_client)):
    _require(
        "Missing required fields",
        path=req.path, content=req.content, message=req.message, sha=req.sha,
    )
    return await github.update_file(req.path, req.content, req.message, req.sha, req.branch)


@router.post("/file")
async def create_file(req: FileCreateRequest, github: GitHubIntegration = Depends(get_github_client)):
    _require("Missing required fields", path=req.path, content=req.content, message=req.message)
    return await github.create_file(req.path, req.content, req.message, req.branch)


# ── Branches & pull requests ─────────────────────────────────

@router.post("/branch")
async def create_branch(req: BranchCreateRequest, github: GitHubIntegration = Depends(get_github_client)):
    _require("Branch name is required", branchName=req.branch_name)
    return await github.create_branch(req.branch_name, req.from_branch)


@router.get("/branches")
async def list_branches(github: GitHubIntegration = Depends(get_github_client)):
    return await github.get_branches()


@router.post("/pull-request")
async def create_pull_request(
    req: PullRequestCreateRequest,
    github: GitHubIntegration = Depends(get_github_client),
):
    _require("Title and head branch are required", title=req.title, head=req.head)
    return await github.create_pull_request(req.title, req.head, req.base, req.body)


@router.get("/pull-requests")
async def list_pull_requests(state: str = "open", github: GitHubIntegration = Depends(get_github_client)):
    return await github.get_pull_requests(state)


# ── Commits, repo, issues, search ────────────────────────────

@router.get("/commits")
async def list_commits(limit: int = 10, github: GitHubIntegration = Depends(get_github_client)):
    return await github.get_recent_commits(limit)


@router.get("/commits/{ref}")
async def get_commit(ref: str, github: GitHubIntegration = Depends(get_github_client)):
    return await github.get_commit_diff(ref)


@router.get("/repo")
async def get_repo(github: GitHubIntegration = Depends(get_github_client)):
    return await github.get_repo_info()


@router.post("/issue")
async def create_issue(req: IssueCreateRequest, github: GitHubIntegration = Depends(get_github_client)):
    _require("Title is required", title=req.title)
    return await github.create_issue(req.title, req.body, req.labels)


@router.get("/search")
async def search_code(q: Optional[str] = None, github: GitHubIntegration = Depends(get_github_client)):
    _require("Search query is required", q=q)
    return await github.search_code(q)
