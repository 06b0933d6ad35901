from __future__ import annotations

import asyncio
from pathlib import Path

from .branches import select_branch
from .git import GitError, GitFacts, repository_name
from .models import Branch, CommitRecord, RepoContribution, RepoFailure


async def _effective_branch(provider: GitFacts, repo: Path, preferences: list[str], warnings: list[str]) -> str:
    try:
        branches = await provider.list_branches(repo)
    except Exception as e:
        warnings.append(f"could not list branches, using current branch: {e}")
        return ""
    chosen = select_branch([b.name for b in branches], preferences)
    if not chosen and preferences:
        warnings.append(f"no preferred branch ({', '.join(preferences)}) found, using current branch")
    return chosen


async def _commits_or_empty(
    provider: GitFacts,
    repo: Path,
    *,
    label: str,
    warnings: list[str],
    author: str | None,
    branch: str,
    limit: int,
) -> list[CommitRecord]:
    try:
        return await provider.commit_history(repo, author=author, branch=branch or None, limit=limit)
    except Exception as e:
        warnings.append(f"could not read {label} commits: {e}")
        return []


async def _branch_creator_or_none(provider: GitFacts, repo: Path, branch: str) -> str | None:
    try:
        return await provider.branch_creator(repo, branch)
    except Exception:
        return None


async def collect_branch_authors(provider: GitFacts, repo: Path, branches: list[Branch]) -> dict[str, str]:
    # Sequential: at most one git process per repository at a time.
    out: dict[str, str] = {}
    for b in branches:
        author = await _branch_creator_or_none(provider, repo, b.name)
        if author:
            out[b.name] = author
    return out


async def collect_repository(
    repo: Path | str,
    *,
    provider: GitFacts,
    preferences: list[str],
    author: str | None = None,
    recent_limit: int = 20,
    analysis_limit: int = 500,
) -> RepoContribution | RepoFailure:
    """
    Gather one repository's share of a multi-repository aggregate.

    Only the summary facts are required; the branch listing, both commit
    samples and branch attribution degrade to empty results (recorded in
    `warnings`) whatever the error. Nothing raises out of here: a repository
    whose facts cannot be read becomes a `RepoFailure`.
    """
    repo = Path(repo)
    name = repository_name(repo)
    warnings: list[str] = []
    effective = await _effective_branch(provider, repo, preferences, warnings)

    try:
        facts = await provider.repository_facts(repo, author=author)
    except GitError as e:
        return RepoFailure(name=name, path=str(repo), error=f"Failed to get repository stats: {e}")
    except Exception as e:
        return RepoFailure(name=name, path=str(repo), error=str(e) or e.__class__.__name__)

    recent, analysis = await asyncio.gather(
        _commits_or_empty(provider, repo, label="recent", warnings=warnings, author=author, branch=effective, limit=recent_limit),
        _commits_or_empty(provider, repo, label="analysis", warnings=warnings, author=None, branch=effective, limit=analysis_limit),
    )
    branch_authors = await collect_branch_authors(provider, repo, facts.branches)

    return RepoContribution(
        name=facts.name,
        path=facts.path,
        total_commits=facts.total_commits,
        branches=list(facts.branches),
        branch_authors=branch_authors,
        current_branch=facts.current_branch,
        effective_branch=effective or facts.current_branch,
        last_commit=facts.last_commit,
        recent_commits=recent,
        analysis_commits=analysis,
        warnings=warnings,
    )
