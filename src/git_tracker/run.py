from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Iterable
from pathlib import Path

from .activity_filter import filter_ledger
from .aggregate import aggregate
from .branches import parse_branch_preferences, resolve_requested_branch
from .collect import collect_repository
from .config import Settings
from .git import GitFacts, NotARepositoryError
from .models import AggregateResult, AuthorLedgerEntry, CommitRecord, FilteredAuthor, RepositoryFacts
from .periods import parse_date_range


def format_startup_header(
    *,
    repos: list[Path],
    author: str,
    preferences: list[str],
    settings: Settings,
    since: str = "",
    until: str = "",
    search: str = "",
) -> str:
    lines = [
        "┌──────────────────────────────────────────────────────────────┐",
        "│                         git-tracker                          │",
        "└──────────────────────────────────────────────────────────────┘",
        "",
        "Run plan:",
        f"1) Repositories: {len(repos)} (collected concurrently; a failing repo is reported, not fatal)",
        f"2) Branch preference: {', '.join(preferences) if preferences else '(current branch)'}",
        f"3) Samples per repo: {settings.recent_commit_limit} recent (feed), {settings.analysis_commit_limit} for authorship",
        f"4) Author filter: {author or 'all'}",
    ]
    if since or until:
        lines.append(f"5) Activity range: {since or 'beginning'} -> {until or 'now'} (inclusive)")
    if search:
        lines.append(f"   Author search: {search!r}")
    lines.append("Git access is read-only; nothing is written to the repositories.")
    lines.append("")
    return "\n".join(lines)


async def aggregate_repositories(
    repos: Iterable[Path | str],
    *,
    author: str | None = None,
    preferences: Iterable[str] | str | None = None,
    provider: GitFacts | None = None,
    settings: Settings | None = None,
) -> AggregateResult:
    """
    Collect every repository concurrently and merge the results.

    Every requested repository ends up either in `result.repositories` or in
    `result.failures`. An empty repository list is rejected up front.
    """
    repo_paths = [Path(r) for r in repos]
    if not repo_paths:
        raise ValueError("Repository paths are required")
    if settings is None:
        settings = Settings()
    if provider is None:
        provider = GitFacts(timeout_s=settings.git_timeout_s)
    prefs = parse_branch_preferences(preferences) if preferences is not None else list(settings.branch_preferences)
    author = (author or settings.author or "").strip() or None

    contributions = await asyncio.gather(
        *(
            collect_repository(
                repo,
                provider=provider,
                preferences=prefs,
                author=author,
                recent_limit=settings.recent_commit_limit,
                analysis_limit=settings.analysis_commit_limit,
            )
            for repo in repo_paths
        )
    )
    return aggregate(contributions, feed_limit=settings.feed_limit)


def filter_activity(
    ledger: list[AuthorLedgerEntry],
    *,
    since: str | None = None,
    until: str | None = None,
    search: str = "",
) -> list[FilteredAuthor]:
    date_range = parse_date_range(since, until)
    return filter_ledger(ledger, date_range, search)


async def _resolve_branch(provider: GitFacts, repo: Path, branch: str | None) -> str:
    if not branch:
        return ""
    branches = await provider.list_branches(repo)
    return resolve_requested_branch([b.name for b in branches], branch)


async def repository_stats(
    repo: Path | str,
    *,
    author: str | None = None,
    since: str | None = None,
    until: str | None = None,
    branch: str | None = None,
    provider: GitFacts | None = None,
    limit: int = 50,
) -> tuple[RepositoryFacts, list[CommitRecord]]:
    """Facts plus a commit sample for one repository, with optional filters."""
    repo = Path(repo)
    date_range = parse_date_range(since, until)
    if provider is None:
        provider = GitFacts()
    if not await provider.is_repository(repo):
        raise NotARepositoryError(f"{repo} is not a valid Git repository")

    use_branch = await _resolve_branch(provider, repo, branch)
    since_arg = date_range.start_iso if date_range is not None and since else None
    until_arg = f"{date_range.end_iso} 23:59:59" if date_range is not None and until else None
    facts = await provider.repository_facts(repo, author=author, branch=use_branch or None, since=since_arg, until=until_arg)
    commits = await provider.commit_history(
        repo, author=author, branch=use_branch or None, since=since_arg, until=until_arg, limit=limit
    )
    return facts, commits


async def repository_authors(
    repo: Path | str,
    *,
    branch: str | None = None,
    provider: GitFacts | None = None,
    limit: int = 500,
) -> list[str]:
    """Distinct author names on the resolved branch, in first-seen (newest first) order."""
    repo = Path(repo)
    if provider is None:
        provider = GitFacts()
    if not await provider.is_repository(repo):
        raise NotARepositoryError(f"{repo} is not a valid Git repository")
    use_branch = await _resolve_branch(provider, repo, branch)
    commits = await provider.commit_history(repo, branch=use_branch or None, limit=limit)
    return unique_authors(c.author for c in commits)


def unique_authors(names: Iterable[str]) -> list[str]:
    out: list[str] = []
    seen: set[str] = set()
    for name in names:
        if name and name not in seen:
            seen.add(name)
            out.append(name)
    return out


def result_to_dict(result: AggregateResult, filtered: list[FilteredAuthor] | None = None) -> dict:
    out = result.to_dict()
    out["failed_repositories"] = result.failed_repositories
    if filtered is not None:
        out["filtered_authors"] = [
            {"author": v.author, "commits_in_range": v.commits_in_range, "in_range": v.in_range} for v in filtered
        ]
    return out


def facts_to_dict(facts: RepositoryFacts) -> dict:
    return dataclasses.asdict(facts)
