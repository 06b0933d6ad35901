from __future__ import annotations

from collections.abc import Iterable

from .models import (
    Activity,
    AggregateResult,
    AuthorLedgerEntry,
    FeedEvent,
    RepoContribution,
    RepoFailure,
)
from .periods import newest_first_key, parse_timestamp

FEED_LIMIT = 50


def partition_contributions(
    contributions: Iterable[RepoContribution | RepoFailure],
) -> tuple[list[RepoContribution], list[RepoFailure]]:
    ok: list[RepoContribution] = []
    failed: list[RepoFailure] = []
    for c in contributions:
        if isinstance(c, RepoFailure):
            failed.append(c)
        else:
            ok.append(c)
    return ok, failed


def _entry(ledger: dict[str, AuthorLedgerEntry], author: str) -> AuthorLedgerEntry:
    cur = ledger.get(author)
    if cur is None:
        cur = AuthorLedgerEntry(author=author)
        ledger[author] = cur
    return cur


def _touch_last_activity(entry: AuthorLedgerEntry, date: str | None) -> None:
    when = parse_timestamp(date)
    if when is None:
        return
    last = parse_timestamp(entry.last_activity)
    if last is None or when > last:
        entry.last_activity = date


def merge_commit_activity(ledger: dict[str, AuthorLedgerEntry], repo: RepoContribution) -> None:
    for commit in repo.analysis_commits:
        entry = _entry(ledger, commit.author)
        entry.commits += 1
        entry.activities.append(
            Activity(type="commit", date=commit.date or None, repository=repo.name, detail=commit.message, hash=commit.hash)
        )
        _touch_last_activity(entry, commit.date)


def merge_branch_activity(ledger: dict[str, AuthorLedgerEntry], repo: RepoContribution) -> None:
    for branch_name, author in repo.branch_authors.items():
        entry = _entry(ledger, author)
        entry.branches += 1
        # Branch creation time is unknown.
        entry.activities.append(Activity(type="branch", date=None, repository=repo.name, detail=f"Created branch: {branch_name}"))


def build_author_ledger(repos: list[RepoContribution]) -> dict[str, AuthorLedgerEntry]:
    """
    Merge every repository's authorship into one ledger keyed by exact author name.

    Each repository contributes its commits and then its branch attributions, so
    first-seen order follows repository order.
    """
    ledger: dict[str, AuthorLedgerEntry] = {}
    for r in repos:
        merge_commit_activity(ledger, r)
        merge_branch_activity(ledger, r)
    return ledger


def rank_authors(ledger: dict[str, AuthorLedgerEntry]) -> list[AuthorLedgerEntry]:
    # sorted() is stable: equal counts keep first-seen order.
    return sorted(ledger.values(), key=lambda e: -e.commits)


def build_recent_activity(repos: list[RepoContribution], limit: int = FEED_LIMIT) -> list[FeedEvent]:
    events = [
        FeedEvent(repository=r.name, author=c.author, date=c.date, detail=c.message, hash=c.hash)
        for r in repos
        for c in r.recent_commits
    ]
    events.sort(key=lambda ev: newest_first_key(ev.date))
    return events[: max(0, limit)]


def sort_activities(activities: list[Activity]) -> list[Activity]:
    return sorted(activities, key=lambda a: newest_first_key(a.date))


def aggregate(contributions: Iterable[RepoContribution | RepoFailure], *, feed_limit: int = FEED_LIMIT) -> AggregateResult:
    """Combine per-repository results; failures are reported, never raised."""
    repos, failures = partition_contributions(contributions)

    ledger = build_author_ledger(repos)
    ranked = rank_authors(ledger)

    return AggregateResult(
        total_commits=sum(int(r.total_commits) for r in repos),
        total_branches=sum(len(r.branches) for r in repos),
        total_prs=0,
        repositories=repos,
        failures=failures,
        recent_activity=build_recent_activity(repos, limit=feed_limit),
        author_ledger=ranked,
        author_activity={e.author: sort_activities(e.activities) for e in ranked},
        all_authors=[e.author for e in ranked],
    )
