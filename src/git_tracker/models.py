from __future__ import annotations

import dataclasses


@dataclasses.dataclass(frozen=True)
class Branch:
    name: str
    is_current: bool = False


@dataclasses.dataclass(frozen=True)
class CommitRecord:
    hash: str
    author: str
    email: str
    date: str  # %aI, repository-local offset preserved
    message: str


@dataclasses.dataclass
class ChangeCounts:
    added: int = 0
    modified: int = 0
    deleted: int = 0
    files: list[dict[str, str]] = dataclasses.field(default_factory=list)  # {status, file}


@dataclasses.dataclass
class ChangesStatus:
    staged: ChangeCounts = dataclasses.field(default_factory=ChangeCounts)
    unstaged: ChangeCounts = dataclasses.field(default_factory=ChangeCounts)

    @property
    def is_clean(self) -> bool:
        return not self.staged.files and not self.unstaged.files


@dataclasses.dataclass
class RepositoryFacts:
    name: str
    path: str
    total_commits: int
    branches: list[Branch]
    current_branch: str
    last_commit: CommitRecord | None
    changes_status: ChangesStatus
    has_unpushed_commits: bool


@dataclasses.dataclass
class RepoContribution:
    name: str
    path: str
    total_commits: int
    branches: list[Branch]
    branch_authors: dict[str, str]  # branch -> probable creator
    current_branch: str
    effective_branch: str
    last_commit: CommitRecord | None
    recent_commits: list[CommitRecord]
    analysis_commits: list[CommitRecord]
    warnings: list[str] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class RepoFailure:
    name: str
    path: str
    error: str


@dataclasses.dataclass(frozen=True)
class Activity:
    type: str  # "commit" | "branch"
    date: str | None
    repository: str
    detail: str
    hash: str = ""


@dataclasses.dataclass
class AuthorLedgerEntry:
    author: str
    commits: int = 0
    branches: int = 0
    prs: int = 0  # no data source; always 0
    last_activity: str | None = None
    activities: list[Activity] = dataclasses.field(default_factory=list)


@dataclasses.dataclass(frozen=True)
class FeedEvent:
    repository: str
    author: str
    date: str
    detail: str
    hash: str
    type: str = "commit"


@dataclasses.dataclass
class AggregateResult:
    total_commits: int = 0
    total_branches: int = 0
    total_prs: int = 0
    repositories: list[RepoContribution] = dataclasses.field(default_factory=list)
    failures: list[RepoFailure] = dataclasses.field(default_factory=list)
    recent_activity: list[FeedEvent] = dataclasses.field(default_factory=list)
    author_ledger: list[AuthorLedgerEntry] = dataclasses.field(default_factory=list)
    author_activity: dict[str, list[Activity]] = dataclasses.field(default_factory=dict)
    all_authors: list[str] = dataclasses.field(default_factory=list)

    @property
    def failed_repositories(self) -> list[str]:
        return [f.name for f in self.failures]

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


@dataclasses.dataclass(frozen=True)
class FilteredAuthor:
    entry: AuthorLedgerEntry
    commits_in_range: int
    in_range: bool

    @property
    def author(self) -> str:
        return self.entry.author
