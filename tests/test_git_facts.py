from __future__ import annotations

import os
import subprocess
from pathlib import Path

import pytest

from git_tracker.git import (
    GitFacts,
    NotARepositoryError,
    parse_branch_lines,
    parse_commit_lines,
    parse_porcelain_status,
)


def _run(cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None) -> str:
    proc = subprocess.run(cmd, cwd=str(cwd), env=env, check=True, capture_output=True, text=True)
    return proc.stdout


def _init_repo(repo: Path) -> None:
    repo.mkdir(parents=True, exist_ok=True)
    _run(["git", "init"], cwd=repo)
    _run(["git", "symbolic-ref", "HEAD", "refs/heads/main"], cwd=repo)
    _run(["git", "config", "user.name", "Test User"], cwd=repo)
    _run(["git", "config", "user.email", "test@example.com"], cwd=repo)


def _commit(repo: Path, *, author: str, date: str, message: str) -> None:
    path = repo / "log.txt"
    with path.open("a", encoding="utf-8") as f:
        f.write(f"{message}\n")
    _run(["git", "add", "log.txt"], cwd=repo)
    env = os.environ.copy()
    env["GIT_AUTHOR_NAME"] = author
    env["GIT_AUTHOR_EMAIL"] = f"{author.lower()}@example.com"
    env["GIT_COMMITTER_NAME"] = author
    env["GIT_COMMITTER_EMAIL"] = f"{author.lower()}@example.com"
    env["GIT_AUTHOR_DATE"] = date
    env["GIT_COMMITTER_DATE"] = date
    _run(["git", "commit", "-m", message], cwd=repo, env=env)


def _repo_with_feature(tmp_path: Path) -> Path:
    repo = tmp_path / "proj"
    _init_repo(repo)
    _commit(repo, author="Alice", date="2024-01-01T10:00:00+00:00", message="first")
    _commit(repo, author="Bob", date="2024-02-01T10:00:00+00:00", message="second")
    _commit(repo, author="Alice", date="2024-03-01T10:00:00+00:00", message="third")
    _run(["git", "checkout", "-q", "-b", "feature/x"], cwd=repo)
    _commit(repo, author="Carol", date="2024-04-01T10:00:00+00:00", message="feature work")
    _run(["git", "checkout", "-q", "main"], cwd=repo)
    return repo


@pytest.mark.asyncio
async def test_repository_facts(tmp_path: Path) -> None:
    repo = _repo_with_feature(tmp_path)
    facts = await GitFacts().repository_facts(repo)

    assert facts.name == "proj"
    assert facts.path == str(repo)
    assert facts.total_commits == 3
    assert {b.name for b in facts.branches} == {"main", "feature/x"}
    assert [b.name for b in facts.branches if b.is_current] == ["main"]
    assert facts.current_branch == "main"
    assert facts.last_commit is not None
    assert facts.last_commit.author == "Alice"
    assert facts.last_commit.message == "third"
    assert facts.last_commit.date.startswith("2024-03-01T10:00:00")
    assert facts.changes_status.is_clean
    # No upstream configured.
    assert facts.has_unpushed_commits is True


@pytest.mark.asyncio
async def test_author_filter_and_branch_counts(tmp_path: Path) -> None:
    repo = _repo_with_feature(tmp_path)
    git = GitFacts()

    assert await git.total_commit_count(repo, author="Alice") == 2
    assert await git.total_commit_count(repo, branch="feature/x") == 4
    assert await git.total_commit_count(repo, since="2024-02-15", until="2024-12-31") == 1


@pytest.mark.asyncio
async def test_commit_history_is_newest_first(tmp_path: Path) -> None:
    repo = _repo_with_feature(tmp_path)
    git = GitFacts()

    commits = await git.commit_history(repo)
    assert [c.message for c in commits] == ["third", "second", "first"]
    assert commits[0].email == "alice@example.com"
    assert len(commits[0].hash) == 40

    limited = await git.commit_history(repo, limit=2)
    assert [c.message for c in limited] == ["third", "second"]

    bobs = await git.commit_history(repo, author="Bob")
    assert [c.author for c in bobs] == ["Bob"]

    feature = await git.commit_history(repo, branch="feature/x", limit=1)
    assert [c.author for c in feature] == ["Carol"]


@pytest.mark.asyncio
async def test_changes_status_counts_working_tree(tmp_path: Path) -> None:
    repo = _repo_with_feature(tmp_path)
    (repo / "log.txt").write_text("rewritten\n", encoding="utf-8")
    (repo / "new.txt").write_text("new\n", encoding="utf-8")
    (repo / "staged.txt").write_text("staged\n", encoding="utf-8")
    _run(["git", "add", "staged.txt"], cwd=repo)

    status = await GitFacts().changes_status(repo)

    assert status.staged.added == 1
    assert status.unstaged.modified == 1
    assert status.unstaged.added == 1
    assert not status.is_clean


@pytest.mark.asyncio
async def test_pushed_branches_and_branch_creator(tmp_path: Path) -> None:
    repo = _repo_with_feature(tmp_path)
    remote = tmp_path / "remote.git"
    _run(["git", "init", "--bare", str(remote)], cwd=tmp_path)
    _run(["git", "remote", "add", "origin", str(remote)], cwd=repo)
    _run(["git", "push", "-q", "-u", "origin", "main"], cwd=repo)
    git = GitFacts()

    assert await git.has_unpushed_commits(repo) is False
    assert await git.branch_creator(repo, "feature/x") == "Carol"
    assert await git.branch_creator(repo, "main") is None

    _commit(repo, author="Alice", date="2024-05-01T10:00:00+00:00", message="local only")
    assert await git.has_unpushed_commits(repo) is True


@pytest.mark.asyncio
async def test_detached_head(tmp_path: Path) -> None:
    repo = _repo_with_feature(tmp_path)
    _run(["git", "checkout", "-q", "--detach", "main"], cwd=repo)
    git = GitFacts()

    assert await git.current_branch(repo) == "HEAD"
    assert {b.name for b in await git.list_branches(repo)} == {"main", "feature/x"}
    assert await git.has_unpushed_commits(repo) is True


@pytest.mark.asyncio
async def test_repository_without_commits(tmp_path: Path) -> None:
    repo = tmp_path / "empty"
    _init_repo(repo)
    git = GitFacts()

    facts = await git.repository_facts(repo)
    assert facts.total_commits == 0
    assert facts.branches == []
    assert facts.current_branch == "main"
    assert facts.last_commit is None
    assert facts.has_unpushed_commits is False
    assert await git.commit_history(repo) == []


@pytest.mark.asyncio
async def test_not_a_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    plain = tmp_path / "plain"
    plain.mkdir()
    git = GitFacts()

    assert await git.is_repository(plain) is False
    assert await git.is_repository(tmp_path / "missing") is False
    with pytest.raises(NotARepositoryError):
        await git.repository_facts(plain)
    with pytest.raises(NotARepositoryError):
        await git.repository_facts(tmp_path / "missing")


def test_parse_branch_lines() -> None:
    out = " feature/x\n*main\n*(HEAD detached at 1a2b3c4)\n main\n\n"
    branches = parse_branch_lines(out)
    assert [(b.name, b.is_current) for b in branches] == [("feature/x", False), ("main", True)]


def test_parse_porcelain_status() -> None:
    out = "M  a.txt\n M b.txt\n?? c.txt\nD  d.txt\nA  e.txt\nMM f.txt\n"
    status = parse_porcelain_status(out)

    assert (status.staged.added, status.staged.modified, status.staged.deleted) == (1, 2, 1)
    assert (status.unstaged.added, status.unstaged.modified, status.unstaged.deleted) == (1, 2, 0)
    assert {"status": "?", "file": "c.txt"} in status.unstaged.files
    assert len(status.staged.files) == 4


def test_parse_commit_lines_skips_malformed() -> None:
    good = "\x1f".join(["abc123", "Alice", "alice@example.com", "2024-01-01T00:00:00+00:00", "fix: a|b"])
    commits = parse_commit_lines(f"{good}\nnot a commit line\n\n")
    assert len(commits) == 1
    assert commits[0].author == "Alice"
    assert commits[0].message == "fix: a|b"
