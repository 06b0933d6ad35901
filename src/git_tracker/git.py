from __future__ import annotations

import asyncio
from pathlib import Path

from .models import Branch, ChangeCounts, ChangesStatus, CommitRecord, RepositoryFacts

DEFAULT_TIMEOUT_S = 300

# Unit separator between fields; subjects never contain it.
_FIELD_SEP = "\x1f"
_COMMIT_FORMAT = "%x1f".join(["%H", "%an", "%ae", "%aI", "%s"])


class GitError(RuntimeError):
    def __init__(self, message: str, *, git_args: list[str] | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.git_args = list(git_args or [])
        self.stderr = stderr


class NotARepositoryError(GitError):
    pass


async def run_git(args: list[str], cwd: Path, timeout_s: float = DEFAULT_TIMEOUT_S) -> tuple[int, str, str]:
    proc = await asyncio.create_subprocess_exec(
        "git",
        *args,
        cwd=str(cwd),
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        out, err = await asyncio.wait_for(proc.communicate(), timeout=timeout_s)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise GitError(f"git {' '.join(args)} timed out after {timeout_s}s", git_args=args) from None
    return proc.returncode or 0, out.decode("utf-8", errors="replace"), err.decode("utf-8", errors="replace")


def repository_name(repo: Path | str) -> str:
    return Path(repo).name


def parse_commit_lines(out: str) -> list[CommitRecord]:
    commits: list[CommitRecord] = []
    for line in out.splitlines():
        if not line.strip():
            continue
        parts = line.split(_FIELD_SEP, 4)
        if len(parts) != 5:
            continue
        commit_hash, author, email, date, message = parts
        commits.append(CommitRecord(hash=commit_hash, author=author, email=email, date=date, message=message))
    return commits


def parse_branch_lines(out: str) -> list[Branch]:
    branches: list[Branch] = []
    seen: set[str] = set()
    for line in out.splitlines():
        if not line.strip():
            continue
        is_current = line.startswith("*")
        name = line[1:].strip()
        # "(HEAD detached at ...)" is not a branch.
        if not name or name.startswith("(") or name in seen:
            continue
        seen.add(name)
        branches.append(Branch(name=name, is_current=is_current))
    return branches


def parse_porcelain_status(out: str) -> ChangesStatus:
    changes = ChangesStatus()
    for line in out.splitlines():
        if len(line) < 4:
            continue
        staged_status, unstaged_status, path = line[0], line[1], line[3:]

        if staged_status not in (" ", "?"):
            changes.staged.files.append({"status": staged_status, "file": path})
            _count_status(changes.staged, staged_status, added="A")

        if unstaged_status != " ":
            changes.unstaged.files.append({"status": unstaged_status, "file": path})
            _count_status(changes.unstaged, unstaged_status, added="?")
    return changes


def _count_status(counts: ChangeCounts, status: str, *, added: str) -> None:
    if status == added:
        counts.added += 1
    elif status == "M":
        counts.modified += 1
    elif status == "D":
        counts.deleted += 1


def _filter_args(*, author: str | None, since: str | None, until: str | None) -> list[str]:
    args: list[str] = []
    if author:
        args.append(f"--author={author}")
    if since:
        args.append(f"--since={since}")
    if until:
        args.append(f"--until={until}")
    return args


class GitFacts:
    """
    Answers single-repository questions by invoking the `git` binary.

    Every method either returns data or raises `GitError`; a path that is not a
    git work tree raises `NotARepositoryError`.
    """

    def __init__(self, timeout_s: float = DEFAULT_TIMEOUT_S) -> None:
        self.timeout_s = timeout_s

    async def _git(self, repo: Path | str, args: list[str], *, check: bool = True) -> tuple[int, str, str]:
        repo = Path(repo)
        if not repo.is_dir():
            raise NotARepositoryError(f"{repo} is not a valid Git repository", git_args=args)
        try:
            code, out, err = await run_git(args, cwd=repo, timeout_s=self.timeout_s)
        except OSError as e:
            raise GitError(f"could not run git: {e}", git_args=args) from e
        if code != 0 and "not a git repository" in err.lower():
            raise NotARepositoryError(f"{repo} is not a valid Git repository", git_args=args, stderr=err)
        if check and code != 0:
            msg = err.strip() or f"git {' '.join(args)} exited with {code}"
            raise GitError(msg, git_args=args, stderr=err)
        return code, out, err

    async def is_repository(self, repo: Path | str) -> bool:
        try:
            _, out, _ = await self._git(repo, ["rev-parse", "--is-inside-work-tree"])
        except GitError:
            return False
        return out.strip() == "true"

    async def has_commits(self, repo: Path | str) -> bool:
        code, _, _ = await self._git(repo, ["rev-parse", "--verify", "-q", "HEAD"], check=False)
        return code == 0

    async def list_branches(self, repo: Path | str) -> list[Branch]:
        _, out, _ = await self._git(repo, ["branch", "--list", "--format=%(HEAD)%(refname:short)"])
        return parse_branch_lines(out)

    async def current_branch(self, repo: Path | str) -> str:
        code, out, _ = await self._git(repo, ["symbolic-ref", "--short", "-q", "HEAD"], check=False)
        if code == 0 and out.strip():
            return out.strip()
        # Detached HEAD.
        _, out, _ = await self._git(repo, ["rev-parse", "--abbrev-ref", "HEAD"])
        return out.strip()

    async def last_commit(self, repo: Path | str) -> CommitRecord | None:
        if not await self.has_commits(repo):
            return None
        _, out, _ = await self._git(repo, ["log", "-1", f"--format={_COMMIT_FORMAT}"])
        commits = parse_commit_lines(out)
        return commits[0] if commits else None

    async def changes_status(self, repo: Path | str) -> ChangesStatus:
        _, out, _ = await self._git(repo, ["status", "--porcelain"])
        return parse_porcelain_status(out)

    async def commit_history(
        self,
        repo: Path | str,
        *,
        author: str | None = None,
        branch: str | None = None,
        since: str | None = None,
        until: str | None = None,
        limit: int | None = None,
    ) -> list[CommitRecord]:
        if not branch and not await self.has_commits(repo):
            return []
        args = ["log", f"--format={_COMMIT_FORMAT}", *_filter_args(author=author, since=since, until=until)]
        if limit:
            args.append(f"--max-count={int(limit)}")
        if branch:
            args.append(branch)
        args.append("--")
        _, out, _ = await self._git(repo, args)
        return parse_commit_lines(out)

    async def total_commit_count(
        self,
        repo: Path | str,
        *,
        author: str | None = None,
        branch: str | None = None,
        since: str | None = None,
        until: str | None = None,
    ) -> int:
        if not branch and not await self.has_commits(repo):
            return 0
        args = ["rev-list", "--count", *_filter_args(author=author, since=since, until=until), branch or "HEAD", "--"]
        _, out, _ = await self._git(repo, args)
        try:
            return int(out.strip() or "0")
        except ValueError:
            raise GitError(f"unexpected rev-list output: {out.strip()!r}", git_args=args) from None

    async def has_unpushed_commits(self, repo: Path | str) -> bool:
        if not await self.has_commits(repo):
            return False
        args = ["log", "--oneline", "@{u}.."]
        code, out, err = await self._git(repo, args, check=False)
        if code == 0:
            return bool(out.strip())
        # No upstream (or detached HEAD) means nothing has been pushed.
        lowered = err.lower()
        if "no upstream" in lowered or "does not point to a branch" in lowered:
            return True
        raise GitError(err.strip() or "git log @{u}.. failed", git_args=args, stderr=err)

    async def branch_creator(self, repo: Path | str, branch: str) -> str | None:
        """Author of the earliest commit on `branch` that no remote-tracking branch contains."""
        _, out, _ = await self._git(repo, ["log", "--reverse", "--format=%an", branch, "--not", "--remotes", "--"])
        for line in out.splitlines():
            if line.strip():
                return line.strip()
        return None

    async def repository_facts(
        self,
        repo: Path | str,
        *,
        author: str | None = None,
        branch: str | None = None,
        since: str | None = None,
        until: str | None = None,
    ) -> RepositoryFacts:
        repo = Path(repo)
        results = await asyncio.gather(
            self.total_commit_count(repo, author=author, branch=branch, since=since, until=until),
            self.list_branches(repo),
            self.current_branch(repo),
            self.last_commit(repo),
            self.changes_status(repo),
            self.has_unpushed_commits(repo),
            return_exceptions=True,
        )
        for res in results:
            if isinstance(res, BaseException):
                raise res
        total, branches, current, last, changes, unpushed = results
        return RepositoryFacts(
            name=repository_name(repo),
            path=str(repo),
            total_commits=total,
            branches=branches,
            current_branch=current,
            last_commit=last,
            changes_status=changes,
            has_unpushed_commits=unpushed,
        )
