from __future__ import annotations

from pathlib import Path

from git_tracker.config import Settings
from git_tracker.run import format_startup_header


def test_format_startup_header_explains_run_plan() -> None:
    out = format_startup_header(
        repos=[Path("/src/web"), Path("/src/api")],
        author="",
        preferences=["main", "master"],
        settings=Settings(),
    )

    assert "git-tracker" in out
    assert "Run plan:" in out
    assert "1) Repositories: 2" in out
    assert "2) Branch preference: main, master" in out
    assert "20 recent" in out
    assert "500 for authorship" in out
    assert "4) Author filter: all" in out
    assert "5)" not in out
    assert "read-only" in out.lower()


def test_format_startup_header_mentions_range_and_search() -> None:
    out = format_startup_header(
        repos=[Path("/src/web")],
        author="Alice",
        preferences=[],
        settings=Settings(recent_commit_limit=5),
        since="2024-01-01",
        search="ali",
    )

    assert "Branch preference: (current branch)" in out
    assert "5 recent" in out
    assert "Author filter: Alice" in out
    assert "5) Activity range: 2024-01-01 -> now" in out
    assert "'ali'" in out
