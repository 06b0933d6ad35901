from __future__ import annotations

from collections.abc import Iterable

DEFAULT_BRANCH_PREFERENCES = ["main", "master"]


def parse_branch_preferences(value: str | Iterable[str] | None) -> list[str]:
    """Accept "main, master" or a list of names; trims and drops empties, keeps order."""
    if value is None:
        return list(DEFAULT_BRANCH_PREFERENCES)
    parts = value.split(",") if isinstance(value, str) else list(value)
    out: list[str] = []
    for part in parts:
        name = str(part).strip()
        if name and name not in out:
            out.append(name)
    return out


def select_branch(available: Iterable[str], preferences: Iterable[str]) -> str:
    """
    First preferred branch that exists in the repository.

    Preference order wins over the order branches are listed in. An empty
    string means "use the repository's current branch".
    """
    names = set(available)
    if not names:
        return ""
    for name in preferences:
        if name in names:
            return name
    return ""


def resolve_requested_branch(available: Iterable[str], requested: str | None) -> str:
    """Requested branch if present, else main, else master, else the current branch ("")."""
    if not requested:
        return ""
    return select_branch(available, [requested, *DEFAULT_BRANCH_PREFERENCES])
